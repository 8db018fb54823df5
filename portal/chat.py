"""
Чат тикета: сообщения, история и рассылка подписчикам комнаты тикета
"""
from flask import current_app

from portal.core import get_db
from portal.errors import AccessDeniedError, NotFoundError
from portal.models import TicketMessage
from portal.tickets import get_ticket, can_view
from portal.utils import utcnow, iso
from portal.validation import Validator
from portal import notifications, realtime

db = get_db()


def message_to_dict(m):
    return {
        'id': m.id,
        'ticket_id': m.ticket_id,
        'author_id': m.author_id,
        'author_name': m.author.full_name if m.author else None,
        'author_role': m.author.role if m.author else None,
        'message': m.message,
        'created_at': iso(m.created_at),
        'updated_at': iso(m.updated_at),
        'edited': m.updated_at is not None,
    }


def _read_text(data):
    v = Validator(data)
    text = v.string('message', required=True, min_len=1, max_len=2000)
    return v, text


def _accessible_ticket(actor, ticket_id):
    ticket = get_ticket(ticket_id)
    if not can_view(actor, ticket):
        raise AccessDeniedError(f"user {actor.id} has no access to chat of ticket {ticket.id}")
    return ticket


def _get_message(message_id):
    message = db.session.get(TicketMessage, message_id)
    if not message:
        raise NotFoundError("TicketMessage", "id", message_id)
    return message


def _check_can_modify(actor, message):
    if not actor.is_privileged and message.author_id != actor.id:
        raise AccessDeniedError(f"user {actor.id} cannot modify message {message.id}")


def send_message(actor, data):
    v, text = _read_text(data)
    ticket_id = v.integer('ticket_id', required=True)
    v.check()

    ticket = _accessible_ticket(actor, ticket_id)
    message = TicketMessage(ticket=ticket, author=actor, message=text)
    db.session.add(message)
    db.session.commit()

    payload = message_to_dict(message)
    realtime.broadcast_ticket_event(ticket.id, 'message_created', payload)

    recipients = {u.id: u for u in (ticket.requester, ticket.assignee) if u and u.id != actor.id}
    for user in recipients.values():
        notifications.notify_user_in_app(user, f"New message in ticket #{ticket.id}", text[:200])
    return message


def history(actor, ticket_id):
    ticket = _accessible_ticket(actor, ticket_id)
    rows = ticket.messages.order_by(TicketMessage.created_at.asc(), TicketMessage.id.asc()).all()
    return [message_to_dict(m) for m in rows]


def summary(actor, ticket_id):
    ticket = _accessible_ticket(actor, ticket_id)
    last = ticket.messages.order_by(TicketMessage.created_at.desc(), TicketMessage.id.desc()).first()
    return {
        'ticket_id': ticket.id,
        'message_count': ticket.messages.count(),
        'last_message': message_to_dict(last) if last else None,
    }


def update_message(actor, message_id, data):
    message = _get_message(message_id)
    _check_can_modify(actor, message)
    v, text = _read_text(data)
    v.check()

    message.message = text
    message.updated_at = utcnow()
    db.session.commit()
    realtime.broadcast_ticket_event(message.ticket_id, 'message_updated', message_to_dict(message))
    return message


def delete_message(actor, message_id):
    message = _get_message(message_id)
    _check_can_modify(actor, message)
    ticket_id = message.ticket_id
    db.session.delete(message)
    db.session.commit()
    current_app.logger.info(f"Message {message_id} in ticket #{ticket_id} deleted by user {actor.id}")
    realtime.broadcast_ticket_event(ticket_id, 'message_deleted', {'id': message_id, 'ticket_id': ticket_id})
