"""
Жизненный цикл тикетов: создание, видимость, обновление, назначение,
смена статуса, удаление и история изменений.

NEW -> IN_PROGRESS -> RESOLVED / CLOSED. closed_at ставится один раз,
при первом переходе в RESOLVED или CLOSED.
"""
from flask import current_app
from sqlalchemy import func, or_

from portal.core import get_db
from portal.enums import TicketStatus, TicketPriority, Role, FINISHED_STATUSES
from portal.errors import AccessDeniedError, BadRequestError, NotFoundError
from portal.models import Ticket, TicketHistory, TicketMessage, User, EngineerGroup
from portal.pagination import paginate
from portal.utils import utcnow, iso
from portal.validation import Validator
from portal import notifications

db = get_db()

TICKET_SORT_FIELDS = ('id', 'title', 'status', 'priority', 'created_at', 'updated_at', 'due_at', 'closed_at')
RESTRICTED_FIELDS = ('status', 'priority', 'assignee_id', 'group_id', 'due_at')


def _user_brief(user):
    if not user:
        return None
    return {'id': user.id, 'email': user.email, 'full_name': user.full_name}


def ticket_to_dict(t):
    return {
        'id': t.id,
        'title': t.title,
        'description': t.description,
        'status': t.status,
        'priority': t.priority,
        'requester_id': t.requester_id,
        'requester': _user_brief(t.requester),
        'assignee_id': t.assignee_id,
        'assignee': _user_brief(t.assignee),
        'group_id': t.group_id,
        'group_name': t.group.name if t.group else None,
        'due_at': iso(t.due_at),
        'created_at': iso(t.created_at),
        'updated_at': iso(t.updated_at),
        'closed_at': iso(t.closed_at),
    }


def history_to_dict(h):
    return {
        'id': h.id,
        'ticket_id': h.ticket_id,
        'changed_by_id': h.changed_by_id,
        'changed_by': h.changed_by.full_name if h.changed_by else None,
        'field': h.field,
        'old_value': h.old_value,
        'new_value': h.new_value,
        'created_at': iso(h.created_at),
    }


def get_ticket(ticket_id):
    ticket = db.session.get(Ticket, ticket_id)
    if not ticket:
        raise NotFoundError("Ticket", "id", ticket_id)
    return ticket


def can_view(user, ticket):
    return user.is_privileged or ticket.requester_id == user.id or ticket.assignee_id == user.id


def get_visible_ticket(actor, ticket_id):
    ticket = get_ticket(ticket_id)
    if not can_view(actor, ticket):
        raise AccessDeniedError(f"user {actor.id} cannot view ticket {ticket.id}")
    return ticket


def _record(ticket, actor, field, old, new):
    old = iso(old) if hasattr(old, 'isoformat') else old
    new = iso(new) if hasattr(new, 'isoformat') else new
    if old == new:
        return
    db.session.add(TicketHistory(
        ticket=ticket,
        changed_by_id=actor.id if actor else None,
        field=field,
        old_value=None if old is None else str(old),
        new_value=None if new is None else str(new),
    ))


def _set(ticket, actor, field, value):
    old = getattr(ticket, field)
    if old != value:
        _record(ticket, actor, field, old, value)
        setattr(ticket, field, value)


def _get_group(group_id):
    group = db.session.get(EngineerGroup, group_id)
    if not group:
        raise NotFoundError("EngineerGroup", "id", group_id)
    return group


def _get_assignable(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User", "id", user_id)
    if not user.is_privileged:
        raise BadRequestError("Assignee must be an engineer or admin")
    if not user.is_active:
        raise BadRequestError("Assignee account is deactivated")
    return user


# ============================================================================
# CREATE / READ
# ============================================================================

def create_ticket(actor, data):
    """Тикет от имени вызывающего; исполнитель и группа задаются только админом"""
    v = Validator(data)
    title = v.string('title', required=True, min_len=3, max_len=200)
    description = v.string('description', max_len=10000)
    priority = v.choice('priority', TicketPriority) or TicketPriority.MEDIUM.value
    assignee_id = v.integer('assignee_id')
    group_id = v.integer('group_id')
    due_at = v.datetime('due_at')
    v.check()

    if (assignee_id is not None or group_id is not None) and not actor.is_admin:
        raise AccessDeniedError(f"user {actor.id} tried to set assignee/group on create")

    ticket = Ticket(
        title=title,
        description=description,
        priority=priority,
        status=TicketStatus.NEW.value,
        requester=actor,
        due_at=due_at,
    )
    if assignee_id is not None:
        ticket.assignee = _get_assignable(assignee_id)
    if group_id is not None:
        ticket.group = _get_group(group_id)

    db.session.add(ticket)
    db.session.commit()
    current_app.logger.info(f"Ticket #{ticket.id} created by user {actor.id}")

    engineers = [e for e in notifications.active_engineers() if e.id != actor.id]
    title_text = f"New ticket #{ticket.id}: {ticket.title}"
    body_text = f"Priority: {ticket.priority}\nRequester: {actor.full_name} <{actor.email}>"
    notifications.notify_users_in_app(engineers, title_text, body_text)
    notifications.notify_users_email(engineers, title_text, body_text)
    notifications.notify_user_email(
        actor,
        f"Ticket #{ticket.id} received",
        f"Your ticket \"{ticket.title}\" has been created and will be handled by our engineers.",
    )
    return ticket


def _scoped_query(actor):
    query = Ticket.query
    if not actor.is_privileged:
        query = query.filter(Ticket.requester_id == actor.id)
    return query


def list_tickets(actor, page_request, status=None, priority=None, q=None):
    """Инженер и админ видят все тикеты, пользователь только свои"""
    query = _scoped_query(actor)
    if status:
        query = query.filter(Ticket.status == status)
    if priority:
        query = query.filter(Ticket.priority == priority)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(Ticket.title.ilike(pattern), Ticket.description.ilike(pattern)))
    return paginate(query, Ticket, page_request, ticket_to_dict)


def my_assigned(actor, page_request):
    return paginate(Ticket.query.filter(Ticket.assignee_id == actor.id), Ticket, page_request, ticket_to_dict)


def unassigned(page_request):
    query = Ticket.query.filter(Ticket.assignee_id.is_(None),
                                Ticket.status.notin_(FINISHED_STATUSES))
    return paginate(query, Ticket, page_request, ticket_to_dict)


def ticket_history(actor, ticket_id):
    ticket = get_visible_ticket(actor, ticket_id)
    rows = ticket.history.order_by(TicketHistory.created_at.asc(), TicketHistory.id.asc()).all()
    return [history_to_dict(h) for h in rows]


def statistics():
    counts = dict(db.session.query(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status).all())
    return {
        'total': sum(counts.values()),
        'new': counts.get(TicketStatus.NEW.value, 0),
        'in_progress': counts.get(TicketStatus.IN_PROGRESS.value, 0),
        'resolved': counts.get(TicketStatus.RESOLVED.value, 0),
        'closed': counts.get(TicketStatus.CLOSED.value, 0),
        'unassigned': Ticket.query.filter(Ticket.assignee_id.is_(None)).count(),
    }


# ============================================================================
# UPDATE / ASSIGN / STATUS
# ============================================================================

def _apply_status(ticket, actor, status):
    """Меняет статус; True, если тикет впервые закрыт (нужны письма)"""
    _set(ticket, actor, 'status', status)
    if status in FINISHED_STATUSES and ticket.closed_at is None:
        ticket.closed_at = utcnow()
        return True
    return False


def _send_closed_emails(ticket):
    notifications.notify_user_email(
        ticket.requester,
        "Your ticket status changed",
        f"Ticket #{ticket.id} \"{ticket.title}\" is now {ticket.status}.",
    )
    if ticket.assignee:
        notifications.notify_user_email(
            ticket.assignee,
            "Assigned ticket status changed",
            f"Ticket #{ticket.id} \"{ticket.title}\" assigned to you is now {ticket.status}.",
        )


def _apply_assignee(ticket, actor, assignee):
    if actor.role == Role.ENGINEER.value and assignee.id != actor.id:
        raise AccessDeniedError(f"engineer {actor.id} tried to assign ticket {ticket.id} to user {assignee.id}")
    if ticket.assignee_id is not None and ticket.assignee_id != assignee.id and not actor.is_admin:
        raise AccessDeniedError(f"user {actor.id} tried to reassign ticket {ticket.id}")
    _set(ticket, actor, 'assignee_id', assignee.id)
    ticket.assignee = assignee
    if ticket.status == TicketStatus.NEW.value:
        _set(ticket, actor, 'status', TicketStatus.IN_PROGRESS.value)


def _notify_assigned(ticket, actor):
    notifications.notify_user_in_app(
        ticket.requester,
        f"Ticket #{ticket.id} assigned",
        f"Your ticket is now handled by {ticket.assignee.full_name}.",
    )
    if ticket.assignee_id != actor.id:
        notifications.notify_user_in_app(
            ticket.assignee,
            f"Ticket #{ticket.id} assigned to you",
            ticket.title,
        )


def update_ticket(actor, ticket_id, data):
    ticket = get_ticket(ticket_id)
    if not actor.is_privileged:
        if ticket.requester_id != actor.id:
            raise AccessDeniedError(f"user {actor.id} cannot update ticket {ticket.id}")
        touched = [f for f in RESTRICTED_FIELDS if f in data]
        if touched:
            raise AccessDeniedError(f"user {actor.id} tried to change {', '.join(touched)} on ticket {ticket.id}")

    v = Validator(data)
    title = v.string('title', min_len=3, max_len=200)
    if 'title' in data and data['title'] is None:
        v.fail('title', "must not be blank")
    description = v.string('description', max_len=10000)
    priority = v.choice('priority', TicketPriority)
    status = v.choice('status', TicketStatus)
    assignee_id = v.integer('assignee_id')
    group_id = v.integer('group_id')
    due_at = v.datetime('due_at')
    v.check()

    if title is not None:
        _set(ticket, actor, 'title', title)
    if 'description' in data:
        _set(ticket, actor, 'description', description)
    if priority is not None:
        _set(ticket, actor, 'priority', priority)
    if 'due_at' in data:
        _set(ticket, actor, 'due_at', due_at)
    if 'group_id' in data:
        _set(ticket, actor, 'group_id', _get_group(group_id).id if group_id is not None else None)

    assigned = False
    if assignee_id is not None and assignee_id != ticket.assignee_id:
        _apply_assignee(ticket, actor, _get_assignable(assignee_id))
        assigned = True

    closed_now = False
    if status is not None and status != ticket.status:
        closed_now = _apply_status(ticket, actor, status)

    db.session.commit()
    current_app.logger.info(f"Ticket #{ticket.id} updated by user {actor.id}")

    if assigned:
        _notify_assigned(ticket, actor)
    if closed_now:
        _send_closed_emails(ticket)
    return ticket


def assign_ticket(actor, ticket_id, assignee_id):
    """Инженер может назначить только себя, переназначение только админом"""
    ticket = get_ticket(ticket_id)
    assignee = _get_assignable(assignee_id)
    if ticket.assignee_id == assignee.id:
        return ticket
    _apply_assignee(ticket, actor, assignee)
    db.session.commit()
    current_app.logger.info(f"Ticket #{ticket.id} assigned to user {assignee.id} by user {actor.id}")
    _notify_assigned(ticket, actor)
    return ticket


def take_ticket(actor, ticket_id):
    return assign_ticket(actor, ticket_id, actor.id)


def change_status(actor, ticket_id, status):
    ticket = get_ticket(ticket_id)
    if ticket.status == status:
        return ticket
    old_status = ticket.status
    closed_now = _apply_status(ticket, actor, status)
    db.session.commit()
    current_app.logger.info(f"Ticket #{ticket.id} status {old_status} -> {status} by user {actor.id}")
    if closed_now:
        _send_closed_emails(ticket)
    return ticket


def delete_ticket(actor, ticket_id):
    ticket = get_ticket(ticket_id)
    TicketMessage.query.filter_by(ticket_id=ticket.id).delete(synchronize_session=False)
    TicketHistory.query.filter_by(ticket_id=ticket.id).delete(synchronize_session=False)
    db.session.delete(ticket)
    db.session.commit()
    current_app.logger.info(f"Ticket #{ticket_id} deleted by admin {actor.id}")
