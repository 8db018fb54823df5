"""
Рассылка событий подключённым клиентам через Socket.IO.

Комнаты:
- ticket_<id> - чат тикета (message_created, message_updated, message_deleted)
- user_<id>   - личные уведомления (notification)

Доставка без гарантий: ошибка транспорта пишется в лог и не прерывает запрос.
"""
from flask import current_app

from portal.core import get_socketio

socketio = get_socketio()


def ticket_room(ticket_id):
    return f"ticket_{ticket_id}"


def user_room(user_id):
    return f"user_{user_id}"


def _emit(event, payload, room):
    try:
        socketio.emit(event, payload, to=room)
    except Exception as e:
        current_app.logger.warning(f"Socket emit {event} to {room} failed: {e}")


def broadcast_ticket_event(ticket_id, event, payload):
    _emit(event, payload, ticket_room(ticket_id))


def push_notification(user_id, payload):
    _emit('notification', payload, user_room(user_id))
