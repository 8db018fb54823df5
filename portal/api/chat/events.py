"""
Socket.IO обработчики чата

Подключение: auth={"token": "<JWT>"}; сокет попадает в комнату user_<id>.
События клиента: join_ticket, leave_ticket, send_message, edit_message, delete_message.
Ошибки возвращаются событием chat_error в формате REST-ошибок.
"""

from functools import wraps

from flask import request
from flask_socketio import emit, join_room, leave_room

from portal.core import get_app, get_db, get_socketio
from portal.auth import decode_token
from portal.errors import ApiError, AuthenticationError, BadRequestError, error_body
from portal.models import User
from portal.realtime import ticket_room, user_room
from portal.tickets import get_visible_ticket
from portal import chat

app = get_app()
db = get_db()
socketio = get_socketio()

# sid -> user_id
connected_users = {}


def _current_user():
    user_id = connected_users.get(request.sid)
    user = db.session.get(User, user_id) if user_id else None
    if not user or not user.is_active:
        raise AuthenticationError("Authentication required")
    return user


def _id_field(data, field):
    try:
        return int(data.get(field))
    except (TypeError, ValueError):
        raise BadRequestError(f"{field} must be an integer")


def socket_handler(f):
    """Передаёт пользователя сокета в обработчик, ApiError отдаёт событием chat_error"""
    @wraps(f)
    def wrapper(data=None):
        try:
            if data is not None and not isinstance(data, dict):
                raise BadRequestError("Event payload must be a JSON object")
            return f(_current_user(), data or {})
        except ApiError as e:
            db.session.rollback()
            emit('chat_error', error_body(e.status_code, e.error, e.message, fields=e.fields))
    return wrapper


@socketio.on('connect')
def handle_connect(auth=None):
    token = (auth or {}).get('token') if isinstance(auth, dict) else None
    token = token or request.args.get('token')
    if not token:
        return False
    try:
        user = decode_token(token)
    except AuthenticationError as e:
        app.logger.warning(f"Socket connect rejected: {e.message}")
        return False
    connected_users[request.sid] = user.id
    join_room(user_room(user.id))
    app.logger.info(f"Socket connected: user {user.id}")


@socketio.on('disconnect')
def handle_disconnect(*args):
    connected_users.pop(request.sid, None)


@socketio.on('join_ticket')
@socket_handler
def handle_join_ticket(user, data):
    ticket = get_visible_ticket(user, _id_field(data, 'ticket_id'))
    join_room(ticket_room(ticket.id))
    emit('joined_ticket', {'ticket_id': ticket.id})


@socketio.on('leave_ticket')
@socket_handler
def handle_leave_ticket(user, data):
    ticket_id = _id_field(data, 'ticket_id')
    leave_room(ticket_room(ticket_id))
    emit('left_ticket', {'ticket_id': ticket_id})


@socketio.on('send_message')
@socket_handler
def handle_send_message(user, data):
    chat.send_message(user, data)


@socketio.on('edit_message')
@socket_handler
def handle_edit_message(user, data):
    chat.update_message(user, _id_field(data, 'id'), data)


@socketio.on('delete_message')
@socket_handler
def handle_delete_message(user, data):
    chat.delete_message(user, _id_field(data, 'id'))
