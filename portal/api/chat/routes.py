"""
API эндпоинты чата тикета

- POST /api/chat/messages - Новое сообщение
- GET /api/chat/tickets/<id>/history - Все сообщения тикета
- GET /api/chat/tickets/<id>/summary - Количество и последнее сообщение
- PUT/DELETE /api/chat/messages/<id> - Правка и удаление (автор или инженер/админ)
"""

from flask import jsonify

from portal.core import get_app
from portal.auth import login_required
from portal.validation import get_json
from portal import chat

app = get_app()


@app.route('/api/chat/messages', methods=['POST'])
@login_required
def send_chat_message(current_user):
    message = chat.send_message(current_user, get_json())
    return jsonify(chat.message_to_dict(message)), 201


@app.route('/api/chat/tickets/<int:ticket_id>/history', methods=['GET'])
@login_required
def chat_history(current_user, ticket_id):
    return jsonify(chat.history(current_user, ticket_id)), 200


@app.route('/api/chat/tickets/<int:ticket_id>/summary', methods=['GET'])
@login_required
def chat_summary(current_user, ticket_id):
    return jsonify(chat.summary(current_user, ticket_id)), 200


@app.route('/api/chat/messages/<int:message_id>', methods=['PUT'])
@login_required
def edit_chat_message(current_user, message_id):
    message = chat.update_message(current_user, message_id, get_json())
    return jsonify(chat.message_to_dict(message)), 200


@app.route('/api/chat/messages/<int:message_id>', methods=['DELETE'])
@login_required
def delete_chat_message(current_user, message_id):
    chat.delete_message(current_user, message_id)
    return jsonify({"message": "Message deleted successfully"}), 200
