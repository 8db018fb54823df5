"""
API эндпоинты уведомлений

- GET /api/notifications - Мои уведомления (новые первыми, ?unread=true)
- GET /api/notifications/unread-count - Количество непрочитанных
- PUT /api/notifications/<id>/read, PUT /api/notifications/read-all
- POST /api/notifications - Отправка уведомления пользователю (админ)
"""

from flask import jsonify, request

from portal.core import get_app
from portal.auth import login_required, admin_required
from portal.enums import NotificationChannel
from portal.pagination import PageRequest
from portal.users import get_user
from portal.validation import Validator, get_json
from portal import notifications

app = get_app()


@app.route('/api/notifications', methods=['GET'])
@login_required
def my_notifications(current_user):
    page_request = PageRequest.from_request(('id', 'created_at', 'sent_at'))
    unread_only = request.args.get('unread', '').strip().lower() in ('1', 'true', 'yes')
    return jsonify(notifications.list_for_user(current_user, page_request, unread_only)), 200


@app.route('/api/notifications/unread-count', methods=['GET'])
@login_required
def unread_notifications_count(current_user):
    return jsonify({"count": notifications.unread_count(current_user)}), 200


@app.route('/api/notifications/<int:notification_id>/read', methods=['PUT'])
@login_required
def mark_notification_read(current_user, notification_id):
    notification = notifications.mark_read(current_user, notification_id)
    return jsonify(notifications.notification_to_dict(notification)), 200


@app.route('/api/notifications/read-all', methods=['PUT'])
@login_required
def mark_all_notifications_read(current_user):
    return jsonify({"updated": notifications.mark_all_read(current_user)}), 200


@app.route('/api/notifications', methods=['POST'])
@admin_required
def create_notification(current_user):
    """Уведомление пользователю по каналу IN_APP или EMAIL"""
    v = Validator(get_json())
    user_id = v.integer('user_id', required=True)
    channel = v.choice('channel', NotificationChannel, required=True)
    title = v.string('title', required=True, max_len=200)
    body = v.string('body', max_len=5000)
    v.check()

    notification = notifications.create_notification(get_user(user_id), channel, title, body)
    app.logger.info(f"Admin {current_user.id} sent {channel} notification {notification.id} to user {user_id}")
    return jsonify(notifications.notification_to_dict(notification)), 201
