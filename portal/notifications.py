"""
Модуль уведомлений пользователей: IN_APP (запись + push в сокет) и EMAIL.

Отправка синхронная, без повторов: неудачное письмо остаётся FAILED.
"""
from flask import current_app

from portal.core import get_db
from portal.enums import NotificationChannel, NotificationStatus, Role
from portal.email_utils import send_email
from portal.errors import NotFoundError
from portal.models import Notification, User
from portal.pagination import paginate
from portal.utils import utcnow, iso
from portal import realtime

db = get_db()


def notification_to_dict(n):
    return {
        'id': n.id,
        'user_id': n.user_id,
        'channel': n.channel,
        'title': n.title,
        'body': n.body,
        'status': n.status,
        'created_at': iso(n.created_at),
        'sent_at': iso(n.sent_at),
        'read_at': iso(n.read_at),
        'is_read': n.read_at is not None,
    }


def dispatch(notification):
    """Доставка уже сохранённого уведомления и фиксация статуса"""
    if notification.channel == NotificationChannel.IN_APP.value:
        notification.status = NotificationStatus.SENT.value
        notification.sent_at = utcnow()
        db.session.commit()
        realtime.push_notification(notification.user_id, notification_to_dict(notification))
        return notification

    try:
        send_email(notification.user.email, notification.title, notification.body)
        notification.status = NotificationStatus.SENT.value
        notification.sent_at = utcnow()
    except Exception as e:
        current_app.logger.warning(
            f"Email notification {notification.id} to {notification.user.email} failed: {e}"
        )
        notification.status = NotificationStatus.FAILED.value
    db.session.commit()
    return notification


def create_notification(user, channel, title, body=None):
    notification = Notification(
        user=user,
        channel=str(channel),
        title=title,
        body=body,
        status=NotificationStatus.PENDING.value,
    )
    db.session.add(notification)
    db.session.commit()
    return dispatch(notification)


def notify_user_in_app(user, title, body=None):
    return create_notification(user, NotificationChannel.IN_APP, title, body)


def notify_users_in_app(users, title, body=None):
    return [notify_user_in_app(u, title, body) for u in users]


def notify_user_email(user, title, body=None):
    return create_notification(user, NotificationChannel.EMAIL, title, body)


def notify_users_email(users, title, body=None):
    return [notify_user_email(u, title, body) for u in users]


def active_engineers():
    """Активные инженеры (получатели уведомлений о новых тикетах)"""
    return User.query.filter_by(role=Role.ENGINEER.value, is_active=True).order_by(User.id).all()


# ============================================================================
# Чтение
# ============================================================================

def list_for_user(user, page_request, unread_only=False):
    query = Notification.query.filter_by(user_id=user.id)
    if unread_only:
        query = query.filter(Notification.read_at.is_(None))
    return paginate(query, Notification, page_request, notification_to_dict)


def unread_count(user):
    return Notification.query.filter_by(user_id=user.id).filter(Notification.read_at.is_(None)).count()


def mark_read(user, notification_id):
    notification = Notification.query.filter_by(id=notification_id, user_id=user.id).first()
    if not notification:
        raise NotFoundError("Notification", "id", notification_id)
    if notification.read_at is None:
        notification.read_at = utcnow()
        db.session.commit()
    return notification


def mark_all_read(user):
    now = utcnow()
    updated = (Notification.query
               .filter_by(user_id=user.id)
               .filter(Notification.read_at.is_(None))
               .update({Notification.read_at: now}, synchronize_session=False))
    db.session.commit()
    return updated
