"""
Модель уведомления
"""
from portal.core import get_db
from portal.enums import NotificationStatus
from portal.utils import utcnow

db = get_db()


class Notification(db.Model):
    """Уведомление пользователя (IN_APP или EMAIL)"""
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    user = db.relationship('User', backref=db.backref('notifications', lazy='dynamic'))
    channel = db.Column(db.String(20), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    body = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=NotificationStatus.PENDING.value)  # PENDING, SENT, FAILED
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    sent_at = db.Column(db.DateTime, nullable=True)
    read_at = db.Column(db.DateTime, nullable=True)
