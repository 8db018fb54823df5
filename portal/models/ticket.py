"""
Модели тикетов поддержки
"""
from portal.core import get_db
from portal.enums import TicketStatus, TicketPriority
from portal.utils import utcnow

db = get_db()


class Ticket(db.Model):
    """Тикет поддержки"""
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=TicketStatus.NEW.value, index=True)  # NEW, IN_PROGRESS, RESOLVED, CLOSED
    priority = db.Column(db.String(20), nullable=False, default=TicketPriority.MEDIUM.value)
    requester_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    requester = db.relationship('User', foreign_keys=[requester_id],
                                backref=db.backref('requested_tickets', lazy='dynamic'))
    assignee_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    assignee = db.relationship('User', foreign_keys=[assignee_id],
                               backref=db.backref('assigned_tickets', lazy='dynamic'))
    group_id = db.Column(db.Integer, db.ForeignKey('engineer_group.id', ondelete='SET NULL'), nullable=True)
    group = db.relationship('EngineerGroup', backref=db.backref('tickets', lazy='dynamic'))
    due_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    # Ставится один раз при первом переходе в RESOLVED/CLOSED
    closed_at = db.Column(db.DateTime, nullable=True)


class TicketHistory(db.Model):
    """Изменение поля тикета"""
    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey('ticket.id', ondelete='CASCADE'), nullable=False, index=True)
    ticket = db.relationship('Ticket', backref=db.backref('history', lazy='dynamic'))
    changed_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    changed_by = db.relationship('User')
    field = db.Column(db.String(50), nullable=False)
    old_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class TicketMessage(db.Model):
    """Сообщение в чате тикета"""
    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey('ticket.id', ondelete='CASCADE'), nullable=False, index=True)
    ticket = db.relationship('Ticket', backref=db.backref('messages', lazy='dynamic'))
    author_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    author = db.relationship('User')
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=True)
