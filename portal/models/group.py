"""
Группы инженеров
"""
from portal.core import get_db
from portal.utils import utcnow

db = get_db()

engineer_group_members = db.Table(
    'engineer_group_members',
    db.Column('group_id', db.Integer, db.ForeignKey('engineer_group.id', ondelete='CASCADE'), primary_key=True),
    db.Column('user_id', db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), primary_key=True),
)


class EngineerGroup(db.Model):
    """Группа инженеров (участники только ENGINEER/ADMIN)"""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    members = db.relationship('User', secondary=engineer_group_members, lazy='selectin',
                              order_by='User.id', backref=db.backref('groups', lazy=True))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
