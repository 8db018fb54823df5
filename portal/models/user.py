"""
Модель пользователя
"""
from portal.core import get_db
from portal.enums import Role, PRIVILEGED_ROLES
from portal.utils import utcnow

db = get_db()


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    # Email хранится в нижнем регистре, поиск регистронезависимый
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=Role.USER.value)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_privileged(self):
        return self.role in PRIVILEGED_ROLES

    @property
    def is_admin(self):
        return self.role == Role.ADMIN.value

    def __repr__(self):
        return f"<User {self.id} {self.email} {self.role}>"
