import os
import sys
from pathlib import Path

import pytest

os.environ.update({
    "DATABASE_URL": "sqlite://",
    "JWT_SECRET_KEY": "test-secret-key-with-enough-length-for-hs256",
    "MAIL_SERVER": "localhost",
    "MAIL_SUPPRESS_SEND": "true",
    "MAIL_DEFAULT_EMAIL": "support@example.com",
    "CACHE_TYPE": "null",
    "RATELIMIT_ENABLED": "false",
    "BCRYPT_LOG_ROUNDS": "4",
})

sys.path.append(str(Path(__file__).resolve().parents[1]))
import app as portal_app  # noqa: E402
from portal.auth import create_local_jwt, hash_password  # noqa: E402
from portal.core import get_db, get_mail  # noqa: E402
from portal.models import User, Ticket  # noqa: E402

app = portal_app.app
db = get_db()

PASSWORD = "Secret123"


@pytest.fixture(autouse=True)
def fresh_db():
    with app.app_context():
        db.drop_all()
        db.create_all()
    yield
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client():
    return app.test_client()


@pytest.fixture
def outbox():
    """Письма, отправленные за время теста"""
    with get_mail().record_messages() as sent:
        yield sent


def seed_user(role="USER", email=None, first_name="Test", last_name="User", is_active=True, created_at=None):
    """Пользователь в БД; возвращает dict с id, email, token и headers"""
    with app.app_context():
        email = email or f"{role.lower()}{User.query.count() + 1}@example.com"
        user = User(
            email=email.lower(),
            password_hash=hash_password(PASSWORD),
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=is_active,
        )
        if created_at is not None:
            user.created_at = created_at
        db.session.add(user)
        db.session.commit()
        token = create_local_jwt(user)
        return {
            "id": user.id,
            "email": user.email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }


def seed_ticket(requester_id, **overrides):
    """Тикет напрямую в БД (для аналитики с заданными датами)"""
    with app.app_context():
        ticket = Ticket(
            title=overrides.pop("title", "Printer is down"),
            description=overrides.pop("description", "Nothing prints"),
            requester_id=requester_id,
            **overrides,
        )
        db.session.add(ticket)
        db.session.commit()
        return ticket.id


def fetch(model, pk):
    with app.app_context():
        obj = db.session.get(model, pk)
        if obj is not None:
            db.session.expunge(obj)
        return obj


@pytest.fixture
def user():
    return seed_user("USER", first_name="Ursula", last_name="Requester")


@pytest.fixture
def other_user():
    return seed_user("USER", first_name="Otto", last_name="Outsider")


@pytest.fixture
def engineer():
    return seed_user("ENGINEER", first_name="Erin", last_name="Engineer")


@pytest.fixture
def engineer2():
    return seed_user("ENGINEER", first_name="Eli", last_name="Fixer")


@pytest.fixture
def admin():
    return seed_user("ADMIN", first_name="Ada", last_name="Admin")
