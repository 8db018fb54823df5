"""
Пользователи: регистрация, вход, профиль и администрирование аккаунтов
"""
from flask import current_app
from sqlalchemy import func

from portal.core import get_db
from portal.enums import Role
from portal.errors import AuthenticationError, AccessDeniedError, BadRequestError, NotFoundError
from portal.models import User
from portal.pagination import paginate
from portal.utils import iso
from portal.validation import Validator

db = get_db()

USER_SORT_FIELDS = ('id', 'email', 'first_name', 'last_name', 'role', 'created_at', 'updated_at')


def user_to_dict(user):
    return {
        'id': user.id,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'full_name': user.full_name,
        'role': user.role,
        'is_active': user.is_active,
        'created_at': iso(user.created_at),
        'updated_at': iso(user.updated_at),
    }


def normalize_email(email):
    return (email or '').strip().lower()


def get_user_by_email(email):
    """Поиск по email без учёта регистра"""
    return User.query.filter(func.lower(User.email) == normalize_email(email)).first()


def get_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User", "id", user_id)
    return user


def _create_user(email, password, first_name, last_name, role):
    from portal.auth import hash_password

    if get_user_by_email(email):
        raise BadRequestError("Email already in use")
    user = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def _read_account_fields(data):
    v = Validator(data)
    email = v.email('email')
    password = v.password('password')
    first_name = v.string('first_name', required=True, min_len=2, max_len=100)
    last_name = v.string('last_name', required=True, min_len=2, max_len=100)
    return v, email, password, first_name, last_name


# ============================================================================
# AUTH
# ============================================================================

def register(data):
    """Самостоятельная регистрация: роль всегда USER"""
    v, email, password, first_name, last_name = _read_account_fields(data)
    v.check()
    user = _create_user(email, password, first_name, last_name, Role.USER.value)
    current_app.logger.info(f"User registered: {user.email} (id={user.id})")
    return user


def authenticate(data):
    from portal.auth import check_password

    v = Validator(data)
    email = v.string('email', required=True)
    password = v.string('password', required=True, strip=False)
    v.check()

    user = get_user_by_email(email)
    if not user or not check_password(user, password):
        current_app.logger.warning(f"Failed login attempt for {normalize_email(email)}")
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return user


def auth_response(user):
    from portal.auth import create_local_jwt

    return {
        'id': user.id,
        'email': user.email,
        'role': user.role,
        'access_token': create_local_jwt(user),
        'token_type': 'Bearer',
    }


# ============================================================================
# PROFILE
# ============================================================================

def update_profile(user, data):
    v = Validator(data)
    first_name = v.string('first_name', min_len=2, max_len=100)
    last_name = v.string('last_name', min_len=2, max_len=100)
    v.check()
    if first_name is not None:
        user.first_name = first_name
    if last_name is not None:
        user.last_name = last_name
    db.session.commit()
    return user


def change_password(user, data):
    from portal.auth import check_password, hash_password

    v = Validator(data)
    current = v.string('current_password', required=True, strip=False)
    new = v.password('new_password', strong=True)
    confirm = v.string('confirm_password', required=True, strip=False)
    v.check()

    if not check_password(user, current):
        raise BadRequestError("Current password is incorrect")
    if new != confirm:
        raise BadRequestError("New password and confirmation do not match")
    user.password_hash = hash_password(new)
    db.session.commit()
    current_app.logger.info(f"Password changed for user {user.id}")


# ============================================================================
# ADMIN
# ============================================================================

def get_visible_user(actor, user_id):
    if not actor.is_admin and actor.id != user_id:
        raise AccessDeniedError(f"user {actor.id} tried to read user {user_id}")
    return get_user(user_id)


def list_users(page_request, role=None, active=None):
    query = User.query
    if role:
        query = query.filter(User.role == role)
    if active is not None:
        query = query.filter(User.is_active == active)
    return paginate(query, User, page_request, user_to_dict)


def users_by_role(role):
    return User.query.filter_by(role=role, is_active=True).order_by(User.id).all()


def create_account(data):
    """Учётная запись с любой ролью (админка и CLI)"""
    v, email, password, first_name, last_name = _read_account_fields(data)
    role = v.choice('role', Role) or Role.USER.value
    v.check()
    return _create_user(email, password, first_name, last_name, role)


def admin_create_user(actor, data):
    user = create_account(data)
    current_app.logger.info(f"Admin {actor.id} created user {user.id} with role {user.role}")
    return user


def admin_update_user(actor, user_id, data):
    user = get_user(user_id)
    v = Validator(data)
    role = v.choice('role', Role)
    is_active = v.boolean('is_active')
    v.check()

    if is_active is False and user.id == actor.id:
        raise BadRequestError("You cannot deactivate your own account")
    if role is not None and role != user.role:
        current_app.logger.info(f"Admin {actor.id} changed role of user {user.id}: {user.role} -> {role}")
        user.role = role
        if role == Role.USER.value and user.groups:
            current_app.logger.info(
                f"User {user.id} removed from engineer groups {[g.id for g in user.groups]} after demotion"
            )
            user.groups = []
    if is_active is not None:
        user.is_active = is_active
    db.session.commit()
    return user


def set_active(actor, user_id, active):
    user = get_user(user_id)
    if not active and user.id == actor.id:
        raise BadRequestError("You cannot deactivate your own account")
    user.is_active = active
    db.session.commit()
    current_app.logger.info(f"Admin {actor.id} {'activated' if active else 'deactivated'} user {user.id}")
    return user
