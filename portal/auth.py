from flask import request
from functools import wraps
import jwt
from datetime import datetime, timedelta, timezone

from portal.core import get_app, get_db, get_bcrypt
from portal.errors import AuthenticationError, AccessDeniedError
from portal.models.user import User

app = get_app()
db = get_db()
bcrypt = get_bcrypt()


# Функции аутентификации
def hash_password(password):
    return bcrypt.generate_password_hash(password).decode('utf-8')


def check_password(user, password):
    return bool(user and user.password_hash and bcrypt.check_password_hash(user.password_hash, password))


def create_local_jwt(user):
    now = datetime.now(timezone.utc)
    payload = {
        'iat': now,
        'exp': now + timedelta(hours=app.config.get('JWT_EXPIRES_HOURS', 24)),
        'sub': str(user.id),
        'role': user.role,
    }
    token = jwt.encode(payload, app.config['JWT_SECRET_KEY'], algorithm="HS256")
    return token


def decode_token(token):
    """Проверяет JWT и возвращает активного пользователя, иначе AuthenticationError"""
    try:
        payload = jwt.decode(token, app.config['JWT_SECRET_KEY'], algorithms=["HS256"])
        user = db.session.get(User, int(payload['sub']))
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except (jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        raise AuthenticationError("Invalid token")
    if not user:
        raise AuthenticationError("Invalid token")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return user


def _bearer_token():
    auth_header = request.headers.get('Authorization')
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise AuthenticationError("Authentication required")
        kwargs['current_user'] = decode_token(token)
        return f(*args, **kwargs)
    return decorated_function


def roles_required(*roles):
    """Доступ только для перечисленных ролей; пользователь передаётся в current_user"""
    allowed = {str(r) for r in roles}

    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            user = kwargs['current_user']
            if user.role not in allowed:
                raise AccessDeniedError(f"user {user.id} with role {user.role} needs one of {sorted(allowed)}")
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    return roles_required('ADMIN')(f)


def privileged_required(f):
    return roles_required('ENGINEER', 'ADMIN')(f)
