"""
Центральный модуль для предоставления доступа к основному экземпляру Flask
и другим общим ресурсам.
"""

from flask import current_app, has_app_context
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_caching import Cache
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_mail import Mail
from flask_socketio import SocketIO
import logging
import os
from dotenv import load_dotenv

# Загрузка переменных окружения
load_dotenv()

DEFAULT_SQLITE_URI = 'sqlite:///portal.db'

# Основной экземпляр Flask (будет инициализирован в app.py)
app = None

# Расширения Flask
db = SQLAlchemy()
bcrypt = Bcrypt()
mail = Mail()
cache = Cache()
limiter = Limiter(get_remote_address, default_limits=["2000 per day", "500 per hour"], storage_uri="memory://")
socketio = SocketIO()


def _env_flag(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _configure_database(flask_app):
    """Выбор базы данных: PostgreSQL из DATABASE_URL с проверкой, иначе SQLite"""
    database_url = os.getenv("DATABASE_URL")

    if database_url and database_url.startswith(("postgresql", "postgres")):
        # Проверяем доступность PostgreSQL
        try:
            from sqlalchemy import create_engine, text
            test_engine = create_engine(database_url, connect_args={"connect_timeout": 2})
            with test_engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            test_engine.dispose()
            flask_app.config['SQLALCHEMY_DATABASE_URI'] = database_url
            print("✅ База данных: PostgreSQL (из DATABASE_URL)")
        except Exception as e:
            print(f"⚠️  PostgreSQL недоступен ({str(e)[:100]}), используем SQLite")
            flask_app.config['SQLALCHEMY_DATABASE_URI'] = DEFAULT_SQLITE_URI
    elif database_url:
        # Любой другой URL (sqlite:// в тестах) используется как есть
        flask_app.config['SQLALCHEMY_DATABASE_URI'] = database_url
        print(f"✅ База данных: {database_url.split(':', 1)[0]}")
    else:
        flask_app.config['SQLALCHEMY_DATABASE_URI'] = DEFAULT_SQLITE_URI
        print("✅ База данных: SQLite (portal.db)")

    flask_app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False


def _configure_mail(flask_app):
    flask_app.config['MAIL_SERVER'] = os.getenv("MAIL_SERVER")
    flask_app.config['MAIL_PORT'] = int(os.getenv("MAIL_PORT", 465))
    flask_app.config['MAIL_USE_TLS'] = _env_flag("MAIL_USE_TLS")
    flask_app.config['MAIL_USE_SSL'] = _env_flag("MAIL_USE_SSL", "true")
    flask_app.config['MAIL_USERNAME'] = os.getenv("MAIL_USERNAME")
    flask_app.config['MAIL_PASSWORD'] = os.getenv("MAIL_PASSWORD")
    flask_app.config['MAIL_SUPPRESS_SEND'] = _env_flag("MAIL_SUPPRESS_SEND")
    # Отправитель: MAIL_USERNAME, если настроен
    mail_sender_name = os.getenv("MAIL_SENDER_NAME", "Support Portal").strip() or "Support Portal"
    if flask_app.config['MAIL_USERNAME']:
        flask_app.config['MAIL_DEFAULT_SENDER'] = (mail_sender_name, flask_app.config['MAIL_USERNAME'])
    else:
        flask_app.config['MAIL_DEFAULT_SENDER'] = (mail_sender_name, os.getenv("MAIL_DEFAULT_EMAIL", "noreply@example.com"))


def _configure_cache(flask_app):
    """Конфигурация кэширования (Redis, FileSystemCache, SimpleCache или null)"""
    cache_type = os.getenv("CACHE_TYPE", "null").lower()
    timeout = int(os.getenv("CACHE_DEFAULT_TIMEOUT", 300))

    if cache_type == "redis":
        try:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", 6379))
            redis_db = int(os.getenv("REDIS_DB", 0))
            redis_password = os.getenv("REDIS_PASSWORD", None)

            if redis_password:
                redis_url = f"redis://:{redis_password}@{redis_host}:{redis_port}/{redis_db}"
            else:
                redis_url = f"redis://{redis_host}:{redis_port}/{redis_db}"

            # Проверяем подключение к Redis до инициализации Cache
            import redis
            test_redis = redis.Redis(host=redis_host, port=redis_port, db=redis_db, password=redis_password, socket_connect_timeout=2)
            test_redis.ping()

            flask_app.config['CACHE_TYPE'] = 'RedisCache'
            flask_app.config['CACHE_REDIS_URL'] = redis_url
            flask_app.config['CACHE_DEFAULT_TIMEOUT'] = timeout
            print(f"✅ Кэширование: Redis ({redis_host}:{redis_port}, DB {redis_db})")
            return
        except Exception as e:
            print(f"⚠️  Redis недоступен ({str(e)[:100]}), используем FileSystemCache")
            cache_type = "filesystem"

    if cache_type == "filesystem":
        cache_dir = os.path.join(flask_app.instance_path, 'cache')
        os.makedirs(cache_dir, exist_ok=True)
        flask_app.config['CACHE_TYPE'] = 'FileSystemCache'
        flask_app.config['CACHE_DIR'] = cache_dir
        flask_app.config['CACHE_DEFAULT_TIMEOUT'] = timeout
        print(f"✅ Кэширование: FileSystemCache ({cache_dir})")
    elif cache_type == "simple":
        flask_app.config['CACHE_TYPE'] = 'SimpleCache'
        flask_app.config['CACHE_DEFAULT_TIMEOUT'] = timeout
        print("✅ Кэширование: SimpleCache (в памяти процесса)")
    else:
        flask_app.config['CACHE_TYPE'] = 'NullCache'
        print("⚠️  Кэширование: отключено (null cache)")


def init_app(flask_app):
    """
    Инициализация основного экземпляра Flask и всех расширений.
    Этот метод должен быть вызван из app.py.
    """
    global app

    app = flask_app

    app.config['JWT_SECRET_KEY'] = os.getenv("JWT_SECRET_KEY")
    app.config['JWT_EXPIRES_HOURS'] = int(os.getenv("JWT_EXPIRES_HOURS", 24))
    if not app.config['JWT_SECRET_KEY']:
        app.logger.warning("JWT_SECRET_KEY is not set, tokens cannot be issued")

    app.logger.setLevel(getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))

    _configure_database(app)
    _configure_mail(app)
    _configure_cache(app)

    app.config['BCRYPT_LOG_ROUNDS'] = int(os.getenv("BCRYPT_LOG_ROUNDS", 12))
    app.config['RATELIMIT_ENABLED'] = _env_flag("RATELIMIT_ENABLED", "true")
    app.config['RATELIMIT_STORAGE_URI'] = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Инициализация расширений (идемпотентно: тесты и CLI могут вызвать init_app повторно)
    if 'sqlalchemy' not in app.extensions:
        db.init_app(app)
    if 'bcrypt' not in app.extensions:
        bcrypt.init_app(app)
    if 'mail' not in app.extensions:
        mail.init_app(app)
    if 'cache' not in app.extensions:
        cache.init_app(app)
    if 'limiter' not in app.extensions:
        limiter.init_app(app)
    if 'socketio' not in app.extensions:
        socketio.init_app(
            app,
            cors_allowed_origins=os.getenv("CORS_ORIGINS", "*"),
            message_queue=os.getenv("SOCKETIO_MESSAGE_QUEUE") or None,
        )

    # CORS
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    CORS(app, resources={r"/api/*": {"origins": origins}, r"/auth/*": {"origins": origins}})

    from portal.errors import register_error_handlers
    register_error_handlers(app)


def get_app():
    """Возвращает основной экземпляр Flask"""
    if has_app_context():
        return current_app._get_current_object()
    if app is None:
        raise RuntimeError("Flask app not initialized. Call init_app() first.")
    return app


def get_db():
    """Возвращает экземпляр SQLAlchemy"""
    return db


def get_bcrypt():
    """Возвращает экземпляр Bcrypt"""
    if not has_app_context() and app is None:
        raise RuntimeError("Bcrypt not initialized. Call init_app() first.")
    return bcrypt


def get_mail():
    """Возвращает экземпляр Mail"""
    if not has_app_context() and app is None:
        raise RuntimeError("Mail not initialized. Call init_app() first.")
    return mail


def get_cache():
    """Возвращает экземпляр Cache"""
    if not has_app_context() and app is None:
        raise RuntimeError("Cache not initialized. Call init_app() first.")
    return cache


def get_limiter():
    """Возвращает экземпляр Limiter"""
    return limiter


def get_socketio():
    """Возвращает экземпляр SocketIO"""
    return socketio
