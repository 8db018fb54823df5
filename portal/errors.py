"""
Исключения API и единый формат ответа об ошибке:
{"timestamp", "status", "error", "message"}
"""
from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from portal.utils import utcnow, iso


class ApiError(Exception):
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message=None, fields=None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.fields = fields


class ValidationError(ApiError):
    status_code = 400
    error = "Bad Request"

    def __init__(self, message="Validation failed", fields=None):
        super().__init__(message, fields)


class BadRequestError(ApiError):
    status_code = 400
    error = "Bad Request"


class AuthenticationError(ApiError):
    status_code = 401
    error = "Unauthorized"


class AccessDeniedError(ApiError):
    """Причина пишется в лог, клиент получает общее сообщение"""
    status_code = 403
    error = "Forbidden"
    public_message = "You don't have permission to access this resource"

    def __init__(self, reason=None):
        super().__init__(self.public_message)
        self.reason = reason


class NotFoundError(ApiError):
    status_code = 404
    error = "Not Found"

    def __init__(self, resource, field="id", value=None):
        super().__init__(f"{resource} not found with {field} : {value}")
        self.resource = resource


def error_body(status, error, message, fields=None, path=None):
    body = {
        "timestamp": iso(utcnow()),
        "status": status,
        "error": error,
        "message": message,
    }
    if fields:
        body["fields"] = fields
    if path:
        body["path"] = path
    return body


def register_error_handlers(app):
    """Регистрирует обработчики ошибок на приложении"""
    from portal.core import db

    @app.errorhandler(ApiError)
    def handle_api_error(e):
        if isinstance(e, AccessDeniedError):
            app.logger.warning(f"Access denied on {request.method} {request.path}: {e.reason or '-'}")
        db.session.rollback()
        return jsonify(error_body(e.status_code, e.error, e.message, fields=e.fields)), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify(error_body(e.code, e.name, e.description)), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        app.logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        body = error_body(500, "Internal Server Error", "An unexpected error occurred", path=request.path)
        return jsonify(body), 500
