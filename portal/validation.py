"""
Проверка входных данных запросов.

Все ошибки одного запроса собираются в Validator.errors и отдаются
одним ValidationError с картой полей.
"""
import re

from flask import request

from portal.errors import ValidationError, BadRequestError
from portal.utils import parse_iso_datetime

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def get_json():
    """Тело запроса как dict; пустое тело считается {}"""
    data = request.get_json(silent=True)
    if data is None:
        if request.data:
            raise BadRequestError("Malformed JSON request")
        return {}
    if not isinstance(data, dict):
        raise BadRequestError("JSON object expected")
    return data


def parse_enum(enum_cls, value, field='value'):
    if isinstance(value, enum_cls):
        return value.value
    raw = str(value or '').strip().upper()
    if raw not in enum_cls.values():
        raise BadRequestError(f"Invalid {field}: {value}. Allowed: {', '.join(enum_cls.values())}")
    return raw


def is_strong_password(password):
    return (
        bool(re.search(r"[a-z]", password))
        and bool(re.search(r"[A-Z]", password))
        and bool(re.search(r"\d", password))
    )


class Validator:

    def __init__(self, data):
        self.data = data or {}
        self.errors = {}

    def fail(self, field, message):
        self.errors.setdefault(field, message)

    def string(self, field, required=False, min_len=None, max_len=None, strip=True):
        value = self.data.get(field)
        if value is None:
            if required:
                self.fail(field, "must not be blank")
            return None
        if not isinstance(value, str):
            self.fail(field, "must be a string")
            return None
        if strip:
            value = value.strip()
        if required and not value:
            self.fail(field, "must not be blank")
            return None
        if min_len is not None and len(value) < min_len:
            self.fail(field, f"size must be between {min_len} and {max_len or 'unbounded'}")
        elif max_len is not None and len(value) > max_len:
            self.fail(field, f"size must be between {min_len or 0} and {max_len}")
        return value

    def email(self, field, required=True):
        value = self.string(field, required=required, max_len=255)
        if value and not EMAIL_RE.match(value):
            self.fail(field, "must be a well-formed email address")
        return value.lower() if value else value

    def integer(self, field, required=False):
        value = self.data.get(field)
        if value is None:
            if required:
                self.fail(field, "must not be null")
            return None
        if isinstance(value, bool):
            self.fail(field, "must be an integer")
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            self.fail(field, "must be an integer")
            return None

    def boolean(self, field, required=False):
        value = self.data.get(field)
        if value is None:
            if required:
                self.fail(field, "must not be null")
            return None
        if not isinstance(value, bool):
            self.fail(field, "must be a boolean")
            return None
        return value

    def choice(self, field, enum_cls, required=False):
        value = self.data.get(field)
        if value is None:
            if required:
                self.fail(field, "must not be null")
            return None
        raw = str(value).strip().upper()
        if raw not in enum_cls.values():
            self.fail(field, f"must be one of {', '.join(enum_cls.values())}")
            return None
        return raw

    def datetime(self, field):
        value = self.data.get(field)
        if value is None:
            return None
        try:
            return parse_iso_datetime(value)
        except (TypeError, ValueError):
            self.fail(field, "must be an ISO-8601 datetime")
            return None

    def int_list(self, field):
        value = self.data.get(field)
        if value is None:
            return None
        if not isinstance(value, list):
            self.fail(field, "must be a list")
            return None
        result = []
        for item in value:
            if isinstance(item, bool):
                self.fail(field, "must contain integers")
                return None
            try:
                result.append(int(item))
            except (TypeError, ValueError):
                self.fail(field, "must contain integers")
                return None
        return result

    def str_list(self, field, max_len=50):
        value = self.data.get(field)
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            self.fail(field, "must be a list of strings")
            return None
        tags = []
        for v in value:
            v = v.strip()
            if not v:
                continue
            if len(v) > max_len:
                self.fail(field, f"items must be at most {max_len} characters")
                return None
            if v not in tags:
                tags.append(v)
        return tags

    def password(self, field, strong=False):
        value = self.string(field, required=True, min_len=6, max_len=255, strip=False)
        if value and strong and not is_strong_password(value):
            self.fail(field, "must contain at least one uppercase letter, one lowercase letter and one digit")
        return value

    def check(self):
        if self.errors:
            raise ValidationError("Validation failed", fields=self.errors)
