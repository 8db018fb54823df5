"""
Общие хелперы для дат и чисел
"""
from datetime import datetime, timezone


def utcnow():
    """Текущее время UTC без tzinfo (в БД хранится naive UTC)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso(value):
    return value.isoformat() if value else None


def parse_iso_datetime(value):
    """Разбор ISO-8601 строки; aware-значения приводятся к naive UTC"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if s.endswith('Z'):
            s = s[:-1] + '+00:00'
        dt = datetime.fromisoformat(s)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def hours_between(start, end):
    return (end - start).total_seconds() / 3600.0


def round2(value):
    return round(float(value), 2)
