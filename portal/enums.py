"""
Перечисления предметной области. Значения хранятся в БД строками.
"""
from enum import Enum


class StrEnum(str, Enum):

    @classmethod
    def values(cls):
        return [m.value for m in cls]

    def __str__(self):
        return self.value


class Role(StrEnum):
    USER = 'USER'
    ENGINEER = 'ENGINEER'
    ADMIN = 'ADMIN'


PRIVILEGED_ROLES = (Role.ENGINEER.value, Role.ADMIN.value)


class TicketStatus(StrEnum):
    NEW = 'NEW'
    IN_PROGRESS = 'IN_PROGRESS'
    RESOLVED = 'RESOLVED'
    CLOSED = 'CLOSED'


FINISHED_STATUSES = (TicketStatus.RESOLVED.value, TicketStatus.CLOSED.value)


class TicketPriority(StrEnum):
    LOW = 'LOW'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'
    CRITICAL = 'CRITICAL'


class ArticleStatus(StrEnum):
    DRAFT = 'DRAFT'
    PUBLISHED = 'PUBLISHED'
    ARCHIVED = 'ARCHIVED'


class NotificationChannel(StrEnum):
    IN_APP = 'IN_APP'
    EMAIL = 'EMAIL'


class NotificationStatus(StrEnum):
    PENDING = 'PENDING'
    SENT = 'SENT'
    FAILED = 'FAILED'


class Period(StrEnum):
    THIS_MONTH = 'THIS_MONTH'
    LAST_MONTH = 'LAST_MONTH'
    THIS_QUARTER = 'THIS_QUARTER'
    LAST_QUARTER = 'LAST_QUARTER'


class TrendMetric(StrEnum):
    TICKETS = 'TICKETS'
    RESOLUTION_TIME = 'RESOLUTION_TIME'
    ENGINEER_LOAD = 'ENGINEER_LOAD'


class Trend(StrEnum):
    BETTER = 'BETTER'
    WORSE = 'WORSE'
    SAME = 'SAME'
