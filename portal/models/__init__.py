"""
SQLAlchemy модели портала поддержки

Все модели экспортируются отсюда для удобства импорта:
    from portal.models import User, Ticket, KnowledgeArticle, etc.
"""

from portal.models.user import User
from portal.models.group import EngineerGroup, engineer_group_members
from portal.models.ticket import Ticket, TicketHistory, TicketMessage
from portal.models.knowledge import KnowledgeCategory, KnowledgeArticle, ArticleTag
from portal.models.notification import Notification

__all__ = [
    'User',
    'EngineerGroup', 'engineer_group_members',
    'Ticket', 'TicketHistory', 'TicketMessage',
    'KnowledgeCategory', 'KnowledgeArticle', 'ArticleTag',
    'Notification',
]
