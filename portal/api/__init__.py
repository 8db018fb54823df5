"""
API модули портала поддержки

Структура:
- auth/          - Регистрация и вход
- users/         - Профиль и управление пользователями
- tickets/       - Тикеты
- chat/          - Чат тикета (REST и Socket.IO)
- knowledge/     - База знаний
- notifications/ - Уведомления
- admin/         - Сводка, производительность, группы инженеров
- analytics/     - Аналитика по периодам
"""


def register_all_routes():
    """Регистрирует все маршруты API и обработчики сокетов"""
    from portal.api.auth import routes as auth_routes
    from portal.api.users import routes as user_routes
    from portal.api.tickets import routes as ticket_routes
    from portal.api.chat import routes as chat_routes
    from portal.api.chat import events as chat_events
    from portal.api.knowledge import routes as knowledge_routes
    from portal.api.notifications import routes as notification_routes
    from portal.api.admin import routes as admin_routes
    from portal.api.analytics import routes as analytics_routes
