"""
API эндпоинты аналитики (инженер/админ)

- GET /api/analytics/tickets?period= - Метрики тикетов за период
- GET /api/analytics/engineers?period= - Рейтинг инженеров
- GET /api/analytics/users?period= - Метрики пользователей (админ)
- GET /api/analytics/trends?metric=&period= - Значения по дням
- GET /api/analytics/compare?period1=&period2= - Сравнение периодов
"""

from flask import jsonify, request

from portal.core import get_app
from portal.auth import admin_required, privileged_required
from portal.enums import Period, TrendMetric
from portal import analytics

app = get_app()


def _period(name='period', default=Period.THIS_MONTH.value):
    return request.args.get(name, default)


@app.route('/api/analytics/tickets', methods=['GET'])
@privileged_required
def analytics_tickets(current_user):
    return jsonify(analytics.ticket_analytics(_period())), 200


@app.route('/api/analytics/engineers', methods=['GET'])
@privileged_required
def analytics_engineers(current_user):
    return jsonify(analytics.engineer_analytics(current_user, _period())), 200


@app.route('/api/analytics/users', methods=['GET'])
@admin_required
def analytics_users(current_user):
    return jsonify(analytics.user_analytics(_period())), 200


@app.route('/api/analytics/trends', methods=['GET'])
@privileged_required
def analytics_trends(current_user):
    metric = request.args.get('metric', TrendMetric.TICKETS.value)
    return jsonify(analytics.trends(metric, _period())), 200


@app.route('/api/analytics/compare', methods=['GET'])
@privileged_required
def analytics_compare(current_user):
    result = analytics.compare(
        _period('period1', Period.LAST_MONTH.value),
        _period('period2', Period.THIS_MONTH.value),
    )
    return jsonify(result), 200
