"""
API эндпоинты тикетов

- GET/POST /api/tickets - Список (по роли) и создание
- GET/PUT/DELETE /api/tickets/<id> - Просмотр, изменение, удаление (админ)
- GET /api/tickets/<id>/history - История изменений
- GET /api/tickets/status/<status> - Тикеты в статусе
- GET /api/tickets/my-assigned - Назначенные мне
- GET /api/tickets/unassigned - Без исполнителя (инженер/админ)
- PUT /api/tickets/<id>/assign/<user_id> - Назначение
- PUT /api/tickets/<id>/take - Взять в работу
- PUT /api/tickets/<id>/status/<status> - Смена статуса (инженер/админ)
- GET /api/tickets/statistics - Счётчики по статусам (инженер/админ)
"""

from flask import jsonify, request

from portal.core import get_app
from portal.auth import login_required, admin_required, privileged_required
from portal.enums import TicketStatus, TicketPriority
from portal.pagination import PageRequest
from portal.validation import get_json, parse_enum
from portal import tickets

app = get_app()


def _page_request():
    return PageRequest.from_request(tickets.TICKET_SORT_FIELDS)


# ============================================================================
# LIST / CREATE
# ============================================================================

@app.route('/api/tickets', methods=['GET'])
@login_required
def list_tickets(current_user):
    """Тикеты, видимые вызывающему"""
    status = request.args.get('status')
    priority = request.args.get('priority')
    result = tickets.list_tickets(
        current_user,
        _page_request(),
        status=parse_enum(TicketStatus, status, 'status') if status else None,
        priority=parse_enum(TicketPriority, priority, 'priority') if priority else None,
        q=request.args.get('q'),
    )
    return jsonify(result), 200


@app.route('/api/tickets', methods=['POST'])
@login_required
def create_ticket(current_user):
    ticket = tickets.create_ticket(current_user, get_json())
    return jsonify(tickets.ticket_to_dict(ticket)), 201


@app.route('/api/tickets/status/<status>', methods=['GET'])
@login_required
def tickets_by_status(current_user, status):
    status = parse_enum(TicketStatus, status, 'status')
    return jsonify(tickets.list_tickets(current_user, _page_request(), status=status)), 200


@app.route('/api/tickets/my-assigned', methods=['GET'])
@login_required
def my_assigned_tickets(current_user):
    return jsonify(tickets.my_assigned(current_user, _page_request())), 200


@app.route('/api/tickets/unassigned', methods=['GET'])
@privileged_required
def unassigned_tickets(current_user):
    return jsonify(tickets.unassigned(_page_request())), 200


@app.route('/api/tickets/statistics', methods=['GET'])
@privileged_required
def ticket_statistics(current_user):
    return jsonify(tickets.statistics()), 200


# ============================================================================
# SINGLE TICKET
# ============================================================================

@app.route('/api/tickets/<int:ticket_id>', methods=['GET'])
@login_required
def get_ticket(current_user, ticket_id):
    ticket = tickets.get_visible_ticket(current_user, ticket_id)
    return jsonify(tickets.ticket_to_dict(ticket)), 200


@app.route('/api/tickets/<int:ticket_id>', methods=['PUT'])
@login_required
def update_ticket(current_user, ticket_id):
    ticket = tickets.update_ticket(current_user, ticket_id, get_json())
    return jsonify(tickets.ticket_to_dict(ticket)), 200


@app.route('/api/tickets/<int:ticket_id>', methods=['DELETE'])
@admin_required
def delete_ticket(current_user, ticket_id):
    tickets.delete_ticket(current_user, ticket_id)
    return jsonify({"message": "Ticket deleted successfully"}), 200


@app.route('/api/tickets/<int:ticket_id>/history', methods=['GET'])
@login_required
def ticket_history(current_user, ticket_id):
    return jsonify(tickets.ticket_history(current_user, ticket_id)), 200


@app.route('/api/tickets/<int:ticket_id>/assign/<int:user_id>', methods=['PUT'])
@privileged_required
def assign_ticket(current_user, ticket_id, user_id):
    ticket = tickets.assign_ticket(current_user, ticket_id, user_id)
    return jsonify(tickets.ticket_to_dict(ticket)), 200


@app.route('/api/tickets/<int:ticket_id>/take', methods=['PUT'])
@privileged_required
def take_ticket(current_user, ticket_id):
    ticket = tickets.take_ticket(current_user, ticket_id)
    return jsonify(tickets.ticket_to_dict(ticket)), 200


@app.route('/api/tickets/<int:ticket_id>/status/<status>', methods=['PUT'])
@privileged_required
def change_ticket_status(current_user, ticket_id, status):
    status = parse_enum(TicketStatus, status, 'status')
    ticket = tickets.change_status(current_user, ticket_id, status)
    return jsonify(tickets.ticket_to_dict(ticket)), 200
