"""
API эндпоинты администратора

- GET /api/admin/dashboard/stats - Сводка
- GET /api/admin/engineers/performance - Производительность инженеров
- GET /api/admin/system/health - Состояние системы
- GET/POST /api/admin/engineer-groups - Группы инженеров
- GET/PUT/DELETE /api/admin/engineer-groups/<id>
- POST/DELETE /api/admin/engineer-groups/<id>/members/<user_id>
"""

from flask import jsonify, request

from portal.core import get_app
from portal.auth import admin_required
from portal.validation import get_json
from portal import dashboard, groups

app = get_app()


# ============================================================================
# DASHBOARD
# ============================================================================

@app.route('/api/admin/dashboard/stats', methods=['GET'])
@admin_required
def dashboard_stats(current_user):
    fresh = request.args.get('fresh', '').strip().lower() in ('1', 'true', 'yes')
    return jsonify(dashboard.dashboard_stats(use_cache=not fresh)), 200


@app.route('/api/admin/engineers/performance', methods=['GET'])
@admin_required
def engineers_performance(current_user):
    return jsonify(dashboard.engineer_performance()), 200


@app.route('/api/admin/system/health', methods=['GET'])
@admin_required
def system_health(current_user):
    return jsonify(dashboard.system_health()), 200


# ============================================================================
# ENGINEER GROUPS
# ============================================================================

@app.route('/api/admin/engineer-groups', methods=['GET'])
@admin_required
def list_engineer_groups(current_user):
    return jsonify(groups.list_groups()), 200


@app.route('/api/admin/engineer-groups', methods=['POST'])
@admin_required
def create_engineer_group(current_user):
    group = groups.create_group(current_user, get_json())
    return jsonify(groups.group_to_dict(group)), 201


@app.route('/api/admin/engineer-groups/<int:group_id>', methods=['GET'])
@admin_required
def get_engineer_group(current_user, group_id):
    return jsonify(groups.group_to_dict(groups.get_group(group_id))), 200


@app.route('/api/admin/engineer-groups/<int:group_id>', methods=['PUT'])
@admin_required
def update_engineer_group(current_user, group_id):
    group = groups.update_group(current_user, group_id, get_json())
    return jsonify(groups.group_to_dict(group)), 200


@app.route('/api/admin/engineer-groups/<int:group_id>', methods=['DELETE'])
@admin_required
def delete_engineer_group(current_user, group_id):
    groups.delete_group(current_user, group_id)
    return jsonify({"message": "Engineer group deleted successfully"}), 200


@app.route('/api/admin/engineer-groups/<int:group_id>/members/<int:user_id>', methods=['POST'])
@admin_required
def add_engineer_group_member(current_user, group_id, user_id):
    group = groups.add_member(current_user, group_id, user_id)
    return jsonify(groups.group_to_dict(group)), 200


@app.route('/api/admin/engineer-groups/<int:group_id>/members/<int:user_id>', methods=['DELETE'])
@admin_required
def remove_engineer_group_member(current_user, group_id, user_id):
    group = groups.remove_member(current_user, group_id, user_id)
    return jsonify(groups.group_to_dict(group)), 200
