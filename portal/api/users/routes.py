"""
API эндпоинты пользователей

- GET/PUT /api/users/me - Профиль
- PUT /api/users/me/password - Смена пароля
- GET/POST /api/users - Список (постранично) и создание пользователя (админ)
- GET /api/users/<id> - Пользователь (админ или сам)
- GET /api/users/role/<role> - Активные пользователи с ролью (админ)
- PUT /api/users/<id>/admin - Роль и активность (админ)
- POST /api/users/<id>/deactivate, /api/users/<id>/activate (админ)
"""

from flask import jsonify, request

from portal.core import get_app
from portal.auth import login_required, admin_required
from portal.enums import Role
from portal.pagination import PageRequest
from portal.validation import get_json, parse_enum
from portal import users

app = get_app()


# ============================================================================
# PROFILE
# ============================================================================

@app.route('/api/users/me', methods=['GET'])
@login_required
def get_me(current_user):
    return jsonify(users.user_to_dict(current_user)), 200


@app.route('/api/users/me', methods=['PUT'])
@login_required
def update_me(current_user):
    user = users.update_profile(current_user, get_json())
    return jsonify(users.user_to_dict(user)), 200


@app.route('/api/users/me/password', methods=['PUT'])
@login_required
def change_my_password(current_user):
    users.change_password(current_user, get_json())
    return jsonify({"message": "Password changed successfully"}), 200


# ============================================================================
# ADMIN
# ============================================================================

@app.route('/api/users', methods=['GET'])
@app.route('/api/users/paginated', methods=['GET'])
@admin_required
def list_users(current_user):
    """Пользователи постранично, фильтры role и active"""
    page_request = PageRequest.from_request(users.USER_SORT_FIELDS)
    role = request.args.get('role')
    active = request.args.get('active')
    if role:
        role = parse_enum(Role, role, 'role')
    if active is not None:
        active = active.strip().lower() in ('1', 'true', 'yes')
    return jsonify(users.list_users(page_request, role=role, active=active)), 200


@app.route('/api/users', methods=['POST'])
@admin_required
def create_user(current_user):
    user = users.admin_create_user(current_user, get_json())
    return jsonify(users.user_to_dict(user)), 201


@app.route('/api/users/<int:user_id>', methods=['GET'])
@login_required
def get_user(current_user, user_id):
    return jsonify(users.user_to_dict(users.get_visible_user(current_user, user_id))), 200


@app.route('/api/users/role/<role>', methods=['GET'])
@admin_required
def users_by_role(current_user, role):
    role = parse_enum(Role, role, 'role')
    return jsonify([users.user_to_dict(u) for u in users.users_by_role(role)]), 200


@app.route('/api/users/<int:user_id>/admin', methods=['PUT'])
@admin_required
def admin_update_user(current_user, user_id):
    user = users.admin_update_user(current_user, user_id, get_json())
    return jsonify(users.user_to_dict(user)), 200


@app.route('/api/users/<int:user_id>/deactivate', methods=['POST'])
@admin_required
def deactivate_user(current_user, user_id):
    user = users.set_active(current_user, user_id, False)
    return jsonify(users.user_to_dict(user)), 200


@app.route('/api/users/<int:user_id>/activate', methods=['POST'])
@admin_required
def activate_user(current_user, user_id):
    user = users.set_active(current_user, user_id, True)
    return jsonify(users.user_to_dict(user)), 200
