"""
API эндпоинты авторизации

- POST /auth/register - Регистрация (роль USER)
- POST /auth/login - Вход, выдача JWT
"""

from flask import jsonify

from portal.core import get_app, get_limiter
from portal.validation import get_json
from portal import users

app = get_app()
limiter = get_limiter()


@app.route('/auth/register', methods=['POST'])
@limiter.limit("5 per hour")
def register():
    user = users.register(get_json())
    return jsonify(users.auth_response(user)), 201


@app.route('/auth/login', methods=['POST'])
@limiter.limit("20 per minute")
def login():
    user = users.authenticate(get_json())
    app.logger.info(f"User {user.id} logged in")
    return jsonify(users.auth_response(user)), 200
