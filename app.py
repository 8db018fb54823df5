import os

import click
from flask import Flask, jsonify

from portal.core import init_app, get_db, get_socketio

app = Flask(__name__)
init_app(app)

db = get_db()
socketio = get_socketio()

from portal.api import register_all_routes  # noqa: E402

register_all_routes()


@app.route('/api/health', methods=['GET'])
def health():
    return jsonify({"status": "UP"}), 200


def init_database():
    """Создаёт таблицы, если их ещё нет"""
    db.create_all()


@app.cli.command("init-db")
def init_db_command():
    init_database()
    print("Database initialized.")


@app.cli.command("make-admin")
@click.argument("email")
def make_admin(email):
    from portal.users import get_user_by_email

    user = get_user_by_email(email)
    if user:
        user.role = 'ADMIN'
        db.session.commit()
        print(f"User {user.email} is now ADMIN.")
    else:
        print(f"User {email} not found.")


@app.cli.command("create-admin")
@click.option("--email", prompt=True)
@click.option("--first-name", prompt=True)
@click.option("--last-name", prompt=True)
@click.password_option()
def create_admin(email, first_name, last_name, password):
    from portal.errors import ApiError
    from portal.users import create_account

    try:
        user = create_account({
            'email': email,
            'password': password,
            'first_name': first_name,
            'last_name': last_name,
            'role': 'ADMIN',
        })
    except ApiError as e:
        raise click.ClickException(f"{e.message} {e.fields or ''}".strip())
    print(f"Admin {user.email} created (id={user.id}).")


if __name__ == '__main__':
    with app.app_context():
        init_database()
    socketio.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", 5000)), debug=False)
