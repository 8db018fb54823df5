"""
Хелперы для отправки писем: отправитель из настроек, HTML из шаблона.
"""
import os

from flask import current_app, render_template_string
from flask_mail import Message

from portal.core import get_mail

EMAIL_HTML = """\
<!doctype html>
<html>
  <body style="font-family: Arial, sans-serif; color: #222;">
    <h2 style="margin-bottom: 12px;">{{ subject }}</h2>
    <div style="white-space: pre-line;">{{ body }}</div>
    <p style="color: #888; font-size: 12px; margin-top: 24px;">{{ sender_name }}</p>
  </body>
</html>
"""


def get_mail_sender():
    """
    Имя и email отправителя для писем.
    Returns: (sender_name, sender_email) для Message(sender=(name, email)).
    """
    default_sender = current_app.config.get('MAIL_DEFAULT_SENDER')
    if isinstance(default_sender, (list, tuple)):
        return default_sender[0], default_sender[1]
    if isinstance(default_sender, str):
        return default_sender, os.getenv("MAIL_USERNAME", "noreply@example.com")
    return os.getenv("MAIL_SENDER_NAME", "Support Portal"), os.getenv("MAIL_USERNAME", "noreply@example.com")


def render_email_html(subject, body):
    sender_name, _ = get_mail_sender()
    return render_template_string(EMAIL_HTML, subject=subject or "", body=body or "", sender_name=sender_name)


def send_email(recipient, subject, body):
    """Синхронная отправка письма; исключения SMTP пробрасываются вызывающему"""
    msg = Message(
        subject=subject,
        sender=get_mail_sender(),
        recipients=[recipient],
        body=body or "",
        html=render_email_html(subject, body),
    )
    get_mail().send(msg)
