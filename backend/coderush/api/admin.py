import hmac

from flask import Blueprint, current_app, jsonify, session

from coderush.api import json_body, text_field
from coderush.auth import is_admin

admin = Blueprint('admin', __name__)


@admin.route('/login', methods=['POST'])
def admin_login():
    data = json_body()
    email = text_field(data, 'email').strip().lower()
    password = text_field(data, 'password')
    expected_email = (current_app.config.get('ADMIN_EMAIL') or '').lower()
    expected_password = current_app.config.get('ADMIN_PASSWORD') or ''
    email_ok = hmac.compare_digest(email.encode(), expected_email.encode())
    password_ok = hmac.compare_digest(password.encode(), expected_password.encode())
    if not (expected_password and email_ok and password_ok):
        current_app.logger.warning(f"[admin-login] rejected email={email!r}")
        return jsonify({'error': 'Invalid email or password.'}), 401
    session['is_admin'] = True
    current_app.logger.info(f"[admin-login] email={email}")
    return jsonify({'success': True, 'is_admin': True})


@admin.route('/logout', methods=['POST'])
def admin_logout():
    session.pop('is_admin', None)
    return jsonify({'success': True, 'is_admin': False})


@admin.route('/session', methods=['GET'])
def admin_session():
    return jsonify({'is_admin': is_admin()})
