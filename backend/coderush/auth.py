from functools import wraps

from flask import Blueprint, jsonify, session
from flask_login import login_user, logout_user, login_required, current_user
from coderush import db
from coderush.api import json_body, text_field
from coderush.models import User
from coderush.services.questions.store import user_progress, user_submissions

auth = Blueprint('auth', __name__)

PROFILE_FIELDS = ('username', 'display_name', 'bio', 'profile_picture')


def is_admin():
    return session.get('is_admin') is True


def admin_required(view):
    """Guard admin console endpoints with the session admin flag."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not is_admin():
            return jsonify({'error': 'Unauthorized: Admin access required'}), 403
        return view(*args, **kwargs)
    return wrapped


@auth.route('/register', methods=['POST'])
def register():
    data = json_body()
    username = text_field(data, 'username').strip()
    password = text_field(data, 'password')
    email = text_field(data, 'email').strip().lower() or None
    if not username or not password:
        return jsonify({'error': 'Missing username or password'}), 400
    if len(password) < 6:
        return jsonify({'error': 'Password must be at least 6 characters'}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({'error': 'Username already exists'}), 400
    if email and User.query.filter_by(email=email).first():
        return jsonify({'error': 'Email already registered'}), 400

    user = User(username=username, email=email, display_name=text_field(data, 'display_name').strip() or username)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    login_user(user)
    return jsonify({'success': True, 'user': user.to_dict()}), 201


@auth.route('/login', methods=['POST'])
def login():
    data = json_body()
    identifier = (text_field(data, 'username') or text_field(data, 'email')).strip()
    password = text_field(data, 'password')
    user = User.query.filter((User.username == identifier) | (User.email == identifier.lower())).first()
    if user and user.check_password(password):
        login_user(user, remember=True)
        return jsonify({'success': True, 'user': user.to_dict()})
    return jsonify({'success': False, 'error': 'Invalid username or password'}), 401


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@auth.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({'success': True, 'user': current_user.to_dict()})


@auth.route('/profile', methods=['GET'])
@login_required
def get_profile():
    return jsonify(current_user.to_dict())


@auth.route('/profile', methods=['PATCH'])
@login_required
def update_profile():
    data = json_body()
    changes = {k: data[k] for k in PROFILE_FIELDS if k in data}
    if any(not isinstance(v, str) for v in changes.values()):
        return jsonify({'error': 'Profile fields must be strings'}), 400
    if 'username' in changes:
        username = changes['username'].strip()
        if not username:
            return jsonify({'error': 'Username cannot be empty'}), 400
        taken = User.query.filter(User.username == username, User.id != current_user.id).first()
        if taken:
            return jsonify({'error': 'Username already exists'}), 400
        changes['username'] = username
    for key, value in changes.items():
        setattr(current_user, key, value)
    db.session.commit()
    return jsonify(current_user.to_dict())


@auth.route('/users/me/submissions', methods=['GET'])
@login_required
def my_submissions():
    return jsonify([s.to_dict() for s in user_submissions(current_user.id)])


@auth.route('/users/me/progress', methods=['GET'])
@login_required
def my_progress():
    return jsonify(user_progress(current_user.id))
