import os
import sys
import pytest

# Ensure the backend root (containing the `coderush` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from coderush import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    ADMIN_EMAIL = 'admin@example.com'
    ADMIN_PASSWORD = 'admin-pass'
    QUESTIONS_PER_GAME = 3
    RANDOM_MATCH_PLAYERS = 2
    LOBBY_TIMEOUT_SEC = 300
    INVITE_TTL_HOURS = 24
    PUBLIC_BASE_URL = 'http://coderush.test'
    CLOUDINARY_CLOUD_NAME = 'demo-cloud'
    CLOUDINARY_UPLOAD_PRESET = 'code-rush-profiles'


MC_QUESTION = {
    'title': 'List length',
    'description': 'What does len([1, 2, 3]) return?',
    'format': 'MultipleChoice',
    'language': 'Python',
    'difficulty': 'Easy',
    'topic': 'Lists & Dictionaries',
    'points': 10,
    'time_limit': 60,
    'code': 'len([1, 2, 3])',
    'options': ['2', '3', '4'],
    'correct_answer': 1,
}


@pytest.fixture()
def flask_app():
    # Requests must each get their own app context: Flask-Login caches the
    # current user on ``g``, so a shared context leaks logins between clients.
    # Direct database work in tests opens ``with flask_app.app_context()``.
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import coderush.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def _register(flask_app, username):
    test_client = flask_app.test_client()
    res = test_client.post('/register', json={'username': username, 'password': 'password',
                                              'email': f'{username}@example.com'})
    assert res.status_code == 201
    test_client.user_id = res.get_json()['user']['id']
    return test_client


@pytest.fixture()
def make_user(flask_app):
    """Factory returning a logged-in test client per username."""
    def factory(username):
        return _register(flask_app, username)
    return factory


@pytest.fixture()
def alice(make_user):
    return make_user('alice')


@pytest.fixture()
def bob(make_user):
    return make_user('bob')


@pytest.fixture()
def admin_client(flask_app):
    test_client = flask_app.test_client()
    res = test_client.post('/api/admin/login', json={'email': 'admin@example.com', 'password': 'admin-pass'})
    assert res.status_code == 200
    return test_client


@pytest.fixture()
def python_questions(flask_app):
    """Three easy Python multiple-choice questions; the right option is always index 1."""
    from coderush.services.questions.store import create_question
    with flask_app.app_context():
        return [create_question(dict(MC_QUESTION, title=f'List length {n}')).id for n in range(3)]


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
