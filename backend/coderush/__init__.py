from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from coderush.auth import auth
    flask_app.register_blueprint(auth)

    from coderush.api.questions import questions
    flask_app.register_blueprint(questions, url_prefix='/api/questions')

    from coderush.api.question_sets import question_sets
    flask_app.register_blueprint(question_sets, url_prefix='/api/question-sets')

    from coderush.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from coderush.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    from coderush.api.uploads import uploads
    flask_app.register_blueprint(uploads, url_prefix='/api/upload')

    from coderush.errors import CodeRushError

    @flask_app.errorhandler(CodeRushError)
    def handle_coderush_error(exc):
        return jsonify({'error': exc.message}), exc.status_code

    from coderush.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from coderush.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Login required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from coderush.services.questions.seed import seed_questions
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for u in ['testuser1', 'testuser2', 'testuser3']:
                user = User(username=u, display_name=u)
                user.set_password('password')
                db.session.add(user)
            db.session.commit()

            created = seed_questions()
            print(f'Database has been reset and seeded with {created} questions!')

    @click.command('seed-questions')
    def seed_questions_command():
        """Loads one sample question of every format."""
        from coderush.services.questions.seed import seed_questions
        with flask_app.app_context():
            created = seed_questions()
            print(f'Seeded {created} questions.')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_questions_command)

    return flask_app
