from coderush import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timedelta, timezone
import json
import string
import random

LANGUAGES = ('Java', 'Python', 'C++', 'C#', 'JavaScript', 'React', 'Next.js', 'TypeScript', 'HTML', 'CSS')
DIFFICULTIES = ('Easy', 'Medium', 'Hard')
QUESTION_FORMATS = ('DragAndDrop', 'FixTheCode', 'MultipleChoice', 'Subobjective', 'AccomplishTask')
GAME_MODES = ('friend', 'random', 'custom', 'solo')

# Fields of a question body that give the answer away
ANSWER_FIELDS = {
    'DragAndDrop': ('correct_order',),
    'FixTheCode': ('correct_code',),
    'MultipleChoice': ('correct_answer',),
    'Subobjective': ('answers',),
    'AccomplishTask': ('solution',),
}


def utcnow():
    """Naive UTC timestamp; SQLite drops tzinfo so everything is stored naive."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _loads(value, default):
    if not value:
        return default
    try:
        return json.loads(value)
    except ValueError:
        return default


def _iso(value):
    return value.isoformat() + 'Z' if value else None


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    display_name = db.Column(db.String(64), nullable=True)
    bio = db.Column(db.Text, default='')
    profile_picture = db.Column(db.String(512), default='')
    rating = db.Column(db.Integer, default=1200, nullable=False)
    wins = db.Column(db.Integer, default=0, nullable=False)
    losses = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def name(self):
        return self.display_name or self.username

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'display_name': self.name,
            'bio': self.bio or '',
            'profile_picture': self.profile_picture or '',
            'rating': self.rating,
            'wins': self.wins,
            'losses': self.losses,
            'created_at': _iso(self.created_at),
        }


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    format = db.Column(db.String(32), nullable=False, index=True)
    language = db.Column(db.String(32), nullable=False, index=True)
    difficulty = db.Column(db.String(16), nullable=False, index=True)
    topic = db.Column(db.String(128), nullable=False, default='', index=True)
    points = db.Column(db.Integer, nullable=False, default=100)
    time_limit = db.Column(db.Integer, nullable=False, default=300)
    body_json = db.Column('body', db.Text, nullable=False, default='{}')  # format-specific fields
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow)

    @property
    def body(self):
        return _loads(self.body_json, {})

    @body.setter
    def body(self, value):
        self.body_json = json.dumps(value or {})

    def to_dict(self, include_answers=False):
        body = self.body
        if not include_answers:
            for field in ANSWER_FIELDS.get(self.format, ()):
                body.pop(field, None)
            if self.format == 'AccomplishTask':
                body['test_cases'] = [{'input': tc.get('input', '')} for tc in body.get('test_cases', [])]
        payload = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'format': self.format,
            'language': self.language,
            'difficulty': self.difficulty,
            'topic': self.topic,
            'points': self.points,
            'time_limit': self.time_limit,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }
        payload.update(body)
        return payload


class QuestionSet(db.Model):
    __tablename__ = 'question_set'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default='')
    difficulty = db.Column(db.String(16), nullable=False)
    language = db.Column(db.String(32), nullable=False)
    question_ids_json = db.Column('question_ids', db.Text, default='[]')
    required_points = db.Column(db.Integer, default=0, nullable=False)
    order = db.Column(db.Integer, default=0, nullable=False)

    @property
    def question_ids(self):
        return _loads(self.question_ids_json, [])

    @question_ids.setter
    def question_ids(self, value):
        self.question_ids_json = json.dumps(list(value or []))

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'difficulty': self.difficulty,
            'language': self.language,
            'question_ids': self.question_ids,
            'required_points': self.required_points,
            'order': self.order,
        }


class Submission(db.Model):
    __tablename__ = 'submission'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id', ondelete='SET NULL'), nullable=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=True, index=True)
    is_correct = db.Column(db.Boolean, default=False, nullable=False)
    points = db.Column(db.Integer, default=0, nullable=False)
    time_taken = db.Column(db.Float, default=0, nullable=False)
    answer_json = db.Column('answer', db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime, default=utcnow, index=True)

    @property
    def answer(self):
        return _loads(self.answer_json, None)

    @answer.setter
    def answer(self, value):
        self.answer_json = json.dumps(value)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'question_id': self.question_id,
            'game_id': self.game_id,
            'is_correct': self.is_correct,
            'points': self.points,
            'time_taken': self.time_taken,
            'answer': self.answer,
            'submitted_at': _iso(self.submitted_at),
        }


class Player(db.Model):
    __tablename__ = 'player'
    __table_args__ = (db.UniqueConstraint('game_id', 'user_id', name='uq_player_game_user'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    display_name = db.Column(db.String(64), nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    questions_answered = db.Column(db.Integer, default=0, nullable=False)
    correct_answers = db.Column(db.Integer, default=0, nullable=False)
    is_ready = db.Column(db.Boolean, default=False, nullable=False)
    handicap = db.Column(db.Integer, default=0, nullable=False)  # percent added to awarded points
    joined_at = db.Column(db.DateTime, default=utcnow)
    game = db.relationship('Game', back_populates='players')
    user = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'display_name': self.display_name,
            'profile_picture': self.user.profile_picture if self.user else '',
            'score': self.score,
            'questions_answered': self.questions_answered,
            'correct_answers': self.correct_answers,
            'is_ready': self.is_ready,
            'handicap': self.handicap,
            'joined_at': _iso(self.joined_at),
        }


def generate_game_code(length=6):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not Game.query.filter_by(game_code=code).first():
            return code


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(8), unique=True, index=True)
    mode = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), default='waiting', index=True)  # waiting, in_progress, completed, cancelled
    language = db.Column(db.String(32), nullable=False)
    difficulty = db.Column(db.String(16), nullable=False)
    topic = db.Column(db.String(128), nullable=True)
    duration = db.Column(db.Integer, nullable=False)  # seconds
    max_players = db.Column(db.Integer, nullable=False, default=2)
    is_rated = db.Column(db.Boolean, default=False, nullable=False)
    has_handicap = db.Column(db.Boolean, default=False, nullable=False)
    invited_users_json = db.Column('invited_users', db.Text, default='[]')  # user ids
    question_ids_json = db.Column('question_ids', db.Text, default='[]')
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    started_at = db.Column(db.DateTime, nullable=True)
    ended_at = db.Column(db.DateTime, nullable=True)
    winner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    players = db.relationship('Player', back_populates='game', order_by='Player.id',
                              cascade='all, delete-orphan')

    def __init__(self, **kwargs):
        super(Game, self).__init__(**kwargs)
        if not self.game_code:
            self.game_code = generate_game_code()

    @property
    def question_ids(self):
        return _loads(self.question_ids_json, [])

    @question_ids.setter
    def question_ids(self, value):
        self.question_ids_json = json.dumps(list(value or []))

    @property
    def invited_users(self):
        return _loads(self.invited_users_json, [])

    @invited_users.setter
    def invited_users(self, value):
        self.invited_users_json = json.dumps(list(value or []))

    @property
    def deadline(self):
        if not self.started_at:
            return None
        return self.started_at + timedelta(seconds=self.duration)

    def seconds_remaining(self, now=None):
        if self.status != 'in_progress' or not self.started_at:
            return None
        now = now or utcnow()
        return max(0, int((self.deadline - now).total_seconds()))

    def player_for(self, user_id):
        return next((p for p in self.players if p.user_id == user_id), None)

    def config_dict(self):
        return {
            'mode': self.mode,
            'language': self.language,
            'difficulty': self.difficulty,
            'topic': self.topic,
            'duration': self.duration,
            'max_players': self.max_players,
            'is_rated': self.is_rated,
            'has_handicap': self.has_handicap,
            'invited_users': self.invited_users,
        }

    def to_dict(self, include_players=True):
        payload = {
            'id': self.id,
            'game_code': self.game_code,
            'status': self.status,
            'config': self.config_dict(),
            'question_ids': self.question_ids,
            'created_by': self.created_by,
            'created_at': _iso(self.created_at),
            'started_at': _iso(self.started_at),
            'ended_at': _iso(self.ended_at),
            'deadline': _iso(self.deadline),
            'seconds_remaining': self.seconds_remaining(),
            'winner_id': self.winner_id,
            'player_count': len(self.players),
        }
        if include_players:
            payload['players'] = [p.to_dict() for p in self.players]
        return payload


class GameInvite(db.Model):
    __tablename__ = 'game_invite'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False)
    inviter_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    invitee_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    status = db.Column(db.String(16), default='pending', nullable=False)  # pending, accepted, declined, expired
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    game = db.relationship('Game')

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'game_code': self.game.game_code if self.game else None,
            'inviter_id': self.inviter_id,
            'invitee_id': self.invitee_id,
            'status': self.status,
            'created_at': _iso(self.created_at),
            'expires_at': _iso(self.expires_at),
        }


class GameResult(db.Model):
    __tablename__ = 'game_result'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    score = db.Column(db.Integer, default=0, nullable=False)
    questions_answered = db.Column(db.Integer, default=0, nullable=False)
    correct_answers = db.Column(db.Integer, default=0, nullable=False)
    rating_change = db.Column(db.Integer, nullable=True)
    forfeited = db.Column(db.Boolean, default=False, nullable=False)  # left the game before it ended
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'game_id': self.game_id,
            'user_id': self.user_id,
            'score': self.score,
            'questions_answered': self.questions_answered,
            'correct_answers': self.correct_answers,
            'rating_change': self.rating_change,
            'forfeited': self.forfeited,
            'created_at': _iso(self.created_at),
        }
