"""Game lifecycle: configuration, question selection, lobby and matchmaking.

A game is created ``waiting`` with its question list already drawn. Friend
and custom games are joined by code, random games through the matchmaking
queue, and solo games start at once. Clients poll ``refresh_game`` (via the
state endpoint) which starts a lobby that has waited long enough with
enough players, cancels one without, and completes a running game whose
time is up.
"""

import random
from datetime import timedelta
from typing import Any, Dict, List, Optional

from flask import current_app

from coderush import db
from coderush.errors import Forbidden, Conflict, GameStateError, NotFound, ValidationError
from coderush.models import (
    DIFFICULTIES,
    GAME_MODES,
    LANGUAGES,
    Game,
    GameInvite,
    Player,
    Question,
    User,
    utcnow,
)
from .events import broadcast_state
from .scheduler import schedule_game_timer
from .scoring import assign_handicaps, finalize_game, record_forfeit

SOLO_DURATIONS = (180, 300)
FRIEND_PLAYER_COUNTS = (2, 3, 4)
MIN_MULTIPLAYER_DURATION = 300
MAX_MULTIPLAYER_DURATION = 3600
MAX_CUSTOM_PLAYERS = 10


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{name} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be an integer')


def resolve_users(identifiers: Any) -> List[int]:
    """Turn a list (or comma-separated string) of ids, usernames or e-mails into user ids."""
    if isinstance(identifiers, str):
        identifiers = [i.strip() for i in identifiers.split(',')]
    if not isinstance(identifiers, list):
        raise ValidationError('invited_users must be a list')
    user_ids = []
    for ident in identifiers:
        if ident in (None, ''):
            continue
        if isinstance(ident, int) and not isinstance(ident, bool):
            user = db.session.get(User, ident)
        else:
            ident = str(ident)
            user = User.query.filter((User.username == ident) | (User.email == ident)).first()
        if not user:
            raise ValidationError(f'Unknown user: {ident}')
        if user.id not in user_ids:
            user_ids.append(user.id)
    return user_ids


def parse_game_config(data: Any) -> Dict[str, Any]:
    """Validate a game configuration and fill in the per-mode defaults."""
    if not isinstance(data, dict):
        raise ValidationError('Game configuration must be an object')
    mode = data.get('mode')
    if mode not in GAME_MODES:
        raise ValidationError(f'mode must be one of {", ".join(GAME_MODES)}')
    language = data.get('language') or 'JavaScript'
    if language not in LANGUAGES:
        raise ValidationError(f'language must be one of {", ".join(LANGUAGES)}')
    difficulty = data.get('difficulty') or 'Medium'
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f'difficulty must be one of {", ".join(DIFFICULTIES)}')
    topic = data.get('topic') or None
    if topic is not None and not isinstance(topic, str):
        raise ValidationError('topic must be a string')

    config = {
        'mode': mode,
        'language': language,
        'difficulty': difficulty,
        'topic': topic.strip() if topic else None,
        'is_rated': mode != 'solo',
        'has_handicap': False,
        'invited_users': [],
    }

    if mode == 'solo':
        duration = _as_int(data.get('duration', SOLO_DURATIONS[0]), 'duration')
        if duration not in SOLO_DURATIONS:
            raise ValidationError('Solo games last 180 or 300 seconds')
        config.update(duration=duration, max_players=1)
        return config

    duration = _as_int(data.get('duration', 600), 'duration')
    if not MIN_MULTIPLAYER_DURATION <= duration <= MAX_MULTIPLAYER_DURATION:
        raise ValidationError(
            f'duration must be between {MIN_MULTIPLAYER_DURATION} and {MAX_MULTIPLAYER_DURATION} seconds')
    config['duration'] = duration

    if mode == 'friend':
        max_players = _as_int(data.get('max_players', 2), 'max_players')
        if max_players not in FRIEND_PLAYER_COUNTS:
            raise ValidationError('Friend games are for 2, 3 or 4 players')
    elif mode == 'random':
        max_players = int(current_app.config.get('RANDOM_MATCH_PLAYERS', 2))
    else:
        max_players = _as_int(data.get('max_players', 4), 'max_players')
        if not 2 <= max_players <= MAX_CUSTOM_PLAYERS:
            raise ValidationError(f'Custom games are for 2 to {MAX_CUSTOM_PLAYERS} players')
        config['is_rated'] = bool(data.get('is_rated', True))
        config['has_handicap'] = bool(data.get('has_handicap', False))
        config['invited_users'] = resolve_users(data.get('invited_users') or [])
    config['max_players'] = max_players
    return config


def pick_questions(language: str, difficulty: str, topic: Optional[str] = None,
                   limit: Optional[int] = None) -> List[int]:
    """Draw a shuffled set of matching question ids."""
    if limit is None:
        limit = int(current_app.config.get('QUESTIONS_PER_GAME', 20))
    query = Question.query.with_entities(Question.id).filter_by(language=language, difficulty=difficulty)
    if topic:
        query = query.filter_by(topic=topic)
    ids = [qid for (qid,) in query.all()]
    return random.sample(ids, min(limit, len(ids)))


def get_game(game_code: Any) -> Game:
    if not isinstance(game_code, str) or not game_code.strip():
        raise ValidationError('game_code must be a non-empty string')
    game = Game.query.filter_by(game_code=game_code.strip().upper()).first()
    if not game:
        raise NotFound('Game not found')
    return game


def shareable_link(game: Game) -> str:
    base = current_app.config.get('PUBLIC_BASE_URL', '').rstrip('/')
    return f"{base}/play/join/{game.game_code}"


def _add_player(game: Game, user: User) -> Player:
    player = Player(user_id=user.id, display_name=user.name, user=user)
    game.players.append(player)
    return player


def create_game(data: Any, user: User) -> Game:
    config = parse_game_config(data)
    question_ids = pick_questions(config['language'], config['difficulty'], config['topic'])
    if not question_ids:
        raise ValidationError('No questions available for this language, difficulty and topic')

    invited = config.pop('invited_users')
    game = Game(created_by=user.id, **config)
    game.invited_users = invited
    game.question_ids = question_ids
    _add_player(game, user)
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(
        f"[game-create] game={game.game_code} mode={game.mode} language={game.language} "
        f"difficulty={game.difficulty} questions={len(question_ids)}"
    )

    if game.mode == 'solo':
        start_game(game)
    return game


def find_or_create_random_game(data: Any, user: User) -> Game:
    """Matchmaking queue: the oldest open random game with the same settings, else a new one."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('Game configuration must be an object')
    data = dict(data, mode='random')
    config = parse_game_config(data)
    waiting = (Game.query
               .filter_by(status='waiting', mode='random', language=config['language'],
                          difficulty=config['difficulty'])
               .order_by(Game.created_at.asc(), Game.id.asc())
               .all())
    for game in waiting:
        if game.player_for(user.id):
            return game
    for game in waiting:
        if len(game.players) < game.max_players:
            current_app.logger.info(f"[matchmaking] user={user.id} matched game={game.game_code}")
            return join_game(game, user)
    current_app.logger.info(f"[matchmaking] user={user.id} no open game, creating one")
    return create_game(data, user)


def join_game(game: Game, user: User) -> Game:
    if game.player_for(user.id):
        return game
    if game.status != 'waiting':
        raise GameStateError('Game has already started')
    if len(game.players) >= game.max_players:
        raise Conflict('Game is full')
    if game.mode == 'custom' and game.invited_users and user.id not in game.invited_users:
        raise Forbidden('You are not invited to this game')

    _add_player(game, user)
    GameInvite.query.filter_by(game_id=game.id, invitee_id=user.id, status='pending').update({'status': 'accepted'})
    db.session.commit()
    current_app.logger.info(f"[game-join] game={game.game_code} user={user.id} players={len(game.players)}/{game.max_players}")

    if len(game.players) >= game.max_players:
        start_game(game)
    else:
        broadcast_state(game)
    return game


def leave_game(game: Game, user: User) -> Game:
    player = game.player_for(user.id)
    if not player:
        raise NotFound('You are not in this game')
    if game.status in ('completed', 'cancelled'):
        raise GameStateError('Game is already over')

    if game.status == 'in_progress' and game.mode != 'solo':
        record_forfeit(game, player)
    game.players.remove(player)
    db.session.flush()
    current_app.logger.info(f"[game-leave] game={game.game_code} user={user.id} status={game.status}")

    if not game.players:
        game.status = 'cancelled'
        game.ended_at = utcnow()
    elif game.created_by == user.id:
        game.created_by = game.players[0].user_id
    db.session.commit()

    if game.status == 'in_progress' and game.mode != 'solo' and len(game.players) < 2:
        return finalize_game(game)
    broadcast_state(game)
    return game


def start_game(game: Game, user: Optional[User] = None) -> Game:
    if user is not None and game.created_by != user.id:
        raise Forbidden('Only the game creator can start the game')
    if game.status == 'in_progress':
        return game
    if game.status != 'waiting':
        raise GameStateError('Game is not waiting for players')
    min_players = 1 if game.mode == 'solo' else 2
    if len(game.players) < min_players:
        raise GameStateError(f'At least {min_players} players are required to start')

    game.status = 'in_progress'
    game.started_at = utcnow()
    for p in game.players:
        p.is_ready = True
    assign_handicaps(game)
    db.session.commit()
    current_app.logger.info(f"[game-start] game={game.game_code} players={len(game.players)} duration={game.duration}s")

    broadcast_state(game)
    schedule_game_timer(current_app._get_current_object(), game.id)
    return game


def cancel_game(game: Game, user: User) -> Game:
    if game.created_by != user.id:
        raise Forbidden('Only the game creator can cancel the game')
    if game.status != 'waiting':
        raise GameStateError('Only a game that has not started can be cancelled')
    game.status = 'cancelled'
    game.ended_at = utcnow()
    db.session.commit()
    current_app.logger.info(f"[game-cancel] game={game.game_code}")
    broadcast_state(game)
    return game


def refresh_game(game: Game) -> Game:
    """Apply time-based transitions; called on every poll of the game state."""
    now = utcnow()
    if game.status == 'waiting':
        timeout = int(current_app.config.get('LOBBY_TIMEOUT_SEC', 300))
        if game.created_at and now >= game.created_at + timedelta(seconds=timeout):
            if len(game.players) >= 2:
                current_app.logger.info(f"[lobby-timeout] game={game.game_code} starting with {len(game.players)} players")
                return start_game(game)
            current_app.logger.info(f"[lobby-timeout] game={game.game_code} cancelled, not enough players")
            game.status = 'cancelled'
            game.ended_at = now
            db.session.commit()
            broadcast_state(game)
    elif game.status == 'in_progress' and game.deadline and now >= game.deadline:
        return finalize_game(game)
    return game


def lobby_status(game: Game) -> Dict[str, Any]:
    return {
        'status': game.status,
        'current_players': len(game.players),
        'max_players': game.max_players,
        'is_full': len(game.players) >= game.max_players,
        'shareable_link': shareable_link(game),
    }


def active_games(user: User) -> List[Game]:
    return (Game.query.join(Player)
            .filter(Player.user_id == user.id, Game.status.in_(('waiting', 'in_progress')))
            .order_by(Game.created_at.desc())
            .all())
