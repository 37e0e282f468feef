from typing import Any, Dict

from flask import current_app

from coderush import db
from coderush.errors import Conflict, Forbidden, GameStateError, NotFound, ValidationError
from coderush.models import Game, Submission, User
from coderush.services.questions.store import get_question, record_submission
from .events import broadcast_state
from .matchmaking import refresh_game
from .scoring import finalize_game, points_with_handicap


def submit_answer(game: Game, user: User, question_id: Any, answer: Any, time_spent: Any = 0) -> Dict[str, Any]:
    """Score one answer of a player in a running game.

    Each question counts once per player. When every player has answered
    every question the game completes without waiting for the timer.
    """
    refresh_game(game)
    if game.status != 'in_progress':
        raise GameStateError('Game is not in progress')
    player = game.player_for(user.id)
    if not player:
        raise Forbidden('You are not a player in this game')
    if isinstance(question_id, bool) or not isinstance(question_id, int):
        raise ValidationError('question_id must be an integer')
    if question_id not in game.question_ids:
        raise NotFound('Question is not part of this game')
    if Submission.query.filter_by(game_id=game.id, user_id=user.id, question_id=question_id).first():
        raise Conflict('Question already answered')

    question = get_question(question_id)
    submission, result = record_submission(user, question, answer, time_spent, game_id=game.id)
    awarded = points_with_handicap(result.points, player.handicap) if game.has_handicap else result.points
    submission.points = awarded

    player.score += awarded
    player.questions_answered += 1
    if result.is_correct:
        player.correct_answers += 1
    db.session.commit()
    current_app.logger.info(
        f"[answer] game={game.game_code} user={user.id} question={question_id} "
        f"correct={result.is_correct} points={awarded}"
    )

    total = len(game.question_ids)
    if all(p.questions_answered >= total for p in game.players):
        finalize_game(game)
    else:
        broadcast_state(game)

    return {
        'submission_id': submission.id,
        'is_correct': result.is_correct,
        'points': awarded,
        'score': player.score,
        'questions_answered': player.questions_answered,
        'game_status': game.status,
    }
