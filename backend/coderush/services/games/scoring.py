from typing import Dict, List, Optional

from flask import current_app

from coderush import db
from coderush.models import Game, GameResult, Player, utcnow
from .events import broadcast_state

# Handicap bonus per 10 rating points below the strongest player, capped
MAX_HANDICAP_PERCENT = 50


def points_with_handicap(points: int, handicap: int) -> int:
    """Scale awarded points by a player's handicap percentage."""
    if not points or not handicap:
        return points
    return int(round(points * (100 + handicap) / 100.0))


def assign_handicaps(game: Game) -> Dict[int, int]:
    """Give weaker players a bonus relative to the highest-rated player.

    Each 10 rating points below the top rating is worth 1%, capped at
    ``MAX_HANDICAP_PERCENT``. Games without handicaps reset everyone to 0.
    """
    handicaps = {}
    top = max((p.user.rating for p in game.players if p.user), default=0)
    for p in game.players:
        if game.has_handicap and p.user:
            p.handicap = min(MAX_HANDICAP_PERCENT, max(0, (top - p.user.rating) // 10))
        else:
            p.handicap = 0
        handicaps[p.user_id] = p.handicap
    return handicaps


def pick_winner(players: List[Player]) -> Optional[Player]:
    """Highest score wins; ties go to whoever joined first.

    ``players`` is expected in join order, which ``Game.players`` keeps.
    """
    if not players:
        return None
    return max(players, key=lambda p: p.score)


def record_forfeit(game: Game, player: Player) -> GameResult:
    """Close out a player leaving a running multiplayer game.

    The leaver keeps their result row, marked as forfeited, and a rated
    game books the loss now since they are no longer among the players
    ``finalize_game`` settles. The caller commits.
    """
    result = GameResult(
        game_id=game.id,
        user_id=player.user_id,
        score=player.score,
        questions_answered=player.questions_answered,
        correct_answers=player.correct_answers,
        forfeited=True,
    )
    db.session.add(result)
    if game.is_rated and player.user:
        player.user.losses += 1
    current_app.logger.info(f"[game-forfeit] game={game.game_code} user={player.user_id} score={player.score}")
    return result


def finalize_game(game: Game) -> Game:
    """Complete a game: pick the winner, write results, update records.

    Safe to call more than once; a completed game is returned unchanged.
    Rated multiplayer games add a win to the winner and a loss to everyone
    else still playing; players who left were charged their loss by
    ``record_forfeit``, so a lone remaining player still wins.
    """
    if game.status == 'completed':
        return game
    players = list(game.players)
    game.status = 'completed'
    game.ended_at = utcnow()
    winner = pick_winner(players) if game.mode != 'solo' else None
    game.winner_id = winner.user_id if winner else None

    for p in players:
        db.session.add(GameResult(
            game_id=game.id,
            user_id=p.user_id,
            score=p.score,
            questions_answered=p.questions_answered,
            correct_answers=p.correct_answers,
        ))
        if game.is_rated and winner and p.user:
            if p.user_id == winner.user_id:
                p.user.wins += 1
            else:
                p.user.losses += 1

    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[game-end] game={game.game_code} winner={game.winner_id} players={len(players)}")
    broadcast_state(game)
    return game


def game_results(game: Game) -> List[GameResult]:
    """Players who finished first, by score; then those who forfeited."""
    return (GameResult.query.filter_by(game_id=game.id)
            .order_by(GameResult.forfeited.asc(), GameResult.score.desc(), GameResult.id.asc()).all())
