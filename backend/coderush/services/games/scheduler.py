import time
from typing import Set, Tuple

from coderush import db, socketio
from coderush.models import Game, utcnow
from .scoring import finalize_game


_scheduled_game_keys: Set[Tuple[int, str]] = set()


def schedule_game_timer(app, game_id: int) -> None:
    """Schedule the end of a running game when its duration elapses.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Ensures a single timer per (game_id, started_at)
    - The worker only finishes the game if it is still the same running game
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    with app.app_context():
        game = db.session.get(Game, game_id)
        if not game or game.status != 'in_progress' or not game.started_at:
            return
        started_key = game.started_at.isoformat()
        key = (game.id, started_key)
        if key in _scheduled_game_keys:
            app.logger.info(f"[timer-skip] game={game.game_code} already scheduled")
            return
        _scheduled_game_keys.add(key)
        delay = max(0.0, (game.deadline - utcnow()).total_seconds())
        app.logger.info(f"[timer-set] game={game.game_code} duration={game.duration}s remaining={delay:.0f}s")

    def _worker(gid: int, expected_start: str, delay: float):
        hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0) or 0)
        if hb > 0:
            slept = 0.0
            while slept < delay:
                step = min(hb, delay - slept)
                time.sleep(step)
                slept += step
                app.logger.info(f"[timer-heartbeat] game={gid} remaining={max(0, delay - slept):.0f}s")
        else:
            time.sleep(delay)
        with app.app_context():
            _scheduled_game_keys.discard((gid, expected_start))
            g = db.session.get(Game, gid)
            if not g:
                return
            app.logger.info(f"[timer-fire] game={g.game_code} status={g.status}")
            if g.status != 'in_progress' or not g.started_at or g.started_at.isoformat() != expected_start:
                app.logger.info(f"[timer-abort] game={g.game_code} no longer the same running game")
                return
            finalize_game(g)

    if app.config.get('TESTING'):
        _worker(game_id, started_key, delay)
    else:
        socketio.start_background_task(_worker, game_id, started_key, delay)
