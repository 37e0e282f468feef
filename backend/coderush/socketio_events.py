from flask_socketio import join_room, leave_room, emit
from coderush import socketio
from coderush.models import Game
from coderush.services.games.events import room_for


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    # Rooms are dropped by Socket.IO itself; nothing to persist
    pass


def _game_code(data):
    code = data.get('game_code') if isinstance(data, dict) else None
    if not isinstance(code, str) or not code.strip():
        emit('error', {'message': 'game_code is required'})
        return None
    return code.strip().upper()


def handle_join_game(data):
    game_code = _game_code(data)
    if not game_code:
        return
    game = Game.query.filter_by(game_code=game_code).first()
    if not game:
        emit('error', {'message': 'Game not found'})
        return
    room = room_for(game_code)
    join_room(room)
    emit('joined', {'room': room, 'status': game.status})


def handle_leave_game(data):
    game_code = _game_code(data)
    if not game_code:
        return
    room = room_for(game_code)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_game': handle_join_game,
        'leave_game': handle_leave_game,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
