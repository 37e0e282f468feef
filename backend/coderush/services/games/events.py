from coderush import socketio
from coderush.models import Game


def room_for(game_code: str) -> str:
    return f"game:{game_code}"


def broadcast_state(game: Game) -> None:
    """Tell every client in the game's room to refetch the game state."""
    socketio.emit('state_update', {'game_code': game.game_code, 'status': game.status},
                  to=room_for(game.game_code), namespace='/ws')
