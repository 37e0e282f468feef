from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from coderush.api import json_body
from coderush.models import Question
from coderush.services.games.answers import submit_answer
from coderush.services.games.invites import create_invite, pending_invites, respond_to_invite
from coderush.services.games.matchmaking import (
    active_games,
    cancel_game,
    create_game,
    find_or_create_random_game,
    get_game,
    join_game,
    leave_game,
    lobby_status,
    refresh_game,
    shareable_link,
    start_game,
)
from coderush.services.games.scoring import finalize_game, game_results


games = Blueprint('games', __name__)


def _game_payload(game):
    payload = game.to_dict()
    payload['shareable_link'] = shareable_link(game)
    # Players get the question list once the clock is running
    if game.status in ('in_progress', 'completed') and game.player_for(current_user.id):
        by_id = {q.id: q for q in Question.query.filter(Question.id.in_(game.question_ids)).all()}
        payload['questions'] = [by_id[qid].to_dict() for qid in game.question_ids if qid in by_id]
    return payload


@games.route('/create', methods=['POST'])
@login_required
def create():
    """
    Creates a game with its question set and adds the current user as the first player.
    """
    game = create_game(request.get_json(silent=True), current_user)
    return jsonify({
        'message': 'New game created!',
        'game_id': game.id,
        'game_code': game.game_code,
        'shareable_link': shareable_link(game),
        'game': _game_payload(game),
    }), 201


@games.route('/matchmaking', methods=['POST'])
@login_required
def matchmaking():
    """
    Puts the current user into the oldest open random game with the same settings.
    """
    game = find_or_create_random_game(json_body(), current_user)
    return jsonify(_game_payload(game))


@games.route('/join', methods=['POST'])
@login_required
def join():
    data = json_body()
    game_code = data.get('game_code')
    if not game_code:
        return jsonify({'error': 'Game code is required'}), 400
    game = join_game(get_game(game_code), current_user)
    return jsonify(_game_payload(game))


@games.route('/active', methods=['GET'])
@login_required
def active():
    """
    Returns the waiting and running games the user is part of.
    """
    return jsonify([g.to_dict(include_players=False) for g in active_games(current_user)])


@games.route('/invites', methods=['GET'])
@login_required
def my_invites():
    return jsonify([i.to_dict() for i in pending_invites(current_user)])


@games.route('/invites/<int:invite_id>/respond', methods=['POST'])
@login_required
def respond_invite(invite_id):
    data = json_body()
    if not isinstance(data.get('accept'), bool):
        return jsonify({'error': 'accept must be true or false'}), 400
    invite = respond_to_invite(invite_id, current_user, data['accept'])
    return jsonify(invite.to_dict())


@games.route('/<string:game_code>', methods=['GET'])
@login_required
def get_state(game_code):
    """
    Returns the full state of a game. Clients poll this while waiting and playing.
    """
    game = refresh_game(get_game(game_code))
    return jsonify(_game_payload(game))


@games.route('/<string:game_code>/lobby', methods=['GET'])
@login_required
def lobby(game_code):
    game = refresh_game(get_game(game_code))
    return jsonify(lobby_status(game))


@games.route('/<string:game_code>/start', methods=['POST'])
@login_required
def start(game_code):
    game = start_game(get_game(game_code), current_user)
    return jsonify(_game_payload(game))


@games.route('/<string:game_code>/cancel', methods=['POST'])
@login_required
def cancel(game_code):
    game = cancel_game(get_game(game_code), current_user)
    return jsonify(_game_payload(game))


@games.route('/<string:game_code>/leave', methods=['POST'])
@login_required
def leave(game_code):
    """
    Removes the current user from a game. A waiting game left empty is cancelled.
    """
    game = leave_game(get_game(game_code), current_user)
    return jsonify({'message': 'You have left the game.', 'status': game.status})


@games.route('/<string:game_code>/answer', methods=['POST'])
@login_required
def answer(game_code):
    data = json_body()
    if 'question_id' not in data or 'answer' not in data:
        return jsonify({'error': 'question_id and answer are required'}), 400
    result = submit_answer(get_game(game_code), current_user, data['question_id'], data['answer'],
                           data.get('time_spent', 0))
    return jsonify(result)


@games.route('/<string:game_code>/end', methods=['POST'])
@login_required
def end(game_code):
    """
    Finishes a running game early: any player of a solo game, otherwise the creator.
    """
    game = get_game(game_code)
    if not game.player_for(current_user.id):
        return jsonify({'error': 'You are not a player in this game'}), 403
    if game.mode != 'solo' and game.created_by != current_user.id:
        return jsonify({'error': 'Only the game creator can end the game'}), 403
    if game.status not in ('in_progress', 'completed'):
        return jsonify({'error': 'Game is not in progress'}), 400
    game = finalize_game(game)
    return jsonify(_game_payload(game))


@games.route('/<string:game_code>/results', methods=['GET'])
@login_required
def results(game_code):
    game = refresh_game(get_game(game_code))
    if game.status != 'completed':
        return jsonify({'error': 'Game has not finished yet'}), 400
    return jsonify({
        'game_code': game.game_code,
        'winner_id': game.winner_id,
        'results': [r.to_dict() for r in game_results(game)],
    })


@games.route('/<string:game_code>/invites', methods=['POST'])
@login_required
def invite(game_code):
    data = json_body()
    invite = create_invite(get_game(game_code), current_user, data.get('invitee'))
    return jsonify(invite.to_dict()), 201
