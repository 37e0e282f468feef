from datetime import timedelta

from coderush import db
from coderush.models import Game, GameInvite, User


def create_friend_game(test_client, **overrides):
    payload = {'mode': 'friend', 'language': 'Python', 'difficulty': 'Easy', 'duration': 600, 'max_players': 2}
    payload.update(overrides)
    res = test_client.post('/api/games/create', json=payload)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


def answer_all(test_client, code, question_ids, answer):
    last = None
    for qid in question_ids:
        res = test_client.post(f'/api/games/{code}/answer', json={'question_id': qid, 'answer': answer, 'time_spent': 5})
        assert res.status_code == 200, res.get_json()
        last = res.get_json()
    return last


def test_create_game_needs_matching_questions(alice):
    res = alice.post('/api/games/create', json={'mode': 'friend', 'language': 'Java', 'difficulty': 'Hard'})
    assert res.status_code == 400
    assert 'No questions' in res.get_json()['error']


def test_create_game_validates_config(alice, python_questions):
    assert alice.post('/api/games/create', json={'mode': 'ranked'}).status_code == 400
    assert alice.post('/api/games/create', json={'mode': 'friend', 'language': 'Python', 'difficulty': 'Easy',
                                                 'max_players': 6}).status_code == 400
    assert alice.post('/api/games/create', json={'mode': 'solo', 'language': 'Python', 'difficulty': 'Easy',
                                                 'duration': 200}).status_code == 400


def test_friend_game_full_flow(alice, bob, python_questions):
    created = create_friend_game(alice)
    code = created['game_code']
    assert created['shareable_link'] == f'http://coderush.test/play/join/{code}'
    game = created['game']
    assert game['status'] == 'waiting'
    assert sorted(game['question_ids']) == sorted(python_questions)
    assert [p['user_id'] for p in game['players']] == [alice.user_id]

    lobby = bob.get(f'/api/games/{code.lower()}/lobby').get_json()
    assert lobby['current_players'] == 1
    assert lobby['max_players'] == 2

    # Second player fills the lobby and the game starts
    joined = bob.post('/api/games/join', json={'game_code': code}).get_json()
    assert joined['status'] == 'in_progress'
    assert joined['seconds_remaining'] > 0
    assert len(joined['questions']) == 3
    assert all('correct_answer' not in q for q in joined['questions'])

    assert alice.get(f'/api/games/{code}/results').status_code == 400

    answer_all(alice, code, python_questions, 1)
    last = answer_all(bob, code, python_questions, 0)
    assert last['game_status'] == 'completed'

    state = alice.get(f'/api/games/{code}').get_json()
    assert state['status'] == 'completed'
    assert state['winner_id'] == alice.user_id
    scores = {p['user_id']: p['score'] for p in state['players']}
    assert scores == {alice.user_id: 30, bob.user_id: 0}

    results = alice.get(f'/api/games/{code}/results').get_json()
    assert [r['user_id'] for r in results['results']] == [alice.user_id, bob.user_id]
    assert results['results'][0]['correct_answers'] == 3

    assert alice.get('/profile').get_json()['wins'] == 1
    assert bob.get('/profile').get_json()['losses'] == 1


def test_answer_rules(alice, bob, python_questions):
    code = create_friend_game(alice)['game_code']
    qid = python_questions[0]

    # Not started yet
    res = alice.post(f'/api/games/{code}/answer', json={'question_id': qid, 'answer': 1})
    assert res.status_code == 400

    bob.post('/api/games/join', json={'game_code': code})
    res = alice.post(f'/api/games/{code}/answer', json={'question_id': qid, 'answer': 1})
    assert res.get_json()['points'] == 10
    res = alice.post(f'/api/games/{code}/answer', json={'question_id': qid, 'answer': 1})
    assert res.status_code == 409
    res = alice.post(f'/api/games/{code}/answer', json={'question_id': 9999, 'answer': 1})
    assert res.status_code == 404
    res = alice.post(f'/api/games/{code}/answer', json={'answer': 1})
    assert res.status_code == 400


def test_outsider_cannot_answer_or_join_full_game(alice, bob, make_user, python_questions):
    code = create_friend_game(alice)['game_code']
    bob.post('/api/games/join', json={'game_code': code})
    carol = make_user('carol')
    res = carol.post('/api/games/join', json={'game_code': code})
    assert res.status_code == 400
    res = carol.post(f'/api/games/{code}/answer', json={'question_id': python_questions[0], 'answer': 1})
    assert res.status_code == 403
    assert carol.post('/api/games/join', json={'game_code': 'NOPE00'}).status_code == 404


def test_solo_game_starts_immediately_and_ends_early(alice, python_questions):
    res = alice.post('/api/games/create', json={'mode': 'solo', 'language': 'Python', 'difficulty': 'Easy',
                                                'duration': 300})
    game = res.get_json()['game']
    code = game['game_code']
    assert game['status'] == 'in_progress'
    assert game['config']['max_players'] == 1
    assert game['config']['is_rated'] is False

    alice.post(f'/api/games/{code}/answer', json={'question_id': python_questions[0], 'answer': '3'})
    ended = alice.post(f'/api/games/{code}/end').get_json()
    assert ended['status'] == 'completed'
    assert ended['winner_id'] is None
    assert ended['players'][0]['score'] == 10
    assert alice.get('/profile').get_json()['wins'] == 0


def test_random_matchmaking_pairs_players(alice, bob, python_questions):
    config = {'language': 'Python', 'difficulty': 'Easy', 'duration': 300}
    first = alice.post('/api/games/matchmaking', json=config).get_json()
    assert first['status'] == 'waiting'
    assert first['config']['mode'] == 'random'

    again = alice.post('/api/games/matchmaking', json=config).get_json()
    assert again['game_code'] == first['game_code']

    matched = bob.post('/api/games/matchmaking', json=config).get_json()
    assert matched['game_code'] == first['game_code']
    assert matched['status'] == 'in_progress'


def test_start_cancel_and_leave(alice, bob, make_user, python_questions):
    code = create_friend_game(alice, max_players=3)['game_code']
    res = alice.post(f'/api/games/{code}/start')
    assert res.status_code == 400

    bob.post('/api/games/join', json={'game_code': code})
    assert bob.post(f'/api/games/{code}/start').status_code == 403
    assert bob.post(f'/api/games/{code}/cancel').status_code == 403

    # Creator leaves; ownership moves to bob
    assert alice.post(f'/api/games/{code}/leave').get_json()['status'] == 'waiting'
    carol = make_user('carol')
    carol.post('/api/games/join', json={'game_code': code})
    assert bob.post(f'/api/games/{code}/cancel').get_json()['status'] == 'cancelled'
    assert carol.post(f'/api/games/{code}/leave').status_code == 400

    other = create_friend_game(alice)['game_code']
    assert alice.post(f'/api/games/{other}/leave').get_json()['status'] == 'cancelled'
    assert alice.get('/api/games/active').get_json() == []


def test_leaving_running_game_ends_it(alice, bob, python_questions):
    code = create_friend_game(alice)['game_code']
    bob.post('/api/games/join', json={'game_code': code})
    assert bob.post(f'/api/games/{code}/leave').get_json()['status'] == 'completed'
    state = alice.get(f'/api/games/{code}').get_json()
    assert state['winner_id'] == alice.user_id


def test_leaving_rated_game_counts_as_forfeit(alice, bob, python_questions):
    code = create_friend_game(alice)['game_code']
    bob.post('/api/games/join', json={'game_code': code})
    bob.post(f'/api/games/{code}/answer', json={'question_id': python_questions[0], 'answer': 1})
    bob.post(f'/api/games/{code}/leave')

    results = alice.get(f'/api/games/{code}/results').get_json()
    assert results['winner_id'] == alice.user_id
    assert [(r['user_id'], r['forfeited']) for r in results['results']] == [
        (alice.user_id, False), (bob.user_id, True)]
    assert results['results'][1]['score'] == 10

    assert alice.get('/profile').get_json()['wins'] == 1
    assert bob.get('/profile').get_json()['losses'] == 1


def test_leaving_three_player_game_keeps_it_running(alice, bob, make_user, python_questions):
    carol = make_user('carol')
    code = create_friend_game(alice, max_players=3)['game_code']
    bob.post('/api/games/join', json={'game_code': code})
    carol.post('/api/games/join', json={'game_code': code})

    assert carol.post(f'/api/games/{code}/leave').get_json()['status'] == 'in_progress'
    assert carol.get('/profile').get_json()['losses'] == 1

    # The game ends once the remaining players have answered everything
    answer_all(alice, code, python_questions, 1)
    answer_all(bob, code, python_questions, 0)
    results = alice.get(f'/api/games/{code}/results').get_json()
    assert [r['user_id'] for r in results['results']] == [alice.user_id, bob.user_id, carol.user_id]
    assert alice.get('/profile').get_json()['wins'] == 1
    assert bob.get('/profile').get_json()['losses'] == 1
    assert carol.get('/profile').get_json()['losses'] == 1


def test_lobby_timeout(flask_app, alice, bob, python_questions):
    lonely = create_friend_game(alice)['game_code']
    busy = create_friend_game(alice, max_players=3)['game_code']
    bob.post('/api/games/join', json={'game_code': busy})

    with flask_app.app_context():
        for code in (lonely, busy):
            game = Game.query.filter_by(game_code=code).first()
            game.created_at = game.created_at - timedelta(seconds=flask_app.config['LOBBY_TIMEOUT_SEC'] + 1)
        db.session.commit()

    assert alice.get(f'/api/games/{lonely}/lobby').get_json()['status'] == 'cancelled'
    assert alice.get(f'/api/games/{busy}').get_json()['status'] == 'in_progress'


def test_game_completes_when_time_runs_out(flask_app, alice, bob, python_questions):
    code = create_friend_game(alice)['game_code']
    bob.post('/api/games/join', json={'game_code': code})
    alice.post(f'/api/games/{code}/answer', json={'question_id': python_questions[0], 'answer': 1})

    with flask_app.app_context():
        game = Game.query.filter_by(game_code=code).first()
        game.started_at = game.started_at - timedelta(seconds=game.duration + 1)
        db.session.commit()

    res = bob.post(f'/api/games/{code}/answer', json={'question_id': python_questions[0], 'answer': 1})
    assert res.status_code == 400
    results = bob.get(f'/api/games/{code}/results').get_json()
    assert results['winner_id'] == alice.user_id


def test_custom_game_invites(alice, bob, make_user, python_questions):
    carol = make_user('carol')
    dave = make_user('dave')
    res = alice.post('/api/games/create', json={
        'mode': 'custom', 'language': 'Python', 'difficulty': 'Easy', 'duration': 600,
        'max_players': 4, 'invited_users': 'bob, carol@example.com',
    })
    assert res.status_code == 201
    code = res.get_json()['game_code']

    assert dave.post('/api/games/join', json={'game_code': code}).status_code == 403

    res = alice.post(f'/api/games/{code}/invites', json={'invitee': 'dave'})
    assert res.status_code == 201
    invites = dave.get('/api/games/invites').get_json()
    assert [i['game_code'] for i in invites] == [code]

    accepted = dave.post(f"/api/games/invites/{invites[0]['id']}/respond", json={'accept': True})
    assert accepted.get_json()['status'] == 'accepted'
    state = alice.get(f'/api/games/{code}').get_json()
    assert dave.user_id in [p['user_id'] for p in state['players']]

    assert bob.post('/api/games/join', json={'game_code': code}).status_code == 200
    assert alice.post(f'/api/games/{code}/invites', json={'invitee': 'alice'}).status_code == 400
    assert alice.post(f'/api/games/{code}/invites', json={'invitee': 'nobody'}).status_code == 400


def test_expired_and_declined_invites(flask_app, alice, bob, make_user, python_questions):
    carol = make_user('carol')
    code = create_friend_game(alice, max_players=3)['game_code']
    first = alice.post(f'/api/games/{code}/invites', json={'invitee': 'bob'}).get_json()
    second = alice.post(f'/api/games/{code}/invites', json={'invitee': 'carol'}).get_json()

    with flask_app.app_context():
        invite = db.session.get(GameInvite, first['id'])
        invite.expires_at = invite.created_at - timedelta(seconds=1)
        db.session.commit()

    assert bob.get('/api/games/invites').get_json() == []
    assert bob.post(f"/api/games/invites/{first['id']}/respond", json={'accept': True}).status_code == 400

    declined = carol.post(f"/api/games/invites/{second['id']}/respond", json={'accept': False}).get_json()
    assert declined['status'] == 'declined'
    assert bob.post(f"/api/games/invites/{second['id']}/respond", json={'accept': True}).status_code == 404


def test_handicap_boosts_lower_rated_player(flask_app, alice, bob, python_questions):
    with flask_app.app_context():
        db.session.get(User, bob.user_id).rating = 1000
        db.session.commit()

    res = alice.post('/api/games/create', json={
        'mode': 'custom', 'language': 'Python', 'difficulty': 'Easy', 'duration': 600,
        'max_players': 2, 'has_handicap': True,
    })
    code = res.get_json()['game_code']
    started = bob.post('/api/games/join', json={'game_code': code}).get_json()
    handicaps = {p['user_id']: p['handicap'] for p in started['players']}
    assert handicaps == {alice.user_id: 0, bob.user_id: 20}

    qid = python_questions[0]
    assert bob.post(f'/api/games/{code}/answer', json={'question_id': qid, 'answer': 1}).get_json()['points'] == 12
    assert alice.post(f'/api/games/{code}/answer', json={'question_id': qid, 'answer': 1}).get_json()['points'] == 10


def test_malformed_requests_are_rejected(alice, python_questions):
    assert alice.post('/api/games/join', json={'game_code': 123456}).status_code == 400
    assert alice.post('/api/games/join', json=['ABC123']).status_code == 400
    assert alice.post('/api/games/matchmaking', json=['Python']).status_code == 400
    assert alice.post('/api/games/create', json=['friend']).status_code == 400
    assert alice.post('/api/games/invites/1/respond', json=[True]).status_code == 400
