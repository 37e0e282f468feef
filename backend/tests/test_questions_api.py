from conftest import MC_QUESTION


DND_QUESTION = {
    'title': 'Order the loop',
    'format': 'DragAndDrop',
    'language': 'JavaScript',
    'difficulty': 'Medium',
    'points': 40,
    'code_snippets': ['}', 'for (let i = 0; i < 3; i++) {', 'console.log(i);'],
    'correct_order': [1, 2, 0],
}


def test_admin_routes_require_admin_session(client, alice):
    assert client.post('/api/questions', json=MC_QUESTION).status_code == 403
    assert alice.post('/api/questions', json=MC_QUESTION).status_code == 403
    assert client.delete('/api/questions/1').status_code == 403


def test_admin_creates_and_players_see_no_answers(admin_client, client):
    res = admin_client.post('/api/questions', json=MC_QUESTION)
    assert res.status_code == 201
    created = res.get_json()
    assert created['correct_answer'] == 1

    public = client.get(f"/api/questions/{created['id']}").get_json()
    assert public['options'] == ['2', '3', '4']
    assert 'correct_answer' not in public

    listed = client.get('/api/questions?language=Python').get_json()
    assert [q['id'] for q in listed] == [created['id']]
    assert 'correct_answer' not in listed[0]
    assert client.get('/api/questions?language=Java').get_json() == []


def test_create_rejects_invalid_questions(admin_client):
    bad_order = dict(DND_QUESTION, correct_order=[0, 0, 1])
    res = admin_client.post('/api/questions', json=bad_order)
    assert res.status_code == 400
    assert 'correct_order' in res.get_json()['error']

    bad_choice = dict(MC_QUESTION, correct_answer=5)
    assert admin_client.post('/api/questions', json=bad_choice).status_code == 400

    bad_format = dict(MC_QUESTION, format='Essay')
    res = admin_client.post('/api/questions', json=bad_format)
    assert res.status_code == 400
    assert 'format' in res.get_json()['error']

    blanks = {
        'title': 'Blanks', 'format': 'Subobjective', 'language': 'Python', 'difficulty': 'Easy',
        'code': 'x = ___', 'blanks': ['a', 'b'], 'answers': ['1'],
    }
    assert admin_client.post('/api/questions', json=blanks).status_code == 400


def test_fix_the_code_derives_error_line(admin_client):
    res = admin_client.post('/api/questions', json={
        'title': 'Fix it', 'format': 'FixTheCode', 'language': 'Python', 'difficulty': 'Easy',
        'code': 'a = 1\nprint(a',
        'correct_code': 'a = 1\nprint(a)',
    })
    assert res.status_code == 201
    assert res.get_json()['error_line'] == 2


def test_update_and_delete_question(admin_client, client):
    qid = admin_client.post('/api/questions', json=DND_QUESTION).get_json()['id']

    res = admin_client.patch(f'/api/questions/{qid}', json={'points': 75, 'topic': 'Control Flow'})
    assert res.status_code == 200
    updated = res.get_json()
    assert updated['points'] == 75
    assert updated['correct_order'] == [1, 2, 0]

    res = admin_client.patch(f'/api/questions/{qid}', json={'correct_order': [5, 1, 2]})
    assert res.status_code == 400

    assert admin_client.delete(f'/api/questions/{qid}').status_code == 200
    assert client.get(f'/api/questions/{qid}').status_code == 404


def test_solo_submit_records_attempt(admin_client, alice):
    qid = admin_client.post('/api/questions', json=MC_QUESTION).get_json()['id']

    res = alice.post(f'/api/questions/{qid}/submit', json={'answer': 1, 'time_taken': 12})
    assert res.status_code == 200
    body = res.get_json()
    assert body['is_correct'] is True
    assert body['points'] == 10
    assert body['submission_id']

    wrong = alice.post(f'/api/questions/{qid}/submit', json={'answer': 0, 'time_taken': 8}).get_json()
    assert wrong['is_correct'] is False
    assert wrong['points'] == 0

    progress = alice.get('/users/me/progress').get_json()
    assert progress == {'total_attempts': 2, 'correct_submissions': 1, 'total_points': 10, 'average_time': 10.0}
    history = alice.get('/users/me/submissions').get_json()
    assert [s['is_correct'] for s in history] == [False, True]


def test_submit_requires_login_and_answer(admin_client, client, alice):
    qid = admin_client.post('/api/questions', json=MC_QUESTION).get_json()['id']
    assert client.post(f'/api/questions/{qid}/submit', json={'answer': 1}).status_code == 401
    assert alice.post(f'/api/questions/{qid}/submit', json={}).status_code == 400
    assert alice.post('/api/questions/999/submit', json={'answer': 1}).status_code == 404


def test_question_sets(admin_client, client):
    qid = admin_client.post('/api/questions', json=MC_QUESTION).get_json()['id']
    res = admin_client.post('/api/question-sets', json={
        'title': 'Python basics', 'language': 'Python', 'difficulty': 'Easy',
        'question_ids': [qid], 'required_points': 10, 'order': 2,
    })
    assert res.status_code == 201
    set_id = res.get_json()['id']
    assert admin_client.post('/api/question-sets', json={
        'title': 'Broken', 'language': 'Python', 'difficulty': 'Easy', 'question_ids': [999],
    }).status_code == 400

    assert client.get(f'/api/question-sets/{set_id}').get_json()['question_ids'] == [qid]
    assert [s['title'] for s in client.get('/api/question-sets?language=Python').get_json()] == ['Python basics']
    assert client.get('/api/question-sets/999').status_code == 404


def test_seed_questions_is_idempotent(flask_app):
    from coderush.models import Question, QuestionSet
    from coderush.services.questions.seed import seed_questions
    with flask_app.app_context():
        assert seed_questions() == 5
        assert seed_questions() == 0
        assert {q.format for q in Question.query.all()} == {
            'DragAndDrop', 'FixTheCode', 'MultipleChoice', 'Subobjective', 'AccomplishTask'}
        assert QuestionSet.query.count() == 1


def test_players_never_see_answer_fields(flask_app, admin_client, client):
    from coderush.services.questions.seed import SAMPLE_QUESTIONS, seed_questions
    with flask_app.app_context():
        seed_questions()
    public = {q['format']: q for q in client.get('/api/questions?limit=20').get_json()}
    admin_view = {q['format']: q for q in admin_client.get('/api/questions?limit=20').get_json()}
    assert len(public) == len(SAMPLE_QUESTIONS)

    hidden = {
        'DragAndDrop': ['correct_order'],
        'FixTheCode': ['correct_code'],
        'MultipleChoice': ['correct_answer'],
        'Subobjective': ['answers'],
        'AccomplishTask': ['solution'],
    }
    for fmt, fields in hidden.items():
        for field in fields:
            assert field not in public[fmt], (fmt, field)
            assert field in admin_view[fmt], (fmt, field)

    assert public['DragAndDrop']['code_snippets']
    assert public['Subobjective']['blanks']
    cases = public['AccomplishTask']['test_cases']
    assert cases and all(set(case) == {'input'} for case in cases)
    assert all('output' in case for case in admin_view['AccomplishTask']['test_cases'])


def test_points_and_time_limit_must_be_whole_numbers(admin_client):
    assert admin_client.post('/api/questions', json=dict(MC_QUESTION, points=10.7)).status_code == 400
    assert admin_client.post('/api/questions', json=dict(MC_QUESTION, points='10')).status_code == 400
    assert admin_client.post('/api/questions', json=dict(MC_QUESTION, time_limit=True)).status_code == 400
    assert admin_client.post('/api/questions', json=dict(MC_QUESTION, points=0)).status_code == 400
    assert admin_client.post('/api/questions', json=dict(MC_QUESTION, points=15)).get_json()['points'] == 15


def test_update_bumps_updated_at(flask_app, admin_client):
    from datetime import datetime
    from coderush import db
    from coderush.models import Question
    qid = admin_client.post('/api/questions', json=MC_QUESTION).get_json()['id']
    with flask_app.app_context():
        db.session.get(Question, qid).updated_at = datetime(2020, 1, 1)
        db.session.commit()

    updated = admin_client.patch(f'/api/questions/{qid}', json={'title': 'List size'}).get_json()
    assert updated['title'] == 'List size'
    assert updated['updated_at'] > '2020-01-01T00:00:00'


def test_list_is_newest_first_and_limited(admin_client, client):
    ids = [admin_client.post('/api/questions', json=dict(MC_QUESTION, title=f'Q{n}')).get_json()['id']
           for n in range(4)]
    listed = client.get('/api/questions?limit=2').get_json()
    assert [q['id'] for q in listed] == [ids[3], ids[2]]
    assert [q['id'] for q in client.get('/api/questions').get_json()] == list(reversed(ids))
    assert len(client.get('/api/questions?limit=0').get_json()) == 1
    assert client.get('/api/questions?limit=lots').status_code == 400
