from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from coderush.api import json_body
from coderush.auth import admin_required, is_admin
from coderush.services.questions.store import (
    create_question,
    delete_question,
    get_question,
    list_questions,
    record_submission,
    update_question,
)
from coderush import db

questions = Blueprint('questions', __name__)


@questions.route('', methods=['GET'])
def list_all():
    """
    Lists questions, newest first, filtered by language, difficulty, format and topic.
    """
    try:
        limit = int(request.args.get('limit', 10))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400
    found = list_questions(
        language=request.args.get('language'),
        difficulty=request.args.get('difficulty'),
        format=request.args.get('format'),
        topic=request.args.get('topic'),
        limit=limit,
    )
    include_answers = is_admin()
    return jsonify([q.to_dict(include_answers=include_answers) for q in found])


@questions.route('', methods=['POST'])
@admin_required
def create():
    question = create_question(request.get_json(silent=True))
    return jsonify(question.to_dict(include_answers=True)), 201


@questions.route('/<int:question_id>', methods=['GET'])
def get_one(question_id):
    question = get_question(question_id)
    return jsonify(question.to_dict(include_answers=is_admin()))


@questions.route('/<int:question_id>', methods=['PATCH'])
@admin_required
def update(question_id):
    question = update_question(get_question(question_id), request.get_json(silent=True))
    return jsonify(question.to_dict(include_answers=True))


@questions.route('/<int:question_id>', methods=['DELETE'])
@admin_required
def delete(question_id):
    delete_question(get_question(question_id))
    return jsonify({'success': True})


@questions.route('/<int:question_id>/submit', methods=['POST'])
@login_required
def submit(question_id):
    """
    Checks a practice answer for a single question and records the attempt.
    """
    question = get_question(question_id)
    data = json_body()
    if 'answer' not in data:
        return jsonify({'error': 'answer is required'}), 400
    submission, result = record_submission(current_user, question, data['answer'], data.get('time_taken', 0))
    db.session.commit()
    return jsonify({
        'submission_id': submission.id,
        'is_correct': result.is_correct,
        'points': result.points,
        'time_taken': submission.time_taken,
    })
