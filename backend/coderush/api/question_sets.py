from flask import Blueprint, jsonify, request

from coderush import db
from coderush.auth import admin_required
from coderush.models import QuestionSet
from coderush.services.questions.store import create_question_set, list_question_sets

question_sets = Blueprint('question_sets', __name__)


@question_sets.route('', methods=['GET'])
def list_all():
    found = list_question_sets(
        language=request.args.get('language'),
        difficulty=request.args.get('difficulty'),
    )
    return jsonify([s.to_dict() for s in found])


@question_sets.route('', methods=['POST'])
@admin_required
def create():
    qset = create_question_set(request.get_json(silent=True))
    return jsonify(qset.to_dict()), 201


@question_sets.route('/<int:set_id>', methods=['GET'])
def get_one(set_id):
    qset = db.session.get(QuestionSet, set_id)
    if not qset:
        return jsonify({'error': 'Question set not found'}), 404
    return jsonify(qset.to_dict())
