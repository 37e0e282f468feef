"""Question store: validation of authored questions and CRUD helpers.

Questions keep their common fields in columns and the format-specific
fields in a JSON body. Everything the admin console writes goes through
``create_question`` / ``update_question`` so a stored question is always
answerable by the validator.
"""

from typing import Any, Dict, List, Optional, Tuple

from flask import current_app

from coderush import db
from coderush.errors import InvalidQuestionFormat, NotFound, ValidationError
from coderush.models import (
    DIFFICULTIES,
    LANGUAGES,
    QUESTION_FORMATS,
    Question,
    QuestionSet,
    Submission,
    User,
    utcnow,
)
from .validation import AnswerResult, validate_answer

MAX_LIST_LIMIT = 100


def _require_str(data: dict, key: str, allow_empty: bool = False) -> str:
    value = data.get(key)
    if not isinstance(value, str) or (not allow_empty and not value.strip()):
        raise ValidationError(f'{key} is required')
    return value


def _str_list(data: dict, key: str, min_len: int = 1) -> List[str]:
    value = data.get(key)
    if not isinstance(value, list) or len(value) < min_len or not all(isinstance(v, str) for v in value):
        raise ValidationError(f'{key} must be a list of at least {min_len} strings')
    return value


def _positive_int(data: dict, key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f'{key} must be a positive integer')
    return value


def _first_differing_line(code: str, fixed: str) -> Optional[int]:
    """1-based number of the first line that differs, or None when identical."""
    broken_lines = code.replace('\r\n', '\n').split('\n')
    fixed_lines = fixed.replace('\r\n', '\n').split('\n')
    for idx in range(max(len(broken_lines), len(fixed_lines))):
        a = broken_lines[idx] if idx < len(broken_lines) else None
        b = fixed_lines[idx] if idx < len(fixed_lines) else None
        if a != b:
            return idx + 1
    return None


def _drag_and_drop_body(data: dict) -> dict:
    snippets = _str_list(data, 'code_snippets', min_len=2)
    order = data.get('correct_order')
    if not isinstance(order, list) or any(isinstance(i, bool) or not isinstance(i, int) for i in order):
        raise ValidationError('correct_order must be a list of snippet indexes')
    if sorted(order) != list(range(len(snippets))):
        raise ValidationError('correct_order must use every snippet index exactly once')
    return {'code_snippets': snippets, 'correct_order': order}


def _fix_the_code_body(data: dict) -> dict:
    code = _require_str(data, 'code')
    correct_code = data.get('correct_code') or data.get('solution')
    if not isinstance(correct_code, str) or not correct_code.strip():
        raise ValidationError('correct_code is required')
    error_line = data.get('error_line')
    if error_line is None:
        error_line = _first_differing_line(code, correct_code)
        if error_line is None:
            raise ValidationError('correct_code must differ from code')
    elif isinstance(error_line, bool) or not isinstance(error_line, int) or error_line < 1:
        raise ValidationError('error_line must be a positive line number')
    return {'code': code, 'error_line': error_line, 'correct_code': correct_code}


def _multiple_choice_body(data: dict) -> dict:
    options = _str_list(data, 'options', min_len=2)
    if any(not o.strip() for o in options):
        raise ValidationError('options must not be empty')
    correct = data.get('correct_answer')
    if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < len(options):
        raise ValidationError('correct_answer must be the index of one of the options')
    return {'code': data.get('code') or '', 'options': options, 'correct_answer': correct}


def _subobjective_body(data: dict) -> dict:
    code = _require_str(data, 'code')
    blanks = _str_list(data, 'blanks')
    answers = _str_list(data, 'answers')
    if len(blanks) != len(answers):
        raise ValidationError('Every blank needs exactly one answer')
    if any(not a.strip() for a in answers):
        raise ValidationError('answers must not be empty')
    return {'code': code, 'blanks': blanks, 'answers': answers}


def _accomplish_task_body(data: dict) -> dict:
    initial_code = data.get('initial_code')
    if initial_code is None:
        initial_code = data.get('code') or ''
    if not isinstance(initial_code, str):
        raise ValidationError('initial_code must be a string')
    cases = data.get('test_cases')
    if not isinstance(cases, list) or not cases:
        raise ValidationError('test_cases must contain at least one case')
    normalised = []
    for case in cases:
        if not isinstance(case, dict) or 'output' not in case:
            raise ValidationError('Each test case needs an input and an output')
        normalised.append({'input': str(case.get('input', '')), 'output': str(case['output'])})
    solution = data.get('solution') or ''
    if not isinstance(solution, str):
        raise ValidationError('solution must be a string')
    return {'initial_code': initial_code, 'test_cases': normalised, 'solution': solution}


_BODY_BUILDERS = {
    'DragAndDrop': _drag_and_drop_body,
    'FixTheCode': _fix_the_code_body,
    'MultipleChoice': _multiple_choice_body,
    'Subobjective': _subobjective_body,
    'AccomplishTask': _accomplish_task_body,
}


def clean_question_data(data: Any) -> Tuple[dict, dict]:
    """Validate authored question data.

    Returns ``(fields, body)``: the common column values and the
    format-specific body. Raises ``ValidationError`` (or
    ``InvalidQuestionFormat``) describing the first problem found.
    """
    if not isinstance(data, dict):
        raise ValidationError('Question data must be an object')
    fmt = data.get('format')
    if fmt not in QUESTION_FORMATS:
        raise InvalidQuestionFormat(f'format must be one of {", ".join(QUESTION_FORMATS)}')
    if data.get('language') not in LANGUAGES:
        raise ValidationError(f'language must be one of {", ".join(LANGUAGES)}')
    if data.get('difficulty') not in DIFFICULTIES:
        raise ValidationError(f'difficulty must be one of {", ".join(DIFFICULTIES)}')
    description = data.get('description') or ''
    topic = data.get('topic') or ''
    if not isinstance(description, str) or not isinstance(topic, str):
        raise ValidationError('description and topic must be strings')
    fields = {
        'title': _require_str(data, 'title').strip(),
        'description': description,
        'format': fmt,
        'language': data['language'],
        'difficulty': data['difficulty'],
        'topic': topic.strip(),
        'points': _positive_int(data, 'points', 100),
        'time_limit': _positive_int(data, 'time_limit', 300),
    }
    return fields, _BODY_BUILDERS[fmt](data)


def create_question(data: Any) -> Question:
    fields, body = clean_question_data(data)
    question = Question(**fields)
    question.body = body
    db.session.add(question)
    db.session.commit()
    current_app.logger.info(f"[question-create] id={question.id} format={question.format} language={question.language}")
    return question


def get_question(question_id: int) -> Question:
    question = db.session.get(Question, question_id)
    if not question:
        raise NotFound('Question not found')
    return question


def update_question(question: Question, changes: Any) -> Question:
    """Apply a partial update; the merged question is validated as a whole."""
    if not isinstance(changes, dict):
        raise ValidationError('Question data must be an object')
    merged = question.to_dict(include_answers=True)
    if changes.get('format') and changes['format'] != question.format:
        # A format change replaces the whole body
        merged = {k: merged[k] for k in ('title', 'description', 'language', 'difficulty', 'topic', 'points', 'time_limit')}
    if 'correct_code' in changes or 'code' in changes:
        merged.pop('error_line', None)
    merged.update({k: v for k, v in changes.items() if k not in ('id', 'created_at', 'updated_at')})
    fields, body = clean_question_data(merged)
    for key, value in fields.items():
        setattr(question, key, value)
    question.body = body
    question.updated_at = utcnow()
    db.session.commit()
    current_app.logger.info(f"[question-update] id={question.id} fields={sorted(changes)}")
    return question


def delete_question(question: Question) -> None:
    question_id = question.id
    Submission.query.filter_by(question_id=question_id).update({'question_id': None})
    db.session.delete(question)
    db.session.commit()
    current_app.logger.info(f"[question-delete] id={question_id}")


def list_questions(language: Optional[str] = None, difficulty: Optional[str] = None,
                   format: Optional[str] = None, topic: Optional[str] = None,
                   limit: int = 10) -> List[Question]:
    query = Question.query
    if language:
        query = query.filter_by(language=language)
    if difficulty:
        query = query.filter_by(difficulty=difficulty)
    if format:
        query = query.filter_by(format=format)
    if topic:
        query = query.filter_by(topic=topic)
    limit = max(1, min(int(limit), MAX_LIST_LIMIT))
    return query.order_by(Question.created_at.desc(), Question.id.desc()).limit(limit).all()


def record_submission(user: User, question: Question, answer: Any, time_taken: Any = 0,
                      game_id: Optional[int] = None) -> Tuple[Submission, AnswerResult]:
    """Validate ``answer`` and store the attempt. The caller commits."""
    try:
        time_taken = max(0.0, float(time_taken or 0))
    except (TypeError, ValueError):
        raise ValidationError('time_taken must be a number of seconds')
    result = validate_answer(question, answer)
    submission = Submission(
        user_id=user.id,
        question_id=question.id,
        game_id=game_id,
        is_correct=result.is_correct,
        points=result.points,
        time_taken=time_taken,
    )
    submission.answer = answer
    db.session.add(submission)
    return submission, result


def user_submissions(user_id: int) -> List[Submission]:
    return Submission.query.filter_by(user_id=user_id).order_by(Submission.submitted_at.desc(), Submission.id.desc()).all()


def user_progress(user_id: int) -> Dict[str, Any]:
    submissions = user_submissions(user_id)
    total = len(submissions)
    return {
        'total_attempts': total,
        'correct_submissions': sum(1 for s in submissions if s.is_correct),
        'total_points': sum(s.points for s in submissions if s.is_correct),
        'average_time': (sum(s.time_taken for s in submissions) / total) if total else 0,
    }


def create_question_set(data: Any) -> QuestionSet:
    if not isinstance(data, dict):
        raise ValidationError('Question set data must be an object')
    if data.get('language') not in LANGUAGES:
        raise ValidationError(f'language must be one of {", ".join(LANGUAGES)}')
    if data.get('difficulty') not in DIFFICULTIES:
        raise ValidationError(f'difficulty must be one of {", ".join(DIFFICULTIES)}')
    question_ids = data.get('question_ids') or []
    if not isinstance(question_ids, list) or any(isinstance(i, bool) or not isinstance(i, int) for i in question_ids):
        raise ValidationError('question_ids must be a list of question ids')
    if question_ids:
        found = {q.id for q in Question.query.filter(Question.id.in_(question_ids)).all()}
        missing = [i for i in question_ids if i not in found]
        if missing:
            raise ValidationError(f'Unknown question ids: {missing}')
    required_points = data.get('required_points', 0)
    order = data.get('order', 0)
    if not isinstance(required_points, int) or required_points < 0 or not isinstance(order, int):
        raise ValidationError('required_points and order must be integers')
    qset = QuestionSet(
        title=_require_str(data, 'title').strip(),
        description=data.get('description') or '',
        language=data['language'],
        difficulty=data['difficulty'],
        required_points=required_points,
        order=order,
    )
    qset.question_ids = question_ids
    db.session.add(qset)
    db.session.commit()
    current_app.logger.info(f"[question-set-create] id={qset.id} questions={len(question_ids)}")
    return qset


def list_question_sets(language: Optional[str] = None, difficulty: Optional[str] = None) -> List[QuestionSet]:
    query = QuestionSet.query
    if language:
        query = query.filter_by(language=language)
    if difficulty:
        query = query.filter_by(difficulty=difficulty)
    return query.order_by(QuestionSet.order.asc(), QuestionSet.id.asc()).all()
