from typing import Any, NamedTuple

from coderush.errors import InvalidQuestionFormat
from coderush.models import Question


class AnswerResult(NamedTuple):
    is_correct: bool
    points: int


def _normalise_code(code: Any) -> str:
    if not isinstance(code, str):
        return ''
    return code.replace('\r\n', '\n').strip()


def _check_drag_and_drop(body: dict, answer: Any) -> bool:
    expected = body.get('correct_order') or []
    if not isinstance(answer, list) or len(answer) != len(expected):
        return False
    # Only real ints count as indexes
    if any(isinstance(i, bool) or not isinstance(i, int) for i in answer):
        return False
    return answer == expected


def _check_fix_the_code(body: dict, answer: Any) -> bool:
    if not isinstance(answer, str):
        return False
    return _normalise_code(answer) == _normalise_code(body.get('correct_code'))


def _check_multiple_choice(body: dict, answer: Any) -> bool:
    correct = body.get('correct_answer')
    options = body.get('options') or []
    # bool is an int subclass; True must not count as option 1
    if isinstance(answer, bool):
        return False
    if isinstance(answer, int):
        return answer == correct
    if isinstance(answer, str) and isinstance(correct, int) and 0 <= correct < len(options):
        return answer.strip() == options[correct].strip()
    return False


def _check_subobjective(body: dict, answer: Any) -> bool:
    expected = body.get('answers') or []
    if not isinstance(answer, list) or len(answer) != len(expected):
        return False
    for given, wanted in zip(answer, expected):
        if not isinstance(given, str):
            return False
        if given.strip().casefold() != str(wanted).strip().casefold():
            return False
    return True


def _check_accomplish_task(body: dict, answer: Any) -> bool:
    """Code is run by the client; it reports either a verdict or the raw outputs."""
    if not isinstance(answer, dict):
        return False
    outputs = answer.get('outputs')
    if outputs is not None:
        cases = body.get('test_cases') or []
        if not isinstance(outputs, list) or len(outputs) != len(cases):
            return False
        return all(str(out).strip() == str(case.get('output', '')).strip()
                   for out, case in zip(outputs, cases))
    return answer.get('all_tests_passed') is True


_CHECKERS = {
    'DragAndDrop': _check_drag_and_drop,
    'FixTheCode': _check_fix_the_code,
    'MultipleChoice': _check_multiple_choice,
    'Subobjective': _check_subobjective,
    'AccomplishTask': _check_accomplish_task,
}


def validate_answer(question: Question, answer: Any) -> AnswerResult:
    """Decide whether ``answer`` solves ``question``.

    Awards the question's full points when correct and nothing otherwise.
    A malformed answer is treated as wrong, never as an error; only a
    question with an unknown format raises.
    """
    checker = _CHECKERS.get(question.format)
    if checker is None:
        raise InvalidQuestionFormat(f'Invalid question format: {question.format}')
    is_correct = bool(checker(question.body, answer))
    return AnswerResult(is_correct, question.points if is_correct else 0)
