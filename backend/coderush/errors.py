"""Domain errors raised by the services.

Routes let these propagate; the handler registered in ``create_app`` turns
them into ``{"error": message}`` responses with the class's status code.
Anything that is not a ``CodeRushError`` is a bug and results in a 500.
"""


class CodeRushError(Exception):
    status_code = 400
    default_message = 'Bad request'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CodeRushError):
    status_code = 400
    default_message = 'Invalid request data'


class InvalidQuestionFormat(ValidationError):
    default_message = 'Invalid question format'


class NotFound(CodeRushError):
    status_code = 404
    default_message = 'Not found'


class Forbidden(CodeRushError):
    status_code = 403
    default_message = 'Forbidden'


class Conflict(CodeRushError):
    status_code = 409
    default_message = 'Conflict'


class GameStateError(CodeRushError):
    """The game is not in a state that allows the requested action."""
    status_code = 400
    default_message = 'Action not allowed in the current game state'
