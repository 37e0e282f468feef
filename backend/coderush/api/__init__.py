from flask import request

from coderush.errors import ValidationError


def json_body() -> dict:
    """The request's JSON object; a missing body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def text_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f'{key} must be a string')
    return value
