"""Request body helpers shared by the JSON blueprints."""
from flask import request

from bizdesk.exceptions import BusinessLogicError


def get_payload() -> dict:
    """JSON body, or the form fields for form-encoded requests."""
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            raise BusinessLogicError('Request body must be valid JSON')
        if not isinstance(data, dict):
            raise BusinessLogicError('Request body must be a JSON object')
        return data
    return request.form.to_dict()


def parse_id(value, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BusinessLogicError(f'Invalid {field}')
