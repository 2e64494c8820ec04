from functools import wraps
from flask import request
from pydantic import ValidationError
from .responses import validation_error_response


def field_errors(ve: ValidationError) -> dict:
    """Flatten pydantic errors into ``{"field.path": "message"}``."""
    errors = {}
    for err in ve.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "body"
        errors.setdefault(loc, err.get("msg", "Invalid value"))
    return errors


def validate_schema(schema):
    """Decorator to validate request JSON against a Pydantic schema."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            payload = request.get_json(silent=True)
            if not isinstance(payload, dict):
                payload = {}
            try:
                obj = schema.model_validate(payload)
            except ValidationError as ve:
                return validation_error_response(field_errors(ve))
            request.validated_data = obj
            return fn(*args, **kwargs)
        return wrapper

    return decorator
