from .responses import ok, error, error_response, internal_error_response, validation_error_response
from .validation import validate_schema, field_errors
from .db import transactional

__all__ = [
    'ok',
    'error',
    'error_response',
    'internal_error_response',
    'validation_error_response',
    'validate_schema',
    'field_errors',
    'transactional',
]
