from .responses import ok, error, validation_error_response
from .auth import auth_required, permission_required
from .validation import validate_schema
from .db import transactional
from .jwt import (
    create_access_token,
    decode_token,
    TokenError,
)

__all__ = [
    'ok',
    'error',
    'validation_error_response',
    'auth_required',
    'permission_required',
    'create_access_token',
    'decode_token',
    'TokenError',
    'validate_schema',
    'transactional',
]
