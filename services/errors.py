"""
Errors raised by the session core. The Flask layer maps them to HTTP
responses in api/errors.py.
"""

# Uniform messages so a caller cannot tell which check failed
INVALID_CREDENTIALS = "Invalid username or password"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"


class AuthError(Exception):
    """Base class for session core failures."""

    status = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class Conflict(AuthError):
    """Username or email already exists"""

    status = 409
    code = "CONFLICT"


class Unauthorized(AuthError):
    """Unauthorized"""

    status = 401
    code = "UNAUTHORIZED"
