from __future__ import annotations

import logging
from functools import wraps

from flask import abort, current_app, request

from services.identity import Identity
from utils.tokens import TokenError

logger = logging.getLogger(__name__)


def _bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        abort(401, description="Missing or invalid Authorization header")
    return auth.split(" ", 1)[1].strip()


def jwt_required():
    """
    Verify the bearer access token and pass the caller's Identity to the
    view as the `identity` keyword argument.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = _bearer_token()
            codec = current_app.extensions["token_codec"]
            try:
                claims = codec.verify(token)
            except TokenError as e:
                logger.warning("Access token rejected: %s", e)
                abort(401, description="Invalid or expired access token")
            kwargs["identity"] = Identity.from_claims(claims)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def admin_required():
    """Like jwt_required, and 403 unless the caller is an Administrator."""
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if not kwargs["identity"].is_administrator:
                abort(403, description="Administrator role required")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
