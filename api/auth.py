"""
Authentication blueprint:
- POST /auth/register
- POST /auth/sign-in
- POST /auth/refresh-token
- POST /auth/sign-out
- GET  /auth/me
- POST /auth/sessions/purge (admin only)

Access tokens are short-lived HS256 JWTs; refresh tokens are opaque values
stored (hashed) in the refresh_tokens table and rotated on every use.
"""
from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify, request

from models import storage
from models.schemas.user import RefreshTokenSchema, RegisterSchema, SignInSchema, SignOutSchema, UserOutSchema
from services.identity import Identity
from services.session_manager import SessionManager
from utils.decorators import admin_required, jwt_required

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
sign_in_schema = SignInSchema()
refresh_token_schema = RefreshTokenSchema()
sign_out_schema = SignOutSchema()
user_out_schema = UserOutSchema()


def get_session_manager() -> SessionManager:
    return SessionManager(
        storage,
        current_app.extensions["token_codec"],
        refresh_ttl=current_app.config["REFRESH_TOKEN_EXPIRES"],
    )


def _load(schema):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    return schema.load(payload)


@bp.post("/register")
def register():
    """
    Register a new member account and start a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [username, password, firstName, lastName, email]
          properties:
            username: { type: string }
            password: { type: string }
            firstName: { type: string }
            lastName: { type: string }
            email: { type: string }
    responses:
      201:
        description: Registered (returns tokens)
      409:
        description: Username or email already exists
      422:
        description: Validation error
    """
    data = _load(register_schema)
    manager = get_session_manager()
    user = manager.register(
        username=data["username"],
        password=data["password"],
        first_name=data["first_name"],
        last_name=data["last_name"],
        email=data["email"],
    )
    tokens = manager.create_session(user)
    return jsonify({"data": tokens.to_dict(), "message": "Registration successful"}), 201


@bp.post("/sign-in")
def sign_in():
    """
    Sign in: returns accessToken and refreshToken
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid username or password
    """
    data = _load(sign_in_schema)
    manager = get_session_manager()
    user = manager.sign_in(data["username"], data["password"])
    tokens = manager.create_session(user)
    return jsonify({"data": tokens.to_dict(), "message": "Sign in successful"}), 200


@bp.post("/refresh-token")
def refresh_token():
    """
    Exchange a refresh token for a new access and refresh token (rotation).
    The presented refresh token is revoked.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid or expired refresh token
    """
    data = _load(refresh_token_schema)
    tokens = get_session_manager().refresh_token(data["refresh_token"])
    return jsonify({"data": tokens.to_dict(), "message": "Token refreshed successfully"}), 200


@bp.post("/sign-out")
@jwt_required()
def sign_out(identity: Identity):
    """
    Sign out: revokes one of the caller's refresh tokens
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: Signed out
      400:
        description: Token invalid or does not belong to the caller
      401:
        description: Unauthorized
    """
    data = _load(sign_out_schema)
    if not get_session_manager().sign_out(identity.user_id, data["refresh_token"]):
        abort(400, description="Invalid refresh token or token does not belong to user")
    return jsonify({"data": True, "message": "Sign out successful"}), 200


@bp.get("/me")
@jwt_required()
def me(identity: Identity):
    """
    Current caller's identity and profile
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    user = get_session_manager().credentials.find_by_id(identity.user_id)
    if user is None:
        abort(401, description="Invalid or expired access token")
    data = user_out_schema.dump(user)
    # role and admin flag come from the verified token, not the row
    data.update(identity.to_dict())
    return jsonify({"data": data}), 200


@bp.post("/sessions/purge")
@admin_required()
def purge_sessions(identity: Identity):
    """
    Admin-only: delete expired and revoked refresh token records
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      403:
        description: Administrator role required
    """
    purged = get_session_manager().purge_expired()
    return jsonify({"data": {"purged": purged}}), 200
