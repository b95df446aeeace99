import logging

import click
from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import storage
from utils.tokens import TokenCodec

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Bulletin Board API",
        "version": "1.0.0",
        "description": "Accounts and sessions for the bulletin board: registration, sign-in, token refresh and sign-out.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Tests build one app per test with config_name="test".
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Stateless access token codec shared by the auth views and decorators
    app.extensions["token_codec"] = TokenCodec.from_config(app.config)

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")

    register_commands(app)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Bulletin Board API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app


def register_commands(app: Flask) -> None:
    from models.user import UserRole
    from services.errors import Conflict
    from .auth import get_session_manager

    @app.cli.command("create-admin")
    @click.argument("username")
    @click.argument("email")
    @click.option("--first-name", default="Site")
    @click.option("--last-name", default="Administrator")
    @click.password_option()
    def create_admin(username, email, first_name, last_name, password):
        """Create an Administrator account."""
        try:
            user = get_session_manager().register(
                username=username,
                password=password,
                first_name=first_name,
                last_name=last_name,
                email=email,
                role=UserRole.ADMINISTRATOR,
            )
        except Conflict as exc:
            raise click.ClickException(exc.message)
        click.echo(f"Created administrator {user.username} ({user.id})")

    @app.cli.command("purge-sessions")
    def purge_sessions():
        """Delete expired and revoked refresh token records."""
        purged = get_session_manager().purge_expired()
        click.echo(f"Purged {purged} refresh token records")
