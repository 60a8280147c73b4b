"""App factory for the translation cache debug API."""

from typing import Optional

from flask import Flask

from sportsnames.config import config
from sportsnames.web.routes import register_routes


def create_app(service=None, config_path: Optional[str] = None):
    """
    Create and configure the Flask application.

    Args:
        service: TranslationService to expose. Built from configuration
                 (``create_service``) when omitted.
        config_path: Cache config YAML used when ``service`` is omitted
    """
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.get("SECRET_KEY") or "dev-secret-key-change-in-production"

    if service is None:
        from sportsnames.service import create_service
        service = create_service(config_path=config_path)

    app.config.update(TRANSLATION_SERVICE=service)
    register_routes(app)
    return app
