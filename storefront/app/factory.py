from __future__ import annotations

import logging
from flask import Flask

from storefront.app.config import Config
from storefront.app.extensions import db, migrate, cors, storefronts
from storefront.app.common.errors import register_error_handlers
from storefront.app.common.request_id import init_request_id, echo_request_id
from storefront.app.api.register import register_api_blueprints
from storefront.app.cli import cli_bp
from storefront.modules.pages.routes import bp as pages_bp


def create_app(config_object: type[Config] = Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS") or "*"}})
    storefronts.init_app(app)

    # Request id
    @app.before_request
    def _before_request():
        init_request_id()

    app.after_request(echo_request_id)

    # Health endpoint (for Docker)
    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    register_api_blueprints(app)

    # Storefront pages (route table)
    app.register_blueprint(pages_bp)

    # CLI (flask init-db / flask seed)
    app.register_blueprint(cli_bp)

    register_error_handlers(app)

    return app
