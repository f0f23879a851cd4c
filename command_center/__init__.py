"""
BU Command Center
Flask Application Factory.

Usage:
    from command_center import create_app
    app = create_app()           # defaults to APP_ENV, else "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from command_center.config import config
from command_center.middleware.logging_config import configure_logging
from command_center.middleware.rate_limiter import init_rate_limits
from command_center.middleware.tenant_context import init_tenant_context
from command_center.middleware.timing import init_request_timing
from command_center.models import db
from command_center.utils.errors import E, api_error, register_error_handlers

logger = logging.getLogger(__name__)


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement (and ON DELETE actions) for SQLite."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                               # per-blueprint limits only
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to the APP_ENV env var, or "development".

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request middleware (timing first so every response is stamped) ───
    init_request_timing(app)
    init_tenant_context(app)

    # ── Models (imported so create_all and Alembic see every table) ──────
    from command_center.models import base as _base_models            # noqa: F401
    from command_center.models import tenant as _tenant_models        # noqa: F401
    from command_center.models import project as _project_models      # noqa: F401
    from command_center.models import finance as _finance_models      # noqa: F401
    from command_center.models import sales as _sales_models          # noqa: F401
    from command_center.models import team as _team_models            # noqa: F401
    from command_center.models import survey as _survey_models        # noqa: F401
    from command_center.models import knowledge as _knowledge_models  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    if config_name != "testing":
        os.makedirs(app.instance_path, exist_ok=True)
    with app.app_context():
        db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    from command_center.blueprints.allocation_bp import allocation_bp
    from command_center.blueprints.dashboard_bp import dashboard_bp
    from command_center.blueprints.esat_bp import esat_bp
    from command_center.blueprints.finance_bp import finance_bp
    from command_center.blueprints.health_bp import health_bp
    from command_center.blueprints.knowledge_base_bp import knowledge_base_bp
    from command_center.blueprints.lead_bp import lead_bp
    from command_center.blueprints.project_bp import project_bp
    from command_center.blueprints.public_bp import public_bp
    from command_center.blueprints.survey_bp import survey_bp
    from command_center.blueprints.team_bp import team_bp
    from command_center.blueprints.tenant_bp import tenant_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(tenant_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(finance_bp)
    app.register_blueprint(lead_bp)
    app.register_blueprint(team_bp)
    app.register_blueprint(allocation_bp)
    app.register_blueprint(survey_bp)
    app.register_blueprint(esat_bp)
    app.register_blueprint(knowledge_base_bp)
    app.register_blueprint(public_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        """Seed a demo tenant with projects, financials, leads, team and surveys."""
        from command_center.services.demo_seed import seed_demo
        result = seed_demo()
        if result["created"]:
            logger.info("Demo tenant seeded (tenant_id=%s).", result["tenant_id"])
        else:
            logger.info("Demo tenant already exists (tenant_id=%s).", result["tenant_id"])

    # ── Error handlers ───────────────────────────────────────────────────
    register_error_handlers(app)

    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return api_error(E.NOT_FOUND, "Not found")
        return e

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(413)
    def payload_too_large(e):
        return api_error(E.PAYLOAD_TOO_LARGE, "Request body too large")

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "code": "ERR_RATE_LIMITED", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
