"""
Rate limiting, applied per blueprint with Flask-Limiter.

The Limiter instance lives in ``command_center/__init__.py`` with no default
limits. Here:
    - public (token / slug / signed download) endpoints: PUBLIC_RATE_LIMIT
    - authenticated write-heavy blueprints: 120/minute
    - health checks: exempt

Nothing is applied when TESTING is set.
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "120/minute"
WRITE_BLUEPRINTS = ("project", "finance", "lead", "team", "allocation", "survey", "esat", "knowledge_base")


def init_rate_limits(app, limiter):
    """Attach limits to the registered blueprints."""
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    public_limit = app.config.get("PUBLIC_RATE_LIMIT", "30/minute")
    bp = app.blueprints.get("public")
    if bp:
        limiter.limit(public_limit)(bp)

    for name in WRITE_BLUEPRINTS:
        bp = app.blueprints.get(name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    logger.info("Rate limiter configured: public=%s, api=%s", public_limit, WRITE_LIMIT)
