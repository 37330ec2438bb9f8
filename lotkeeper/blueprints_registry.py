import logging

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    from lotkeeper.blueprints.api import api_bp, register_error_handlers

    app.register_blueprint(api_bp)
    register_error_handlers(app)

    logger.info("Registered blueprints: %s", ", ".join(sorted(app.blueprints)))
