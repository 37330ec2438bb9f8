import logging

from flask import Blueprint, request
from werkzeug.exceptions import HTTPException

from ...extensions import db
from ...services.errors import StockServiceError
from ...utils.api_responses import APIResponse
from ...utils.error_messages import ErrorMessages as EM

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')

# Import route modules to register them
from .product_routes import product_api_bp  # noqa: E402
from .stock_routes import stock_api_bp  # noqa: E402
from .reference_routes import reference_api_bp  # noqa: E402
from .report_routes import report_api_bp  # noqa: E402
from .export_routes import export_api_bp  # noqa: E402

api_bp.register_blueprint(product_api_bp)
api_bp.register_blueprint(stock_api_bp)
api_bp.register_blueprint(reference_api_bp)
api_bp.register_blueprint(report_api_bp)
api_bp.register_blueprint(export_api_bp)


@api_bp.before_request
def _log_request():
    logger.debug("API %s %s", request.method, request.path)


def register_error_handlers(app):
    """Translate service errors into the JSON envelope."""

    @app.errorhandler(StockServiceError)
    def _stock_service_error(exc: StockServiceError):
        if exc.status_code >= 500:
            logger.error("API %s %s failed: %s", request.method, request.path, exc.message)
        else:
            logger.info("API %s %s rejected (%s): %s", request.method, request.path, exc.status_code, exc.message)
        return APIResponse.from_service_error(exc)

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        if not request.path.startswith(api_bp.url_prefix):
            return exc
        return APIResponse.error(exc.description or exc.name, status_code=exc.code or 500)

    @app.errorhandler(Exception)
    def _unhandled_error(exc: Exception):
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return APIResponse.error(EM.INTERNAL_ERROR, status_code=500)


__all__ = ['api_bp', 'register_error_handlers']
