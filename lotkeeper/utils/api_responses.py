from typing import Any, Dict, Optional

from flask import Response, jsonify, request


class APIResponse:
    """JSON envelope shared by every API route: ``{success, message, data|errors}``"""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200):
        return jsonify({
            'success': True,
            'message': message,
            'data': data,
        }), status_code

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400):
        return jsonify({
            'success': False,
            'message': message,
            'errors': errors or {},
        }), status_code

    @staticmethod
    def from_service_error(exc) -> tuple:
        """Envelope for a StockServiceError; details land under ``errors``."""
        return APIResponse.error(exc.message, errors=exc.to_dict(), status_code=exc.status_code)

    @staticmethod
    def download(payload: bytes, mimetype: str, filename: str) -> Response:
        """Raw file body (CSV, XLSX, PDF) served as an attachment."""
        return Response(
            payload,
            mimetype=mimetype,
            headers={'Content-Disposition': f'attachment; filename="{filename}"'},
        )

    @staticmethod
    def handle_request_content() -> dict:
        """JSON body or form fields; an empty dict when neither is sent."""
        if request.is_json:
            return request.get_json(silent=True) or {}
        if request.form:
            return request.form.to_dict()
        return {}


__all__ = ['APIResponse']
