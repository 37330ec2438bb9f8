from flask import Blueprint

from ...extensions import limiter
from ...services.exports import ExportService
from ...utils.api_responses import APIResponse
from ._helpers import query_date

export_api_bp = Blueprint('export_api', __name__, url_prefix='/exports')


@export_api_bp.route('/<any(inventory, expiring, expired, "low-stock"):report>.<fmt>', methods=['GET'])
@limiter.limit("30/minute")
def export_report(report, fmt):
    """Download a report: inventory, expiring, expired or low-stock as csv, xlsx or pdf"""
    payload, mimetype, filename = ExportService.build(report, fmt, query_date())
    return APIResponse.download(payload, mimetype, filename)
