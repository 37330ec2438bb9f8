"""
Inventory report exports.

One shared query per report feeds three renderers (CSV, Excel, PDF) behind
``render(fmt, title, columns, rows) -> bytes``.
"""

from __future__ import annotations

import enum
import io
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from flask import current_app, has_request_context, render_template, request

from ..utils.error_messages import ErrorMessages as EM
from ..utils.timezone_utils import TimezoneUtils
from . import inventory_queries
from .errors import NotFoundError, StockServiceError

logger = logging.getLogger(__name__)

Column = Tuple[str, str]


class ExportFormat(str, enum.Enum):
    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"

    @property
    def mimetype(self) -> str:
        return {
            ExportFormat.CSV: "text/csv",
            ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            ExportFormat.PDF: "application/pdf",
        }[self]


class ExportRenderError(StockServiceError):
    status_code = 500


@dataclass(frozen=True)
class ReportDefinition:
    title: str
    columns: Sequence[Column]
    fetch: Callable[[Optional[date]], List[dict]]


BATCH_COLUMNS: Tuple[Column, ...] = (
    ("product_name", "Product"),
    ("sku", "SKU"),
    ("batch_number", "Batch"),
    ("quantity", "Quantity"),
    ("unit", "Unit"),
    ("expiration_date", "Expires"),
    ("days_remaining", "Days Left"),
    ("expiry_status", "Status"),
    ("location", "Location"),
    ("department", "Department"),
    ("supplier", "Supplier"),
    ("received_date", "Received"),
)

LOW_STOCK_COLUMNS: Tuple[Column, ...] = (
    ("product_name", "Product"),
    ("sku", "SKU"),
    ("category", "Category"),
    ("on_hand", "On Hand"),
    ("min_stock_level", "Minimum"),
    ("shortage", "Shortage"),
    ("unit", "Unit"),
)

REPORTS: Dict[str, ReportDefinition] = {
    "inventory": ReportDefinition("Full Inventory", BATCH_COLUMNS, inventory_queries.inventory_rows),
    "expiring": ReportDefinition("Expiring Soon", BATCH_COLUMNS, inventory_queries.expiring_soon_batches),
    "expired": ReportDefinition("Expired Stock", BATCH_COLUMNS, inventory_queries.expired_batches),
    "low-stock": ReportDefinition("Low Stock", LOW_STOCK_COLUMNS, lambda as_of: inventory_queries.low_stock_products()),
}


def _frame(columns: Sequence[Column], rows: Sequence[dict]) -> pd.DataFrame:
    keys = [key for key, _ in columns]
    frame = pd.DataFrame([{key: row.get(key) for key in keys} for row in rows], columns=keys)
    return frame.rename(columns=dict(columns))


def render_csv(title: str, columns: Sequence[Column], rows: Sequence[dict]) -> bytes:
    return _frame(columns, rows).to_csv(index=False).encode("utf-8")


def render_xlsx(title: str, columns: Sequence[Column], rows: Sequence[dict]) -> bytes:
    buffer = io.BytesIO()
    # Excel caps sheet names at 31 characters
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        _frame(columns, rows).to_excel(writer, index=False, sheet_name=title[:31])
    return buffer.getvalue()


def render_pdf(title: str, columns: Sequence[Column], rows: Sequence[dict]) -> bytes:
    html = render_template(
        "exports/report.html",
        title=title,
        headers=[header for _, header in columns],
        keys=[key for key, _ in columns],
        rows=rows,
        generated_at=TimezoneUtils.utc_now(),
    )
    try:
        from weasyprint import HTML

        base_url = request.host_url if has_request_context() else None
        return HTML(string=html, base_url=base_url).write_pdf()
    except Exception as exc:
        logger.exception("PDF rendering failed for %s", title)
        raise ExportRenderError(EM.INTERNAL_ERROR) from exc


RENDERERS: Dict[ExportFormat, Callable[[str, Sequence[Column], Sequence[dict]], bytes]] = {
    ExportFormat.CSV: render_csv,
    ExportFormat.XLSX: render_xlsx,
    ExportFormat.PDF: render_pdf,
}


def render(fmt, title: str, columns: Sequence[Column], rows: Sequence[dict]) -> bytes:
    return RENDERERS[coerce_format(fmt)](title, columns, rows)


def coerce_format(fmt: Any) -> ExportFormat:
    if isinstance(fmt, ExportFormat):
        return fmt
    try:
        return ExportFormat(str(fmt).lower())
    except ValueError:
        raise NotFoundError(EM.EXPORT_UNKNOWN_FORMAT.format(fmt=fmt))


def report_rows(report: str, as_of: Optional[date] = None) -> Tuple[ReportDefinition, List[dict]]:
    definition = REPORTS.get(report)
    if definition is None:
        raise NotFoundError(EM.EXPORT_UNKNOWN_REPORT.format(report=report))
    rows = definition.fetch(as_of)
    max_rows = current_app.config.get("EXPORT_MAX_ROWS")
    if max_rows and len(rows) > max_rows:
        logger.warning("Export %s truncated from %s to %s rows", report, len(rows), max_rows)
        rows = rows[:max_rows]
    return definition, rows


class ExportService:

    @staticmethod
    def build(report: str, fmt: str, as_of: Optional[date] = None) -> Tuple[bytes, str, str]:
        """Return ``(payload, mimetype, filename)`` for one report in one format."""
        export_format = coerce_format(fmt)
        definition, rows = report_rows(report, as_of)
        payload = render(export_format, definition.title, definition.columns, rows)
        stamp = TimezoneUtils.to_business_date(as_of).isoformat()
        filename = f"{report}-{stamp}.{export_format.value}"
        logger.info("Export %s: %s rows as %s", report, len(rows), export_format.value)
        return payload, export_format.mimetype, filename
