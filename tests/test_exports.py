import io
import sys
import types
from datetime import date

import pandas as pd
import pytest

from lotkeeper.services.errors import NotFoundError
from lotkeeper.services.exports import (
    BATCH_COLUMNS,
    ExportFormat,
    ExportRenderError,
    ExportService,
    coerce_format,
    render,
    render_csv,
)

AS_OF = date(2024, 3, 10)


@pytest.fixture
def expiring_stock(make_product, make_batch):
    product = make_product('Yogurt', sku='YOG-1')
    make_batch(product, 4, expiration_date=date(2024, 3, 12), batch_number='LOT-A')
    make_batch(product, 2, expiration_date=date(2024, 3, 1), batch_number='LOT-B')
    return product


def _fake_weasyprint(monkeypatch, html_cls):
    module = types.ModuleType('weasyprint')
    module.HTML = html_cls
    monkeypatch.setitem(sys.modules, 'weasyprint', module)


def test_csv_export_has_headers_and_rows(expiring_stock):
    payload, mimetype, filename = ExportService.build('expiring', 'csv', AS_OF)

    assert mimetype == 'text/csv'
    assert filename == 'expiring-2024-03-10.csv'
    frame = pd.read_csv(io.BytesIO(payload))
    assert list(frame.columns) == [header for _, header in BATCH_COLUMNS]
    assert frame['Batch'].tolist() == ['LOT-A']
    assert frame['Days Left'].tolist() == [2]
    assert frame['Status'].tolist() == ['expiring_soon']


def test_xlsx_export_reads_back(expiring_stock):
    payload, mimetype, filename = ExportService.build('expired', 'xlsx', AS_OF)

    assert mimetype == ExportFormat.XLSX.mimetype
    assert filename.endswith('.xlsx')
    frame = pd.read_excel(io.BytesIO(payload), engine='openpyxl')
    assert frame['Batch'].tolist() == ['LOT-B']
    assert frame['Quantity'].tolist() == [2]


def test_empty_report_still_has_header_row(db_session):
    payload, _, _ = ExportService.build('low-stock', 'csv', AS_OF)
    lines = payload.decode('utf-8').strip().splitlines()
    assert lines == ['Product,SKU,Category,On Hand,Minimum,Shortage,Unit']


def test_pdf_export_uses_rendered_template(expiring_stock, monkeypatch):
    captured = {}

    class FakeHTML:
        def __init__(self, string, base_url=None):
            captured['html'] = string

        def write_pdf(self):
            return b'%PDF-1.7 fake'

    _fake_weasyprint(monkeypatch, FakeHTML)

    payload, mimetype, filename = ExportService.build('inventory', 'pdf', AS_OF)

    assert payload.startswith(b'%PDF')
    assert mimetype == 'application/pdf'
    assert filename == 'inventory-2024-03-10.pdf'
    assert 'Full Inventory' in captured['html']
    assert 'LOT-A' in captured['html']


def test_pdf_render_failure_raises(expiring_stock, monkeypatch):
    class BrokenHTML:
        def __init__(self, string, base_url=None):
            raise OSError('cairo missing')

    _fake_weasyprint(monkeypatch, BrokenHTML)

    with pytest.raises(ExportRenderError) as exc_info:
        ExportService.build('inventory', 'pdf', AS_OF)
    assert exc_info.value.status_code == 500


def test_unknown_report_and_format(db_session):
    with pytest.raises(NotFoundError):
        ExportService.build('shrinkage', 'csv', AS_OF)
    with pytest.raises(NotFoundError):
        ExportService.build('inventory', 'docx', AS_OF)


def test_export_row_cap(app, make_product, make_batch):
    app.config['EXPORT_MAX_ROWS'] = 2
    product = make_product()
    for _ in range(4):
        make_batch(product, 1)

    payload, _, _ = ExportService.build('inventory', 'csv', AS_OF)
    assert len(payload.decode('utf-8').strip().splitlines()) == 3


def test_render_csv_blanks_missing_values():
    payload = render_csv('t', (('a', 'A'), ('b', 'B')), [{'a': 1}])
    assert payload.decode('utf-8').splitlines() == ['A,B', '1,']


@pytest.mark.parametrize('fmt', [ExportFormat.CSV, 'csv', 'CSV'])
def test_render_accepts_format_members_and_names(app_context, fmt):
    assert coerce_format(fmt) is ExportFormat.CSV
    payload = render(fmt, 'Stock', [('sku', 'SKU'), ('quantity', 'Quantity')], [{'sku': 'A-1', 'quantity': 3}])
    assert payload.decode('utf-8').splitlines() == ['SKU,Quantity', 'A-1,3']
