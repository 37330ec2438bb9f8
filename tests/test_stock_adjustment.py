"""Stock adjustment service: additions, FIFO deductions, recounts, product-level adjustments."""
from datetime import date

import pytest
from sqlalchemy.orm.exc import StaleDataError

from lotkeeper.models import db, AuditAction, AuditLogEntry, BatchStatus, StockBatch
from lotkeeper.services.errors import InsufficientStockError, NotFoundError, PersistenceConflict, ValidationError
from lotkeeper.services.inventory_queries import total_on_hand
from lotkeeper.services.stock_adjustment import (
    add_stock,
    adjust_batch,
    adjust_product_stock,
    deduct_stock,
    discard_batch,
    get_audit_log,
    mark_batch_damaged,
)


def _audit_sum(product_id):
    return sum(e.quantity_change for e in AuditLogEntry.query.filter_by(product_id=product_id).all())


class TestAddStock:

    def test_add_creates_batch_and_audit_entry(self, make_product):
        product = make_product('Milk')

        batch = add_stock(product.id, 10, expiration_date='2024-06-01', notes='delivery')

        assert batch.id is not None
        assert batch.quantity == 10
        assert batch.expiration_date == date(2024, 6, 1)
        assert batch.status == BatchStatus.ACTIVE
        assert batch.batch_number.startswith('B')

        entries = get_audit_log(product_id=product.id)
        assert len(entries) == 1
        assert entries[0].action == AuditAction.ADD_STOCK
        assert entries[0].quantity_change == 10
        assert entries[0].batch_id == batch.id
        assert entries[0].reason == 'received'

    def test_additions_never_merge(self, make_product):
        product = make_product()
        first = add_stock(product.id, 3, expiration_date=date(2024, 6, 1))
        second = add_stock(product.id, 4, expiration_date=date(2024, 6, 1))

        assert first.id != second.id
        assert StockBatch.query.filter_by(product_id=product.id).count() == 2
        assert total_on_hand(product.id) == 7

    def test_defaults_location_from_product(self, make_product, location):
        product = make_product(location_id=location.id)
        batch = add_stock(product.id, 2)
        assert batch.location_id == location.id

    def test_duplicate_batch_number_rejected(self, make_product):
        product = make_product()
        add_stock(product.id, 1, batch_number='LOT-1')
        with pytest.raises(ValidationError):
            add_stock(product.id, 1, batch_number='LOT-1')

    @pytest.mark.parametrize('qty', [0, -5, 'many', 1.5])
    def test_invalid_quantity_rejected(self, make_product, qty):
        product = make_product()
        with pytest.raises(ValidationError):
            add_stock(product.id, qty)
        assert AuditLogEntry.query.count() == 0

    def test_missing_product_id_is_validation_error(self, db_session):
        with pytest.raises(ValidationError):
            add_stock(None, 5)

    def test_unknown_product_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            add_stock(999, 5)

    def test_bad_expiration_date_rejected(self, make_product):
        product = make_product()
        with pytest.raises(ValidationError) as exc_info:
            add_stock(product.id, 5, expiration_date='next tuesday')
        assert exc_info.value.field == 'expiration_date'

    @pytest.mark.parametrize('raw', ['2024-01-0199', '2024-01-01junk', '20240101', '2024-1-5'])
    def test_malformed_dates_are_not_truncated(self, make_product, raw):
        product = make_product()
        with pytest.raises(ValidationError) as exc_info:
            add_stock(product.id, 5, expiration_date=raw)
        assert exc_info.value.field == 'expiration_date'
        assert StockBatch.query.filter_by(product_id=product.id).count() == 0

    def test_iso_datetime_expiration_keeps_its_date(self, make_product):
        product = make_product()
        batch = add_stock(product.id, 5, expiration_date='2024-06-30T18:45:00Z')
        assert batch.expiration_date == date(2024, 6, 30)


class TestDeductStock:

    def test_fifo_deduction_updates_batches(self, make_product, make_batch):
        product = make_product()
        later = make_batch(product, 5, expiration_date=date(2024, 2, 1))
        sooner = make_batch(product, 5, expiration_date=date(2024, 1, 1))

        plan = deduct_stock(product.id, 7)

        assert [(u.batch_id, u.new_quantity) for u in plan.updates] == [(sooner.id, 0), (later.id, 3)]
        assert db.session.get(StockBatch, sooner.id).quantity == 0
        assert db.session.get(StockBatch, later.id).quantity == 3
        # Emptied by deduction, not discarded
        assert db.session.get(StockBatch, sooner.id).status == BatchStatus.ACTIVE

        entries = get_audit_log(product_id=product.id)
        assert len(entries) == 1
        assert entries[0].action == AuditAction.ADJUST_STOCK
        assert entries[0].quantity_change == -7
        assert entries[0].batch_id is None
        assert f'{sooner.id}:-5' in entries[0].notes

    def test_insufficient_stock_changes_nothing(self, make_product, make_batch):
        product = make_product()
        a = make_batch(product, 4, expiration_date=date(2024, 1, 1))
        b = make_batch(product, 6)

        with pytest.raises(InsufficientStockError) as exc_info:
            deduct_stock(product.id, 15)

        err = exc_info.value
        assert err.requested == 15
        assert err.available == 10
        assert err.shortfall == 5
        assert err.status_code == 409
        assert db.session.get(StockBatch, a.id).quantity == 4
        assert db.session.get(StockBatch, b.id).quantity == 6
        assert AuditLogEntry.query.count() == 0

    def test_discarded_batches_are_not_consumed(self, make_product, make_batch):
        product = make_product()
        make_batch(product, 10, expiration_date=date(2023, 1, 1), status=BatchStatus.DISCARDED)
        live = make_batch(product, 3)

        with pytest.raises(InsufficientStockError):
            deduct_stock(product.id, 5)

        deduct_stock(product.id, 3)
        assert db.session.get(StockBatch, live.id).quantity == 0

    def test_zero_quantity_rejected(self, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            deduct_stock(product.id, 0)


class TestAdjustBatch:

    def test_recount_writes_signed_difference(self, make_product, make_batch):
        product = make_product()
        batch = make_batch(product, 10)

        adjust_batch(batch.id, 8)

        refreshed = db.session.get(StockBatch, batch.id)
        assert refreshed.quantity == 8
        assert refreshed.last_audit_at is not None
        entry = get_audit_log(batch_id=batch.id)[0]
        assert entry.quantity_change == -2
        assert entry.reason == 'recount'

    def test_unchanged_recount_still_audited(self, make_product, make_batch):
        product = make_product()
        batch = make_batch(product, 10)

        adjust_batch(batch.id, 10, reason='cycle count')

        entries = get_audit_log(batch_id=batch.id)
        assert len(entries) == 1
        assert entries[0].quantity_change == 0
        assert entries[0].reason == 'cycle count'

    def test_recount_to_zero_keeps_batch_active(self, make_product, make_batch):
        product = make_product()
        batch = make_batch(product, 4)
        adjust_batch(batch.id, 0)
        assert db.session.get(StockBatch, batch.id).status == BatchStatus.ACTIVE

    def test_negative_recount_rejected(self, make_product, make_batch):
        product = make_product()
        batch = make_batch(product, 4)
        with pytest.raises(ValidationError):
            adjust_batch(batch.id, -1)

    def test_discarded_batch_cannot_be_recounted(self, make_product, make_batch):
        product = make_product()
        batch = make_batch(product, 0, status=BatchStatus.DISCARDED)
        with pytest.raises(ValidationError):
            adjust_batch(batch.id, 5)

    def test_unknown_batch(self, db_session):
        with pytest.raises(NotFoundError):
            adjust_batch(12345, 1)


class TestAdjustProductStock:

    def test_positive_delta_opens_adjustment_batch(self, make_product):
        product = make_product()

        result = adjust_product_stock(product.id, 6, reason='found in back room')

        assert result.delta == 6
        assert result.batch.batch_number.startswith('ADJ-')
        assert result.batch.quantity == 6
        assert result.plan is None
        entry = get_audit_log(product_id=product.id)[0]
        assert entry.action == AuditAction.ADJUST_STOCK
        assert entry.quantity_change == 6

    def test_negative_delta_deducts_fifo(self, make_product, make_batch):
        product = make_product()
        make_batch(product, 5, expiration_date=date(2024, 1, 1))

        result = adjust_product_stock(product.id, '-2')

        assert result.batch is None
        assert result.plan.updates[0].new_quantity == 3
        assert total_on_hand(product.id) == 3

    def test_zero_delta_rejected(self, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            adjust_product_stock(product.id, 0)


def test_damage_flag_does_not_touch_quantity_or_audit(make_product, make_batch):
    product = make_product()
    batch = make_batch(product, 9)

    mark_batch_damaged(batch.id, True, reason='crushed box')

    refreshed = db.session.get(StockBatch, batch.id)
    assert refreshed.damaged is True
    assert refreshed.damage_reason == 'crushed box'
    assert refreshed.quantity == 9
    assert AuditLogEntry.query.count() == 0

    mark_batch_damaged(batch.id, False)
    assert db.session.get(StockBatch, batch.id).damage_reason is None


def test_audit_trail_accounts_for_every_unit(make_product):
    product = make_product()
    first = add_stock(product.id, 10, expiration_date=date(2024, 1, 10))
    add_stock(product.id, 5, expiration_date=date(2024, 2, 10))
    deduct_stock(product.id, 7)
    discard_batch(first.id, 2, 'damaged')
    adjust_product_stock(product.id, 4)
    adjust_batch(first.id, 0)

    assert total_on_hand(product.id) == _audit_sum(product.id)
    assert all(b.quantity >= 0 for b in StockBatch.query.all())


def test_add_then_total_round_trip(make_product, make_batch):
    product = make_product()
    make_batch(product, 12)
    before = total_on_hand(product.id)
    add_stock(product.id, 8)
    assert total_on_hand(product.id) == before + 8


def test_audit_log_filters(make_product):
    product = make_product()
    batch = add_stock(product.id, 5)
    deduct_stock(product.id, 1)

    assert [e.action for e in get_audit_log(product_id=product.id, action='add_stock')] == [AuditAction.ADD_STOCK]
    assert len(get_audit_log(product_id=product.id, limit=1)) == 1
    assert get_audit_log(batch_id=batch.id)[0].quantity_change == 5
    with pytest.raises(ValidationError):
        get_audit_log(action='teleport')


def test_stale_commit_surfaces_retryable_conflict(make_product, make_batch, monkeypatch):
    product = make_product()
    batch = make_batch(product, 10)

    def _stale_commit():
        raise StaleDataError("row version changed")

    monkeypatch.setattr(db.session, 'commit', _stale_commit)
    with pytest.raises(PersistenceConflict) as excinfo:
        deduct_stock(product.id, 4)
    monkeypatch.undo()

    assert excinfo.value.retryable is True
    assert excinfo.value.status_code == 409
    assert db.session.get(StockBatch, batch.id).quantity == 10
    assert AuditLogEntry.query.count() == 0
