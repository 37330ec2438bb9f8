from datetime import date, datetime, timezone

import pytest

from lotkeeper.models import BatchStatus, DiscardReason
from lotkeeper.services.errors import ValidationError
from lotkeeper.services.fifo_allocator import (
    BatchSnapshot,
    allocate_addition,
    allocate_deduction,
    allocate_discard,
    order_for_deduction,
)
from lotkeeper.utils.batch_number_generator import generate_adjustment_batch_number
from lotkeeper.utils.timezone_utils import TimezoneUtils


def _pairs(plan):
    return [(u.batch_id, u.new_quantity) for u in plan.updates]


class TestAllocateDeduction:

    def test_earliest_expiration_consumed_first(self):
        batches = [
            BatchSnapshot(id=1, quantity=5, expiration_date=date(2024, 2, 1)),
            BatchSnapshot(id=2, quantity=5, expiration_date=date(2024, 1, 1)),
        ]
        plan = allocate_deduction(batches, 7)
        assert _pairs(plan) == [(2, 0), (1, 3)]
        assert plan.shortfall == 0
        assert sum(u.deducted for u in plan.updates) == 7

    def test_shortfall_returns_no_updates(self):
        batches = [
            BatchSnapshot(id=1, quantity=4, expiration_date=date(2024, 1, 1)),
            BatchSnapshot(id=2, quantity=6, expiration_date=None),
        ]
        plan = allocate_deduction(batches, 15)
        assert plan.shortfall == 5
        assert plan.updates == ()
        assert plan.available == 10
        assert not plan.is_satisfied

    def test_null_expiration_sorts_last(self):
        batches = [
            BatchSnapshot(id=1, quantity=3, expiration_date=None),
            BatchSnapshot(id=2, quantity=3, expiration_date=date(2030, 1, 1)),
        ]
        plan = allocate_deduction(batches, 4)
        assert _pairs(plan) == [(2, 0), (1, 2)]

    def test_ties_broken_by_id(self):
        same_day = date(2024, 5, 1)
        batches = [
            BatchSnapshot(id=9, quantity=2, expiration_date=same_day),
            BatchSnapshot(id=3, quantity=2, expiration_date=same_day),
        ]
        plan = allocate_deduction(batches, 3)
        assert _pairs(plan) == [(3, 0), (9, 1)]

    def test_discarded_and_empty_batches_are_ignored(self):
        batches = [
            BatchSnapshot(id=1, quantity=10, expiration_date=date(2023, 1, 1), status=BatchStatus.DISCARDED),
            BatchSnapshot(id=2, quantity=0, expiration_date=date(2023, 6, 1)),
            BatchSnapshot(id=3, quantity=5, expiration_date=date(2024, 1, 1)),
        ]
        plan = allocate_deduction(batches, 5)
        assert _pairs(plan) == [(3, 0)]

    def test_stops_once_request_is_covered(self):
        batches = [
            BatchSnapshot(id=1, quantity=10, expiration_date=date(2024, 1, 1)),
            BatchSnapshot(id=2, quantity=10, expiration_date=date(2024, 2, 1)),
        ]
        plan = allocate_deduction(batches, 10)
        assert _pairs(plan) == [(1, 0)]

    @pytest.mark.parametrize('bad', [0, -3, None, 'abc', 2.5, True])
    def test_invalid_request_rejected(self, bad):
        with pytest.raises(ValidationError):
            allocate_deduction([BatchSnapshot(id=1, quantity=5)], bad)

    def test_accepts_status_strings(self):
        batches = [BatchSnapshot(id=1, quantity=5, status='active')]
        assert _pairs(allocate_deduction(batches, 2)) == [(1, 3)]


def test_order_for_deduction():
    batches = [
        BatchSnapshot(id=4, quantity=1, expiration_date=None),
        BatchSnapshot(id=2, quantity=1, expiration_date=date(2024, 3, 1)),
        BatchSnapshot(id=1, quantity=1, expiration_date=date(2024, 3, 1)),
    ]
    assert [b.id for b in order_for_deduction(batches)] == [1, 2, 4]


class TestAllocateAddition:

    def test_generates_batch_number_and_received_date(self):
        addition = allocate_addition(1, 12, expiration_date=date(2024, 9, 1), received_date=date(2024, 8, 1))
        assert addition.quantity == 12
        assert addition.batch_number.startswith('B240801-')
        assert addition.received_date == date(2024, 8, 1)

    def test_keeps_explicit_batch_number(self):
        addition = allocate_addition(1, 1, batch_number=' LOT-7 ')
        assert addition.batch_number == 'LOT-7'

    @pytest.mark.parametrize('bad', [0, -1, 'x', None])
    def test_rejects_non_positive(self, bad):
        with pytest.raises(ValidationError):
            allocate_addition(1, bad)

    def test_requires_product(self):
        with pytest.raises(ValidationError):
            allocate_addition(None, 5)


class TestAllocateDiscard:

    def test_partial_discard_stays_active(self):
        outcome = allocate_discard(BatchSnapshot(id=1, quantity=10), 4, 'damaged')
        assert outcome.new_quantity == 6
        assert outcome.removed == 4
        assert outcome.status == BatchStatus.ACTIVE
        assert outcome.reason == DiscardReason.DAMAGED

    def test_full_discard_marks_discarded(self):
        outcome = allocate_discard(BatchSnapshot(id=1, quantity=10), 10, DiscardReason.EXPIRED)
        assert outcome.new_quantity == 0
        assert outcome.status == BatchStatus.DISCARDED

    def test_over_discard_is_clamped(self):
        outcome = allocate_discard(BatchSnapshot(id=1, quantity=3), 8, 'other')
        assert outcome.new_quantity == 0
        assert outcome.removed == 3
        assert outcome.status == BatchStatus.DISCARDED
        assert outcome.clamped

    def test_default_quantity_is_whole_batch(self):
        outcome = allocate_discard(BatchSnapshot(id=1, quantity=7), None, 'expired')
        assert outcome.removed == 7
        assert outcome.status == BatchStatus.DISCARDED

    def test_discarded_batch_rejected(self):
        with pytest.raises(ValidationError):
            allocate_discard(BatchSnapshot(id=1, quantity=0, status=BatchStatus.DISCARDED), 1, 'other')

    def test_unknown_reason_rejected(self):
        with pytest.raises(ValidationError):
            allocate_discard(BatchSnapshot(id=1, quantity=5), 1, 'stolen')


def test_default_receipt_date_follows_business_timezone(app_factory, monkeypatch):
    # 12:00 UTC on the 10th is already the 11th in Kiribati (UTC+14)
    noon_utc = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
    monkeypatch.setattr(TimezoneUtils, 'utc_now', staticmethod(lambda: noon_utc))
    app = app_factory(BUSINESS_TIMEZONE='Pacific/Kiritimati')

    with app.app_context():
        addition = allocate_addition(1, 4)
        adjustment_number = generate_adjustment_batch_number()

    assert addition.received_date == date(2024, 3, 11)
    assert addition.batch_number.startswith('B240311-')
    assert adjustment_number.startswith('ADJ-240310120000-')
