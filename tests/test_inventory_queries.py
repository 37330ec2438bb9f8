from datetime import date

import pytest

from lotkeeper.models import BatchStatus, Department, Location
from lotkeeper.services import inventory_queries as queries

AS_OF = date(2024, 3, 10)


@pytest.fixture
def stocked(make_product, make_batch, location, db_session):
    dairy = Department(name='Dairy')
    db_session.add(dairy)
    db_session.commit()

    milk = make_product('Milk', category='dairy', department_id=dairy.id, min_stock_level=20)
    flour = make_product('Flour', category='dry goods', min_stock_level=5)
    salt = make_product('Salt', category='dry goods')

    batches = {
        'expired': make_batch(milk, 2, expiration_date=date(2024, 3, 5)),
        'soon': make_batch(milk, 3, expiration_date=date(2024, 3, 12), location_id=location.id),
        'edge': make_batch(milk, 1, expiration_date=date(2024, 3, 17)),
        'good': make_batch(flour, 9, expiration_date=date(2024, 3, 18)),
        'none': make_batch(salt, 4),
        'empty_expired': make_batch(flour, 0, expiration_date=date(2024, 3, 1)),
        'discarded': make_batch(salt, 0, expiration_date=date(2024, 3, 11), status=BatchStatus.DISCARDED),
    }
    return {'milk': milk, 'flour': flour, 'salt': salt, 'batches': batches}


def test_total_on_hand_counts_active_batches_only(stocked):
    assert queries.total_on_hand(stocked['milk'].id) == 6
    assert queries.total_on_hand(stocked['salt'].id) == 4


def test_on_hand_by_product(stocked):
    totals = queries.on_hand_by_product()
    assert totals[stocked['flour'].id] == 9


def test_low_stock_lists_products_below_minimum(stocked):
    rows = queries.low_stock_products()
    assert [r['product_name'] for r in rows] == ['Milk']
    assert rows[0]['on_hand'] == 6
    assert rows[0]['shortage'] == 14


def test_expiring_soon_window_is_inclusive(stocked):
    rows = queries.expiring_soon_batches(AS_OF)
    ids = [r['batch_id'] for r in rows]
    b = stocked['batches']
    assert ids == [b['soon'].id, b['edge'].id]
    assert rows[0]['expiry_status'] == 'expiring_soon'
    assert rows[0]['days_remaining'] == 2
    assert rows[0]['location'] == 'Walk-in Fridge'
    assert rows[0]['department'] == 'Dairy'


def test_expired_excludes_empty_and_discarded(stocked):
    rows = queries.expired_batches(AS_OF)
    assert [r['batch_id'] for r in rows] == [stocked['batches']['expired'].id]
    assert rows[0]['expiry_status'] == 'expired'
    assert rows[0]['days_remaining'] == -5


def test_product_batches_in_fifo_order(stocked):
    rows = queries.product_batches(stocked['milk'].id, as_of=AS_OF)
    b = stocked['batches']
    assert [r['batch_id'] for r in rows] == [b['expired'].id, b['soon'].id, b['edge'].id]
    assert [r['expiry_status'] for r in rows] == ['expired', 'expiring_soon', 'expiring_soon']


def test_product_batches_can_include_discarded(stocked):
    salt_id = stocked['salt'].id
    assert len(queries.product_batches(salt_id, as_of=AS_OF)) == 1
    rows = queries.product_batches(salt_id, include_discarded=True, as_of=AS_OF)
    assert [r['status'] for r in rows] == ['discarded', 'active']
    assert rows[1]['expiry_status'] == 'no_expiration'
    assert rows[1]['days_remaining'] == -1


def test_inventory_rows_skip_empty_batches(stocked):
    rows = queries.inventory_rows(AS_OF)
    assert len(rows) == 5
    assert rows[0]['product_name'] == 'Flour'


def test_dashboard_summary(stocked):
    summary = queries.dashboard_summary(AS_OF)
    assert summary['as_of'] == '2024-03-10'
    assert summary['warning_days'] == 7
    assert summary['total_products'] == 3
    assert summary['total_units'] == 19
    assert summary['expiring_soon'] == 2
    assert summary['expired'] == 1
    assert summary['low_stock'] == 1
    assert summary['categories'] == 2
    assert summary['locations'] == 1


def test_configured_window_drives_queries(app, stocked):
    app.extensions['expiry_classifier'].warning_days = 1
    rows = queries.expiring_soon_batches(AS_OF)
    assert rows == []
    assert queries.dashboard_summary(AS_OF)['expiring_soon'] == 0


def test_empty_database(db_session):
    summary = queries.dashboard_summary(AS_OF)
    assert summary['total_units'] == 0
    assert queries.low_stock_products() == []
    assert queries.expired_batches(AS_OF) == []


def test_low_stock_orders_by_largest_shortage(make_product, make_batch):
    apples = make_product('Apples', min_stock_level=5)
    beans = make_product('Beans', min_stock_level=30)
    corn = make_product('Corn', min_stock_level=12)
    make_batch(beans, 10)
    make_batch(corn, 2)

    rows = queries.low_stock_products()

    assert [(r['product_name'], r['shortage']) for r in rows] == [
        ('Beans', 20),
        ('Corn', 10),
        ('Apples', 5),
    ]
