"""
Pytest configuration and shared fixtures for lotkeeper tests.
"""
from datetime import date

import pytest

from lotkeeper import create_app
from lotkeeper.extensions import db
from lotkeeper.models import BatchStatus, Location, Product, StockBatch

TEST_CONFIG = {
    'TESTING': True,
    'DEBUG': False,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SECRET_KEY': 'test-secret-key',
    'CACHE_TYPE': 'NullCache',
    'RATELIMIT_ENABLED': False,
    'EXPIRY_WARNING_DAYS': 7,
    'BUSINESS_TIMEZONE': 'UTC',
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    app = create_app(dict(TEST_CONFIG))

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_factory():
    """Build an app with extra config on top of the test defaults."""
    def _factory(**overrides):
        return create_app({**TEST_CONFIG, **overrides})
    return _factory


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def app_context(app):
    """Provide an application context for tests that need it."""
    with app.app_context():
        yield


@pytest.fixture
def db_session(app_context):
    """The scoped session inside an application context."""
    yield db.session
    db.session.rollback()


@pytest.fixture
def make_product(db_session):
    """Factory for products; returns the committed row."""
    counter = {'n': 0}

    def _make(name=None, **fields):
        counter['n'] += 1
        product = Product(
            name=name or f"Product {counter['n']}",
            unit=fields.pop('unit', 'units'),
            min_stock_level=fields.pop('min_stock_level', 0),
            **fields,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture
def make_batch(db_session):
    """Factory for batches written straight to the table, bypassing the services."""
    counter = {'n': 0}

    def _make(product, quantity, expiration_date=None, status=BatchStatus.ACTIVE, **fields):
        counter['n'] += 1
        batch = StockBatch(
            product_id=product.id,
            batch_number=fields.pop('batch_number', f"T{counter['n']:04d}"),
            quantity=quantity,
            expiration_date=expiration_date,
            received_date=fields.pop('received_date', date(2024, 1, 1)),
            status=status,
            **fields,
        )
        db_session.add(batch)
        db_session.commit()
        return batch

    return _make


@pytest.fixture
def location(db_session):
    loc = Location(name='Walk-in Fridge')
    db_session.add(loc)
    db_session.commit()
    return loc
