"""
Pytest fixtures for cashdesk backend tests.

Provides an in-memory database, per-test table wipe, test client and
location/register/shift factories.
"""

import pytest
from cashdesk import create_app
from cashdesk.extensions import db
from cashdesk.services import (
    location_service,
    payment_method_service,
    register_service,
    shift_service,
)

CASHIER = "cashier-1"
OTHER_CASHIER = "cashier-2"
MANAGER = "manager-1"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        db.session.remove()
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def location(db_session):
    return location_service.create_location("Sucursal Centro")


@pytest.fixture(scope='function')
def register(db_session, location):
    return register_service.create_register(location_id=location.id, name="Caja 1")


@pytest.fixture(scope='function')
def cash_method(db_session):
    return payment_method_service.create_payment_method("Efectivo", "cash")


@pytest.fixture(scope='function')
def card_method(db_session):
    return payment_method_service.create_payment_method("Tarjeta", "card")


@pytest.fixture(scope='function')
def open_shift(db_session, register):
    """Shift opened by CASHIER with 200.00 in the drawer."""
    return shift_service.open_shift(register.id, "200.00", CASHIER)


def user_headers(user_id: str = CASHIER, roles: str | None = None) -> dict:
    """Headers the upstream auth gateway would forward."""
    headers = {'X-User-Id': user_id}
    if roles:
        headers['X-User-Roles'] = roles
    return headers
