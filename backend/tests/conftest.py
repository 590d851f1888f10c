"""
Pytest fixtures for tailorshop backend tests.

Provides the app on an in-memory database, per-test table wipe, callers
for each access tier, and bearer-token helpers.
"""

import pytest
from tailorshop import create_app
from tailorshop.extensions import db
from tailorshop.models import User, ROLE_ADMIN
from tailorshop.policies import Caller
from tailorshop.services import auth_service, record_service, session_service
from tailorshop.services.seed_service import SYSTEM_CALLER

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh tables for each test."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    user = auth_service.create_user("admin@tailorshop.test", PASSWORD, ROLE_ADMIN)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def customer_account(db_session):
    """A signed-up customer: account and customer row share one id."""
    user, customer = auth_service.register_customer(
        name="Asha Rao",
        phone="+91 98450 00001",
        email="asha@example.com",
        password=PASSWORD,
        measurements={"chest": 38, "waist": 32},
    )
    return user, customer


@pytest.fixture(scope='function')
def other_customer(db_session):
    _, customer = auth_service.register_customer(
        name="Vikram Shah",
        phone="+91 98450 00002",
        email="vikram@example.com",
        password=PASSWORD,
    )
    return customer


@pytest.fixture
def anon():
    return Caller.anonymous()


@pytest.fixture
def admin(admin_user):
    return Caller(user_id=admin_user.id, role=admin_user.role)


@pytest.fixture
def customer_caller(customer_account):
    user, _ = customer_account
    return Caller(user_id=user.id, role=user.role)


@pytest.fixture
def fabric(db_session):
    return record_service.insert_row(SYSTEM_CALLER, "fabrics", {
        "name": "Premium Silk",
        "material": "Silk",
        "price_per_meter": 2500,
        "color": "Golden",
        "stock": 50,
        "featured": True,
        "description": "Silk for wedding wear",
    })


@pytest.fixture
def garment(db_session):
    return record_service.insert_row(SYSTEM_CALLER, "garments", {
        "name": "Classic Shirt",
        "category": "Shirts",
        "base_price": 1500,
        "description": "Office and casual wear",
        "customization_options": {"collar": ["Regular", "Spread"]},
    })


def token_for(user) -> str:
    _, token = session_service.create_session(user.id)
    return token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(token_for(admin_user))


@pytest.fixture
def customer_headers(customer_account):
    user, _ = customer_account
    return auth_headers(token_for(user))


@pytest.fixture
def other_customer_headers(other_customer):
    user = db.session.get(User, other_customer.id)
    return auth_headers(token_for(user))
