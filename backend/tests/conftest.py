"""
Pytest fixtures for POSDocs backend tests.

Provides the app on in-memory SQLite, a per-test table wipe with seeded
roles, users and customers, and auth headers obtained through the login
endpoint.
"""

import pytest

from posdocs import create_app
from posdocs.extensions import db
from posdocs.models import Customer, Role, User
from posdocs.permissions import ADMIN_ROLE, SALES_REP_ROLE, STOCK_KEEPER_ROLE
from posdocs.services.auth_service import ensure_default_roles, hash_password
from posdocs.services.idempotency_service import InMemoryKeyValueStore


PASSWORD = "Password123!"


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'EXPOSE_ERROR_DETAILS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow by design; hash the shared test password once."""
    return hash_password(PASSWORD)


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture(scope='function')
def clock(app):
    """Fresh idempotency store driven by a fake clock."""
    fake = FakeClock()
    app.extensions["idempotency_store"] = InMemoryKeyValueStore(clock=fake)
    return fake


@pytest.fixture(scope='function')
def db_session(app, clock):
    """Fresh database for each test, with the default roles seeded."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    ensure_default_roles()

    yield db.session

    db.session.rollback()


def make_user(session, password_hash, username: str, role_name: str, is_active: bool = True) -> User:
    role = session.query(Role).filter_by(name=role_name).one()
    user = User(
        username=username,
        email=f"{username}@posdocs.test",
        password_hash=password_hash,
        role_id=role.id,
        is_active=is_active,
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def admin(db_session, password_hash):
    return make_user(db_session, password_hash, "admin", ADMIN_ROLE)


@pytest.fixture(scope='function')
def sales_rep(db_session, password_hash):
    return make_user(db_session, password_hash, "rep", SALES_REP_ROLE)


@pytest.fixture(scope='function')
def stock_keeper(db_session, password_hash):
    return make_user(db_session, password_hash, "stock", STOCK_KEEPER_ROLE)


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(name="Acme Ltd", email="billing@acme.test")
    db_session.add(customer)
    db_session.commit()
    return customer


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.username))


@pytest.fixture(scope='function')
def rep_headers(client, sales_rep):
    return auth_headers(get_auth_token(client, sales_rep.username))


@pytest.fixture(scope='function')
def stock_headers(client, stock_keeper):
    return auth_headers(get_auth_token(client, stock_keeper.username))


def line(qty, price, discount=0, code="SKU-1", description="Widget") -> dict:
    return {
        "productCode": code,
        "description": description,
        "quantity": qty,
        "price": price,
        "discount": discount,
    }


def product(qty, price, code="SKU-1", description="Widget") -> dict:
    return {"productCode": code, "description": description, "quantity": qty, "price": price}
