"""
Pytest fixtures for trxdesk backend tests.

Provides test database setup, role fixtures (admin, supervisor, two
employees), login helpers, and the test client.
"""

import pytest
from trxdesk import create_app
from trxdesk.extensions import db
from trxdesk.identity import Requester
from trxdesk.models import User
from trxdesk.models.auth import ROLE_ADMIN, ROLE_EMPLOYEE, ROLE_SUPERVISOR
from trxdesk.services.auth_service import hash_password

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'TRANSACTION_NUMBER_TIMEZONE': 'UTC',
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
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory for persisted users."""
    def _make(email: str, role: str, full_name: str | None = None, is_active: bool = True) -> User:
        user = User(
            email=email,
            full_name=full_name or email.split("@")[0].title(),
            password_hash=hash_password(PASSWORD),
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture(scope='function')
def admin(make_user):
    return make_user("admin@trxdesk.test", ROLE_ADMIN, "Alice Admin")


@pytest.fixture(scope='function')
def supervisor(make_user):
    return make_user("super@trxdesk.test", ROLE_SUPERVISOR, "Sam Supervisor")


@pytest.fixture(scope='function')
def employee_a(make_user):
    return make_user("emma@trxdesk.test", ROLE_EMPLOYEE, "Emma Employee")


@pytest.fixture(scope='function')
def employee_b(make_user):
    return make_user("omar@trxdesk.test", ROLE_EMPLOYEE, "Omar Employee")


def as_requester(user: User) -> Requester:
    return Requester.from_user(user)


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json['data']['token']
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def login(client, user: User) -> dict:
    return auth_headers(get_auth_token(client, user.email))


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return login(client, admin)


@pytest.fixture(scope='function')
def supervisor_headers(client, supervisor):
    return login(client, supervisor)


@pytest.fixture(scope='function')
def employee_a_headers(client, employee_a):
    return login(client, employee_a)


@pytest.fixture(scope='function')
def employee_b_headers(client, employee_b):
    return login(client, employee_b)


def transaction_payload(**overrides) -> dict:
    """A complete, valid create-transaction request body."""
    payload = {
        "serviceType": "Visa",
        "transactionType": "New",
        "clientName": "Layla Haddad",
        "passportId": "P1234567",
        "mobileNumber": "+971500000001",
        "receiveDate": "2024-03-01",
        "expectedDelivery": "2024-03-10",
    }
    payload.update(overrides)
    return payload
