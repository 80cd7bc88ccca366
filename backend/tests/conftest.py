"""
Pytest fixtures for bizbooks backend tests.

Provides test database setup, an owning user, a record store over a temp
JSON file and an authenticated test client.
"""

from datetime import date

import pytest

from bizbooks import create_app
from bizbooks.extensions import db
from bizbooks.models import User
from bizbooks.services.auth_service import hash_password
from bizbooks.services.json_storage import JsonFileAdapter
from bizbooks.services.notification_service import CollectingNotifier
from bizbooks.services.record_store import RecordStore


PASSWORD = "Password123!"

# Fixed "today" for store-level tests: 2025-03-15
TODAY = date(2025, 3, 15)


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BIZBOOKS_STORAGE': 'sql',
        'BIZBOOKS_JSON_PATH': str(tmp_path_factory.mktemp("records")),
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


def _make_user(db_session, username: str, email: str) -> User:
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(PASSWORD),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def owner(db_session):
    """The owning user of the records under test."""
    return _make_user(db_session, "owner", "owner@bizbooks.test")


@pytest.fixture(scope='function')
def other_owner(db_session):
    """A second, unrelated owner."""
    return _make_user(db_session, "other", "other@bizbooks.test")


@pytest.fixture(scope='function')
def notifier():
    return CollectingNotifier()


@pytest.fixture(scope='function')
def json_adapter(tmp_path):
    return JsonFileAdapter(owner_id=1, base_path=str(tmp_path))


@pytest.fixture(scope='function')
def store(json_adapter, notifier):
    """RecordStore over a temp JSON file with today pinned to TODAY."""
    return RecordStore(json_adapter, notifier, today=lambda: TODAY)


def get_auth_token(client, username: str, password: str) -> str:
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
def owner_headers(client, owner):
    return auth_headers(get_auth_token(client, owner.username, PASSWORD))


@pytest.fixture(scope='function')
def other_headers(client, other_owner):
    return auth_headers(get_auth_token(client, other_owner.username, PASSWORD))


def laptop_line(**overrides) -> dict:
    """The worked example line: 100 ordered, 60 dispatched, 2,50,000.00 @ 18%."""
    line = {
        "particulars": "Dell Latitude 5420 Laptops",
        "ordered_qty": 100,
        "dispatched_qty": 60,
        "basic_amount_cents": 25000000,
        "tax_rate_bps": 1800,
    }
    line.update(overrides)
    return line


def invoice_fields(**overrides) -> dict:
    fields = {
        "vendor_name": "Tech Solutions Ltd",
        "invoice_date": date(2025, 1, 20),
        "due_date": date(2025, 2, 19),
        "po_number": "PO-2025-001",
        "transportation_cents": 500000,
        "line_items": [laptop_line()],
    }
    fields.update(overrides)
    return fields
