"""
Pytest fixtures for SafetyHub backend tests.

Provides the test app (in-memory SQLite, generated RSA key pair, fake object
storage), per-test database cleanup with seeded roles, and helpers to
register / log in users.
"""

import threading

import pytest

from safetyhub import create_app
from safetyhub.container import get_container
from safetyhub.extensions import db
from safetyhub.services import permission_service
from safetyhub.services.auth_service import PasswordResetNotifier
from safetyhub.services.storage_service import StorageBackend
from safetyhub.services.token_service import generate_rsa_key_pair


PASSWORD = "longenoughpassword1"


class FakeStorage(StorageBackend):
    """In-memory storage backend; fail_when(key, data) -> bool simulates outages."""

    def __init__(self):
        self.objects = {}
        self.fail_when = None
        self._lock = threading.Lock()

    def reset(self):
        with self._lock:
            self.objects.clear()
        self.fail_when = None

    def put(self, key, data, content_type):
        if self.fail_when is not None and self.fail_when(key, data):
            raise RuntimeError(f"simulated storage outage for {key}")
        with self._lock:
            self.objects[key] = (data, content_type)
        return f"https://storage.test/{key}"


class RecordingNotifier(PasswordResetNotifier):
    def __init__(self):
        super().__init__()
        self.sent = []

    def send_reset(self, user, token):
        self.sent.append((user.email, token))


@pytest.fixture(scope='session')
def rsa_keys():
    return generate_rsa_key_pair()


@pytest.fixture(scope='session')
def app(rsa_keys):
    """Create application for testing."""
    private_pem, public_pem = rsa_keys
    app = create_app(
        {
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
            'SQLALCHEMY_TRACK_MODIFICATIONS': False,
            'JWT_PRIVATE_KEY': private_pem,
            'JWT_PUBLIC_KEY': public_pem,
            'UPLOAD_MAX_WORKERS': 4,
        },
        storage=FakeStorage(),
        notifier=RecordingNotifier(),
    )

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def container(app):
    return get_container(app)


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh database with seeded roles and permissions for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        permission_service.seed_roles_and_permissions(db.session)

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def storage(container):
    backend = container.uploads.storage
    backend.reset()
    yield backend
    backend.reset()


@pytest.fixture(scope='function')
def notifier(container):
    container.auth.notifier.sent.clear()
    return container.auth.notifier


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def register_user(client, email: str, user_type: str = "seller", password: str = PASSWORD, **extra):
    payload = {"email": email, "password": password, "user_type": user_type}
    payload.update(extra)
    return client.post('/v1/auth/register', json=payload)


def login_user(client, email: str, password: str = PASSWORD) -> dict:
    """Helper to log in; returns the login response body."""
    response = client.post('/v1/auth/login', json={'email': email, 'password': password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()


@pytest.fixture(scope='function')
def make_user(client):
    """Factory: register + log in, returns the login body."""
    def _make(email: str, user_type: str = "seller", **extra) -> dict:
        response = register_user(client, email, user_type, **extra)
        assert response.status_code == 201, response.get_json()
        return login_user(client, email)
    return _make


@pytest.fixture(scope='function')
def seller(make_user):
    return make_user("seller@example.com", "seller", full_name="Sam Seller")


@pytest.fixture(scope='function')
def seller_headers(seller):
    return auth_headers(seller["access_token"])


@pytest.fixture(scope='function')
def customer_headers(make_user):
    return auth_headers(make_user("customer@example.com", "customer")["access_token"])


@pytest.fixture(scope='function')
def seller_id(seller):
    return seller["user_info"]["user_id"]
