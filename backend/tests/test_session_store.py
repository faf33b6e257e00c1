"""
Refresh session store tests.

Verifies:
- Tokens are stored as SHA-256 digests only
- Revoked and expired rows never authorize a lookup
- Rotation is single-use and atomic
"""

from datetime import timedelta

import pytest

from safetyhub.errors import InvalidRefreshTokenError, NotFoundError
from safetyhub.models import RefreshToken
from safetyhub.services.session_service import hash_token
from safetyhub.time_utils import utcnow


@pytest.fixture
def user_id(container, db_session):
    user = container.auth.register(
        email="store@example.com", password="longenoughpassword1", user_type="seller"
    )
    return user.id


@pytest.fixture
def store(container):
    return container.sessions


def test_save_stores_digest_not_token(store, db_session, user_id):
    store.save(user_id, "refresh-token-1", ttl=3600)

    row = db_session.query(RefreshToken).filter_by(user_id=user_id).one()
    assert row.token_hash == hash_token("refresh-token-1")
    assert row.token_hash != "refresh-token-1"
    assert len(row.token_hash) == 64
    assert row.revoked is False


def test_lookup(store, user_id):
    store.save(user_id, "refresh-token-1", ttl=3600)
    assert store.lookup("refresh-token-1").user_id == user_id

    with pytest.raises(NotFoundError):
        store.lookup("never-issued")


def test_expired_row_is_not_found(store, user_id):
    store.save(user_id, "stale", ttl=-1)
    with pytest.raises(NotFoundError):
        store.lookup("stale")


def test_revoke(store, user_id):
    store.save(user_id, "refresh-token-1", ttl=3600)

    assert store.revoke("refresh-token-1") is True
    with pytest.raises(NotFoundError):
        store.lookup("refresh-token-1")

    # Already revoked: nothing left to revoke
    assert store.revoke("refresh-token-1") is False


def test_revoke_all(store, db_session, user_id):
    store.save(user_id, "device-a", ttl=3600)
    store.save(user_id, "device-b", ttl=3600)

    assert store.revoke_all(user_id) == 2
    assert store.revoke_all(user_id) == 0

    rows = db_session.query(RefreshToken).filter_by(user_id=user_id).all()
    assert len(rows) == 2
    assert all(r.revoked and r.revoked_at is not None for r in rows)


def test_rotate_is_single_use(store, user_id):
    store.save(user_id, "old", ttl=3600)

    store.rotate("old", user_id, "new", ttl=3600)
    assert store.lookup("new").user_id == user_id
    with pytest.raises(NotFoundError):
        store.lookup("old")

    with pytest.raises(InvalidRefreshTokenError):
        store.rotate("old", user_id, "newer", ttl=3600)

    # The failed rotation must not leave its replacement behind
    with pytest.raises(NotFoundError):
        store.lookup("newer")


def test_rotate_rejects_other_users_token(store, container, user_id):
    other = container.auth.register(
        email="other@example.com", password="longenoughpassword1", user_type="customer"
    )
    store.save(user_id, "mine", ttl=3600)

    with pytest.raises(InvalidRefreshTokenError):
        store.rotate("mine", other.id, "stolen", ttl=3600)
    assert store.lookup("mine").user_id == user_id


def test_cleanup_expired(store, db_session, user_id):
    store.save(user_id, "live", ttl=3600)
    store.save(user_id, "old-revoked", ttl=3600)
    store.revoke("old-revoked")

    row = db_session.query(RefreshToken).filter_by(token_hash=hash_token("old-revoked")).one()
    row.created_at = utcnow() - timedelta(days=40)
    db_session.commit()

    assert store.cleanup_expired(older_than_days=30) == 1
    assert store.lookup("live").user_id == user_id
    assert db_session.query(RefreshToken).count() == 1
