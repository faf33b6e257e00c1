# Overview: Service-layer operations for refresh sessions; encapsulates business logic and database work.

"""
Refresh Session Store

WHY: Refresh tokens are long-lived (30 days), so the server keeps its own
record of every one it issued. A signed refresh JWT is only honoured while
its row exists, is not revoked and has not expired.

SECURITY FEATURES:
- Tokens hashed with SHA-256 before storage (never stored in plaintext)
- Revoked, never deleted, on logout / password reset / rotation
- Rotation is a single transaction guarded by a conditional UPDATE, so a
  token can be exchanged at most once even under concurrent refreshes
- Expired and revoked rows older than a cutoff are purged by the CLI
"""

from __future__ import annotations

import hashlib
import logging
from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..errors import InvalidRefreshTokenError, NotFoundError
from ..models import RefreshToken
from ..time_utils import utcnow
from .transaction import transaction


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    SHA-256 is faster and sufficient for high-entropy inputs.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class RefreshSessionStore:
    """Persistence for refresh tokens."""

    def __init__(self, session: Session, logger: logging.Logger | None = None):
        self.session = session
        self.logger = logger or logging.getLogger("safetyhub.auth")

    def _new_row(self, user_id: str, token: str, ttl: int) -> RefreshToken:
        now = utcnow()
        return RefreshToken(
            user_id=user_id,
            token_hash=hash_token(token),
            expires_at=now + timedelta(seconds=ttl),
            revoked=False,
            created_at=now,
            updated_at=now,
        )

    def save(self, user_id: str, token: str, ttl: int) -> RefreshToken:
        """Persist a newly issued refresh token."""
        with transaction(self.session):
            row = self._new_row(user_id, token, ttl)
            self.session.add(row)
        return row

    def lookup(self, token: str) -> RefreshToken:
        """
        Return the live row for `token`.

        Raises NotFoundError when the token is unknown, revoked or expired.
        A revoked token is indistinguishable from one that never existed.
        """
        row = (
            self.session.query(RefreshToken)
            .filter(
                RefreshToken.token_hash == hash_token(token),
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > utcnow(),
            )
            .first()
        )
        if row is None:
            raise NotFoundError("Refresh token not found")
        return row

    def revoke(self, token: str) -> bool:
        """Revoke one token. Returns False if it was unknown or already revoked."""
        with transaction(self.session):
            result = self.session.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.token_hash == hash_token(token),
                    RefreshToken.revoked.is_(False),
                )
                .values(revoked=True, revoked_at=utcnow(), updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
        return result.rowcount == 1

    def revoke_all(self, user_id: str) -> int:
        """
        Revoke every live token of a user.

        WHY: Logout and password reset force re-authentication on all devices.
        """
        now = utcnow()
        with transaction(self.session):
            result = self.session.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.user_id == user_id,
                    RefreshToken.revoked.is_(False),
                )
                .values(revoked=True, revoked_at=now, updated_at=now)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount

    def rotate(self, old_token: str, user_id: str, new_token: str, ttl: int) -> RefreshToken:
        """
        Atomically revoke `old_token` and save `new_token`.

        The UPDATE only matches a live row owned by user_id; if nothing
        matched (already rotated, revoked, or never issued) the whole
        rotation is rolled back and InvalidRefreshTokenError is raised.
        """
        now = utcnow()
        with transaction(self.session):
            result = self.session.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.token_hash == hash_token(old_token),
                    RefreshToken.user_id == user_id,
                    RefreshToken.revoked.is_(False),
                    RefreshToken.expires_at > now,
                )
                .values(revoked=True, revoked_at=now, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidRefreshTokenError()

            row = self._new_row(user_id, new_token, ttl)
            self.session.add(row)

        return row

    def cleanup_expired(self, older_than_days: int = 30) -> int:
        """
        Delete expired or revoked rows created before the cutoff.

        Returns count of rows deleted.
        Run periodically (`flask sessions cleanup`).
        """
        now = utcnow()
        cutoff = now - timedelta(days=older_than_days)
        with transaction(self.session):
            deleted = (
                self.session.query(RefreshToken)
                .filter(
                    (RefreshToken.expires_at < now) | RefreshToken.revoked.is_(True),
                    RefreshToken.created_at < cutoff,
                )
                .delete(synchronize_session=False)
            )
        return deleted
