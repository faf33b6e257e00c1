from __future__ import annotations

import uuid

from ..extensions import db
from ..time_utils import utcnow


def new_uuid() -> str:
    """String UUID primary key (portable across PostgreSQL and SQLite)."""
    return str(uuid.uuid4())


class TimestampMixin:
    """created_at / updated_at columns, naive UTC."""

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
