# Overview: Unit-of-work helper shared by every service.

"""
Transaction boundary for service code.

WHY: Services receive a SQLAlchemy Session (the request-scoped db.session in
the app, a plain Session in scripts) and run their statements through it.
The same service code therefore works standalone or nested inside a larger
unit of work; this helper is the only place that commits or rolls back.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import translate_integrity_error


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """
    Commit on success; roll back on any exception.

    IntegrityError is re-raised as the matching ConstraintViolation subclass
    so callers never see driver-level errors.
    """
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise translate_integrity_error(exc) from exc
    except BaseException:
        session.rollback()
        raise
