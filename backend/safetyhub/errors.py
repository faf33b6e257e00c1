# Overview: Application error taxonomy and database error translation.

"""
Error taxonomy shared by services, routes and the app-level error handler.

Every error carries the HTTP status it maps to, so routes can let service
errors propagate and the handler registered in create_app() renders them as
{"error": ..., "code": ...}.

Repositories (the SQLAlchemy session calls inside services) translate raw
IntegrityError into the ConstraintViolation family via
translate_integrity_error(); services add context but never swallow errors.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message())
        self.message = message or self.default_message()

    @classmethod
    def default_message(cls) -> str:
        return "Internal server error"

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(AppError, ValueError):
    """400-level input problem."""

    status_code = 400
    code = "validation_error"


class AuthError(AppError):
    """Missing, invalid or expired credentials (401)."""

    status_code = 401
    code = "unauthorized"

    @classmethod
    def default_message(cls) -> str:
        return "Authentication required"


class TokenError(AuthError):
    code = "invalid_token"

    @classmethod
    def default_message(cls) -> str:
        return "Invalid or expired token"


class TokenExpiredError(TokenError):
    code = "token_expired"


class TokenSignatureError(TokenError):
    code = "invalid_signature"


class TokenMalformedError(TokenError):
    code = "malformed_token"


class InvalidCredentialsError(AuthError):
    code = "invalid_credentials"

    @classmethod
    def default_message(cls) -> str:
        return "Invalid credentials"


class InvalidRefreshTokenError(AuthError):
    code = "invalid_refresh_token"

    @classmethod
    def default_message(cls) -> str:
        return "Invalid or expired token"


class ForbiddenError(AppError):
    """Valid token, insufficient scope (403)."""

    status_code = 403
    code = "forbidden"

    @classmethod
    def default_message(cls) -> str:
        return "Permission denied"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"

    @classmethod
    def default_message(cls) -> str:
        return "Not found"


class ConflictError(AppError, ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""

    status_code = 409
    code = "conflict"


class ConstraintViolation(ConflictError):
    code = "constraint_violation"


class UniqueViolation(ConstraintViolation):
    code = "unique_violation"


class ForeignKeyViolation(ConstraintViolation):
    code = "foreign_key_violation"


class NullViolation(ConstraintViolation):
    status_code = 400
    code = "null_violation"


class InternalError(AppError):
    pass


class StorageError(AppError):
    status_code = 502
    code = "storage_error"

    @classmethod
    def default_message(cls) -> str:
        return "Object storage request failed"


# -- Domain-specific errors --

class PasswordValidationError(ValidationError):
    """Raised when password is empty or doesn't meet length requirements."""

    code = "weak_password"


class UnknownUserTypeError(ValidationError):
    code = "unknown_user_type"


class ResetTokenInvalidError(ValidationError):
    code = "reset_token_invalid"

    @classmethod
    def default_message(cls) -> str:
        return "Token expired or invalid, please request a new reset email"


class UnsupportedFileTypeError(ValidationError):
    code = "unsupported_type"

    @classmethod
    def default_message(cls) -> str:
        return "Only image (PNG, JPEG, WebP) and PDF files are allowed"


class VariantSkuConflictError(ConflictError):
    code = "sku_conflict"


# SQLSTATE codes (PostgreSQL class 23: integrity constraint violation)
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_NOT_NULL_VIOLATION = "23502"


def _sqlstate(orig) -> str | None:
    # psycopg 3 exposes .sqlstate, psycopg2 exposes .pgcode
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _detail(orig) -> str:
    diag = getattr(orig, "diag", None)
    detail = getattr(diag, "message_detail", None) if diag is not None else None
    return detail or str(orig).strip().splitlines()[0]


def translate_integrity_error(exc: IntegrityError) -> ConstraintViolation:
    """
    Map a driver-level integrity error onto the constraint taxonomy.

    PostgreSQL is matched on SQLSTATE; SQLite (tests, local dev) on its
    message prefixes. Anything unrecognised becomes a plain ConstraintViolation.
    """
    orig = exc.orig
    state = _sqlstate(orig)
    detail = _detail(orig)

    if state == PG_UNIQUE_VIOLATION:
        return UniqueViolation(f"unique constraint violation: {detail}")
    if state == PG_FOREIGN_KEY_VIOLATION:
        return ForeignKeyViolation(f"foreign key violation: {detail}")
    if state == PG_NOT_NULL_VIOLATION:
        return NullViolation(f"null constraint violation: {detail}")

    text = str(orig)
    if "UNIQUE constraint failed" in text:
        return UniqueViolation(f"unique constraint violation: {detail}")
    if "FOREIGN KEY constraint failed" in text:
        return ForeignKeyViolation(f"foreign key violation: {detail}")
    if "NOT NULL constraint failed" in text:
        return NullViolation(f"null constraint violation: {detail}")

    return ConstraintViolation(f"constraint violation ({state or 'unknown'}): {detail}")
