# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every catalog write must be attributable to an authenticated seller.
Orchestrates the credential hasher, token service, session store and
permission resolver through the session lifecycle:

    Anonymous -> Registered -> LoggedIn -> (Refreshed)* -> LoggedOut

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Password length 12..72 characters (72 bytes is bcrypt's input limit)
- Unknown email and wrong password fail identically (no enumeration)
- Forgot-password answers the same whether or not the email exists
- Password reset and logout revoke every refresh token of the user
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import bcrypt
from sqlalchemy.orm import Session

from ..errors import (
    AuthError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
    PasswordValidationError,
    ResetTokenInvalidError,
    ValidationError,
)
from ..models import User, UserRole
from ..permissions import SELF_SERVICE_ROLES
from ..time_utils import to_utc_z, utcnow
from ..validation import validate_email, validate_phone_e164
from .permission_service import PermissionResolver
from .session_service import RefreshSessionStore
from .token_service import (
    TOKEN_TYPE_REFRESH,
    TOKEN_TYPE_RESET,
    TokenService,
)
from .transaction import transaction


MIN_PASSWORD_LENGTH = 12
MAX_PASSWORD_LENGTH = 72
BCRYPT_ROUNDS = 12


def validate_password_strength(password: str | None) -> None:
    """
    Validate password meets length requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not password:
        raise PasswordValidationError("Password is required")
    if not isinstance(password, str):
        raise PasswordValidationError("Password must be a string")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at most {MAX_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    WHY: Cost factor 12 provides good security/performance balance.
    Password is validated before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (never raises).
    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    if not isinstance(password, str) or not isinstance(password_hash, str):
        return False
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input
        return False


class PasswordResetNotifier:
    """
    Delivers password-reset tokens to users.

    The default implementation only records that a reset was requested;
    e-mail delivery is plugged in by subclassing.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("safetyhub.auth")

    def send_reset(self, user: User, token: str) -> None:
        self.logger.info("Password reset requested for user %s", user.id)


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    expires_in: int
    expires_at: str
    user_info: dict

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": "Bearer",
            "expires_in": self.expires_in,
            "expires_at": self.expires_at,
            "user_info": self.user_info,
        }


class AuthService:
    def __init__(
        self,
        session: Session,
        tokens: TokenService,
        sessions: RefreshSessionStore,
        resolver: PermissionResolver,
        notifier: PasswordResetNotifier | None = None,
        logger: logging.Logger | None = None,
    ):
        self.session = session
        self.tokens = tokens
        self.sessions = sessions
        self.resolver = resolver
        self.logger = logger or logging.getLogger("safetyhub.auth")
        self.notifier = notifier or PasswordResetNotifier(self.logger)

    def register(
        self,
        *,
        email: str,
        password: str,
        user_type: str,
        full_name: str | None = None,
        phone_number: str | None = None,
        company_id: str | None = None,
        allow_any_role: bool = False,
    ) -> User:
        """
        Create a user and link it to the role named by user_type.

        No tokens are issued; the client logs in separately. Only
        SELF_SERVICE_ROLES are accepted unless allow_any_role is set
        (operator tooling).

        Raises:
            PasswordValidationError: empty or out-of-range password
            UnknownUserTypeError: no role named user_type
            ForbiddenError: user_type is not open to self-registration
            UniqueViolation: email already registered
            ValidationError: malformed email / phone / name
        """
        email = validate_email(email)
        if not user_type or not isinstance(user_type, str):
            raise ValidationError("user_type is required")
        if full_name is not None:
            full_name = str(full_name).strip()
            if len(full_name) < 3:
                raise ValidationError("full_name must be at least 3 characters")
        if phone_number:
            phone_number = validate_phone_e164(phone_number)
        else:
            phone_number = None
        if company_id is not None and not isinstance(company_id, str):
            raise ValidationError("company_id must be a string")

        password_hash = hash_password(password)

        with transaction(self.session):
            user = User(
                email=email,
                full_name=full_name,
                password_hash=password_hash,
                phone_number=phone_number,
                company_id=company_id or None,
            )
            self.session.add(user)
            self.session.flush()

            role = self.resolver.get_role(user_type)
            if not allow_any_role and role.name not in SELF_SERVICE_ROLES:
                raise ForbiddenError(f"Role '{role.name}' cannot be self-assigned")
            self.session.add(UserRole(user_id=user.id, role_id=role.id))

        self.logger.info("Registered user %s with role %s", user.id, user_type)
        return user

    def _issue_pair(self, user: User) -> tuple[LoginResult, str]:
        role_permissions = self.resolver.resolve(user.id)
        now = utcnow()
        access_token = self.tokens.issue_access_token(user.id, role_permissions, issued_at=now)
        refresh_token = self.tokens.issue_refresh_token(user.id, issued_at=now)
        claims = self.tokens.verify(access_token)

        result = LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.tokens.access_ttl,
            expires_at=to_utc_z(claims.expires_at),
            user_info={
                "user_id": user.id,
                "full_name": user.full_name,
                "email": user.email,
                "company_id": user.company_id,
                "role": role_permissions.role,
                "permissions": list(role_permissions.permissions),
            },
        )
        return result, refresh_token

    def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate and issue an access + refresh pair.

        Unknown email, inactive user and wrong password all raise
        InvalidCredentialsError with the same message.
        """
        if not email or not password:
            raise ValidationError("email and password required")

        user = (
            self.session.query(User)
            .filter(User.email == str(email).strip().lower())
            .first()
        )
        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            self.logger.warning("Failed login attempt")
            raise InvalidCredentialsError()

        result, refresh_token = self._issue_pair(user)
        self.sessions.save(user.id, refresh_token, self.tokens.refresh_ttl)

        self.logger.info("User %s logged in", user.id)
        return result

    def refresh(self, refresh_token: str) -> LoginResult:
        """
        Exchange a refresh token for a new pair, rotating the stored token.

        Role and permissions are resolved fresh, so role changes propagate.
        Raises InvalidRefreshTokenError on any verification or lookup failure.
        """
        try:
            claims = self.tokens.verify(refresh_token, expected_type=TOKEN_TYPE_REFRESH)
            self.sessions.lookup(refresh_token)
        except (AuthError, NotFoundError) as exc:
            self.logger.warning("Refresh rejected: %s", exc.code)
            raise InvalidRefreshTokenError() from exc

        user = self.session.get(User, claims.subject)
        if user is None or not user.is_active:
            self.logger.warning("Refresh rejected: user %s unavailable", claims.subject)
            raise InvalidRefreshTokenError()

        result, new_refresh_token = self._issue_pair(user)
        self.sessions.rotate(refresh_token, user.id, new_refresh_token, self.tokens.refresh_ttl)

        self.logger.info("User %s refreshed session", user.id)
        return result

    def logout(self, user_id: str) -> int:
        """Revoke all refresh tokens of the user. Returns count revoked."""
        count = self.sessions.revoke_all(user_id)
        self.logger.info("User %s logged out (%d sessions revoked)", user_id, count)
        return count

    def forgot_password(self, email: str) -> None:
        """
        Issue a reset token for a known email and hand it to the notifier.

        Returns nothing either way so callers cannot tell whether the email
        exists.
        """
        if not email:
            raise ValidationError("email is required")
        user = (
            self.session.query(User)
            .filter(User.email == str(email).strip().lower())
            .first()
        )
        if user is None or not user.is_active:
            return

        token = self.tokens.issue_reset_token(user.id)
        self.notifier.send_reset(user, token)

    def reset_password(self, token: str, new_password: str) -> None:
        """
        Set a new password using a reset token.

        Raises ResetTokenInvalidError if the token fails verification or its
        subject no longer exists; PasswordValidationError for a bad password.
        """
        try:
            claims = self.tokens.verify(token, expected_type=TOKEN_TYPE_RESET)
        except AuthError as exc:
            self.logger.warning("Password reset rejected: %s", exc.code)
            raise ResetTokenInvalidError() from exc

        password_hash = hash_password(new_password)

        with transaction(self.session):
            user = self.session.get(User, claims.subject)
            if user is None:
                raise ResetTokenInvalidError()
            user.password_hash = password_hash

        self.sessions.revoke_all(user.id)
        self.logger.info("Password reset for user %s", user.id)

    def get_user(self, user_id: str) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
