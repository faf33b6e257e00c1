# Overview: Service-layer operations for signed session tokens (RS256 JWT).

"""
Token Service

WHY: Access and refresh tokens are self-contained signed payloads so the
authorization guard can check scopes without a database round-trip.

TOKEN TYPES:
- access:  short TTL (15 min), carries role + permissions
- refresh: long TTL (30 days), identity only; permissions are re-resolved
           at refresh time so role changes take effect within one cycle
- reset:   password-reset token (900 s), identity only

SECURITY NOTES:
- Private key signs, public key verifies (RS256 only; "none" and HMAC
  algorithms are rejected by the algorithm allow-list)
- Every token carries a random jti so two tokens issued in the same second
  for the same subject never collide (refresh tokens are stored by digest)
- Claims are decoded field by field and fail closed on any unexpected shape
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..errors import TokenExpiredError, TokenMalformedError, TokenSignatureError
from ..time_utils import from_timestamp, utcnow


ALGORITHM = "RS256"

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"
TOKEN_TYPE_RESET = "reset"
TOKEN_TYPES = (TOKEN_TYPE_ACCESS, TOKEN_TYPE_REFRESH, TOKEN_TYPE_RESET)

DEFAULT_ACCESS_TTL = 15 * 60
DEFAULT_REFRESH_TTL = 30 * 24 * 60 * 60
DEFAULT_RESET_TTL = 900


@dataclass(frozen=True)
class RolePermissions:
    """A user's current role and the permission names it grants."""
    role: str | None = None
    permissions: tuple[str, ...] = ()


@dataclass(frozen=True)
class TokenClaims:
    """Validated token payload."""
    subject: str
    token_type: str
    issued_at: datetime
    expires_at: datetime
    token_id: str
    role: str | None = None
    permissions: tuple[str, ...] = field(default_factory=tuple)

    def has_permission(self, name: str) -> bool:
        return name in self.permissions


def generate_rsa_key_pair(key_size: int = 2048) -> tuple[str, str]:
    """Generate a PEM (private, public) RSA key pair."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_pem, public_pem


class TokenService:
    """Issues and verifies RS256-signed tokens."""

    def __init__(
        self,
        private_key: str,
        public_key: str,
        *,
        access_ttl: int = DEFAULT_ACCESS_TTL,
        refresh_ttl: int = DEFAULT_REFRESH_TTL,
        reset_ttl: int = DEFAULT_RESET_TTL,
        issuer: str | None = None,
        logger: logging.Logger | None = None,
    ):
        self._private_key = private_key
        self._public_key = public_key
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.reset_ttl = reset_ttl
        self.issuer = issuer
        self.logger = logger or logging.getLogger("safetyhub.auth")

    @classmethod
    def from_config(cls, config, logger: logging.Logger | None = None) -> "TokenService":
        return cls(
            config["JWT_PRIVATE_KEY"],
            config["JWT_PUBLIC_KEY"],
            access_ttl=config["ACCESS_TOKEN_TTL_SECONDS"],
            refresh_ttl=config["REFRESH_TOKEN_TTL_SECONDS"],
            reset_ttl=config["RESET_TOKEN_TTL_SECONDS"],
            issuer=config.get("JWT_ISSUER"),
            logger=logger,
        )

    def issue(
        self,
        subject: str,
        role_permissions: RolePermissions | None = None,
        ttl: int | None = None,
        token_type: str = TOKEN_TYPE_ACCESS,
        issued_at: datetime | None = None,
    ) -> str:
        """
        Sign a token for `subject`.

        Role and permission claims are embedded only when role_permissions is
        given (access tokens). ttl is in seconds; defaults to the configured
        TTL for token_type.
        """
        if not subject:
            raise ValueError("Token subject is required")
        if token_type not in TOKEN_TYPES:
            raise ValueError(f"Unknown token type: {token_type}")

        if ttl is None:
            ttl = {
                TOKEN_TYPE_ACCESS: self.access_ttl,
                TOKEN_TYPE_REFRESH: self.refresh_ttl,
                TOKEN_TYPE_RESET: self.reset_ttl,
            }[token_type]

        now = issued_at or utcnow()
        iat = int(_epoch(now))
        payload = {
            "sub": str(subject),
            "iat": iat,
            "exp": iat + int(ttl),
            "jti": uuid.uuid4().hex,
            "typ": token_type,
        }
        if self.issuer:
            payload["iss"] = self.issuer
        if role_permissions is not None:
            if role_permissions.role is not None:
                payload["role"] = role_permissions.role
            payload["permissions"] = list(role_permissions.permissions)

        return jwt.encode(payload, self._private_key, algorithm=ALGORITHM)

    def issue_access_token(self, subject: str, role_permissions: RolePermissions, issued_at=None) -> str:
        return self.issue(subject, role_permissions, self.access_ttl, TOKEN_TYPE_ACCESS, issued_at)

    def issue_refresh_token(self, subject: str, issued_at=None) -> str:
        return self.issue(subject, None, self.refresh_ttl, TOKEN_TYPE_REFRESH, issued_at)

    def issue_reset_token(self, subject: str, issued_at=None) -> str:
        return self.issue(subject, None, self.reset_ttl, TOKEN_TYPE_RESET, issued_at)

    def verify(self, token: str, expected_type: str | None = None) -> TokenClaims:
        """
        Verify signature and expiry, then decode claims.

        Raises:
            TokenSignatureError: bad signature, wrong algorithm or key
            TokenExpiredError: past exp
            TokenMalformedError: anything that doesn't decode into TokenClaims
        """
        if not token or not isinstance(token, str):
            raise TokenMalformedError("Token is empty")

        options = {"require": ["sub", "exp", "iat"]}
        try:
            payload = jwt.decode(
                token,
                self._public_key,
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                options=options,
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired") from exc
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            raise TokenSignatureError("Token signature is invalid") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenMalformedError(f"Token could not be decoded: {exc}") from exc

        claims = _decode_claims(payload)

        if expected_type is not None and claims.token_type != expected_type:
            raise TokenMalformedError(
                f"Expected a {expected_type} token, got {claims.token_type}"
            )
        return claims


def _epoch(dt: datetime) -> float:
    return (dt - datetime(1970, 1, 1)).total_seconds()


def _decode_claims(payload: dict) -> TokenClaims:
    """Checked conversion of a decoded payload into TokenClaims."""
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise TokenMalformedError("Token subject is missing or not a string")

    token_type = payload.get("typ", TOKEN_TYPE_ACCESS)
    if token_type not in TOKEN_TYPES:
        raise TokenMalformedError("Token type is invalid")

    iat = payload.get("iat")
    exp = payload.get("exp")
    if isinstance(iat, bool) or not isinstance(iat, (int, float)):
        raise TokenMalformedError("Token iat is invalid")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise TokenMalformedError("Token exp is invalid")

    token_id = payload.get("jti", "")
    if not isinstance(token_id, str):
        raise TokenMalformedError("Token jti is invalid")

    role = payload.get("role")
    if role is not None and not isinstance(role, str):
        raise TokenMalformedError("Token role is invalid")

    permissions = payload.get("permissions", [])
    if not isinstance(permissions, list) or not all(isinstance(p, str) for p in permissions):
        raise TokenMalformedError("Token permissions are invalid")

    return TokenClaims(
        subject=subject,
        token_type=token_type,
        issued_at=from_timestamp(iat),
        expires_at=from_timestamp(exp),
        token_id=token_id,
        role=role,
        permissions=tuple(permissions),
    )
