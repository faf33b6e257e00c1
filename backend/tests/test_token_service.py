"""
Token service tests.

Verifies:
- Issued tokens round-trip into typed claims
- Each failure kind maps to its own error (expired, signature, malformed)
- Claims with an unexpected shape fail closed
"""

import time
from datetime import timedelta

import jwt
import pytest

from safetyhub.errors import TokenExpiredError, TokenMalformedError, TokenSignatureError
from safetyhub.services.token_service import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    RolePermissions,
    TokenService,
    generate_rsa_key_pair,
)
from safetyhub.time_utils import utcnow


@pytest.fixture(scope='module')
def other_keys():
    return generate_rsa_key_pair()


@pytest.fixture
def tokens(rsa_keys):
    private_pem, public_pem = rsa_keys
    return TokenService(private_pem, public_pem, access_ttl=900, refresh_ttl=3600, reset_ttl=900)


def _raw(rsa_keys, payload, algorithm="RS256"):
    return jwt.encode(payload, rsa_keys[0], algorithm=algorithm)


class TestIssueAndVerify:
    def test_access_token_carries_role_and_permissions(self, tokens):
        rp = RolePermissions(role="seller", permissions=("catalog:create", "catalog:update"))
        claims = tokens.verify(tokens.issue_access_token("user-1", rp))

        assert claims.subject == "user-1"
        assert claims.token_type == TOKEN_TYPE_ACCESS
        assert claims.role == "seller"
        assert claims.permissions == ("catalog:create", "catalog:update")
        assert claims.has_permission("catalog:create")
        assert not claims.has_permission("catalog:delete")
        assert claims.expires_at - claims.issued_at == timedelta(seconds=900)
        assert claims.expires_at > utcnow()

    def test_refresh_token_has_identity_only(self, tokens):
        claims = tokens.verify(tokens.issue_refresh_token("user-1"), expected_type=TOKEN_TYPE_REFRESH)
        assert claims.role is None
        assert claims.permissions == ()
        assert claims.expires_at - claims.issued_at == timedelta(seconds=3600)

    def test_explicit_ttl(self, tokens):
        claims = tokens.verify(tokens.issue("user-1", ttl=60))
        assert claims.expires_at - claims.issued_at == timedelta(seconds=60)

    def test_tokens_issued_in_same_second_differ(self, tokens):
        now = utcnow()
        first = tokens.issue_refresh_token("user-1", issued_at=now)
        second = tokens.issue_refresh_token("user-1", issued_at=now)
        assert first != second

    def test_empty_subject_rejected(self, tokens):
        with pytest.raises(ValueError):
            tokens.issue("")

    def test_unknown_token_type_rejected(self, tokens):
        with pytest.raises(ValueError):
            tokens.issue("user-1", token_type="session")


class TestVerifyFailures:
    def test_expired(self, tokens):
        token = tokens.issue("user-1", ttl=60, issued_at=utcnow() - timedelta(hours=2))
        with pytest.raises(TokenExpiredError):
            tokens.verify(token)

    def test_signed_by_other_key(self, tokens, other_keys):
        forged = TokenService(other_keys[0], other_keys[1]).issue(
            "user-1", RolePermissions("admin", ("users:manage",))
        )
        with pytest.raises(TokenSignatureError):
            tokens.verify(forged)

    def test_unsigned_token_rejected(self, tokens):
        now = int(time.time())
        token = jwt.encode({"sub": "user-1", "iat": now, "exp": now + 60}, None, algorithm="none")
        with pytest.raises(TokenSignatureError):
            tokens.verify(token)

    @pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
    def test_garbage(self, tokens, token):
        with pytest.raises(TokenMalformedError):
            tokens.verify(token)

    def test_wrong_token_type(self, tokens):
        with pytest.raises(TokenMalformedError):
            tokens.verify(tokens.issue_refresh_token("user-1"), expected_type=TOKEN_TYPE_ACCESS)

    def test_issuer_mismatch(self, rsa_keys):
        issuer_a = TokenService(*rsa_keys, issuer="safetyhub-a")
        issuer_b = TokenService(*rsa_keys, issuer="safetyhub-b")
        with pytest.raises(TokenMalformedError):
            issuer_b.verify(issuer_a.issue("user-1"))


class TestCheckedClaimDecoding:
    def _base(self):
        now = int(time.time())
        return {"sub": "user-1", "iat": now, "exp": now + 60, "jti": "abc", "typ": "access"}

    def test_missing_subject(self, tokens, rsa_keys):
        payload = self._base()
        del payload["sub"]
        with pytest.raises(TokenMalformedError):
            tokens.verify(_raw(rsa_keys, payload))

    def test_permissions_must_be_list_of_strings(self, tokens, rsa_keys):
        payload = self._base()
        payload["permissions"] = "catalog:create"
        with pytest.raises(TokenMalformedError):
            tokens.verify(_raw(rsa_keys, payload))

        payload["permissions"] = ["catalog:create", 7]
        with pytest.raises(TokenMalformedError):
            tokens.verify(_raw(rsa_keys, payload))

    def test_role_must_be_string(self, tokens, rsa_keys):
        payload = self._base()
        payload["role"] = {"name": "admin"}
        with pytest.raises(TokenMalformedError):
            tokens.verify(_raw(rsa_keys, payload))

    def test_unknown_type(self, tokens, rsa_keys):
        payload = self._base()
        payload["typ"] = "superuser"
        with pytest.raises(TokenMalformedError):
            tokens.verify(_raw(rsa_keys, payload))

    def test_well_formed_raw_payload(self, tokens, rsa_keys):
        payload = self._base()
        payload["role"] = "customer"
        payload["permissions"] = []
        claims = tokens.verify(_raw(rsa_keys, payload))
        assert claims.role == "customer"
        assert claims.token_id == "abc"
