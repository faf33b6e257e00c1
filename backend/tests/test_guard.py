"""
Authorization guard tests.

Verifies:
- Protected endpoints return 401 without a valid access token
- Tokens lacking the route's scope return 403 with the required permission
- Public catalog reads need no token
"""

from datetime import timedelta

import pytest

from conftest import auth_headers
from safetyhub.services.token_service import RolePermissions, TokenService, generate_rsa_key_pair
from safetyhub.time_utils import utcnow


BRAND = {"name": "Acme", "slug": "acme"}


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/v1/brands"),
            ("PATCH", "/v1/brands/some-id"),
            ("DELETE", "/v1/brands/some-id"),
            ("POST", "/v1/categories"),
            ("POST", "/v1/products"),
            ("PUT", "/v1/products/some-id/variants"),
            ("PUT", "/v1/products/some-id/seo"),
            ("POST", "/v1/uploads"),
            ("POST", "/v1/auth/logout"),
            ("GET", "/v1/auth/me"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json() == {"error": "Authentication required"}

    def test_non_bearer_scheme(self, client):
        resp = client.post("/v1/brands", json=BRAND, headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert resp.status_code == 401

    def test_garbage_token(self, client):
        resp = client.post("/v1/brands", json=BRAND, headers=auth_headers("not-a-jwt"))
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Invalid or expired token"}

    def test_refresh_token_is_not_an_access_token(self, client, seller):
        resp = client.post("/v1/brands", json=BRAND, headers=auth_headers(seller["refresh_token"]))
        assert resp.status_code == 401

    def test_expired_access_token(self, client, container, seller_id):
        token = container.tokens.issue(
            seller_id,
            RolePermissions("seller", ("catalog:create",)),
            ttl=60,
            issued_at=utcnow() - timedelta(hours=1),
        )
        resp = client.post("/v1/brands", json=BRAND, headers=auth_headers(token))
        assert resp.status_code == 401

    def test_token_from_foreign_key_pair(self, client, seller_id):
        private_pem, public_pem = generate_rsa_key_pair()
        forged = TokenService(private_pem, public_pem).issue_access_token(
            seller_id, RolePermissions("admin", ("catalog:create",))
        )
        resp = client.post("/v1/brands", json=BRAND, headers=auth_headers(forged))
        assert resp.status_code == 401


# =============================================================================
# MISSING SCOPE (403)
# =============================================================================


class TestScopeEnforcement:
    def test_customer_cannot_create_brand(self, client, customer_headers):
        resp = client.post("/v1/brands", json=BRAND, headers=customer_headers)
        assert resp.status_code == 403
        assert resp.get_json() == {
            "error": "Permission denied",
            "required_permission": "catalog:create",
        }

    def test_customer_cannot_sync_variants(self, client, customer_headers):
        resp = client.put("/v1/products/some-id/variants", json={}, headers=customer_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "catalog:update"

    def test_seller_can_create_brand(self, client, seller_headers):
        resp = client.post("/v1/brands", json=BRAND, headers=seller_headers)
        assert resp.status_code == 201

    def test_scheme_is_case_insensitive(self, client, seller):
        resp = client.post(
            "/v1/brands",
            json=BRAND,
            headers={"Authorization": f"bearer {seller['access_token']}"},
        )
        assert resp.status_code == 201

    def test_scope_comes_from_token_not_database(self, client, container, seller_id):
        # A customer-scoped token for a seller account is still a customer token
        token = container.tokens.issue_access_token(seller_id, RolePermissions("customer", ()))
        resp = client.post("/v1/brands", json=BRAND, headers=auth_headers(token))
        assert resp.status_code == 403


class TestPublicReads:
    @pytest.mark.parametrize(
        "path", ["/v1/brands", "/v1/categories", "/v1/products", "/health"]
    )
    def test_public(self, client, path):
        assert client.get(path).status_code == 200
