"""
Brand and category tests.

Verifies CRUD over HTTP, slug rules, category tree levels and the delete
guards (children, referencing products).
"""

import pytest

from safetyhub.errors import ConflictError, ForeignKeyViolation, NotFoundError, ValidationError


def _create(client, headers, path, payload):
    resp = client.post(path, json=payload, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


# =============================================================================
# BRANDS
# =============================================================================


class TestBrands:
    def test_crud(self, client, seller_headers):
        brand = _create(client, seller_headers, "/v1/brands", {
            "name": "Acme Safety",
            "slug": "acme-safety",
            "website_url": "https://acme.example.com",
        })
        assert brand["slug"] == "acme-safety"

        resp = client.get(f"/v1/brands/{brand['id']}")
        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Acme Safety"

        resp = client.patch(
            f"/v1/brands/{brand['id']}",
            json={"description": "Hard hats", "name": "  "},
            headers=seller_headers,
        )
        assert resp.status_code == 200
        updated = resp.get_json()
        assert updated["description"] == "Hard hats"
        # Blank values keep the current value
        assert updated["name"] == "Acme Safety"

        resp = client.delete(f"/v1/brands/{brand['id']}", headers=seller_headers)
        assert resp.status_code == 200
        assert client.get(f"/v1/brands/{brand['id']}").status_code == 404

    def test_list_is_paginated_newest_first(self, client, seller_headers):
        for i in range(3):
            _create(client, seller_headers, "/v1/brands", {"name": f"Brand {i}", "slug": f"brand-{i}"})

        body = client.get("/v1/brands?page=1&limit=2").get_json()
        assert body["total"] == 3
        assert body["limit"] == 2
        assert len(body["items"]) == 2

        body = client.get("/v1/brands?page=2&limit=2").get_json()
        assert len(body["items"]) == 1

    def test_limit_is_clamped(self, client):
        assert client.get("/v1/brands?limit=1000").get_json()["limit"] == 100

    @pytest.mark.parametrize("query", ["page=0", "limit=abc", "limit=0"])
    def test_bad_pagination(self, client, query):
        assert client.get(f"/v1/brands?{query}").status_code == 400

    def test_duplicate_slug(self, client, seller_headers):
        _create(client, seller_headers, "/v1/brands", {"name": "Acme", "slug": "acme"})
        resp = client.post("/v1/brands", json={"name": "Acme 2", "slug": "acme"}, headers=seller_headers)
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "unique_violation"

    @pytest.mark.parametrize("payload", [
        {"name": "No Slug"},
        {"name": "Bad Slug", "slug": "Bad Slug"},
        {"name": "Extra", "slug": "extra", "id": "forced-id"},
        {"name": "x" * 300, "slug": "too-long"},
    ])
    def test_invalid_payloads(self, client, seller_headers, payload):
        resp = client.post("/v1/brands", json=payload, headers=seller_headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize("body", [["x"], "acme", 42])
    def test_patch_with_non_object_body(self, client, seller_headers, body):
        brand = _create(client, seller_headers, "/v1/brands", {"name": "Acme", "slug": "acme"})
        resp = client.patch(f"/v1/brands/{brand['id']}", json=body, headers=seller_headers)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "validation_error"

    def test_unknown_brand(self, client, seller_headers):
        assert client.get("/v1/brands/missing").status_code == 404
        assert client.patch("/v1/brands/missing", json={"name": "x"}, headers=seller_headers).status_code == 404
        assert client.delete("/v1/brands/missing", headers=seller_headers).status_code == 404

    def test_delete_brand_in_use(self, container, db_session, seller_id):
        brand = container.brands.create({"name": "Acme", "slug": "acme"})
        container.products.create({"name": "Helmet", "slug": "helmet", "brand_id": brand.id}, seller_id)

        with pytest.raises(ForeignKeyViolation):
            container.brands.delete(brand.id)

        # Rolled back: brand and product link intact
        assert container.brands.get(brand.id).slug == "acme"


# =============================================================================
# CATEGORIES
# =============================================================================


class TestCategories:
    def test_levels_follow_parent(self, container, db_session):
        root = container.categories.create({"name": "PPE", "slug": "ppe"})
        child = container.categories.create({"name": "Head", "slug": "head", "parent_id": root.id})
        grandchild = container.categories.create({"name": "Helmets", "slug": "helmets", "parent_id": child.id})

        assert (root.level, child.level, grandchild.level) == (0, 1, 2)

    def test_move_relevels_subtree(self, container, db_session):
        a = container.categories.create({"name": "A", "slug": "a"})
        b = container.categories.create({"name": "B", "slug": "b"})
        b1 = container.categories.create({"name": "B1", "slug": "b1", "parent_id": b.id})
        b2 = container.categories.create({"name": "B2", "slug": "b2", "parent_id": b1.id})

        container.categories.update(b.id, {"parent_id": a.id})
        assert (container.categories.get(b.id).level,
                container.categories.get(b1.id).level,
                container.categories.get(b2.id).level) == (1, 2, 3)

        container.categories.update(b.id, {"parent_id": None})
        assert container.categories.get(b2.id).level == 2

    def test_cannot_move_under_own_descendant(self, container, db_session):
        a = container.categories.create({"name": "A", "slug": "a"})
        a1 = container.categories.create({"name": "A1", "slug": "a1", "parent_id": a.id})

        with pytest.raises(ValidationError):
            container.categories.update(a.id, {"parent_id": a1.id})
        with pytest.raises(ValidationError):
            container.categories.update(a.id, {"parent_id": a.id})

        assert container.categories.get(a.id).parent_id is None

    def test_unknown_parent(self, container, db_session):
        with pytest.raises(NotFoundError):
            container.categories.create({"name": "Orphan", "slug": "orphan", "parent_id": "missing"})

    def test_delete_with_children(self, container, db_session):
        root = container.categories.create({"name": "PPE", "slug": "ppe"})
        child = container.categories.create({"name": "Head", "slug": "head", "parent_id": root.id})

        with pytest.raises(ConflictError):
            container.categories.delete(root.id)

        container.categories.delete(child.id)
        container.categories.delete(root.id)
        with pytest.raises(NotFoundError):
            container.categories.get(root.id)

    def test_delete_category_in_use(self, container, db_session, seller_id):
        category = container.categories.create({"name": "Gloves", "slug": "gloves"})
        container.products.create(
            {"name": "Nitrile", "slug": "nitrile", "category_id": category.id}, seller_id
        )
        with pytest.raises(ForeignKeyViolation):
            container.categories.delete(category.id)

    def test_list_over_http(self, client, seller_headers):
        root = _create(client, seller_headers, "/v1/categories", {"name": "Zeta", "slug": "zeta"})
        _create(client, seller_headers, "/v1/categories", {"name": "Alpha", "slug": "alpha"})
        _create(client, seller_headers, "/v1/categories", {
            "name": "Child", "slug": "child", "parent_id": root["id"],
        })

        body = client.get("/v1/categories").get_json()
        assert [c["slug"] for c in body["items"]] == ["alpha", "zeta", "child"]
        assert body["total"] == 3

        body = client.get("/v1/categories?page=1&limit=1").get_json()
        assert [c["slug"] for c in body["items"]] == ["alpha"]

    def test_patch_over_http(self, client, seller_headers):
        category = _create(client, seller_headers, "/v1/categories", {"name": "Eyes", "slug": "eyes"})
        resp = client.patch(
            f"/v1/categories/{category['id']}", json={"name": "Eye Protection"}, headers=seller_headers
        )
        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Eye Protection"

        resp = client.delete(f"/v1/categories/{category['id']}", headers=seller_headers)
        assert resp.status_code == 200

    def test_patch_with_non_object_body(self, client, seller_headers):
        category = _create(client, seller_headers, "/v1/categories", {"name": "Eyes", "slug": "eyes"})
        resp = client.patch(f"/v1/categories/{category['id']}", json=["x"], headers=seller_headers)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "validation_error"

    def test_service_rejects_non_object_payload(self, container, db_session):
        category = container.categories.create({"name": "Eyes", "slug": "eyes"})
        with pytest.raises(ValidationError):
            container.categories.update(category.id, ["name", "Ears"])
