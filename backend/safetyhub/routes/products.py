# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/safetyhub/routes/products.py
"""
Product management routes.

SECURITY:
- Read operations are public (storefront)
- Create requires catalog:create, edits require catalog:update,
  archive requires catalog:delete
"""
from flask import Blueprint, request, jsonify, current_app, g

from ..container import get_container
from ..decorators import require_auth, require_scope
from ..errors import AppError, ValidationError
from ..permissions import CATALOG_CREATE, CATALOG_DELETE, CATALOG_UPDATE


products_bp = Blueprint("products", __name__, url_prefix="/v1/products")


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Invalid JSON payload")
    return data


def _json_object() -> dict:
    data = _json_body()
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def _error(e: AppError):
    return jsonify(e.to_dict()), e.status_code


def _internal(message: str, product_id: str | None = None):
    if product_id:
        current_app.logger.exception("%s for product %s", message, product_id)
    else:
        current_app.logger.exception(message)
    return jsonify({"error": "Internal server error"}), 500


@products_bp.get("")
def list_products():
    """
    List products, newest first.

    Query params:
    - category: slug (repeatable)
    - brand: slug (repeatable)
    - search: case-insensitive match on name / description
    - status: DRAFT | ACTIVE | ARCHIVED
    - min_price / max_price: products with an active variant in range
    - page: int (default 1)
    - limit: int (default 40, max 100)
    """
    args = request.args
    try:
        result = get_container().products.list(
            categories=args.getlist("category"),
            brands=args.getlist("brand"),
            search=args.get("search"),
            status=args.get("status"),
            min_price=args.get("min_price"),
            max_price=args.get("max_price"),
            page=args.get("page"),
            limit=args.get("limit"),
        )
        return jsonify(result)
    except AppError as e:
        return _error(e)


@products_bp.get("/<product_id>")
def get_product(product_id: str):
    try:
        return jsonify(get_container().products.get(product_id).to_dict())
    except AppError as e:
        return _error(e)


@products_bp.get("/slug/<slug>")
def get_product_by_slug(slug: str):
    """Only ACTIVE products are visible by slug."""
    try:
        return jsonify(get_container().products.get_by_slug(slug).to_dict())
    except AppError as e:
        return _error(e)


@products_bp.post("")
@require_auth
@require_scope(CATALOG_CREATE)
def create_product():
    """Seller defaults to the authenticated user."""
    try:
        product = get_container().products.create(_json_body(), seller_id=g.user_id)
        return jsonify({
            "product_id": product.id,
            "status": product.status,
            "message": "Product created",
        }), 201
    except AppError as e:
        return _error(e)
    except Exception:
        return _internal("Failed to create product")


@products_bp.patch("/<product_id>")
@require_auth
@require_scope(CATALOG_UPDATE)
def update_product(product_id: str):
    try:
        product = get_container().products.update(product_id, _json_body())
        return jsonify(product.to_dict())
    except AppError as e:
        return _error(e)
    except Exception:
        return _internal("Failed to update", product_id)


@products_bp.delete("/<product_id>")
@require_auth
@require_scope(CATALOG_DELETE)
def archive_product(product_id: str):
    """Soft delete: the product is ARCHIVED, not removed."""
    try:
        get_container().products.archive(product_id)
        return jsonify({"status": "success", "message": "Product archived"})
    except AppError as e:
        return _error(e)
    except Exception:
        return _internal("Failed to archive", product_id)


# -- attributes --

@products_bp.get("/<product_id>/attributes")
def get_attributes(product_id: str):
    try:
        return jsonify({
            "product_id": product_id,
            "attributes": get_container().products.get_attributes(product_id),
        })
    except AppError as e:
        return _error(e)


@products_bp.put("/<product_id>/attributes")
@require_auth
@require_scope(CATALOG_UPDATE)
def replace_attributes(product_id: str):
    """Body: {"attributes": [{"key": "material", "value": "steel"}, ...]}"""
    try:
        data = _json_body()
        attributes = data.get("attributes") if isinstance(data, dict) else data
        return jsonify({
            "product_id": product_id,
            "attributes": get_container().products.replace_attributes(product_id, attributes),
        })
    except AppError as e:
        return _error(e)
    except Exception:
        return _internal("Failed to replace attributes", product_id)


# -- variants --

@products_bp.get("/<product_id>/variants")
def get_variants(product_id: str):
    try:
        return jsonify(get_container().variants.get_variants(product_id))
    except AppError as e:
        return _error(e)


@products_bp.put("/<product_id>/variants")
@require_auth
@require_scope(CATALOG_UPDATE)
def sync_variants(product_id: str):
    """
    Replace the product's options and variants.

    Body:
    {
        "options":  [{"name": "Color", "values": ["Red", "Blue"]}],
        "variants": [{"sku": "P-RED", "price": 10, "weight": 0.5,
                      "is_active": true, "option_values": ["Red"]}]
    }
    """
    try:
        data = _json_object()
        result = get_container().variants.sync(product_id, data.get("options"), data.get("variants"))
        return jsonify(result)
    except AppError as e:
        return _error(e)
    except Exception:
        return _internal("Failed to sync variants", product_id)


# -- media --

@products_bp.get("/<product_id>/media")
def get_media(product_id: str):
    try:
        return jsonify({
            "product_id": product_id,
            "media": get_container().products.get_media(product_id),
        })
    except AppError as e:
        return _error(e)


@products_bp.put("/<product_id>/media")
@require_auth
@require_scope(CATALOG_UPDATE)
def replace_media(product_id: str):
    """Body: {"media": [{"url": "...", "type": "image", "display_order": 0, "variant_id": null}]}"""
    try:
        data = _json_body()
        media = data.get("media") if isinstance(data, dict) else data
        return jsonify({
            "product_id": product_id,
            "media": get_container().products.replace_media(product_id, media),
        })
    except AppError as e:
        return _error(e)
    except Exception:
        return _internal("Failed to replace media", product_id)


# -- SEO --

@products_bp.get("/<product_id>/seo")
def get_seo(product_id: str):
    try:
        return jsonify(get_container().products.get_seo(product_id).to_dict())
    except AppError as e:
        return _error(e)


@products_bp.put("/<product_id>/seo")
@require_auth
@require_scope(CATALOG_UPDATE)
def upsert_seo(product_id: str):
    """Saving SEO metadata publishes the product."""
    try:
        seo = get_container().products.upsert_seo(product_id, _json_object())
        return jsonify({
            "status": "success",
            "message": "SEO saved; product published",
            "seo": seo.to_dict(),
        })
    except AppError as e:
        return _error(e)
    except Exception:
        return _internal("Failed to save SEO", product_id)
