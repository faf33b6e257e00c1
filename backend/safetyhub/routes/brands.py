# Overview: Flask API routes for brand operations; parses input and returns JSON responses.

"""
Brand routes.

Reads are public. Writes require an access token with the matching
catalog scope.
"""
from flask import Blueprint, request, jsonify, current_app

from ..container import get_container
from ..decorators import require_auth, require_scope
from ..errors import AppError
from ..permissions import CATALOG_CREATE, CATALOG_DELETE, CATALOG_UPDATE


brands_bp = Blueprint("brands", __name__, url_prefix="/v1/brands")


def _error(e: AppError):
    return jsonify(e.to_dict()), e.status_code


@brands_bp.get("")
def list_brands():
    """
    Query params:
    - page: int (default 1)
    - limit: int (default 20, max 100)
    """
    try:
        result = get_container().brands.list(
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return jsonify(result)
    except AppError as e:
        return _error(e)


@brands_bp.get("/<brand_id>")
def get_brand(brand_id: str):
    try:
        return jsonify(get_container().brands.get(brand_id).to_dict())
    except AppError as e:
        return _error(e)


@brands_bp.post("")
@require_auth
@require_scope(CATALOG_CREATE)
def create_brand():
    try:
        brand = get_container().brands.create(request.get_json(silent=True))
        return jsonify(brand.to_dict()), 201
    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create brand")
        return jsonify({"error": "Internal server error"}), 500


@brands_bp.patch("/<brand_id>")
@require_auth
@require_scope(CATALOG_UPDATE)
def update_brand(brand_id: str):
    try:
        brand = get_container().brands.update(brand_id, request.get_json(silent=True))
        return jsonify(brand.to_dict())
    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to update brand %s", brand_id)
        return jsonify({"error": "Internal server error"}), 500


@brands_bp.delete("/<brand_id>")
@require_auth
@require_scope(CATALOG_DELETE)
def delete_brand(brand_id: str):
    try:
        get_container().brands.delete(brand_id)
        return jsonify({"status": "success", "message": "Brand deleted"})
    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to delete brand %s", brand_id)
        return jsonify({"error": "Internal server error"}), 500
