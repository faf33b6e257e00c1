# Overview: Flask API routes for category operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..container import get_container
from ..decorators import require_auth, require_scope
from ..errors import AppError
from ..permissions import CATALOG_CREATE, CATALOG_DELETE, CATALOG_UPDATE


categories_bp = Blueprint("categories", __name__, url_prefix="/v1/categories")


def _error(e: AppError):
    return jsonify(e.to_dict()), e.status_code


@categories_bp.get("")
def list_categories():
    """
    List categories ordered by level, then name.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - limit: int (optional) - items per page (default 20, max 100)
    """
    try:
        result = get_container().categories.list(
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return jsonify(result)
    except AppError as e:
        return _error(e)


@categories_bp.get("/<category_id>")
def get_category(category_id: str):
    try:
        return jsonify(get_container().categories.get(category_id).to_dict())
    except AppError as e:
        return _error(e)


@categories_bp.post("")
@require_auth
@require_scope(CATALOG_CREATE)
def create_category():
    try:
        category = get_container().categories.create(request.get_json(silent=True))
        return jsonify(category.to_dict()), 201
    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.patch("/<category_id>")
@require_auth
@require_scope(CATALOG_UPDATE)
def update_category(category_id: str):
    try:
        category = get_container().categories.update(category_id, request.get_json(silent=True))
        return jsonify(category.to_dict())
    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to update category %s", category_id)
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.delete("/<category_id>")
@require_auth
@require_scope(CATALOG_DELETE)
def delete_category(category_id: str):
    try:
        get_container().categories.delete(category_id)
        return jsonify({"status": "success", "message": "Category deleted"})
    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to delete category %s", category_id)
        return jsonify({"error": "Internal server error"}), 500
