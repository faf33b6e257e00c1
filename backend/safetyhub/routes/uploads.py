# Overview: Flask API route for multipart asset uploads.

from flask import Blueprint, request, jsonify, current_app
from werkzeug.exceptions import HTTPException

from ..container import get_container
from ..decorators import require_auth, require_scope
from ..errors import AppError
from ..permissions import CATALOG_CREATE
from ..services.upload_service import IncomingFile


uploads_bp = Blueprint("uploads", __name__, url_prefix="/v1/uploads")


def _error(e: AppError):
    return jsonify(e.to_dict()), e.status_code


@uploads_bp.post("")
@require_auth
@require_scope(CATALOG_CREATE)
def upload_files():
    """
    Upload one or more files.

    multipart/form-data:
    - bucket: target bucket name
    - file: one or more file parts (PNG, JPEG, WebP or PDF)

    Returns 201 {"files": [{url, key, content_type, size}, ...]} in input order.
    """
    try:
        bucket = (request.form.get("bucket") or "").strip()
        files = [
            IncomingFile(
                filename=part.filename or "",
                data=part.read(),
                declared_type=part.mimetype or None,
            )
            for part in request.files.getlist("file")
        ]

        results = get_container().uploads.upload(files, bucket)
        return jsonify({
            "status": "success",
            "message": f"Uploaded {len(results)} file(s)",
            "files": [r.to_dict() for r in results],
        }), 201

    except AppError as e:
        return _error(e)
    except HTTPException:
        # Oversized bodies (413) keep their status
        raise
    except Exception:
        current_app.logger.exception("Failed to upload files")
        return jsonify({"error": "Internal server error"}), 500
