# Overview: Request authorization decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .container import get_container
from .errors import TokenError
from .services.token_service import TOKEN_TYPE_ACCESS


def _is_authenticated() -> bool:
    return getattr(g, "claims", None) is not None


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(f):
    """
    Require a valid access token.

    Sets the following Flask g attributes:
    - g.claims: the verified TokenClaims
    - g.user_id: the token subject

    SECURITY: Returns 401 if:
    - No Authorization header (or not a Bearer token)
    - Invalid signature, expired, malformed, or not an access token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        try:
            claims = get_container().tokens.verify(token, expected_type=TOKEN_TYPE_ACCESS)
        except TokenError as e:
            current_app.logger.warning("Rejected bearer token on %s: %s", request.path, e.code)
            return jsonify({"error": "Invalid or expired token"}), 401

        g.claims = claims
        g.user_id = claims.subject

        return f(*args, **kwargs)

    return decorated_function


def require_scope(scope: str):
    """
    Require a permission scope in the verified token.

    Must be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not g.claims.has_permission(scope):
                current_app.logger.warning(
                    "User %s denied %s %s: missing %s",
                    g.user_id, request.method, request.path, scope,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": scope,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
