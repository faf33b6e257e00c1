# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/safetyhub/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Password length validation on registration
- Uniform login failures (no account enumeration)
- Refresh-token rotation (each refresh token is single-use)
- Forgot-password responds identically for known and unknown emails
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..container import get_container
from ..decorators import require_auth
from ..errors import AppError
from ..time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/v1/auth")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _error(e: AppError):
    return jsonify(e.to_dict()), e.status_code


@auth_bp.post("/register")
def register_route():
    """
    Self-registration.

    Request body:
    {
        "email": "a@x.com",              // required
        "password": "...",               // required, 12..72 characters
        "user_type": "seller",           // required, role name
        "full_name": "Ada Lovelace",     // optional
        "phone_number": "+14155550123",  // optional, E.164
        "company_id": "..."              // optional
    }

    Returns 201 with user info; no tokens (client logs in separately).
    """
    try:
        data = _json_body()
        user = get_container().auth.register(
            email=data.get("email"),
            password=data.get("password"),
            user_type=data.get("user_type"),
            full_name=data.get("full_name"),
            phone_number=data.get("phone_number"),
            company_id=data.get("company_id"),
        )
        return jsonify({
            "status": "success",
            "message": "User registered successfully",
            "user_info": user.to_dict(),
        }), 201

    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue an access + refresh token pair.

    Access token goes in the Authorization header for protected routes;
    the refresh token is exchanged at /v1/auth/refresh.
    """
    try:
        data = _json_body()
        result = get_container().auth.login(data.get("email"), data.get("password"))
        body = result.to_dict()
        body.update({"status": "success", "message": "Login successful"})
        return jsonify(body), 200

    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/refresh")
def refresh_route():
    """
    Exchange a refresh token for a new pair.

    The submitted refresh token is revoked; reusing it fails with 401.
    """
    try:
        data = _json_body()
        refresh_token = data.get("refresh_token")
        if not refresh_token:
            return jsonify({"error": "refresh_token required"}), 400

        result = get_container().auth.refresh(refresh_token)
        body = result.to_dict()
        body.update({"status": "success", "message": "Token refreshed"})
        return jsonify(body), 200

    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to refresh token")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """
    Revoke every refresh token of the authenticated user.

    Access tokens already issued stay valid until they expire (15 min).
    """
    try:
        get_container().auth.logout(g.user_id)
        return jsonify({"status": "success", "message": "Logout successful"}), 200

    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/forgot-password")
def forgot_password_route():
    """Request a password reset. Always answers the same way."""
    try:
        data = _json_body()
        get_container().auth.forgot_password(data.get("email"))
        return jsonify({
            "status": "success",
            "message": "If the email is registered, a reset link has been sent",
        }), 200

    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to process forgot-password request")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/reset-password")
def reset_password_route():
    """
    Set a new password with a reset token.

    Request body: {"token": "...", "new_password": "..."}
    """
    try:
        data = _json_body()
        token = data.get("token")
        if not token:
            return jsonify({"error": "token required"}), 400

        get_container().auth.reset_password(token, data.get("new_password") or data.get("password"))
        return jsonify({"status": "success", "message": "Password has been reset"}), 200

    except AppError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to reset password")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Identity from the access token plus the stored user record."""
    try:
        user = get_container().auth.get_user(g.user_id)
        claims = g.claims
        return jsonify({
            "user": user.to_dict(),
            "role": claims.role,
            "permissions": list(claims.permissions),
            "token_expires_at": to_utc_z(claims.expires_at),
        }), 200

    except AppError as e:
        return _error(e)
