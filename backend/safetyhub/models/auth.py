from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .common import TimestampMixin, new_uuid


class User(TimestampMixin, db.Model):
    """
    User accounts for authentication and attribution.

    Created on registration; password_hash is mutated on reset.
    Users are never hard-deleted (products reference them as sellers).
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    full_name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    phone_number = db.Column(db.String(32), nullable=True)
    company_id = db.Column(db.String(36), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "company_id": self.company_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Role(TimestampMixin, db.Model):
    """Named permission bundle (seller, admin, customer). Static reference data."""
    __tablename__ = "roles"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }


class Permission(TimestampMixin, db.Model):
    """
    Named capability checked against a token's permission claim.

    DESIGN: Permission names are scope strings ("catalog:create").
    Categories group related permissions for display.
    """
    __tablename__ = "permissions"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(32), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
        }


class RolePermission(db.Model):
    """Role-Permission association (many-to-many)."""
    __tablename__ = "roles_permissions"

    role_id = db.Column(db.String(36), db.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id = db.Column(
        db.String(36), db.ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True
    )

    role = db.relationship("Role", backref=db.backref("role_permissions", lazy=True))
    permission = db.relationship("Permission", backref=db.backref("role_permissions", lazy=True))


class UserRole(db.Model):
    """
    User-Role assignment.

    A user holds exactly one active role: user_id is the primary key.
    """
    __tablename__ = "user_roles"

    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role_id = db.Column(db.String(36), db.ForeignKey("roles.id"), nullable=False, index=True)

    user = db.relationship("User", backref=db.backref("user_role", uselist=False, lazy=True))
    role = db.relationship("Role", backref=db.backref("user_roles", lazy=True))


class RefreshToken(TimestampMixin, db.Model):
    """
    Persisted refresh token.

    SECURITY NOTES:
    - Only the SHA-256 digest of the signed token is stored
    - Revoked (never deleted) on logout, password reset and rotation
    - A revoked or expired row must never authorize a refresh
    """
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        db.Index("ix_refresh_tokens_user_revoked", "user_id", "revoked"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", backref=db.backref("refresh_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "expires_at": to_utc_z(self.expires_at),
            "revoked": self.revoked,
            "revoked_at": to_utc_z(self.revoked_at),
            "created_at": to_utc_z(self.created_at),
        }
