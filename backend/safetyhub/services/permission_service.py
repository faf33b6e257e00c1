# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Role and Permission Resolution

WHY: Access tokens embed the user's role and permission names. Resolution
always reads the database (never a previous token), so a role change takes
effect at the next login or refresh.

DESIGN PRINCIPLES:
- Fail closed: a user without a role resolves to no permissions
- One active role per user (user_roles.user_id is the primary key)
- Seeding is idempotent and safe to run on every deploy
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..errors import NotFoundError, UnknownUserTypeError
from ..models import Permission, Role, RolePermission, User, UserRole
from ..permissions import DEFAULT_ROLE_PERMISSIONS, PERMISSION_DEFINITIONS, ROLE_DESCRIPTIONS
from .token_service import RolePermissions
from .transaction import transaction


class PermissionResolver:
    """Reads a user's current role and permissions."""

    def __init__(self, session: Session, logger: logging.Logger | None = None):
        self.session = session
        self.logger = logger or logging.getLogger("safetyhub.auth")

    def resolve(self, user_id: str) -> RolePermissions:
        """
        Return the user's role name and sorted permission names.

        A user without a role assignment gets RolePermissions(None, ()).
        """
        row = (
            self.session.query(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .filter(UserRole.user_id == user_id)
            .first()
        )
        if row is None:
            self.logger.warning("User %s has no role assigned", user_id)
            return RolePermissions(role=None, permissions=())

        names = (
            self.session.query(Permission.name)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .filter(RolePermission.role_id == row.id)
            .order_by(Permission.name)
            .all()
        )
        return RolePermissions(role=row.name, permissions=tuple(name for (name,) in names))

    def get_role(self, role_name: str) -> Role:
        """Raises UnknownUserTypeError when no role has this name."""
        role = self.session.query(Role).filter_by(name=role_name).first()
        if role is None:
            raise UnknownUserTypeError(f"Unknown user type: {role_name}")
        return role

    def set_role(self, user_id: str, role_name: str) -> UserRole:
        """
        Replace the user's role assignment.

        WHY: One active role per user; the next refresh picks up the change.
        """
        with transaction(self.session):
            if self.session.get(User, user_id) is None:
                raise NotFoundError("User not found")
            role = self.get_role(role_name)
            user_role = self.session.get(UserRole, user_id)
            if user_role is None:
                user_role = UserRole(user_id=user_id, role_id=role.id)
                self.session.add(user_role)
            else:
                user_role.role_id = role.id
        self.logger.info("User %s assigned role %s", user_id, role_name)
        return user_role


def initialize_permissions(session: Session) -> int:
    """
    Initialize all permission definitions in database.

    Creates Permission records for all codes in PERMISSION_DEFINITIONS.
    Idempotent: Safe to run multiple times.

    WHY: Permissions must exist in DB before they can be assigned to roles.
    """
    created_count = 0

    with transaction(session):
        for code, _name, description, category in PERMISSION_DEFINITIONS:
            existing = session.query(Permission).filter_by(name=code).first()
            if not existing:
                session.add(Permission(name=code, description=description, category=category))
                created_count += 1

    return created_count


def create_default_roles(session: Session) -> int:
    """Create the standard roles if they don't exist."""
    created_count = 0

    with transaction(session):
        for name in DEFAULT_ROLE_PERMISSIONS:
            existing = session.query(Role).filter_by(name=name).first()
            if not existing:
                session.add(Role(name=name, description=ROLE_DESCRIPTIONS.get(name)))
                created_count += 1

    return created_count


def assign_default_role_permissions(session: Session) -> int:
    """
    Assign default permissions to roles based on DEFAULT_ROLE_PERMISSIONS.

    Creates RolePermission records linking roles to their default permissions.
    Idempotent: Safe to run multiple times (skips existing).
    """
    created_count = 0

    with transaction(session):
        for role_name, permission_codes in DEFAULT_ROLE_PERMISSIONS.items():
            role = session.query(Role).filter_by(name=role_name).first()
            if not role:
                continue  # Role doesn't exist, skip

            for permission_code in permission_codes:
                permission = session.query(Permission).filter_by(name=permission_code).first()
                if not permission:
                    continue

                existing = session.get(RolePermission, (role.id, permission.id))
                if not existing:
                    session.add(RolePermission(role_id=role.id, permission_id=permission.id))
                    created_count += 1

    return created_count


def seed_roles_and_permissions(session: Session) -> dict:
    """Run all seeding steps; returns created counts."""
    return {
        "permissions": initialize_permissions(session),
        "roles": create_default_roles(session),
        "role_permissions": assign_default_role_permissions(session),
    }
