# Overview: Service-layer operations for categories; encapsulates business logic and database work.

"""
Category Service

Categories form a tree through parent_id. `level` is denormalized depth:
0 for roots, parent.level + 1 otherwise.

INVARIANTS:
- Re-parenting recomputes the level of the whole moved subtree
- A category can never become its own ancestor
- A category with children cannot be deleted
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Category
from ..validation import (
    ModelValidationPolicy,
    parse_pagination,
    require_object,
    validate_payload,
    validate_slug,
)
from .transaction import transaction


CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "slug", "parent_id"},
    required_on_create={"name", "slug"},
)


class CategoryService:
    def __init__(self, session: Session, logger: logging.Logger | None = None):
        self.session = session
        self.logger = logger or logging.getLogger("safetyhub.catalog")

    def get(self, category_id: str) -> Category:
        category = self.session.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def _parent(self, parent_id: str | None) -> Category | None:
        if not parent_id:
            return None
        parent = self.session.get(Category, parent_id)
        if parent is None:
            raise NotFoundError("Parent category not found")
        return parent

    def create(self, payload: dict) -> Category:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        validate_slug(patch["slug"])

        with transaction(self.session):
            parent = self._parent(patch.get("parent_id"))
            category = Category(
                name=patch["name"],
                slug=patch["slug"],
                parent_id=parent.id if parent else None,
                level=parent.level + 1 if parent else 0,
            )
            self.session.add(category)

        self.logger.info("Created category %s (%s)", category.id, category.slug)
        return category

    def _relevel_subtree(self, category: Category) -> None:
        stack = [category]
        while stack:
            node = stack.pop()
            for child in node.children:
                child.level = node.level + 1
                stack.append(child)

    def update(self, category_id: str, payload: dict) -> Category:
        """
        Partial update. Passing parent_id (or null) moves the category.

        Raises ValidationError if the new parent is the category itself or
        one of its descendants.
        """
        payload = {
            k: v for k, v in require_object(payload).items()
            if not (isinstance(v, str) and v.strip() == "" and k != "parent_id")
        }
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        if "slug" in patch:
            validate_slug(patch["slug"])

        with transaction(self.session):
            category = self.get(category_id)

            if "name" in patch:
                category.name = patch["name"]
            if "slug" in patch:
                category.slug = patch["slug"]

            if "parent_id" in patch:
                parent = self._parent(patch["parent_id"])
                ancestor = parent
                while ancestor is not None:
                    if ancestor.id == category.id:
                        raise ValidationError("A category cannot be moved under itself or its descendants")
                    ancestor = ancestor.parent

                category.parent_id = parent.id if parent else None
                category.level = parent.level + 1 if parent else 0
                self._relevel_subtree(category)

        return category

    def delete(self, category_id: str) -> None:
        with transaction(self.session):
            category = self.get(category_id)
            has_children = (
                self.session.query(Category.id)
                .filter(Category.parent_id == category.id)
                .first()
                is not None
            )
            if has_children:
                raise ConflictError("Category has subcategories; move or delete them first")
            self.session.delete(category)
        self.logger.info("Deleted category %s", category_id)

    def list(self, page=None, limit=None) -> dict:
        """All categories ordered by level then name; paginated when page is given."""
        query = self.session.query(Category).order_by(
            Category.level.asc(), Category.name.asc(), Category.id.asc()
        )
        total = query.count()

        if page is None and limit is None:
            items = query.all()
            return {"items": [c.to_dict() for c in items], "total": total, "page": 1, "limit": total}

        page, limit = parse_pagination(page, limit)
        items = query.offset((page - 1) * limit).limit(limit).all()
        return {
            "items": [c.to_dict() for c in items],
            "total": total,
            "page": page,
            "limit": limit,
        }
