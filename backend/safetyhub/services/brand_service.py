# Overview: Service-layer operations for brands; encapsulates business logic and database work.

"""
Brand Service

Thin CRUD over the brands table. Updates are partial: absent or blank fields
keep their current value.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import Brand
from ..validation import (
    ModelValidationPolicy,
    parse_pagination,
    require_object,
    validate_payload,
    validate_slug,
)
from .transaction import transaction


BRAND_POLICY = ModelValidationPolicy(
    writable_fields={"name", "slug", "logo_url", "website_url", "description"},
    required_on_create={"name", "slug"},
)


def _drop_blank(payload: dict) -> dict:
    return {
        k: v for k, v in require_object(payload).items()
        if v is not None and not (isinstance(v, str) and v.strip() == "")
    }


class BrandService:
    def __init__(self, session: Session, logger: logging.Logger | None = None):
        self.session = session
        self.logger = logger or logging.getLogger("safetyhub.catalog")

    def get(self, brand_id: str) -> Brand:
        brand = self.session.get(Brand, brand_id)
        if brand is None:
            raise NotFoundError("Brand not found")
        return brand

    def create(self, payload: dict) -> Brand:
        """Raises ValidationError for bad input, UniqueViolation for a taken slug."""
        patch = validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=False)
        validate_slug(patch["slug"])

        with transaction(self.session):
            brand = Brand(**patch)
            self.session.add(brand)

        self.logger.info("Created brand %s (%s)", brand.id, brand.slug)
        return brand

    def update(self, brand_id: str, payload: dict) -> Brand:
        patch = validate_payload(
            model=Brand, payload=_drop_blank(payload), policy=BRAND_POLICY, partial=True
        )
        if "slug" in patch:
            validate_slug(patch["slug"])

        with transaction(self.session):
            brand = self.get(brand_id)
            for k, v in patch.items():
                setattr(brand, k, v)

        return brand

    def delete(self, brand_id: str) -> None:
        """Hard delete. Products still pointing at the brand block it (ForeignKeyViolation)."""
        with transaction(self.session):
            brand = self.get(brand_id)
            self.session.delete(brand)
        self.logger.info("Deleted brand %s", brand_id)

    def list(self, page=None, limit=None) -> dict:
        page, limit = parse_pagination(page, limit)
        query = self.session.query(Brand).order_by(Brand.created_at.desc(), Brand.id.asc())

        total = query.count()
        brands = query.offset((page - 1) * limit).limit(limit).all()
        return {
            "items": [b.to_dict() for b in brands],
            "total": total,
            "page": page,
            "limit": limit,
        }
