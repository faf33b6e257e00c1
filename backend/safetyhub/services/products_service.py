# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Product Service

Product CRUD plus the product's satellite records: attributes, media and
SEO metadata. Variants live in variant_service.py.

LIFECYCLE:
- Created as DRAFT unless a status is supplied
- Saving SEO metadata publishes the product (status ACTIVE)
- Delete archives (status ARCHIVED); rows are never removed

Attribute and media writes fully replace the previous set in one
transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models import (
    Brand,
    Category,
    MEDIA_TYPES,
    PRODUCT_STATUSES,
    Product,
    ProductAttribute,
    ProductMedia,
    ProductSEO,
    ProductVariant,
)
from ..validation import (
    ModelValidationPolicy,
    parse_number,
    parse_pagination,
    require_object,
    validate_payload,
    validate_slug,
)
from .transaction import transaction


DEFAULT_PRODUCT_PAGE_LIMIT = 40

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "slug", "description", "seller_id", "brand_id", "category_id", "status"},
    required_on_create={"name", "slug"},
)

SEO_POLICY = ModelValidationPolicy(
    writable_fields={"meta_title", "meta_description", "og_image_url", "keywords"},
)


def _validate_status(status: str) -> str:
    status = status.upper()
    if status not in PRODUCT_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(PRODUCT_STATUSES)}")
    return status


class ProductService:
    def __init__(self, session: Session, logger: logging.Logger | None = None):
        self.session = session
        self.logger = logger or logging.getLogger("safetyhub.catalog")

    # -- products --

    def get(self, product_id: str) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def get_by_slug(self, slug: str) -> Product:
        """Storefront lookup: only ACTIVE products are visible."""
        product = (
            self.session.query(Product)
            .filter(Product.slug == slug, Product.status == "ACTIVE")
            .first()
        )
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def _check_references(self, patch: dict) -> None:
        if patch.get("brand_id") and self.session.get(Brand, patch["brand_id"]) is None:
            raise NotFoundError("Brand not found")
        if patch.get("category_id") and self.session.get(Category, patch["category_id"]) is None:
            raise NotFoundError("Category not found")

    def create(self, payload: dict, seller_id: str) -> Product:
        """
        Create a product owned by seller_id (unless the payload names one).

        Raises ValidationError, NotFoundError (brand/category), UniqueViolation (slug).
        """
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        validate_slug(patch["slug"])
        patch["status"] = _validate_status(patch.get("status") or "DRAFT")
        patch["seller_id"] = patch.get("seller_id") or seller_id
        for key in ("brand_id", "category_id"):
            patch[key] = patch.get(key) or None

        with transaction(self.session):
            self._check_references(patch)
            product = Product(**patch)
            self.session.add(product)

        self.logger.info("Created product %s (%s) for seller %s", product.id, product.slug, product.seller_id)
        return product

    def update(self, product_id: str, payload: dict) -> Product:
        """Partial update; absent or blank fields keep their value."""
        payload = {
            k: v for k, v in require_object(payload).items()
            if v is not None and not (isinstance(v, str) and v.strip() == "")
        }
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        if "slug" in patch:
            validate_slug(patch["slug"])
        if "status" in patch:
            patch["status"] = _validate_status(patch["status"])

        with transaction(self.session):
            product = self.get(product_id)
            self._check_references(patch)
            for k, v in patch.items():
                setattr(product, k, v)

        return product

    def archive(self, product_id: str) -> Product:
        """Soft delete."""
        with transaction(self.session):
            product = self.get(product_id)
            product.status = "ARCHIVED"
        self.logger.info("Archived product %s", product_id)
        return product

    def list(
        self,
        *,
        categories: list[str] | None = None,
        brands: list[str] | None = None,
        search: str | None = None,
        status: str | None = None,
        min_price=None,
        max_price=None,
        page=None,
        limit=None,
    ) -> dict:
        """
        Filtered, paginated listing newest first.

        Each item carries brand_name, category_name and the first image URL
        by display_order. Price filters match products with at least one
        active variant priced inside the range.
        """
        page, limit = parse_pagination(page, limit, default_limit=DEFAULT_PRODUCT_PAGE_LIMIT)

        image_url = (
            select(ProductMedia.url)
            .where(ProductMedia.product_id == Product.id, ProductMedia.media_type == "image")
            .order_by(ProductMedia.display_order.asc(), ProductMedia.id.asc())
            .limit(1)
            .correlate(Product)
            .scalar_subquery()
        )

        query = (
            self.session.query(
                Product,
                Brand.name.label("brand_name"),
                Category.name.label("category_name"),
                image_url.label("image_url"),
            )
            .outerjoin(Brand, Product.brand_id == Brand.id)
            .outerjoin(Category, Product.category_id == Category.id)
        )

        if status:
            query = query.filter(Product.status == _validate_status(status))
        if categories:
            query = query.filter(Category.slug.in_(categories))
        if brands:
            query = query.filter(Brand.slug.in_(brands))
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(Product.name.ilike(term), Product.description.ilike(term)))

        if min_price not in (None, "") or max_price not in (None, ""):
            conditions = [ProductVariant.product_id == Product.id, ProductVariant.is_active.is_(True)]
            if min_price not in (None, ""):
                conditions.append(ProductVariant.price >= parse_number(min_price, "min_price"))
            if max_price not in (None, ""):
                conditions.append(ProductVariant.price <= parse_number(max_price, "max_price"))
            query = query.filter(exists().where(and_(*conditions)))

        total = query.count()
        rows = (
            query.order_by(Product.created_at.desc(), Product.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        items = []
        for product, brand_name, category_name, first_image in rows:
            item = product.to_dict()
            item["brand_name"] = brand_name
            item["category_name"] = category_name
            item["image_url"] = first_image
            items.append(item)

        return {"items": items, "total": total, "page": page, "limit": limit}

    # -- attributes --

    def get_attributes(self, product_id: str) -> list[dict]:
        self.get(product_id)
        rows = (
            self.session.query(ProductAttribute)
            .filter(ProductAttribute.product_id == product_id)
            .order_by(ProductAttribute.attribute_key.asc())
            .all()
        )
        return [row.to_dict() for row in rows]

    def replace_attributes(self, product_id: str, attributes) -> list[dict]:
        """
        Replace the product's attribute set.

        Accepts a list of {key, value} items; a repeated key keeps the last value.
        """
        if not isinstance(attributes, list):
            raise ValidationError("attributes must be a list")

        cleaned: dict[str, str] = {}
        for item in attributes:
            if not isinstance(item, dict):
                raise ValidationError("Each attribute must be an object")
            key = item.get("key", item.get("attribute_key"))
            value = item.get("value", item.get("attribute_value"))
            if not isinstance(key, str) or not key.strip():
                raise ValidationError("Attribute key is required")
            if value is None:
                raise ValidationError(f"Attribute {key} requires a value")
            key = key.strip()
            if len(key) > 128:
                raise ValidationError("Attribute key exceeds max length 128")
            cleaned[key] = str(value)

        with transaction(self.session):
            self.get(product_id)
            self.session.query(ProductAttribute).filter(
                ProductAttribute.product_id == product_id
            ).delete(synchronize_session=False)
            for key, value in cleaned.items():
                self.session.add(
                    ProductAttribute(product_id=product_id, attribute_key=key, attribute_value=value)
                )

        return self.get_attributes(product_id)

    # -- media --

    def get_media(self, product_id: str) -> list[dict]:
        self.get(product_id)
        rows = (
            self.session.query(ProductMedia)
            .filter(ProductMedia.product_id == product_id)
            .order_by(ProductMedia.display_order.asc(), ProductMedia.id.asc())
            .all()
        )
        return [row.to_dict() for row in rows]

    def replace_media(self, product_id: str, media) -> list[dict]:
        """
        Replace the product's media list.

        Items: {url, type in image|video|pdf, display_order >= 0, variant_id?}.
        A variant_id must belong to the same product.
        """
        if not isinstance(media, list):
            raise ValidationError("media must be a list")

        cleaned = []
        for index, item in enumerate(media):
            if not isinstance(item, dict):
                raise ValidationError("Each media item must be an object")
            url = item.get("url")
            if not isinstance(url, str) or not url.strip():
                raise ValidationError("Media url is required")
            media_type = item.get("type", "image")
            if media_type not in MEDIA_TYPES:
                raise ValidationError(f"Media type must be one of {', '.join(MEDIA_TYPES)}")
            display_order = item.get("display_order", index)
            if isinstance(display_order, bool) or not isinstance(display_order, int) or display_order < 0:
                raise ValidationError("display_order must be an integer >= 0")
            cleaned.append({
                "url": url.strip(),
                "media_type": media_type,
                "display_order": display_order,
                "variant_id": item.get("variant_id") or None,
            })

        with transaction(self.session):
            self.get(product_id)

            variant_ids = {m["variant_id"] for m in cleaned if m["variant_id"]}
            if variant_ids:
                owned = {
                    vid for (vid,) in self.session.query(ProductVariant.id).filter(
                        ProductVariant.id.in_(variant_ids),
                        ProductVariant.product_id == product_id,
                    )
                }
                foreign = variant_ids - owned
                if foreign:
                    raise ValidationError("variant_id does not belong to this product")

            self.session.query(ProductMedia).filter(
                ProductMedia.product_id == product_id
            ).delete(synchronize_session=False)
            for m in cleaned:
                self.session.add(ProductMedia(product_id=product_id, **m))

        return self.get_media(product_id)

    # -- SEO --

    def get_seo(self, product_id: str) -> ProductSEO:
        self.get(product_id)
        seo = self.session.get(ProductSEO, product_id)
        if seo is None:
            raise NotFoundError("SEO metadata not found")
        return seo

    def upsert_seo(self, product_id: str, payload: dict) -> ProductSEO:
        """
        Create or update SEO metadata and publish the product.

        Updates are partial: omitted fields (keywords included) keep their
        stored value. A new record starts with an empty keyword list.

        WHY: SEO data is the last step of the listing flow; saving it
        moves the product to ACTIVE in the same transaction.
        """
        payload = dict(require_object(payload))
        keywords = payload.pop("keywords", None)
        patch = validate_payload(model=ProductSEO, payload=payload, policy=SEO_POLICY, partial=True)

        # Omitted keywords keep their stored value like every other field
        if keywords is not None:
            if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
                raise ValidationError("keywords must be a list of strings")
            patch["keywords"] = [k.strip() for k in keywords if k.strip()]

        with transaction(self.session):
            product = self.get(product_id)
            seo = self.session.get(ProductSEO, product_id)
            if seo is None:
                seo = ProductSEO(product_id=product_id)
                self.session.add(seo)
            for k, v in patch.items():
                setattr(seo, k, v)
            product.status = "ACTIVE"

        self.logger.info("Saved SEO for product %s; product published", product_id)
        return seo
