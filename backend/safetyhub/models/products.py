from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .common import TimestampMixin, new_uuid


PRODUCT_STATUSES = ("DRAFT", "ACTIVE", "ARCHIVED")
MEDIA_TYPES = ("image", "video", "pdf")


class Product(TimestampMixin, db.Model):
    """
    Catalog product.

    LIFECYCLE:
    - DRAFT on creation (unless a status is given)
    - DRAFT -> ACTIVE when SEO metadata is saved
    - any -> ARCHIVED on delete (soft delete, row is kept)
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("status IN ('DRAFT', 'ACTIVE', 'ARCHIVED')", name="product_status"),
        db.Index("ix_products_status_created", "status", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    seller_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    brand_id = db.Column(db.String(36), db.ForeignKey("brands.id"), nullable=True, index=True)
    category_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="DRAFT")

    brand = db.relationship("Brand", backref=db.backref("products", lazy=True, passive_deletes="all"))
    category = db.relationship("Category", backref=db.backref("products", lazy=True, passive_deletes="all"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "seller_id": self.seller_id,
            "brand_id": self.brand_id,
            "category_id": self.category_id,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductAttribute(db.Model):
    """Free-form key/value attribute of a product (e.g. material=steel)."""
    __tablename__ = "products_attributes"
    __table_args__ = (
        db.UniqueConstraint("product_id", "attribute_key", name="uq_products_attributes_product_key"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    product_id = db.Column(
        db.String(36), db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    attribute_key = db.Column(db.String(128), nullable=False)
    attribute_value = db.Column(db.Text, nullable=False)

    def to_dict(self) -> dict:
        return {"key": self.attribute_key, "value": self.attribute_value}


class ProductOption(db.Model):
    """Named variant axis (e.g. Color). Replaced wholesale on every variant sync."""
    __tablename__ = "product_options"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    product_id = db.Column(
        db.String(36), db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(128), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    values = db.relationship(
        "ProductOptionValue",
        backref="option",
        lazy=True,
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductOptionValue.position",
    )


class ProductOptionValue(db.Model):
    __tablename__ = "product_option_values"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    option_id = db.Column(
        db.String(36), db.ForeignKey("product_options.id", ondelete="CASCADE"), nullable=False, index=True
    )
    value = db.Column(db.String(128), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)


class ProductVariant(TimestampMixin, db.Model):
    """
    Purchasable SKU of a product.

    WHY: Variants are upserted by SKU and never deleted by a sync, so their ids
    stay stable for anything that references them.
    """
    __tablename__ = "product_variants"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    product_id = db.Column(
        db.String(36), db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sku = db.Column(db.String(100), nullable=False, unique=True)
    price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False)
    weight = db.Column(db.Numeric(10, 3, asdecimal=False), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class VariantOptionValue(db.Model):
    """Variant <-> option value link (one value per axis)."""
    __tablename__ = "variant_option_values"

    variant_id = db.Column(
        db.String(36), db.ForeignKey("product_variants.id", ondelete="CASCADE"), primary_key=True
    )
    option_value_id = db.Column(
        db.String(36), db.ForeignKey("product_option_values.id", ondelete="CASCADE"), primary_key=True
    )


class ProductMedia(db.Model):
    """Ordered media item; optionally scoped to a single variant."""
    __tablename__ = "product_media"
    __table_args__ = (
        db.CheckConstraint("media_type IN ('image', 'video', 'pdf')", name="product_media_type"),
        db.CheckConstraint("display_order >= 0", name="product_media_display_order"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    product_id = db.Column(
        db.String(36), db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    variant_id = db.Column(
        db.String(36), db.ForeignKey("product_variants.id", ondelete="SET NULL"), nullable=True
    )
    url = db.Column(db.Text, nullable=False)
    media_type = db.Column(db.String(16), nullable=False, default="image")
    display_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "type": self.media_type,
            "display_order": self.display_order,
            "variant_id": self.variant_id,
        }


class ProductSEO(TimestampMixin, db.Model):
    __tablename__ = "product_seo"

    product_id = db.Column(
        db.String(36), db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True
    )
    meta_title = db.Column(db.String(255), nullable=True)
    meta_description = db.Column(db.Text, nullable=True)
    og_image_url = db.Column(db.Text, nullable=True)
    keywords = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "meta_title": self.meta_title,
            "meta_description": self.meta_description,
            "og_image_url": self.og_image_url,
            "keywords": list(self.keywords or []),
            "updated_at": to_utc_z(self.updated_at),
        }
