from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .common import TimestampMixin, new_uuid


class Brand(TimestampMixin, db.Model):
    """Brand reference entity. Slug is unique."""
    __tablename__ = "brands"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    logo_url = db.Column(db.Text, nullable=True)
    website_url = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "logo_url": self.logo_url,
            "website_url": self.website_url,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Category(TimestampMixin, db.Model):
    """
    Category tree node.

    level is 0 for roots and parent.level + 1 otherwise; it is maintained by
    the category service whenever parent_id changes.
    """
    __tablename__ = "categories"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    parent_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=True, index=True)
    level = db.Column(db.Integer, nullable=False, default=0)

    parent = db.relationship(
        "Category",
        remote_side=[id],
        backref=db.backref("children", lazy=True, passive_deletes="all"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "parent_id": self.parent_id,
            "level": self.level,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
