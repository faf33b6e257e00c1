# Overview: Service-layer operations for product variants; encapsulates business logic and database work.

"""
Variant Sync Engine

Replaces a product's option / option-value / variant graph in ONE
transaction:

1. Delete the product's variant<->value links, option values and options
   (variants themselves are kept: their ids are referenced elsewhere)
2. Insert the submitted options and values, building a value-name -> id map
3. Upsert variants by SKU (price / weight / is_active updated, id stable),
   building a SKU -> id map from the RETURNING rows
4. Link every variant to its option values, ignoring duplicate links
5. Commit; any failure rolls the whole sync back

WHY core statements: the SKU upsert is a single multi-row
INSERT ... ON CONFLICT ... RETURNING, which both PostgreSQL and
SQLite (>= 3.35) execute natively.

NAMING: variants reference option values by name, so value names must be
unique across ALL of a product's options, not just within one option.
"Red" under both Color and Trim is rejected (ValidationError).

MERGE POLICY: option-value names a variant references but the options list
doesn't define are dropped from that variant's links and logged.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..errors import InternalError, NotFoundError, ValidationError, VariantSkuConflictError
from ..models import (
    Product,
    ProductOption,
    ProductOptionValue,
    ProductVariant,
    VariantOptionValue,
)
from ..models.common import new_uuid
from ..time_utils import utcnow
from ..validation import enforce_rules_price, parse_number
from .transaction import transaction


MAX_SKU_LENGTH = 100


def _dialect_insert(session: Session):
    """Return the dialect's insert() construct (needed for ON CONFLICT)."""
    name = session.get_bind().dialect.name
    if name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise InternalError(f"Variant sync is not supported on {name}")
    return insert


def clean_options(options) -> list[dict]:
    """
    Normalize the options list.

    Option names are unique per product; value names are unique across
    every option of the product, since variant links resolve by value name.
    """
    if options is None:
        return []
    if not isinstance(options, list):
        raise ValidationError("options must be a list")

    cleaned = []
    seen_names: set[str] = set()
    seen_values: set[str] = set()
    for option in options:
        if not isinstance(option, dict):
            raise ValidationError("Each option must be an object")
        name = option.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Option name is required")
        name = name.strip()
        if name in seen_names:
            raise ValidationError(f"Duplicate option name: {name}")
        seen_names.add(name)

        values = option.get("values")
        if not isinstance(values, list) or not values:
            raise ValidationError(f"Option {name} requires a non-empty values list")
        clean_values = []
        for value in values:
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"Option {name} values must be non-empty strings")
            value = value.strip()
            # Links are resolved by value name, so names must be unambiguous
            if value in seen_values:
                raise ValidationError(f"Duplicate option value: {value}")
            seen_values.add(value)
            clean_values.append(value)

        cleaned.append({"name": name, "values": clean_values})
    return cleaned


def clean_variants(variants) -> list[dict]:
    if variants is None:
        return []
    if not isinstance(variants, list):
        raise ValidationError("variants must be a list")

    cleaned = []
    seen_skus: set[str] = set()
    for variant in variants:
        if not isinstance(variant, dict):
            raise ValidationError("Each variant must be an object")

        sku = variant.get("sku")
        if not isinstance(sku, str) or not sku.strip():
            raise ValidationError("Variant sku is required")
        sku = sku.strip()
        if len(sku) > MAX_SKU_LENGTH:
            raise ValidationError(f"sku exceeds max length {MAX_SKU_LENGTH}")
        if sku in seen_skus:
            raise ValidationError(f"Duplicate sku in request: {sku}")
        seen_skus.add(sku)

        price = variant.get("price")
        price = 0.0 if price is None else parse_number(price, "price")
        enforce_rules_price(price)

        weight = variant.get("weight")
        weight = 0.0 if weight is None else parse_number(weight, "weight")

        is_active = variant.get("is_active", True)
        if not isinstance(is_active, bool):
            raise ValidationError("is_active must be a boolean")

        option_values = variant.get("option_values") or []
        if not isinstance(option_values, list) or not all(isinstance(v, str) for v in option_values):
            raise ValidationError("option_values must be a list of strings")

        cleaned.append({
            "sku": sku,
            "price": price,
            "weight": weight,
            "is_active": is_active,
            "option_values": [v.strip() for v in option_values],
        })
    return cleaned


class VariantSyncEngine:
    def __init__(self, session: Session, logger: logging.Logger | None = None):
        self.session = session
        self.logger = logger or logging.getLogger("safetyhub.variants")

    def sync(self, product_id: str, options, variants) -> dict:
        """
        Replace the product's options and variants.

        Raises:
            ValidationError: malformed options / variants, or a value name
                repeated across options
            NotFoundError: unknown product
            VariantSkuConflictError: a SKU already belongs to another product
        """
        options = clean_options(options)
        variants = clean_variants(variants)
        insert = _dialect_insert(self.session)

        with transaction(self.session):
            if self.session.get(Product, product_id) is None:
                raise NotFoundError("Product not found")

            self._clear_options(product_id)
            value_ids = self._insert_options(product_id, options)
            sku_ids = self._upsert_variants(insert, product_id, variants)
            self._link(insert, variants, value_ids, sku_ids)

        self.logger.info(
            "Synced product %s: %d options, %d variants", product_id, len(options), len(variants)
        )
        return self.get_variants(product_id)

    def _clear_options(self, product_id: str) -> None:
        variant_ids = select(ProductVariant.id).where(ProductVariant.product_id == product_id)
        option_ids = select(ProductOption.id).where(ProductOption.product_id == product_id)

        # Explicit order: links, values, options (no reliance on ON DELETE CASCADE)
        self.session.execute(
            delete(VariantOptionValue)
            .where(VariantOptionValue.variant_id.in_(variant_ids))
            .execution_options(synchronize_session=False)
        )
        self.session.execute(
            delete(ProductOptionValue)
            .where(ProductOptionValue.option_id.in_(option_ids))
            .execution_options(synchronize_session=False)
        )
        self.session.execute(
            delete(ProductOption)
            .where(ProductOption.product_id == product_id)
            .execution_options(synchronize_session=False)
        )

    def _insert_options(self, product_id: str, options: list[dict]) -> dict[str, str]:
        value_ids: dict[str, str] = {}
        for position, option in enumerate(options):
            option_row = ProductOption(id=new_uuid(), product_id=product_id, name=option["name"], position=position)
            self.session.add(option_row)
            for value_position, value in enumerate(option["values"]):
                value_row = ProductOptionValue(
                    id=new_uuid(), option_id=option_row.id, value=value, position=value_position
                )
                self.session.add(value_row)
                value_ids[value] = value_row.id
        self.session.flush()
        return value_ids

    def _upsert_variants(self, insert, product_id: str, variants: list[dict]) -> dict[str, str]:
        if not variants:
            return {}

        table = ProductVariant.__table__
        now = utcnow()
        rows = [
            {
                "id": new_uuid(),
                "product_id": product_id,
                "sku": v["sku"],
                "price": v["price"],
                "weight": v["weight"],
                "is_active": v["is_active"],
                "created_at": now,
                "updated_at": now,
            }
            for v in variants
        ]
        stmt = insert(table).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.sku],
            set_={
                "price": stmt.excluded.price,
                "weight": stmt.excluded.weight,
                "is_active": stmt.excluded.is_active,
                "updated_at": stmt.excluded.updated_at,
            },
            # A SKU owned by another product is left untouched and not returned
            where=table.c.product_id == stmt.excluded.product_id,
        ).returning(table.c.id, table.c.sku)

        sku_ids = {sku: variant_id for variant_id, sku in self.session.execute(stmt).all()}

        missing = [v["sku"] for v in variants if v["sku"] not in sku_ids]
        if missing:
            raise VariantSkuConflictError(
                f"SKU already used by another product: {', '.join(missing)}"
            )
        return sku_ids

    def _link(self, insert, variants: list[dict], value_ids: dict[str, str], sku_ids: dict[str, str]) -> None:
        links = []
        for v in variants:
            unmatched = [name for name in v["option_values"] if name not in value_ids]
            if unmatched:
                self.logger.warning(
                    "Variant %s references undefined option values %s; links dropped",
                    v["sku"], unmatched,
                )
            for name in v["option_values"]:
                if name in value_ids:
                    links.append({"variant_id": sku_ids[v["sku"]], "option_value_id": value_ids[name]})

        if not links:
            return

        table = VariantOptionValue.__table__
        stmt = insert(table).values(links).on_conflict_do_nothing(
            index_elements=[table.c.variant_id, table.c.option_value_id]
        )
        self.session.execute(stmt)

    def get_variants(self, product_id: str) -> dict:
        if self.session.get(Product, product_id) is None:
            raise NotFoundError("Product not found")

        options = (
            self.session.query(ProductOption)
            .filter(ProductOption.product_id == product_id)
            .order_by(ProductOption.position.asc())
            .all()
        )
        variants = (
            self.session.query(ProductVariant)
            .filter(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.created_at.asc(), ProductVariant.sku.asc())
            .all()
        )

        links = (
            self.session.query(VariantOptionValue.variant_id, ProductOptionValue.value)
            .join(ProductOptionValue, ProductOptionValue.id == VariantOptionValue.option_value_id)
            .join(ProductOption, ProductOption.id == ProductOptionValue.option_id)
            .filter(ProductOption.product_id == product_id)
            .order_by(ProductOption.position.asc())
            .all()
        )
        values_by_variant: dict[str, list[str]] = {}
        for variant_id, value in links:
            values_by_variant.setdefault(variant_id, []).append(value)

        return {
            "product_id": product_id,
            "options": [
                {"name": o.name, "values": [v.value for v in o.values]}
                for o in options
            ],
            "variants": [
                {
                    "id": v.id,
                    "sku": v.sku,
                    "price": v.price,
                    "weight": v.weight,
                    "is_active": v.is_active,
                    "option_values": values_by_variant.get(v.id, []),
                }
                for v in variants
            ],
        }
