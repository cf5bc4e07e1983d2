# products/services/catalog.py

"""
CATALOG READ API

What the sale engine is allowed to know about the catalog:
current sale/purchase price, unit, category name, stock and whether the
product can still be sold. Nothing here writes.
"""

from __future__ import annotations

import uuid

from core.exceptions import NotFoundError
from products.models import Product


def as_product_id(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise NotFoundError(
            f"Product {value} not found",
            entity="Product",
            entity_id=str(value),
        )


def get_product(product_id) -> Product:
    product_id = as_product_id(product_id)
    product = Product.objects.select_related("category").filter(pk=product_id).first()
    if product is None or product.is_deleted:
        raise NotFoundError(
            f"Product {product_id} not found",
            entity="Product",
            entity_id=str(product_id),
        )
    return product


def get_sellable_products(product_ids) -> dict:
    """
    Resolve every id to an active, non-deleted product.
    Raises NotFoundError naming the first id that does not resolve.
    """
    ids = list(dict.fromkeys(as_product_id(pk) for pk in product_ids))
    found = {
        p.pk: p
        for p in Product.objects.sellable().select_related("category").filter(pk__in=ids)
    }

    for pk in ids:
        if pk not in found:
            raise NotFoundError(
                f"Product {pk} not found",
                entity="Product",
                entity_id=str(pk),
            )

    return found


def category_name(product: Product) -> str:
    category = getattr(product, "category", None)
    return getattr(category, "name", "") or ""
