"""
Product grouping and selection.

A selection is a dict keyed by product_url. Insertion order is kept only so
that purchase requests list products in the order they were picked.
"""

from typing import Iterable

from ..schemas.styling import CATEGORY_DISPLAY_ORDER, OTHER_CATEGORY, Product

Selection = dict[str, Product]


def _category_key(product: Product) -> str:
    return product.category.value if product.category else OTHER_CATEGORY


def group_products(products: Iterable[Product]) -> dict[str, list[Product]]:
    """Bucket by category, emitted in display order. Empty categories are omitted."""
    buckets: dict[str, list[Product]] = {}
    for product in products:
        buckets.setdefault(_category_key(product), []).append(product)
    return {c: buckets[c] for c in CATEGORY_DISPLAY_ORDER if c in buckets}


def select_all(products: Iterable[Product]) -> Selection:
    return {p.product_url: p for p in products}


def toggle(selection: Selection, product: Product) -> Selection:
    """Return a new selection with the product removed if present, added if not."""
    updated = dict(selection)
    if product.product_url in updated:
        del updated[product.product_url]
    else:
        updated[product.product_url] = product
    return updated


def total(selection: Selection) -> int:
    return sum(p.price for p in selection.values())
