from __future__ import annotations

from caisse.app.schemas.catalog import Customer, Product
from caisse.app.services.errors import NotFound
from caisse.app.services.repositories import Repository


def get_product(products: Repository[Product], code: str) -> Product:
    product = products.get(code)
    if product is None:
        raise NotFound("Product", code)
    return product


def get_customer(customers: Repository[Customer], customer_id: str) -> Customer:
    customer = customers.get(customer_id)
    if customer is None:
        raise NotFound("Customer", customer_id)
    return customer


def find_by_barcode(products: Repository[Product], barcode: str) -> Product:
    barcode = barcode.strip()
    for product in products.list():
        if product.barcode == barcode:
            return product
    raise NotFound("Product with barcode", barcode)


def search_products(products: Repository[Product], query: str = "") -> list[Product]:
    """Match on name (case-insensitive), Arabic name, code or barcode."""
    needle = query.strip()
    items = sorted(products.list(), key=lambda p: p.code)
    if not needle:
        return items
    lowered = needle.lower()
    return [
        p for p in items
        if lowered in p.name.lower()
        or (p.name_arabic and needle in p.name_arabic)
        or needle in p.code
        or needle in p.barcode
    ]


def low_stock_products(products: Repository[Product]) -> list[Product]:
    """Products at or below their reorder level, lowest stock first."""
    return sorted(
        (p for p in products.list() if p.is_low_stock),
        key=lambda p: (p.stock, p.code),
    )
