"""Seed a store with the demo catalog and customers.

Usage:
    python -m caisse.scripts.seed
"""

from __future__ import annotations

import logging
from decimal import Decimal

from caisse.app.core.config import settings
from caisse.app.core.database import Base, SessionLocal, engine
from caisse.app.schemas.catalog import Customer, Product
from caisse.app.services.repositories import Store
from caisse.app.services.sql_repositories import SqlStore

logger = logging.getLogger(__name__)

PRODUCTS: list[Product] = [
    Product(
        code="P001", barcode="7612100012345", name="Café Nescafé Classic 200g",
        name_arabic="قهوة نسكافيه كلاسيك 200غ", category="Epicerie",
        unit_price=Decimal("32.50"), vat_rate="20", stock=45, reorder_level=10,
    ),
    Product(
        code="P002", barcode="6111111111111", name="Lait Centrale Danone 1L",
        name_arabic="حليب سنترال دانون 1لتر", category="Laitiers",
        unit_price=Decimal("8.90"), vat_rate="14", stock=120, reorder_level=20,
    ),
    Product(
        code="P003", barcode="3560070812345", name="Huile Lesieur 1L",
        name_arabic="زيت ليسيور 1لتر", category="Huiles",
        unit_price=Decimal("22.00"), vat_rate="14", stock=85, reorder_level=15,
    ),
    Product(
        code="P004", barcode="6112222222222", name="Sucre Surac 1kg",
        name_arabic="سكر سوراك 1كغ", category="Epicerie", unit="Paquet",
        unit_price=Decimal("11.50"), vat_rate="10", stock=200, reorder_level=50,
    ),
    Product(
        code="P005", barcode="6113333333333", name="Farine Minoterie 2kg",
        name_arabic="دقيق المطحنة 2كغ", category="Farines", unit="Sac",
        unit_price=Decimal("18.00"), vat_rate="10", stock=150, reorder_level=30,
    ),
]

CUSTOMERS: list[Customer] = [
    Customer(
        id="1", code="C001", name="Mohamed Amine", phone="0612345678",
        city="Casablanca", ice="001234567890123", rc="12345", is_vip=True,
        credit_limit=Decimal("50000"), credit_used=Decimal("12000"),
    ),
    Customer(
        id="2", code="C002", name="Fatima Zahra", phone="0623456789",
        city="Rabat", credit_limit=Decimal("20000"), credit_used=Decimal("5000"),
    ),
]


def seed_store(store: Store) -> None:
    """Insert the demo records that are not already present."""
    with store.transaction():
        for product in PRODUCTS:
            if store.products.get(product.code) is None:
                store.products.update(product)
        for customer in CUSTOMERS:
            if store.customers.get(customer.id) is None:
                store.customers.update(customer)
    logger.info("Seeded %d products and %d customers", len(PRODUCTS), len(CUSTOMERS))


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_store(SqlStore(db))
    finally:
        db.close()


if __name__ == "__main__":
    main()
