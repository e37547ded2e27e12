"""Shared test fixtures.

Engine tests run against the in-memory store; SQL tests get a fresh
in-memory SQLite database per test.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Generator
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from caisse.app.api.deps import get_terminal
from caisse.app.core.database import Base, make_engine
from caisse.app.main import app
from caisse.app.schemas.catalog import Customer, Product
from caisse.app.services.pos import PosTerminal
from caisse.app.services.receipt import BusinessHeader
from caisse.app.services.repositories import InMemoryStore
from caisse.app.services.shift import Shift
from caisse.app.services.sql_repositories import SqlStore

CASABLANCA = ZoneInfo("Africa/Casablanca")
FIXED_NOW = datetime(2024, 1, 15, 10, 30, 0, tzinfo=CASABLANCA)


# ─── Catalog ─────────────────────────────────────────────────────────────────


@pytest.fixture()
def cafe() -> Product:
    return Product(
        code="P001",
        barcode="7612100012345",
        name="Café Nescafé Classic 200g",
        unit_price=Decimal("32.50"),
        vat_rate="20",
        stock=45,
        reorder_level=10,
    )


@pytest.fixture()
def lait() -> Product:
    return Product(
        code="P002",
        barcode="6111111111111",
        name="Lait Centrale Danone 1L",
        unit_price=Decimal("8.90"),
        vat_rate="14",
        stock=120,
        reorder_level=20,
    )


@pytest.fixture()
def sucre() -> Product:
    return Product(
        code="P004",
        barcode="6112222222222",
        name="Sucre Surac 1kg",
        unit_price=Decimal("11.50"),
        vat_rate="10",
        stock=200,
        reorder_level=50,
    )


@pytest.fixture()
def customer() -> Customer:
    return Customer(
        id="1",
        code="C001",
        name="Mohamed Amine",
        city="Casablanca",
        ice="001234567890123",
        rc="12345",
        credit_limit=Decimal("50000"),
        credit_used=Decimal("12000"),
    )


@pytest.fixture()
def business() -> BusinessHeader:
    return BusinessHeader(
        name="SUPERMARCHÉ AL AMINE",
        address="123 Avenue Hassan II, Casablanca",
        phone="0522-123456",
        rc="12345 Casablanca",
        ice="001234567890123",
        tp="TP1234567",
        cnss="J123456789",
    )


# ─── Stores & terminal ───────────────────────────────────────────────────────


@pytest.fixture()
def store(cafe: Product, lait: Product, sucre: Product, customer: Customer) -> InMemoryStore:
    s = InMemoryStore()
    for product in (cafe, lait, sucre):
        s.products.update(product)
    s.customers.update(customer)
    return s


@pytest.fixture()
def shift() -> Shift:
    return Shift.open("Youssef EL BACHIRI", Decimal("5000"), "CAISSE 01", now=FIXED_NOW)


@pytest.fixture()
def terminal(store: InMemoryStore, business: BusinessHeader) -> PosTerminal:
    return PosTerminal(
        store=store,
        business=business,
        register_id="CAISSE 01",
        tz=CASABLANCA,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture()
def open_terminal(terminal: PosTerminal) -> PosTerminal:
    """Terminal with a shift opened on 5000 MAD."""
    terminal.open_shift("Youssef EL BACHIRI", Decimal("5000"))
    return terminal


# ─── SQL ─────────────────────────────────────────────────────────────────────


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Yield a session bound to a throw-away in-memory SQLite database."""
    engine = make_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    session = Session(bind=engine)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def sql_store(
    db: Session, cafe: Product, lait: Product, sucre: Product, customer: Customer
) -> SqlStore:
    s = SqlStore(db)
    with s.transaction():
        for product in (cafe, lait, sucre):
            s.products.update(product)
        s.customers.update(customer)
    return s


# ─── HTTP ────────────────────────────────────────────────────────────────────


@pytest.fixture()
def client(terminal: PosTerminal) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the fixture terminal."""
    app.dependency_overrides[get_terminal] = lambda: terminal
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
