"""Tests for the SQLAlchemy store against in-memory SQLite."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from caisse.app.models.audit import AuditLog
from caisse.app.models.pos import TicketCounter
from caisse.app.services.errors import InsufficientStock, InsufficientTender, ValidationError
from caisse.app.services.money import VATRate
from caisse.app.services.payment import PaymentMethod
from caisse.app.services.pos import PosTerminal
from caisse.app.services.receipt import BusinessHeader
from caisse.app.services.shift import Shift, ShiftStatus
from caisse.app.services.sql_repositories import SqlStore
from caisse.tests.conftest import CASABLANCA, FIXED_NOW


@pytest.fixture()
def sql_terminal(sql_store: SqlStore, business: BusinessHeader) -> PosTerminal:
    terminal = PosTerminal(
        store=sql_store,
        business=business,
        register_id="CAISSE 01",
        tz=CASABLANCA,
        clock=lambda: FIXED_NOW,
    )
    terminal.open_shift("Youssef EL BACHIRI", Decimal("5000"))
    return terminal


class TestRowMapping:
    def test_product_round_trip(self, sql_store: SqlStore) -> None:
        cafe = sql_store.products.get("P001")
        assert cafe.name == "Café Nescafé Classic 200g"
        assert cafe.unit_price == Decimal("32.50")
        assert cafe.vat_rate is VATRate.TVA_20
        assert [p.code for p in sql_store.products.list()] == ["P001", "P002", "P004"]
        assert sql_store.products.get("NOPE") is None

    def test_customer_round_trip(self, sql_store: SqlStore) -> None:
        customer = sql_store.customers.get("1")
        assert customer.credit_limit == Decimal("50000")
        assert customer.available_credit == Decimal("38000")

    def test_shift_round_trip(self, sql_store: SqlStore) -> None:
        shift = Shift.open("Youssef", Decimal("200"), "CAISSE 02", now=FIXED_NOW)
        shift.record_sale(PaymentMethod.CASH, Decimal("78.00"))
        shift.record_sale(PaymentMethod.MOBILE, Decimal("10.50"))
        with sql_store.transaction():
            sql_store.shifts.update(shift)

        loaded = sql_store.shifts.get(shift.id)
        assert loaded.status == ShiftStatus.OPEN
        assert loaded.cash_sales == Decimal("78.00")
        assert loaded.sales_by_method[PaymentMethod.MOBILE] == Decimal("10.50")
        assert loaded.expected_cash == Decimal("278.00")
        assert loaded.ticket_count == 2

    def test_update_is_an_upsert(self, sql_store: SqlStore) -> None:
        product = sql_store.products.get("P002")
        product.stock = 7
        with sql_store.transaction():
            sql_store.products.update(product)
        assert sql_store.products.get("P002").stock == 7
        assert len(sql_store.products.list()) == 3


class TestUnitOfWork:
    def test_rollback_discards_writes(self, sql_store: SqlStore) -> None:
        product = sql_store.products.get("P001")
        product.stock = 1
        with pytest.raises(RuntimeError):
            with sql_store.transaction():
                sql_store.products.update(product)
                raise RuntimeError("boom")
        assert sql_store.products.get("P001").stock == 45
        assert sql_store.locking is False

    def test_ticket_counter_per_day(self, sql_store: SqlStore, db: Session) -> None:
        day = date(2024, 1, 15)
        with sql_store.transaction():
            assert sql_store.tickets.next(day) == 1
            assert sql_store.tickets.next(day) == 2
            assert sql_store.tickets.next(date(2024, 1, 16)) == 1
        assert db.get(TicketCounter, day).last_sequence == 2

    def test_ticket_counter_exhausted(self, sql_store: SqlStore, db: Session) -> None:
        day = date(2024, 1, 15)
        db.add(TicketCounter(day=day, last_sequence=9999))
        db.commit()
        with pytest.raises(ValidationError):
            with sql_store.transaction():
                sql_store.tickets.next(day)


class TestSqlCheckout:
    def test_cash_sale_is_committed(self, sql_terminal: PosTerminal) -> None:
        sql_terminal.add_product("P001", 2)
        result = sql_terminal.checkout("cash", Decimal("100"))
        store = sql_terminal.store

        assert result.receipt.ticket.number == "240115-0001"
        assert result.payment.change == Decimal("22.00")
        assert store.products.get("P001").stock == 43
        shift = sql_terminal.active_shift()
        assert shift.cash_sales == Decimal("78.00")
        assert shift.expected_cash == Decimal("5078.00")

    def test_failed_sale_is_rolled_back(self, sql_terminal: PosTerminal) -> None:
        sql_terminal.add_product("P002", 3)
        sql_terminal.add_product("P001", 2)
        product = sql_terminal.store.products.get("P001")
        product.stock = 1
        with sql_terminal.store.transaction():
            sql_terminal.store.products.update(product)

        with pytest.raises(InsufficientStock):
            sql_terminal.checkout("card")
        assert sql_terminal.store.products.get("P002").stock == 120
        assert sql_terminal.active_shift().ticket_count == 0
        assert len(sql_terminal.cart) == 2

    def test_credit_sale_updates_customer(self, sql_terminal: PosTerminal) -> None:
        sql_terminal.set_customer("1")
        sql_terminal.add_product("P004", 2)
        sql_terminal.checkout("credit")
        assert sql_terminal.store.customers.get("1").credit_used == Decimal("12025.30")


class TestSqlAuditTrail:
    def test_sale_and_shift_rows_are_committed(self, sql_terminal: PosTerminal, db: Session) -> None:
        sql_terminal.add_product("P001", 2)
        sql_terminal.checkout("cash", Decimal("100"))

        rows = db.execute(select(AuditLog).order_by(AuditLog.id)).scalars().all()
        assert [(r.action, r.table_name) for r in rows] == [
            ("SHIFT_OPENED", "shifts"),
            ("SALE_COMPLETED", "receipts"),
        ]
        sale = rows[1]
        assert sale.record_id == "240115-0001"
        assert sale.changed_by == "Youssef EL BACHIRI"
        assert sale.register_id == "CAISSE 01"
        assert sale.new_values["net_payable"] == "78.00"
        assert sale.created_at is not None
        assert [e.action for e in sql_terminal.store.audit.list()] == [
            "SHIFT_OPENED",
            "SALE_COMPLETED",
        ]

    def test_failed_sale_writes_no_row(self, sql_terminal: PosTerminal, db: Session) -> None:
        sql_terminal.add_product("P001", 2)
        with pytest.raises(InsufficientTender):
            sql_terminal.checkout("cash", Decimal("50"))
        actions = db.execute(select(AuditLog.action)).scalars().all()
        assert actions == ["SHIFT_OPENED"]

    def test_close_records_variance(self, sql_terminal: PosTerminal, db: Session) -> None:
        sql_terminal.close_shift(Decimal("4990"), notes="short")
        row = db.execute(
            select(AuditLog).where(AuditLog.action == "SHIFT_CLOSED")
        ).scalar_one()
        assert Decimal(row.new_values["difference"]) == Decimal("-10")
        assert Decimal(row.new_values["expected_cash"]) == Decimal("5000")
