"""SQLAlchemy-backed repositories sharing one session per unit of work."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from caisse.app.models.audit import AuditLog
from caisse.app.models.customer import Customer as CustomerRow
from caisse.app.models.inventory import Product as ProductRow
from caisse.app.models.pos import Shift as ShiftRow
from caisse.app.models.pos import TicketCounter
from caisse.app.schemas.catalog import Customer, Product
from caisse.app.services.audit import AuditEntry
from caisse.app.services.errors import ValidationError
from caisse.app.services.money import ZERO
from caisse.app.services.payment import PaymentMethod
from caisse.app.services.repositories import MAX_TICKETS_PER_DAY
from caisse.app.services.shift import Shift

logger = logging.getLogger(__name__)

_PRODUCT_FIELDS = (
    "code", "barcode", "name", "name_arabic", "category", "unit",
    "unit_price", "stock", "reorder_level",
)
_CUSTOMER_FIELDS = (
    "id", "code", "name", "phone", "email", "address", "city",
    "ice", "rc", "tp", "cnss", "is_vip", "credit_limit", "credit_used",
)
_SHIFT_FIELDS = (
    "id", "register_id", "cashier", "status", "opened_at", "closed_at",
    "opening_balance", "ticket_count", "expected_cash", "closing_balance",
    "difference", "notes",
)
_SALES_COLUMNS: dict[PaymentMethod, str] = {
    PaymentMethod.CASH: "cash_sales",
    PaymentMethod.CARD: "card_sales",
    PaymentMethod.CHEQUE: "cheque_sales",
    PaymentMethod.MOBILE: "mobile_sales",
    PaymentMethod.TRANSFER: "transfer_sales",
    PaymentMethod.CREDIT: "credit_sales",
}


class _SqlRepository:
    def __init__(self, store: SqlStore) -> None:
        self._store = store

    @property
    def db(self) -> Session:
        return self._store.session

    def _fetch(self, model: type, key: str):
        stmt = select(model).where(model.__mapper__.primary_key[0] == key)
        if self._store.locking:
            # Rows read inside a unit of work stay locked until commit
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()


class SqlProductRepository(_SqlRepository):
    def get(self, key: str) -> Product | None:
        row = self._fetch(ProductRow, key)
        return _product_from_row(row) if row is not None else None

    def update(self, item: Product) -> None:
        row = self.db.get(ProductRow, item.code) or ProductRow(code=item.code)
        for name in _PRODUCT_FIELDS:
            setattr(row, name, getattr(item, name))
        row.vat_rate = item.vat_rate.value
        self.db.add(row)
        self.db.flush()

    def list(self) -> list[Product]:
        rows = self.db.execute(select(ProductRow).order_by(ProductRow.code)).scalars()
        return [_product_from_row(r) for r in rows]


class SqlCustomerRepository(_SqlRepository):
    def get(self, key: str) -> Customer | None:
        row = self._fetch(CustomerRow, key)
        return _customer_from_row(row) if row is not None else None

    def update(self, item: Customer) -> None:
        row = self.db.get(CustomerRow, item.id) or CustomerRow(id=item.id)
        for name in _CUSTOMER_FIELDS:
            setattr(row, name, getattr(item, name))
        self.db.add(row)
        self.db.flush()

    def list(self) -> list[Customer]:
        rows = self.db.execute(select(CustomerRow).order_by(CustomerRow.name)).scalars()
        return [_customer_from_row(r) for r in rows]


class SqlShiftRepository(_SqlRepository):
    def get(self, key: str) -> Shift | None:
        row = self._fetch(ShiftRow, key)
        return _shift_from_row(row) if row is not None else None

    def update(self, item: Shift) -> None:
        row = self.db.get(ShiftRow, item.id) or ShiftRow(id=item.id)
        for name in _SHIFT_FIELDS:
            setattr(row, name, getattr(item, name))
        for method, column in _SALES_COLUMNS.items():
            setattr(row, column, item.sales_by_method.get(method, ZERO))
        self.db.add(row)
        self.db.flush()

    def list(self) -> list[Shift]:
        rows = self.db.execute(select(ShiftRow).order_by(ShiftRow.opened_at.desc())).scalars()
        return [_shift_from_row(r) for r in rows]


class SqlTicketSequence(_SqlRepository):
    def next(self, day: date) -> int:
        stmt = select(TicketCounter).where(TicketCounter.day == day)
        if self._store.locking:
            stmt = stmt.with_for_update()
        counter = self.db.execute(stmt).scalar_one_or_none()
        if counter is None:
            counter = TicketCounter(day=day, last_sequence=0)
            self.db.add(counter)
        if counter.last_sequence >= MAX_TICKETS_PER_DAY:
            raise ValidationError(f"Ticket sequence exhausted for {day.isoformat()}")
        counter.last_sequence += 1
        self.db.flush()
        return counter.last_sequence


class SqlAuditTrail(_SqlRepository):
    def append(self, entry: AuditEntry) -> None:
        self.db.add(
            AuditLog(
                table_name=entry.resource_type,
                record_id=entry.resource_id,
                action=entry.action,
                changed_by=entry.cashier,
                register_id=entry.register_id,
                new_values=entry.changes,
            )
        )
        self.db.flush()

    def list(self) -> list[AuditEntry]:
        rows = self.db.execute(select(AuditLog).order_by(AuditLog.id)).scalars()
        return [
            AuditEntry(
                action=r.action,
                resource_type=r.table_name,
                resource_id=r.record_id,
                cashier=r.changed_by,
                register_id=r.register_id,
                changes=r.new_values or {},
            )
            for r in rows
        ]


class SqlStore:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.locking = False
        self.products = SqlProductRepository(self)
        self.customers = SqlCustomerRepository(self)
        self.shifts = SqlShiftRepository(self)
        self.tickets = SqlTicketSequence(self)
        self.audit = SqlAuditTrail(self)

    @contextmanager
    def transaction(self) -> Iterator[SqlStore]:
        """Run one unit of work: commit on success, roll back on any error."""
        self.locking = True
        try:
            yield self
            self.session.commit()
        except BaseException:
            self.session.rollback()
            logger.debug("Rolled back unit of work")
            raise
        finally:
            self.locking = False


# ─── Row mapping ────────────────────────────────────────────────────────────


def _product_from_row(row: ProductRow) -> Product:
    data = {name: getattr(row, name) for name in _PRODUCT_FIELDS}
    data["vat_rate"] = row.vat_rate
    return Product(**data)


def _customer_from_row(row: CustomerRow) -> Customer:
    return Customer(**{name: getattr(row, name) for name in _CUSTOMER_FIELDS})


def _shift_from_row(row: ShiftRow) -> Shift:
    data = {name: getattr(row, name) for name in _SHIFT_FIELDS}
    data["sales_by_method"] = {
        method: Decimal(getattr(row, column) or 0)
        for method, column in _SALES_COLUMNS.items()
    }
    return Shift(**data)
