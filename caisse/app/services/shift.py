"""Cashier shift ledger: open -> closed (terminal)."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field

from caisse.app.services.errors import ShiftClosed, ValidationError
from caisse.app.services.money import ZERO, to_amount
from caisse.app.services.payment import PaymentMethod


class ShiftStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


def _empty_buckets() -> dict[PaymentMethod, Decimal]:
    return {method: ZERO for method in PaymentMethod}


class Shift(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    register_id: str
    cashier: str
    status: ShiftStatus = ShiftStatus.OPEN
    opened_at: datetime
    closed_at: datetime | None = None
    opening_balance: Decimal
    sales_by_method: dict[PaymentMethod, Decimal] = Field(default_factory=_empty_buckets)
    ticket_count: int = 0
    expected_cash: Decimal = ZERO
    closing_balance: Decimal | None = None
    difference: Decimal | None = None
    notes: str | None = None

    @classmethod
    def open(
        cls,
        cashier: str,
        opening_balance: Decimal | int | str,
        register_id: str,
        now: datetime | None = None,
    ) -> Shift:
        balance = to_amount(opening_balance, field="opening_balance")
        if not cashier.strip():
            raise ValidationError("Cashier name is required")
        return cls(
            register_id=register_id,
            cashier=cashier,
            opened_at=now or datetime.now(timezone.utc),
            opening_balance=balance,
            expected_cash=balance,
        )

    @property
    def is_open(self) -> bool:
        return self.status == ShiftStatus.OPEN

    @property
    def cash_sales(self) -> Decimal:
        return self.sales_by_method.get(PaymentMethod.CASH, ZERO)

    @property
    def card_sales(self) -> Decimal:
        return self.sales_by_method.get(PaymentMethod.CARD, ZERO)

    @property
    def cheque_sales(self) -> Decimal:
        return self.sales_by_method.get(PaymentMethod.CHEQUE, ZERO)

    @property
    def total_sales(self) -> Decimal:
        return sum(self.sales_by_method.values(), ZERO)

    def ensure_open(self) -> None:
        if not self.is_open:
            raise ShiftClosed(self.id)

    def record_sale(self, method: PaymentMethod, amount: Decimal) -> None:
        """Route a settled amount into its method bucket."""
        self.ensure_open()
        if amount < 0:
            raise ValidationError("Sale amount must be non-negative")
        self.sales_by_method[method] = self.sales_by_method.get(method, ZERO) + amount
        self.ticket_count += 1
        self.expected_cash = self.opening_balance + self.cash_sales

    def close(
        self,
        counted_cash: Decimal | int | str,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> None:
        self.ensure_open()
        counted = to_amount(counted_cash, field="counted_cash")
        self.expected_cash = self.opening_balance + self.cash_sales
        self.closing_balance = counted
        self.difference = counted - self.expected_cash
        self.closed_at = now or datetime.now(timezone.utc)
        self.notes = notes
        self.status = ShiftStatus.CLOSED
