from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from caisse.app.core.database import Base
from caisse.app.services.shift import ShiftStatus


class Shift(Base):
    __tablename__ = "shifts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    register_id: Mapped[str] = mapped_column(String(50), nullable=False)
    cashier: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ShiftStatus] = mapped_column(
        Enum(ShiftStatus), nullable=False, default=ShiftStatus.OPEN
    )
    opened_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    opening_balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    cash_sales: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False, default=Decimal("0"))
    card_sales: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False, default=Decimal("0"))
    cheque_sales: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False, default=Decimal("0"))
    mobile_sales: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False, default=Decimal("0"))
    transfer_sales: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False, default=Decimal("0"))
    credit_sales: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False, default=Decimal("0"))
    ticket_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expected_cash: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    closing_balance: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    difference: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("opening_balance >= 0", name="ck_shift_opening_non_negative"),
        Index("ix_shifts_register", "register_id"),
        Index("ix_shifts_status", "status"),
        Index("ix_shifts_opened_at", "opened_at"),
    )


class TicketCounter(Base):
    """Last ticket sequence issued per settlement date."""

    __tablename__ = "ticket_counters"

    day: Mapped[date] = mapped_column(Date, primary_key=True)
    last_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("last_sequence BETWEEN 0 AND 9999", name="ck_ticket_sequence_range"),
    )
