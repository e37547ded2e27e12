from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from caisse.app.core.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Moroccan business identifiers printed on B2B receipts
    ice: Mapped[str | None] = mapped_column(String(15), nullable=True)
    rc: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tp: Mapped[str | None] = mapped_column(String(50), nullable=True)
    cnss: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_vip: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    credit_limit: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    credit_used: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("credit_used >= 0", name="ck_customer_credit_used_non_negative"),
        CheckConstraint("credit_used <= credit_limit", name="ck_customer_credit_within_limit"),
        Index("ix_customers_name", "name"),
        Index("ix_customers_phone", "phone"),
    )
