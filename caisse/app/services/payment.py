from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    CHEQUE = "cheque"
    MOBILE = "mobile"
    TRANSFER = "transfer"
    CREDIT = "credit"  # store credit against the customer's limit


class PaymentStatus(str, enum.Enum):
    PAID = "paid"
    # Reserved for split tenders; settlement never produces it today
    PARTIAL = "partial"
    CREDIT = "credit"


@dataclass(frozen=True)
class Payment:
    method: PaymentMethod
    amount: Decimal
    tendered: Decimal
    change: Decimal
    status: PaymentStatus
    customer_id: str | None = None
