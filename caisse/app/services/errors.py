"""Recoverable POS error conditions.

Every error carries the amounts a cashier screen needs to explain what went
wrong. None of them leave partially-applied state behind.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class PosError(ValueError):
    code = "POS_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        for key, value in self.details().items():
            payload[key] = str(value) if isinstance(value, Decimal) else value
        return payload


class ValidationError(PosError):
    """Malformed quantity, discount, rate or amount; raised before any mutation."""

    code = "VALIDATION_ERROR"


class LineNotFound(ValidationError):
    code = "LINE_NOT_FOUND"

    def __init__(self, product_code: str) -> None:
        super().__init__(f"No cart line for product '{product_code}'")
        self.product_code = product_code

    def details(self) -> dict[str, Any]:
        return {"product_code": self.product_code}


class NotFound(PosError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, key: str) -> None:
        super().__init__(f"{resource} '{key}' not found")
        self.resource = resource
        self.key = key

    def details(self) -> dict[str, Any]:
        return {"resource": self.resource, "key": self.key}


class InsufficientStock(PosError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_code: str, name: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for '{name}': "
            f"{available} available, {requested} requested"
        )
        self.product_code = product_code
        self.requested = requested
        self.available = available

    def details(self) -> dict[str, Any]:
        return {
            "product_code": self.product_code,
            "requested": self.requested,
            "available": self.available,
        }


class EmptyCart(PosError):
    code = "EMPTY_CART"

    def __init__(self) -> None:
        super().__init__("Cart must contain at least one item")


class InsufficientTender(PosError):
    code = "INSUFFICIENT_TENDER"

    def __init__(self, amount_due: Decimal, tendered: Decimal) -> None:
        self.amount_due = amount_due
        self.tendered = tendered
        self.shortfall = amount_due - tendered
        super().__init__(f"Tendered amount is short by {self.shortfall} MAD")

    def details(self) -> dict[str, Any]:
        return {
            "amount_due": self.amount_due,
            "tendered": self.tendered,
            "shortfall": self.shortfall,
        }


class CreditLimitExceeded(PosError):
    code = "CREDIT_LIMIT_EXCEEDED"

    def __init__(
        self,
        customer_id: str,
        credit_limit: Decimal,
        credit_used: Decimal,
        requested: Decimal,
    ) -> None:
        self.customer_id = customer_id
        self.credit_limit = credit_limit
        self.credit_used = credit_used
        self.requested = requested
        self.available = max(credit_limit - credit_used, Decimal("0"))
        super().__init__(
            f"Credit limit exceeded: {self.available} MAD available, "
            f"{requested} MAD requested"
        )

    def details(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "credit_limit": self.credit_limit,
            "credit_used": self.credit_used,
            "requested": self.requested,
            "available": self.available,
        }


class ShiftClosed(PosError):
    code = "SHIFT_CLOSED"

    def __init__(self, shift_id: str) -> None:
        super().__init__(f"Shift {shift_id} is closed")
        self.shift_id = shift_id

    def details(self) -> dict[str, Any]:
        return {"shift_id": self.shift_id}


class NoOpenShift(PosError):
    code = "NO_OPEN_SHIFT"

    def __init__(self, register_id: str) -> None:
        super().__init__(f"Open a shift on {register_id} before processing sales")
        self.register_id = register_id

    def details(self) -> dict[str, Any]:
        return {"register_id": self.register_id}


class CheckoutInProgress(PosError):
    code = "CHECKOUT_IN_PROGRESS"

    def __init__(self, register_id: str) -> None:
        super().__init__(f"A checkout is running on {register_id}; retry once it completes")
        self.register_id = register_id

    def details(self) -> dict[str, Any]:
        return {"register_id": self.register_id}


class ShiftAlreadyOpen(PosError):
    code = "SHIFT_ALREADY_OPEN"

    def __init__(self, register_id: str, shift_id: str) -> None:
        super().__init__(
            f"Register {register_id} already has an open shift. "
            "Close it before opening a new one."
        )
        self.register_id = register_id
        self.shift_id = shift_id

    def details(self) -> dict[str, Any]:
        return {"register_id": self.register_id, "shift_id": self.shift_id}
