"""Payment settlement: the single committal point of a sale.

Every precondition is checked before the first write, so a failing settlement
leaves cart, stock, customer credit and shift untouched. Callers run it inside
``Store.transaction()`` so that an infrastructure failure mid-write is rolled
back as well.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from caisse.app.schemas.catalog import Customer, Product
from caisse.app.services.cart import Cart, VATTotals, compute_totals
from caisse.app.services.errors import (
    CreditLimitExceeded,
    EmptyCart,
    InsufficientStock,
    InsufficientTender,
    NotFound,
    ValidationError,
)
from caisse.app.services.money import ZERO, to_amount
from caisse.app.services.payment import Payment, PaymentMethod, PaymentStatus
from caisse.app.services.repositories import Repository
from caisse.app.services.shift import Shift

logger = logging.getLogger(__name__)


def settle(
    cart: Cart,
    totals: VATTotals,
    method: PaymentMethod | str,
    *,
    shift: Shift,
    products: Repository[Product],
    customers: Repository[Customer] | None = None,
    tendered: Decimal | int | str | None = None,
    customer: Customer | None = None,
) -> Payment:
    """Validate the tender, consume stock, charge credit and update the shift."""
    method = PaymentMethod(method)

    # ── Preconditions (no mutation before this block completes) ──────────
    lines = cart.snapshot()
    if not lines:
        raise EmptyCart()
    shift.ensure_open()

    if totals != compute_totals(lines):
        raise ValidationError("Totals are stale; recompute them from the current cart")
    amount_due = totals.rounded_total

    tender_amount = amount_due
    if method == PaymentMethod.CASH:
        if tendered is None:
            raise ValidationError("Tendered amount is required for cash payments")
        tender_amount = to_amount(tendered, field="tendered")
        if tender_amount < amount_due:
            raise InsufficientTender(amount_due=amount_due, tendered=tender_amount)
    elif tendered is not None and to_amount(tendered, field="tendered") != amount_due:
        raise ValidationError(
            f"Payment total ({tendered}) does not match sale total ({amount_due})"
        )

    customer = customer or cart.customer
    charged: Customer | None = None
    if method == PaymentMethod.CREDIT:
        if customer is None:
            raise ValidationError("A customer is required for credit payments")
        if customers is None:
            raise ValidationError("No customer repository configured for credit payments")
        # Re-read: the cart may hold a stale copy of the customer
        charged = customers.get(customer.id)
        if charged is None:
            raise NotFound("Customer", customer.id)
        if charged.credit_used + amount_due > charged.credit_limit:
            raise CreditLimitExceeded(
                customer_id=charged.id,
                credit_limit=charged.credit_limit,
                credit_used=charged.credit_used,
                requested=amount_due,
            )

    stocked: list[tuple[Product, int]] = []
    for line in lines:
        current = products.get(line.product_code)
        if current is None:
            raise NotFound("Product", line.product_code)
        if current.stock < line.quantity:
            raise InsufficientStock(
                product_code=current.code,
                name=current.name,
                requested=line.quantity,
                available=current.stock,
            )
        stocked.append((current, line.quantity))

    # ── Commit ───────────────────────────────────────────────────────────
    for product, quantity in stocked:
        product.stock -= quantity
        products.update(product)

    if charged is not None and customers is not None:
        charged.credit_used = charged.credit_used + amount_due
        customers.update(charged)
        logger.info(
            "Charged %s MAD to customer %s (credit used %s / %s)",
            amount_due, charged.id, charged.credit_used, charged.credit_limit,
        )

    shift.record_sale(method, amount_due)

    change = max(ZERO, tender_amount - amount_due) if method == PaymentMethod.CASH else ZERO
    return Payment(
        method=method,
        amount=amount_due,
        tendered=tender_amount,
        change=change,
        status=PaymentStatus.CREDIT if method == PaymentMethod.CREDIT else PaymentStatus.PAID,
        customer_id=customer.id if customer else None,
    )
