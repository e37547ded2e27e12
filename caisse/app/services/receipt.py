"""Fiscal receipt (ticket de caisse) builder.

Layout follows the DGI requirements: business identifiers in the header,
one line per article with its TVA band, the TVA subtotal of every band that
was actually used, the rounding applied to the payable total, and the fixed
legal mentions.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal

from caisse.app.schemas.catalog import Customer
from caisse.app.services.cart import Cart, LineSnapshot, VATTotals
from caisse.app.services.errors import ValidationError
from caisse.app.services.labels import payment_method_label
from caisse.app.services.money import ZERO
from caisse.app.services.payment import Payment, PaymentMethod
from caisse.app.services.repositories import MAX_TICKETS_PER_DAY
from caisse.app.services.shift import Shift


@dataclass(frozen=True)
class BusinessHeader:
    name: str
    address: str
    phone: str
    rc: str
    ice: str
    tp: str
    cnss: str | None = None


@dataclass(frozen=True)
class TicketBlock:
    number: str
    issued_at: datetime
    date: date
    time: time
    register_id: str
    cashier: str


@dataclass(frozen=True)
class CustomerBlock:
    name: str
    ice: str
    rc: str
    address: str


@dataclass(frozen=True)
class ReceiptLine:
    designation: str
    quantity: int
    unit_price: Decimal
    vat_percent: Decimal
    discount: Decimal
    net_amount: Decimal
    vat_amount: Decimal
    gross_amount: Decimal


@dataclass(frozen=True)
class TotalBlock:
    net_total: Decimal
    vat_10: Decimal | None
    vat_14: Decimal | None
    vat_20: Decimal | None
    gross_total: Decimal
    rounding: Decimal
    net_payable: Decimal


@dataclass(frozen=True)
class PaymentBlock:
    method: PaymentMethod
    label: str
    tendered: Decimal
    change: Decimal


@dataclass(frozen=True)
class Receipt:
    header: BusinessHeader
    ticket: TicketBlock
    customer: CustomerBlock | None
    lines: tuple[ReceiptLine, ...]
    totals: TotalBlock
    payment: PaymentBlock
    mentions: tuple[str, ...]


def format_ticket_number(day: date, sequence: int) -> str:
    """Return ``YYMMDD-NNNN`` for the settlement date and its daily sequence."""
    if not 1 <= sequence <= MAX_TICKETS_PER_DAY:
        raise ValidationError(f"Ticket sequence must be between 1 and {MAX_TICKETS_PER_DAY}")
    return f"{day:%y%m%d}-{sequence:04d}"


def _band(amount: Decimal) -> Decimal | None:
    return amount if amount != ZERO else None


def build_receipt(
    sale: Cart | Sequence[LineSnapshot],
    totals: VATTotals,
    payment: Payment,
    shift: Shift,
    customer: Customer | None = None,
    *,
    business: BusinessHeader,
    ticket_number: str,
    issued_at: datetime,
    mentions: list[str] | tuple[str, ...] = (),
    label_for: Callable[[PaymentMethod], str] = payment_method_label,
) -> Receipt:
    """Snapshot a settled sale into an immutable receipt.

    *sale* is either the cart or the line snapshot that was charged; pass the
    snapshot when the cart may have changed since settlement. Line amounts are
    recomputed per line for display; the total block is copied from *totals*
    so the legal figures are exactly those that were charged.
    """
    if isinstance(sale, Cart):
        customer = customer or sale.customer
        snapshot = sale.snapshot()
    else:
        snapshot = tuple(sale)

    customer_block = None
    if customer is not None:
        customer_block = CustomerBlock(
            name=customer.name,
            ice=customer.ice or "",
            rc=customer.rc or "",
            address=customer.address or customer.city or "",
        )

    lines = tuple(
        ReceiptLine(
            designation=snap.name,
            quantity=snap.quantity,
            unit_price=snap.unit_price,
            vat_percent=snap.vat_rate.percent,
            discount=snap.discount,
            net_amount=snap.net_amount,
            vat_amount=snap.vat_amount,
            gross_amount=snap.gross_amount,
        )
        for snap in snapshot
    )

    return Receipt(
        header=business,
        ticket=TicketBlock(
            number=ticket_number,
            issued_at=issued_at,
            date=issued_at.date(),
            time=issued_at.time().replace(microsecond=0),
            register_id=shift.register_id,
            cashier=shift.cashier,
        ),
        customer=customer_block,
        lines=lines,
        totals=TotalBlock(
            net_total=totals.subtotal,
            vat_10=_band(totals.vat_10),
            vat_14=_band(totals.vat_14),
            vat_20=_band(totals.vat_20),
            gross_total=totals.raw_total,
            rounding=totals.rounding_delta,
            net_payable=totals.rounded_total,
        ),
        payment=PaymentBlock(
            method=payment.method,
            label=label_for(payment.method),
            tendered=payment.tendered,
            change=payment.change,
        ),
        mentions=tuple(mentions),
    )
