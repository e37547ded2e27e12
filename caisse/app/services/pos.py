"""Register-level orchestration: one cart and one open shift per terminal."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from decimal import Decimal
from zoneinfo import ZoneInfo

from caisse.app.core.config import Settings
from caisse.app.schemas.catalog import Product
from caisse.app.services.audit import log_action
from caisse.app.services.cart import Cart, CartLine, VATTotals, compute_totals
from caisse.app.services.catalog import find_by_barcode, get_customer, get_product
from caisse.app.services.errors import CheckoutInProgress, NoOpenShift, ShiftAlreadyOpen
from caisse.app.services.labels import payment_method_label, receipt_mentions
from caisse.app.services.payment import Payment, PaymentMethod
from caisse.app.services.receipt import (
    BusinessHeader,
    Receipt,
    build_receipt,
    format_ticket_number,
)
from caisse.app.services.repositories import Store
from caisse.app.services.settlement import settle
from caisse.app.services.shift import Shift

logger = logging.getLogger(__name__)

SHIFT_LIST_LIMIT = 50


@dataclass(frozen=True)
class SaleResult:
    receipt: Receipt
    payment: Payment
    totals: VATTotals
    low_stock: list[Product] = field(default_factory=list)


def business_header_from_settings(settings: Settings) -> BusinessHeader:
    return BusinessHeader(
        name=settings.BUSINESS_NAME,
        address=settings.BUSINESS_ADDRESS,
        phone=settings.BUSINESS_PHONE,
        rc=settings.BUSINESS_RC,
        ice=settings.BUSINESS_ICE,
        tp=settings.BUSINESS_TP,
        cnss=settings.BUSINESS_CNSS,
    )



class PosTerminal:
    """Cart commands, checkout and shift commands for a single register.

    The terminal is the caller context for the engine: it resolves products
    and customers through the store, enforces one open shift per register,
    and wraps checkout in the store's unit of work.

    One lock guards the cart. Cart commands that arrive while a checkout is
    running are refused with ``CheckoutInProgress`` instead of being merged
    into a sale that has already been priced.
    """

    def __init__(
        self,
        store: Store,
        business: BusinessHeader,
        register_id: str,
        tz: tzinfo | None = None,
        mentions: list[str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.business = business
        self.register_id = register_id
        self.tz = tz or ZoneInfo("Africa/Casablanca")
        self.mentions = mentions
        self._clock = clock
        self._lock = threading.RLock()
        self._checking_out = False
        self.cart = Cart()

    @classmethod
    def from_settings(cls, store: Store, settings: Settings) -> PosTerminal:
        return cls(
            store=store,
            business=business_header_from_settings(settings),
            register_id=settings.REGISTER_ID,
            tz=ZoneInfo(settings.TIMEZONE),
            mentions=settings.RECEIPT_MENTIONS or None,
        )

    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        return datetime.now(self.tz)

    @contextmanager
    def _editing(self) -> Iterator[Cart]:
        with self._lock:
            if self._checking_out:
                raise CheckoutInProgress(self.register_id)
            yield self.cart

    # ─── Cart commands ──────────────────────────────────────────────────

    def add_product(self, code: str, quantity: int = 1) -> CartLine:
        with self._editing() as cart:
            return cart.add_line(get_product(self.store.products, code), quantity)

    def scan(self, barcode: str) -> CartLine:
        with self._editing() as cart:
            line = cart.add_line(find_by_barcode(self.store.products, barcode))
        logger.debug("Scanned %s -> %s", barcode, line.product.code)
        return line

    def set_quantity(self, code: str, quantity: int) -> CartLine:
        with self._editing() as cart:
            line = cart.find_line(code)
            if line is not None:
                # Check against the stock on hand now, not when the line was added
                line.product = get_product(self.store.products, code)
            return cart.set_quantity(code, quantity)

    def set_discount(self, code: str, percent: Decimal | int | str) -> CartLine:
        with self._editing() as cart:
            return cart.set_discount(code, percent)

    def remove_line(self, code: str) -> None:
        with self._editing() as cart:
            cart.remove_line(code)

    def clear_cart(self) -> None:
        with self._editing() as cart:
            cart.clear()

    def set_customer(self, customer_id: str | None) -> None:
        with self._editing() as cart:
            if customer_id is None:
                cart.set_customer(None)
            else:
                cart.set_customer(get_customer(self.store.customers, customer_id))

    def totals(self) -> VATTotals:
        with self._lock:
            return self.cart.totals()

    # ─── Checkout ───────────────────────────────────────────────────────

    def checkout(
        self,
        method: PaymentMethod | str,
        tendered: Decimal | int | str | None = None,
        lang: str = "fr",
    ) -> SaleResult:
        """Settle the cart, emit the receipt and clear the cart, as one unit.

        The sale is priced from a single snapshot of the cart; settlement,
        the receipt and the audit record all describe that snapshot.
        """
        method = PaymentMethod(method)
        with self._lock:
            if self._checking_out:
                raise CheckoutInProgress(self.register_id)
            self._checking_out = True
            try:
                return self._checkout(method, tendered, lang)
            finally:
                self._checking_out = False

    def _checkout(
        self,
        method: PaymentMethod,
        tendered: Decimal | int | str | None,
        lang: str,
    ) -> SaleResult:
        now = self.now()
        lines = self.cart.snapshot()
        customer = self.cart.customer
        totals = compute_totals(lines)

        with self.store.transaction() as store:
            shift = self._require_active_shift(store)
            payment = settle(
                self.cart,
                totals,
                method,
                shift=shift,
                products=store.products,
                customers=store.customers,
                tendered=tendered,
                customer=customer,
            )
            store.shifts.update(shift)
            day = now.date()
            ticket_number = format_ticket_number(day, store.tickets.next(day))
            receipt = build_receipt(
                lines,
                totals,
                payment,
                shift,
                customer,
                business=self.business,
                ticket_number=ticket_number,
                issued_at=now,
                mentions=self.mentions if self.mentions is not None else receipt_mentions(lang),
                label_for=lambda m: payment_method_label(m, lang),
            )
            log_action(
                store.audit,
                cashier=shift.cashier,
                action="SALE_COMPLETED",
                resource_type="receipts",
                resource_id=ticket_number,
                register_id=self.register_id,
                changes={
                    "shift_id": shift.id,
                    "method": method.value,
                    "net_total": totals.subtotal,
                    "vat_total": totals.total_vat,
                    "net_payable": totals.rounded_total,
                    "tendered": payment.tendered,
                    "change": payment.change,
                    "customer_id": payment.customer_id,
                    "item_count": totals.item_count,
                },
            )

        self.cart.clear()

        low_stock = [
            p for p in (self.store.products.get(line.product_code) for line in lines)
            if p is not None and p.is_low_stock
        ]
        for product in low_stock:
            logger.warning(
                "Low stock: %s (%s) at %d, reorder level %d",
                product.name, product.code, product.stock, product.reorder_level,
            )
        return SaleResult(receipt=receipt, payment=payment, totals=totals, low_stock=low_stock)

    # ─── Shift management ───────────────────────────────────────────────

    def active_shift(self) -> Shift | None:
        """Return this register's open shift, or None."""
        for shift in self.store.shifts.list():
            if shift.register_id == self.register_id and shift.is_open:
                return shift
        return None

    def _require_active_shift(self, store: Store) -> Shift:
        for shift in store.shifts.list():
            if shift.register_id == self.register_id and shift.is_open:
                return shift
        raise NoOpenShift(self.register_id)

    def open_shift(self, cashier: str, opening_balance: Decimal | int | str) -> Shift:
        with self.store.transaction() as store:
            existing = self.active_shift()
            if existing is not None:
                raise ShiftAlreadyOpen(self.register_id, existing.id)
            shift = Shift.open(cashier, opening_balance, self.register_id, now=self.now())
            store.shifts.update(shift)
            log_action(
                store.audit,
                cashier=cashier,
                action="SHIFT_OPENED",
                resource_type="shifts",
                resource_id=shift.id,
                register_id=self.register_id,
                changes={"opening_balance": shift.opening_balance},
            )
        return shift

    def close_shift(self, counted_cash: Decimal | int | str, notes: str | None = None) -> Shift:
        """Close the open shift and record the cash variance."""
        with self.store.transaction() as store:
            shift = self._require_active_shift(store)
            shift.close(counted_cash, notes=notes, now=self.now())
            store.shifts.update(shift)
            log_action(
                store.audit,
                cashier=shift.cashier,
                action="SHIFT_CLOSED",
                resource_type="shifts",
                resource_id=shift.id,
                register_id=self.register_id,
                changes={
                    "closing_balance": shift.closing_balance,
                    "expected_cash": shift.expected_cash,
                    "difference": shift.difference,
                    "total_sales": shift.total_sales,
                    "ticket_count": shift.ticket_count,
                },
            )

        if shift.difference:
            logger.warning(
                "Cash %s of %s MAD on shift %s",
                "overage" if shift.difference > 0 else "shortage",
                abs(shift.difference), shift.id,
            )
        return shift

    def list_shifts(self) -> list[Shift]:
        """Return this register's shifts, most recent first."""
        shifts = [s for s in self.store.shifts.list() if s.register_id == self.register_id]
        shifts.sort(key=lambda s: s.opened_at, reverse=True)
        return shifts[:SHIFT_LIST_LIMIT]
