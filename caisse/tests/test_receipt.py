"""Tests for the fiscal receipt builder and its labels."""
from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from caisse.app.schemas.catalog import Customer, Product
from caisse.app.services.cart import Cart, compute_totals
from caisse.app.services.errors import ValidationError
from caisse.app.services.labels import format_mad, payment_method_label, receipt_mentions
from caisse.app.services.payment import Payment, PaymentMethod, PaymentStatus
from caisse.app.services.receipt import BusinessHeader, build_receipt, format_ticket_number
from caisse.app.services.shift import Shift
from caisse.tests.conftest import FIXED_NOW


def _cash_payment(amount: str, tendered: str) -> Payment:
    return Payment(
        method=PaymentMethod.CASH,
        amount=Decimal(amount),
        tendered=Decimal(tendered),
        change=Decimal(tendered) - Decimal(amount),
        status=PaymentStatus.PAID,
    )


class TestTicketNumber:
    def test_format(self) -> None:
        assert format_ticket_number(date(2024, 1, 5), 7) == "240105-0007"
        assert format_ticket_number(date(2031, 12, 31), 9999) == "311231-9999"

    @pytest.mark.parametrize("seq", [0, 10000, -3])
    def test_sequence_out_of_range(self, seq: int) -> None:
        with pytest.raises(ValidationError):
            format_ticket_number(date(2024, 1, 5), seq)


class TestBuildReceipt:
    def test_lines_totals_and_payment(
        self, cafe: Product, lait: Product, shift: Shift, business: BusinessHeader
    ) -> None:
        cart = Cart()
        cart.add_line(cafe, 2)
        cart.add_line(lait, 3)
        totals = cart.totals()
        receipt = build_receipt(
            cart,
            totals,
            _cash_payment(str(totals.rounded_total), "200"),
            shift,
            business=business,
            ticket_number="240115-0001",
            issued_at=FIXED_NOW,
            mentions=receipt_mentions("fr"),
        )

        assert receipt.ticket.number == "240115-0001"
        assert receipt.ticket.date == date(2024, 1, 15)
        assert receipt.ticket.register_id == "CAISSE 01"
        assert receipt.ticket.cashier == "Youssef EL BACHIRI"
        assert [line.designation for line in receipt.lines] == [cafe.name, lait.name]

        first = receipt.lines[0]
        assert first.quantity == 2
        assert first.vat_percent == Decimal("20")
        assert first.net_amount == Decimal("65.00")
        assert first.vat_amount == Decimal("13.00")
        assert first.gross_amount == Decimal("78.00")

        assert receipt.totals.vat_20 == Decimal("13.00")
        assert receipt.totals.vat_14 == Decimal("3.738")
        assert receipt.totals.vat_10 is None
        assert receipt.totals.net_payable == totals.rounded_total
        assert receipt.totals.rounding == totals.rounding_delta

        assert receipt.payment.label == "Espèces"
        assert receipt.payment.change == Decimal("200") - totals.rounded_total
        assert receipt.mentions[0] == "TVA incluse selon les taux en vigueur"
        assert receipt.customer is None
        assert receipt.header.ice == "001234567890123"

    def test_customer_block_falls_back_to_city(
        self, cafe: Product, shift: Shift, business: BusinessHeader, customer: Customer
    ) -> None:
        cart = Cart()
        cart.add_line(cafe)
        cart.set_customer(customer)
        totals = cart.totals()
        receipt = build_receipt(
            cart, totals, _cash_payment("39.00", "39.00"), shift,
            business=business, ticket_number="240115-0002", issued_at=FIXED_NOW,
        )
        assert receipt.customer is not None
        assert receipt.customer.name == "Mohamed Amine"
        assert receipt.customer.ice == "001234567890123"
        assert receipt.customer.address == "Casablanca"

    def test_receipt_is_immutable(
        self, cafe: Product, shift: Shift, business: BusinessHeader
    ) -> None:
        cart = Cart()
        cart.add_line(cafe)
        receipt = build_receipt(
            cart, cart.totals(), _cash_payment("39.00", "50.00"), shift,
            business=business, ticket_number="240115-0003", issued_at=FIXED_NOW,
        )
        with pytest.raises(dataclasses.FrozenInstanceError):
            receipt.ticket = None  # type: ignore[misc]
        cart.add_line(cafe, 4)
        assert receipt.lines[0].quantity == 1

    def test_built_from_snapshot_ignores_later_edits(
        self, cafe: Product, lait: Product, shift: Shift, business: BusinessHeader, customer: Customer
    ) -> None:
        cart = Cart()
        cart.add_line(cafe, 2)
        lines = cart.snapshot()
        totals = compute_totals(lines)
        cart.add_line(lait, 5)
        cart.set_quantity("P001", 3)

        receipt = build_receipt(
            lines, totals, _cash_payment("78.00", "100.00"), shift, customer,
            business=business, ticket_number="240115-0004", issued_at=FIXED_NOW,
        )
        assert [(l.designation, l.quantity) for l in receipt.lines] == [(cafe.name, 2)]
        assert receipt.totals.net_payable == Decimal("78.00")
        assert receipt.customer.name == "Mohamed Amine"


class TestLabels:
    def test_payment_labels_by_language(self) -> None:
        assert payment_method_label(PaymentMethod.CARD) == "Carte Bancaire"
        assert payment_method_label("transfer", "en") == "Bank transfer"
        assert payment_method_label("cash", "ar") == "نقدا"

    def test_unknown_language_falls_back_to_french(self) -> None:
        assert payment_method_label("cheque", "de") == "Chèque"
        assert len(receipt_mentions("de")) == 4

    def test_format_mad(self) -> None:
        assert format_mad(Decimal("1234.505")) == "1 234,51 MAD"
        assert format_mad(Decimal("78")) == "78,00 MAD"
