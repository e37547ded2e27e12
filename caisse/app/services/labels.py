"""Presentation labels kept outside the settlement logic."""

from __future__ import annotations

from decimal import Decimal

from caisse.app.core.i18n import translate, translate_list
from caisse.app.services.money import round_currency
from caisse.app.services.payment import PaymentMethod, PaymentStatus


def payment_method_label(method: PaymentMethod | str, lang: str = "fr") -> str:
    """Return the label printed on the receipt, e.g. ``cash`` -> ``Espèces``."""
    return translate(lang, f"payment.{PaymentMethod(method).value}")


def payment_status_label(status: PaymentStatus | str, lang: str = "fr") -> str:
    return translate(lang, f"payment_status.{PaymentStatus(status).value}")


def receipt_mentions(lang: str = "fr") -> list[str]:
    return translate_list(lang, "receipt.mentions")


def format_mad(amount: Decimal) -> str:
    """``1234.5`` -> ``1 234,50 MAD`` (fr-MA grouping)."""
    rounded = round_currency(amount)
    whole, _, cents = f"{rounded:,.2f}".partition(".")
    return f"{whole.replace(',', ' ')},{cents} MAD"
