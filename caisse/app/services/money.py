"""Money and TVA primitives.

All amounts are ``Decimal``. Intermediate values are never rounded; only the
payable total is rounded, once, to centimes with ROUND_HALF_UP (half away from
zero for ``decimal``).
"""

from __future__ import annotations

import enum
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from caisse.app.services.errors import ValidationError

CENTS = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Upper bound for any single amount entered at the register (one billion MAD)
MAX_AMOUNT = Decimal("1000000000")


def to_decimal(value: Decimal | int | str, field: str = "amount") -> Decimal:
    """Coerce *value* to ``Decimal`` without going through binary float."""
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{field} must be a Decimal, int or str, got {type(value).__name__}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation:
            raise ValidationError(f"{field} is not a valid number: {value!r}")
    else:
        raise ValidationError(f"{field} must be a Decimal, int or str, got {type(value).__name__}")
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite")
    return result


def to_amount(value: Decimal | int | str, field: str = "amount") -> Decimal:
    """Like ``to_decimal``, restricted to 0 <= value <= ``MAX_AMOUNT``."""
    result = to_decimal(value, field=field)
    if result < 0:
        raise ValidationError(f"{field} must be non-negative")
    if result > MAX_AMOUNT:
        raise ValidationError(f"{field} must not exceed {MAX_AMOUNT} MAD")
    return result


def round_currency(amount: Decimal) -> Decimal:
    """Round to two decimals, half away from zero."""
    try:
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"Amount {amount} is too large to round to centimes")


class VATRate(str, enum.Enum):
    """The three legal Moroccan TVA bands."""

    TVA_10 = "10"
    TVA_14 = "14"
    TVA_20 = "20"

    @property
    def percent(self) -> Decimal:
        return Decimal(self.value)

    @property
    def fraction(self) -> Decimal:
        return Decimal(self.value) / HUNDRED

    @classmethod
    def from_value(cls, value: VATRate | Decimal | int | str) -> VATRate:
        """Accept a band, a percentage (``20``) or a fraction (``"0.2"``)."""
        if isinstance(value, cls):
            return value
        number = to_decimal(value, field="vat_rate")
        if ZERO < number < 1:
            number = number * HUNDRED
        for rate in cls:
            if rate.percent == number:
                return rate
        raise ValidationError(f"Invalid TVA rate {value!r}: must be one of 10, 14, 20")


def line_net(unit_price: Decimal, quantity: int, discount_percent: Decimal = ZERO) -> Decimal:
    """price x qty x (1 - discount/100), unrounded."""
    return unit_price * quantity * (1 - discount_percent / HUNDRED)


def vat_breakdown(amount_ht: Decimal | int | str, rate: VATRate | Decimal | int | str) -> dict[str, Decimal]:
    """HT -> TVA -> TTC for a single amount, as on the counter VAT calculator."""
    ht = to_amount(amount_ht, field="amount_ht")
    band = VATRate.from_value(rate)
    tva = ht * band.fraction
    return {
        "ht": ht,
        "tva": tva,
        "ttc": ht + tva,
        "rate": band.percent,
    }
