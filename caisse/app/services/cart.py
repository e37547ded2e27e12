"""Cart engine and TVA totals.

The cart is mutable while a sale is open; totals are never cached on it.
``compute_totals`` is a pure function over an immutable snapshot, and callers
recompute after every mutation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from caisse.app.schemas.catalog import Customer, Product
from caisse.app.services.errors import InsufficientStock, LineNotFound, ValidationError
from caisse.app.services.money import (
    HUNDRED,
    ZERO,
    VATRate,
    line_net,
    round_currency,
    to_decimal,
)


MAX_LINE_QUANTITY = 99_999


@dataclass
class CartLine:
    product: Product
    quantity: int = 1
    discount: Decimal = ZERO

    @property
    def net_amount(self) -> Decimal:
        return line_net(self.product.unit_price, self.quantity, self.discount)

    @property
    def vat_amount(self) -> Decimal:
        return self.net_amount * self.product.vat_rate.fraction


@dataclass(frozen=True)
class LineSnapshot:
    product_code: str
    name: str
    unit_price: Decimal
    vat_rate: VATRate
    quantity: int
    discount: Decimal

    @property
    def net_amount(self) -> Decimal:
        return line_net(self.unit_price, self.quantity, self.discount)

    @property
    def vat_amount(self) -> Decimal:
        return self.net_amount * self.vat_rate.fraction

    @property
    def gross_amount(self) -> Decimal:
        return self.net_amount + self.vat_amount


@dataclass(frozen=True)
class VATTotals:
    vat_by_rate: Mapping[VATRate, Decimal]
    subtotal: Decimal
    total_vat: Decimal
    raw_total: Decimal
    rounded_total: Decimal
    rounding_delta: Decimal
    item_count: int = 0

    @property
    def vat_10(self) -> Decimal:
        return self.vat_by_rate[VATRate.TVA_10]

    @property
    def vat_14(self) -> Decimal:
        return self.vat_by_rate[VATRate.TVA_14]

    @property
    def vat_20(self) -> Decimal:
        return self.vat_by_rate[VATRate.TVA_20]


def compute_totals(lines: tuple[LineSnapshot, ...] | list[LineSnapshot]) -> VATTotals:
    """Bucket each line's TVA into its band and round the payable total once."""
    vat_by_rate: dict[VATRate, Decimal] = {rate: ZERO for rate in VATRate}
    subtotal = ZERO
    item_count = 0
    for line in lines:
        net = line.net_amount
        subtotal += net
        vat_by_rate[line.vat_rate] += net * line.vat_rate.fraction
        item_count += line.quantity

    total_vat = sum(vat_by_rate.values(), ZERO)
    raw_total = subtotal + total_vat
    rounded_total = round_currency(raw_total)
    return VATTotals(
        vat_by_rate=MappingProxyType(vat_by_rate),
        subtotal=subtotal,
        total_vat=total_vat,
        raw_total=raw_total,
        rounded_total=rounded_total,
        rounding_delta=rounded_total - raw_total,
        item_count=item_count,
    )


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)
    customer: Customer | None = None

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def find_line(self, product_code: str) -> CartLine | None:
        for line in self.lines:
            if line.product.code == product_code:
                return line
        return None

    def _require_line(self, product_code: str) -> CartLine:
        line = self.find_line(product_code)
        if line is None:
            raise LineNotFound(product_code)
        return line

    def add_line(self, product: Product, quantity: int = 1) -> CartLine:
        """Add *quantity* of *product*, merging into its existing line.

        Stock is not checked here; settlement re-validates it.
        """
        _check_quantity(quantity)
        line = self.find_line(product.code)
        if line is not None:
            _check_quantity(line.quantity + quantity)
            line.quantity += quantity
            return line
        line = CartLine(product=product, quantity=quantity)
        self.lines.append(line)
        return line

    def set_quantity(self, product_code: str, quantity: int) -> CartLine:
        _check_quantity(quantity)
        line = self._require_line(product_code)
        if quantity > line.product.stock:
            raise InsufficientStock(
                product_code=product_code,
                name=line.product.name,
                requested=quantity,
                available=line.product.stock,
            )
        line.quantity = quantity
        return line

    def set_discount(self, product_code: str, percent: Decimal | int | str) -> CartLine:
        """Set the line discount; out-of-range percentages are clamped to [0, 100]."""
        value = to_decimal(percent, field="discount")
        line = self._require_line(product_code)
        line.discount = min(HUNDRED, max(ZERO, value))
        return line

    def remove_line(self, product_code: str) -> None:
        line = self._require_line(product_code)
        self.lines.remove(line)

    def clear(self) -> None:
        self.lines.clear()
        self.customer = None

    def set_customer(self, customer: Customer | None) -> None:
        self.customer = customer

    def snapshot(self) -> tuple[LineSnapshot, ...]:
        return tuple(
            LineSnapshot(
                product_code=line.product.code,
                name=line.product.name,
                unit_price=line.product.unit_price,
                vat_rate=line.product.vat_rate,
                quantity=line.quantity,
                discount=line.discount,
            )
            for line in self.lines
        )

    def totals(self) -> VATTotals:
        return compute_totals(self.snapshot())


def _check_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"Quantity must be an integer, got {quantity!r}")
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    if quantity > MAX_LINE_QUANTITY:
        raise ValidationError(f"Quantity must not exceed {MAX_LINE_QUANTITY}")
