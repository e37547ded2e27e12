from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, Field, field_validator

from caisse.app.schemas.catalog import Customer, Product
from caisse.app.services.cart import MAX_LINE_QUANTITY, Cart, VATTotals, compute_totals
from caisse.app.services.money import MAX_AMOUNT, round_currency
from caisse.app.services.payment import PaymentMethod
from caisse.app.services.receipt import Receipt
from caisse.app.services.shift import Shift

Q = Decimal("0.0001")


def money(amount: Decimal) -> str:
    """Two-decimal display amount."""
    return str(round_currency(amount))


def exact(amount: Decimal) -> str:
    """Unrounded amount (band TVA, rounding delta) at storage precision."""
    return str(amount.quantize(Q, rounding=ROUND_HALF_UP))


def _optional(amount: Decimal | None) -> str | None:
    return exact(amount) if amount is not None else None


# ─── Requests ─────────────────────────────────────────────────────────────────


class AddLineRequest(BaseModel):
    product_code: str
    quantity: int = Field(default=1, le=MAX_LINE_QUANTITY)

    @field_validator("quantity")
    @classmethod
    def quantity_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero")
        return v


class ScanRequest(BaseModel):
    barcode: str


class QuantityRequest(BaseModel):
    quantity: int = Field(le=MAX_LINE_QUANTITY)

    @field_validator("quantity")
    @classmethod
    def quantity_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero")
        return v


class DiscountRequest(BaseModel):
    # Out-of-range values are clamped by the cart, not rejected
    percent: Decimal


class CustomerSelectRequest(BaseModel):
    customer_id: str | None = None


class CheckoutRequest(BaseModel):
    method: PaymentMethod
    tendered: Decimal | None = Field(default=None, le=MAX_AMOUNT)

    @field_validator("tendered")
    @classmethod
    def tendered_non_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("Tendered amount must be non-negative")
        return v


class ShiftOpenRequest(BaseModel):
    cashier: str
    opening_cash: Decimal = Field(le=MAX_AMOUNT)

    @field_validator("opening_cash")
    @classmethod
    def cash_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Opening cash must be non-negative")
        return v


class ShiftCloseRequest(BaseModel):
    closing_cash_reported: Decimal = Field(le=MAX_AMOUNT)
    notes: str | None = None

    @field_validator("closing_cash_reported")
    @classmethod
    def cash_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Closing cash must be non-negative")
        return v


class VatCalculationRequest(BaseModel):
    amount_ht: Decimal = Field(ge=0, le=MAX_AMOUNT)
    rate: str = "20"


# ─── Responses ────────────────────────────────────────────────────────────────


class ProductOut(BaseModel):
    code: str
    barcode: str
    name: str
    name_arabic: str | None
    category: str | None
    unit: str
    unit_price: str
    vat_rate: str
    stock: int
    reorder_level: int
    low_stock: bool

    @classmethod
    def from_product(cls, p: Product) -> ProductOut:
        return cls(
            code=p.code,
            barcode=p.barcode,
            name=p.name,
            name_arabic=p.name_arabic,
            category=p.category,
            unit=p.unit,
            unit_price=money(p.unit_price),
            vat_rate=p.vat_rate.value,
            stock=p.stock,
            reorder_level=p.reorder_level,
            low_stock=p.is_low_stock,
        )


class CustomerOut(BaseModel):
    id: str
    code: str
    name: str
    phone: str | None
    city: str | None
    ice: str | None
    rc: str | None
    is_vip: bool
    credit_limit: str
    credit_used: str
    available_credit: str

    @classmethod
    def from_customer(cls, c: Customer) -> CustomerOut:
        return cls(
            id=c.id,
            code=c.code,
            name=c.name,
            phone=c.phone,
            city=c.city,
            ice=c.ice,
            rc=c.rc,
            is_vip=c.is_vip,
            credit_limit=money(c.credit_limit),
            credit_used=money(c.credit_used),
            available_credit=money(c.available_credit),
        )


class CartLineOut(BaseModel):
    product_code: str
    name: str
    quantity: int
    unit_price: str
    vat_rate: str
    discount: str
    net_amount: str
    vat_amount: str
    gross_amount: str


class TotalsOut(BaseModel):
    subtotal: str
    vat_10: str
    vat_14: str
    vat_20: str
    total_vat: str
    raw_total: str
    rounded_total: str
    rounding_delta: str
    item_count: int

    @classmethod
    def from_totals(cls, t: VATTotals) -> TotalsOut:
        return cls(
            subtotal=exact(t.subtotal),
            vat_10=exact(t.vat_10),
            vat_14=exact(t.vat_14),
            vat_20=exact(t.vat_20),
            total_vat=exact(t.total_vat),
            raw_total=exact(t.raw_total),
            rounded_total=money(t.rounded_total),
            rounding_delta=exact(t.rounding_delta),
            item_count=t.item_count,
        )


class CartOut(BaseModel):
    lines: list[CartLineOut]
    customer: CustomerOut | None
    totals: TotalsOut

    @classmethod
    def from_cart(cls, cart: Cart) -> CartOut:
        snapshot = cart.snapshot()
        return cls(
            lines=[
                CartLineOut(
                    product_code=s.product_code,
                    name=s.name,
                    quantity=s.quantity,
                    unit_price=money(s.unit_price),
                    vat_rate=s.vat_rate.value,
                    discount=exact(s.discount),
                    net_amount=exact(s.net_amount),
                    vat_amount=exact(s.vat_amount),
                    gross_amount=exact(s.gross_amount),
                )
                for s in snapshot
            ],
            customer=CustomerOut.from_customer(cart.customer) if cart.customer else None,
            totals=TotalsOut.from_totals(compute_totals(snapshot)),
        )


class EnTeteOut(BaseModel):
    raison_sociale: str
    adresse: str
    telephone: str
    rc: str
    ice: str
    tp: str
    cnss: str | None = None


class TicketOut(BaseModel):
    numero: str
    date: str
    heure: str
    caisse: str
    caissier: str


class ClientOut(BaseModel):
    nom: str
    ice: str
    rc: str
    adresse: str


class ArticleOut(BaseModel):
    designation: str
    quantite: int
    prix_unitaire: str
    tva: str
    remise: str
    montant_ht: str
    montant_tva: str
    montant_ttc: str


class TotalOut(BaseModel):
    montant_ht: str
    montant_tva_10: str | None = None
    montant_tva_14: str | None = None
    montant_tva_20: str | None = None
    montant_ttc: str
    arrondi: str
    net_a_payer: str


class PaiementOut(BaseModel):
    mode: str
    recu: str
    rendu: str


class ReceiptOut(BaseModel):
    en_tete: EnTeteOut
    ticket: TicketOut
    client: ClientOut | None = None
    articles: list[ArticleOut]
    total: TotalOut
    paiement: PaiementOut
    mentions: list[str]

    @classmethod
    def from_receipt(cls, r: Receipt) -> ReceiptOut:
        return cls(
            en_tete=EnTeteOut(
                raison_sociale=r.header.name,
                adresse=r.header.address,
                telephone=r.header.phone,
                rc=r.header.rc,
                ice=r.header.ice,
                tp=r.header.tp,
                cnss=r.header.cnss,
            ),
            ticket=TicketOut(
                numero=r.ticket.number,
                date=r.ticket.date.strftime("%d/%m/%Y"),
                heure=r.ticket.time.strftime("%H:%M:%S"),
                caisse=r.ticket.register_id,
                caissier=r.ticket.cashier,
            ),
            client=ClientOut(
                nom=r.customer.name,
                ice=r.customer.ice,
                rc=r.customer.rc,
                adresse=r.customer.address,
            ) if r.customer else None,
            articles=[
                ArticleOut(
                    designation=line.designation,
                    quantite=line.quantity,
                    prix_unitaire=money(line.unit_price),
                    tva=str(line.vat_percent),
                    remise=exact(line.discount),
                    montant_ht=money(line.net_amount),
                    montant_tva=money(line.vat_amount),
                    montant_ttc=money(line.gross_amount),
                )
                for line in r.lines
            ],
            total=TotalOut(
                montant_ht=exact(r.totals.net_total),
                montant_tva_10=_optional(r.totals.vat_10),
                montant_tva_14=_optional(r.totals.vat_14),
                montant_tva_20=_optional(r.totals.vat_20),
                montant_ttc=exact(r.totals.gross_total),
                arrondi=exact(r.totals.rounding),
                net_a_payer=money(r.totals.net_payable),
            ),
            paiement=PaiementOut(
                mode=r.payment.label,
                recu=money(r.payment.tendered),
                rendu=money(r.payment.change),
            ),
            mentions=list(r.mentions),
        )


class CheckoutOut(BaseModel):
    receipt: ReceiptOut
    payment_status: str
    low_stock: list[str] = []


class ShiftOut(BaseModel):
    id: str
    register_id: str
    cashier: str
    status: str
    opened_at: str
    closed_at: str | None
    opening_cash: str
    cash_sales: str
    card_sales: str
    cheque_sales: str
    total_sales: str
    ticket_count: int
    expected_cash: str
    closing_cash_reported: str | None
    discrepancy: str | None
    notes: str | None

    @classmethod
    def from_shift(cls, s: Shift) -> ShiftOut:
        return cls(
            id=s.id,
            register_id=s.register_id,
            cashier=s.cashier,
            status=s.status.value,
            opened_at=s.opened_at.isoformat(timespec="seconds"),
            closed_at=s.closed_at.isoformat(timespec="seconds") if s.closed_at else None,
            opening_cash=money(s.opening_balance),
            cash_sales=money(s.cash_sales),
            card_sales=money(s.card_sales),
            cheque_sales=money(s.cheque_sales),
            total_sales=money(s.total_sales),
            ticket_count=s.ticket_count,
            expected_cash=money(s.expected_cash),
            closing_cash_reported=money(s.closing_balance) if s.closing_balance is not None else None,
            discrepancy=money(s.difference) if s.difference is not None else None,
            notes=s.notes,
        )


class VatCalculationOut(BaseModel):
    rate: str
    ht: str
    tva: str
    ttc: str
