from __future__ import annotations

from fastapi import APIRouter, Depends, status

from caisse.app.api.deps import get_language, get_terminal, http_error
from caisse.app.schemas.pos import (
    AddLineRequest,
    CartOut,
    CheckoutOut,
    CheckoutRequest,
    CustomerSelectRequest,
    DiscountRequest,
    QuantityRequest,
    ReceiptOut,
    ScanRequest,
    ShiftCloseRequest,
    ShiftOpenRequest,
    ShiftOut,
)
from caisse.app.services.errors import PosError
from caisse.app.services.labels import payment_status_label
from caisse.app.services.pos import PosTerminal

router = APIRouter()


# ─── Cart ────────────────────────────────────────────────────────────────────


@router.get("/cart", response_model=CartOut)
def get_cart(terminal: PosTerminal = Depends(get_terminal)) -> CartOut:
    return CartOut.from_cart(terminal.cart)


@router.post("/cart/lines", response_model=CartOut)
def add_line(
    payload: AddLineRequest,
    terminal: PosTerminal = Depends(get_terminal),
) -> CartOut:
    try:
        terminal.add_product(payload.product_code, payload.quantity)
    except PosError as e:
        raise http_error(e)
    return CartOut.from_cart(terminal.cart)


@router.post("/scan", response_model=CartOut)
def scan_barcode(
    payload: ScanRequest,
    terminal: PosTerminal = Depends(get_terminal),
) -> CartOut:
    try:
        terminal.scan(payload.barcode)
    except PosError as e:
        raise http_error(e)
    return CartOut.from_cart(terminal.cart)


@router.put("/cart/lines/{product_code}/quantity", response_model=CartOut)
def update_quantity(
    product_code: str,
    payload: QuantityRequest,
    terminal: PosTerminal = Depends(get_terminal),
) -> CartOut:
    try:
        terminal.set_quantity(product_code, payload.quantity)
    except PosError as e:
        raise http_error(e)
    return CartOut.from_cart(terminal.cart)


@router.put("/cart/lines/{product_code}/discount", response_model=CartOut)
def update_discount(
    product_code: str,
    payload: DiscountRequest,
    terminal: PosTerminal = Depends(get_terminal),
) -> CartOut:
    try:
        terminal.set_discount(product_code, payload.percent)
    except PosError as e:
        raise http_error(e)
    return CartOut.from_cart(terminal.cart)


@router.delete("/cart/lines/{product_code}", response_model=CartOut)
def remove_line(
    product_code: str,
    terminal: PosTerminal = Depends(get_terminal),
) -> CartOut:
    try:
        terminal.remove_line(product_code)
    except PosError as e:
        raise http_error(e)
    return CartOut.from_cart(terminal.cart)


@router.delete("/cart", response_model=CartOut)
def clear_cart(terminal: PosTerminal = Depends(get_terminal)) -> CartOut:
    try:
        terminal.clear_cart()
    except PosError as e:
        raise http_error(e)
    return CartOut.from_cart(terminal.cart)


@router.put("/cart/customer", response_model=CartOut)
def select_customer(
    payload: CustomerSelectRequest,
    terminal: PosTerminal = Depends(get_terminal),
) -> CartOut:
    try:
        terminal.set_customer(payload.customer_id)
    except PosError as e:
        raise http_error(e)
    return CartOut.from_cart(terminal.cart)


# ─── Checkout ────────────────────────────────────────────────────────────────


@router.post("/checkout", response_model=CheckoutOut)
def checkout(
    payload: CheckoutRequest,
    terminal: PosTerminal = Depends(get_terminal),
    lang: str = Depends(get_language),
) -> CheckoutOut:
    try:
        result = terminal.checkout(payload.method, payload.tendered, lang=lang)
    except PosError as e:
        raise http_error(e)
    return CheckoutOut(
        receipt=ReceiptOut.from_receipt(result.receipt),
        payment_status=payment_status_label(result.payment.status, lang),
        low_stock=[p.code for p in result.low_stock],
    )


# ─── Shifts ──────────────────────────────────────────────────────────────────


@router.get("/shifts/active", response_model=ShiftOut | None)
def get_active_shift(terminal: PosTerminal = Depends(get_terminal)) -> ShiftOut | None:
    shift = terminal.active_shift()
    return ShiftOut.from_shift(shift) if shift else None


@router.post("/shifts/open", response_model=ShiftOut, status_code=status.HTTP_201_CREATED)
def open_shift(
    payload: ShiftOpenRequest,
    terminal: PosTerminal = Depends(get_terminal),
) -> ShiftOut:
    try:
        shift = terminal.open_shift(payload.cashier, payload.opening_cash)
    except PosError as e:
        raise http_error(e)
    return ShiftOut.from_shift(shift)


@router.post("/shifts/close", response_model=ShiftOut)
def close_shift(
    payload: ShiftCloseRequest,
    terminal: PosTerminal = Depends(get_terminal),
) -> ShiftOut:
    try:
        shift = terminal.close_shift(payload.closing_cash_reported, notes=payload.notes)
    except PosError as e:
        raise http_error(e)
    return ShiftOut.from_shift(shift)


@router.get("/shifts", response_model=list[ShiftOut])
def list_shifts(terminal: PosTerminal = Depends(get_terminal)) -> list[ShiftOut]:
    return [ShiftOut.from_shift(s) for s in terminal.list_shifts()]
