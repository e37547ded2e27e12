from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from caisse.app.api.deps import get_terminal
from caisse.app.schemas.pos import CustomerOut, ProductOut
from caisse.app.services.catalog import low_stock_products, search_products
from caisse.app.services.pos import PosTerminal

router = APIRouter()


@router.get("/products", response_model=list[ProductOut])
def list_products(
    q: str = Query(default="", description="Name, Arabic name, code or barcode"),
    terminal: PosTerminal = Depends(get_terminal),
) -> list[ProductOut]:
    return [ProductOut.from_product(p) for p in search_products(terminal.store.products, q)]


@router.get("/products/low-stock", response_model=list[ProductOut])
def list_low_stock(terminal: PosTerminal = Depends(get_terminal)) -> list[ProductOut]:
    return [ProductOut.from_product(p) for p in low_stock_products(terminal.store.products)]


@router.get("/customers", response_model=list[CustomerOut])
def list_customers(terminal: PosTerminal = Depends(get_terminal)) -> list[CustomerOut]:
    return [CustomerOut.from_customer(c) for c in terminal.store.customers.list()]
