from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from caisse.app.services.money import MAX_AMOUNT, VATRate


class Product(BaseModel):
    """Catalog product. Price and stock can never go negative, even on assignment."""

    model_config = ConfigDict(validate_assignment=True)

    code: str = Field(min_length=1)
    barcode: str
    name: str
    name_arabic: str | None = None
    category: str | None = None
    unit: str = "Pièce"
    unit_price: Decimal = Field(ge=0, le=MAX_AMOUNT)
    vat_rate: VATRate
    stock: int = Field(ge=0)
    reorder_level: int = Field(default=0, ge=0)

    @field_validator("vat_rate", mode="before")
    @classmethod
    def legal_band(cls, v: object) -> VATRate:
        return VATRate.from_value(v)  # type: ignore[arg-type]

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.reorder_level


class Customer(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(min_length=1)
    code: str
    name: str
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    ice: str | None = None  # Identifiant Commun de l'Entreprise
    rc: str | None = None  # Registre de Commerce
    tp: str | None = None  # Taxe Professionnelle
    cnss: str | None = None
    is_vip: bool = False
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)
    credit_used: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)

    @model_validator(mode="after")
    def credit_within_limit(self) -> "Customer":
        if self.credit_used > self.credit_limit:
            raise ValueError("credit_used cannot exceed credit_limit")
        return self

    @property
    def available_credit(self) -> Decimal:
        return self.credit_limit - self.credit_used
