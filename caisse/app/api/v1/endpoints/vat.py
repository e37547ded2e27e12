from __future__ import annotations

from fastapi import APIRouter

from caisse.app.api.deps import http_error
from caisse.app.schemas.pos import VatCalculationOut, VatCalculationRequest, exact
from caisse.app.services.errors import PosError
from caisse.app.services.money import vat_breakdown

router = APIRouter()


@router.post("/calculate", response_model=VatCalculationOut)
def calculate_vat(payload: VatCalculationRequest) -> VatCalculationOut:
    try:
        result = vat_breakdown(payload.amount_ht, payload.rate)
    except PosError as e:
        raise http_error(e)
    return VatCalculationOut(
        rate=str(result["rate"]),
        ht=exact(result["ht"]),
        tva=exact(result["tva"]),
        ttc=exact(result["ttc"]),
    )
