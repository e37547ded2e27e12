from fastapi import APIRouter

from caisse.app.api.v1.endpoints import catalog, pos, vat

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(pos.router, prefix="/pos", tags=["pos"])
api_router.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
api_router.include_router(vat.router, prefix="/vat", tags=["vat"])
