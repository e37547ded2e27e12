import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from caisse.app.api.v1.api import api_router
from caisse.app.core.config import settings
from caisse.app.middleware.language import LanguageMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Caisse - Moroccan POS")

# ─── CORS: configured origins only ──────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Accept", "Accept-Language"],
)

app.add_middleware(LanguageMiddleware)

app.include_router(api_router)
