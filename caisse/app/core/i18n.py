"""Receipt and payment wording in French, Arabic and English.

Each language ships one ``locales/<lang>/messages.json`` catalog. Values are
either a single label or a list of lines (receipt mentions). French is the
register's working language: any key missing from another catalog is taken
from the French one.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"
DEFAULT_LANGUAGE = "fr"
SUPPORTED_LANGUAGES = ("fr", "ar", "en")


@lru_cache(maxsize=len(SUPPORTED_LANGUAGES))
def _catalog(lang: str) -> dict[str, Any]:
    if lang not in SUPPORTED_LANGUAGES:
        return {}
    path = LOCALES_DIR / lang / "messages.json"
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("No message catalog for %r at %s", lang, path)
        return {}


def _lookup(lang: str, key: str) -> Any:
    value = _catalog(lang).get(key)
    if value is None and lang != DEFAULT_LANGUAGE:
        value = _catalog(DEFAULT_LANGUAGE).get(key)
    return value


def translate(lang: str, key: str) -> str:
    """Label for *key*; the key itself when no catalog defines it."""
    value = _lookup(lang, key)
    return value if isinstance(value, str) else key


def translate_list(lang: str, key: str) -> list[str]:
    value = _lookup(lang, key)
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]
