"""Per-request receipt language, negotiated from ``Accept-Language``."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from caisse.app.core.i18n import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES


def negotiate_language(header: str) -> str:
    """Pick the highest-weighted language the register can print.

    Regional tags count for their base language (``ar-MA`` is ``ar``). Entries
    with ``q=0`` or an unreadable weight are ignored; ties keep header order.
    """
    best, best_weight = DEFAULT_LANGUAGE, 0.0
    for entry in header.split(","):
        tag, _, params = entry.strip().partition(";")
        base = tag.strip().lower().split("-", 1)[0]
        if base not in SUPPORTED_LANGUAGES:
            continue
        weight = 1.0
        for param in params.split(";"):
            name, _, value = param.strip().partition("=")
            if name.strip().lower() == "q":
                try:
                    weight = float(value)
                except ValueError:
                    weight = 0.0
        if weight > best_weight:
            best, best_weight = base, weight
    return best


class LanguageMiddleware(BaseHTTPMiddleware):
    """Store the negotiated language on ``request.state.language``.

    The same value is returned to the client as ``Content-Language``.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        language = negotiate_language(request.headers.get("Accept-Language", ""))
        request.state.language = language
        response = await call_next(request)
        response.headers["Content-Language"] = language
        return response
