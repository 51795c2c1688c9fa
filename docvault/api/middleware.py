# docvault/api/middleware.py
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from docvault.core.errors import PayloadTooLargeError, RateLimitError, error_envelope
from docvault.services.rate_limit import client_identifier

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; connect-src 'self'"
    ),
}


def _declared_length(request: Request):
    raw = request.headers.get("content-length")
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


class GuardMiddleware(BaseHTTPMiddleware):
    """
    Per-route-class rate limiting, JSON body size cap and security headers.
    Runs before routing, so rejections never reach a handler.
    """

    async def dispatch(self, request: Request, call_next):
        container = request.app.state.container
        settings = container.settings
        path = request.url.path

        rejection = None
        if settings.RATE_LIMIT_ENABLED:
            client = client_identifier(request.headers, request.client.host if request.client else None)
            if not container.rate_limiters.for_path(path).check(client):
                logger.warning("Rate limit exceeded for %s on %s", client, path)
                rejection = RateLimitError()

        if rejection is None and request.method == "POST":
            content_type = request.headers.get("content-type", "")
            length = _declared_length(request)
            if "application/json" in content_type and length is not None and length > settings.MAX_JSON_BODY_BYTES:
                rejection = PayloadTooLargeError()

        if rejection is not None:
            response = JSONResponse(status_code=int(rejection.status), content=rejection.to_dict())
        else:
            try:
                response = await call_next(request)
            except Exception:
                # answered here so the 500 still carries the security headers
                logger.exception("Unhandled error on %s %s", request.method, path)
                response = JSONResponse(status_code=500, content=error_envelope("Internal server error"))

        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response
