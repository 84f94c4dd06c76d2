"""HTTP security headers middleware."""

from __future__ import annotations

from fastapi import FastAPI, Request

from storefront.core.config import Settings

_API_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'; base-uri 'none'",
}


def install_security_headers_middleware(app: FastAPI, settings: Settings) -> None:
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):  # type: ignore[override]
        response = await call_next(request)

        path = request.url.path or ""
        if path.startswith("/api"):
            for name, value in _API_HEADERS.items():
                response.headers[name] = value
            # Responses depend on the session cookie; keep them out of shared caches.
            response.headers["Cache-Control"] = "no-store"
        elif path.startswith(settings.UPLOAD_URL_PREFIX):
            response.headers["X-Content-Type-Options"] = "nosniff"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
