from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from storefront.core.config import settings
from storefront.core.logging import setup_logging
from storefront.core.exceptions import StorefrontException
from storefront.core.security_headers import install_security_headers_middleware
from storefront.routers import account, admin_catalog, admin_qna, auth, catalog, qna, users
from storefront.services.menu_cache import MenuCache


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL, sql_echo=settings.SQL_ECHO)
    settings.validate_runtime_security()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            app.state.menu_cache.clear()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    # One menu cache per app instance, emptied on shutdown.
    app.state.menu_cache = MenuCache()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.allowed_hosts,
    )
    install_security_headers_middleware(app, settings)

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(account.router, prefix="/api/account", tags=["account"])
    app.include_router(catalog.router, prefix="/api/catalog", tags=["catalog"])
    app.include_router(qna.router, prefix="/api/products", tags=["qna"])
    app.include_router(admin_catalog.router, prefix="/api/admin/catalog", tags=["admin-catalog"])
    app.include_router(admin_qna.router, prefix="/api/admin/qna", tags=["admin-qna"])
    app.include_router(users.router, prefix="/api/admin/users", tags=["admin-users"])
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )

    @app.exception_handler(StorefrontException)
    async def handle_storefront_exception(_: Request, exc: StorefrontException) -> JSONResponse:
        headers = exc.headers if getattr(exc, "headers", None) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    return app


app = create_app()
