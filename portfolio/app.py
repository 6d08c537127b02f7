"""
FastAPI application entry point for the portfolio site.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from portfolio import admin, pages
from portfolio.config import get_settings
from portfolio.logging_config import configure_logging
from portfolio.middleware import AdminGateMiddleware
from portfolio.routes import router
from portfolio.templating import STATIC_DIR

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="romanriv.com", version="0.1.0")
    app.add_middleware(AdminGateMiddleware)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(pages.router)
    app.include_router(admin.router)

    def is_api(request: Request) -> bool:
        return request.url.path.startswith(settings.api_prefix + "/")

    @app.exception_handler(RequestValidationError)
    async def invalid_payload(request: Request, exc: RequestValidationError):
        if is_api(request):
            return JSONResponse(status_code=400, content={"detail": "Invalid payload"})
        return await request_validation_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("[%s] unexpected error", request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    return app


app = create_app()
