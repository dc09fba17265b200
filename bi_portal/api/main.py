# bi_portal/api/main.py
"""
BI Portal JSON API

Read-only GET endpoints over the sales, common fee and quality databases.

Modules:
- /api/common-fee      invoice collection, aging, per-project collection
- /api/sales-2025      quarterly sales / marketing (Performance2025)
- /api/sales-2025-v2   monthly sales / marketing (sales_mkt)
- /api/quality         repair job overview
- /api/import          import wizard metadata

Errors are always {"error": message}.

Run:
    python -m bi_portal.api.main
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import config
from ..db import check_db_connection, reset_db_engine
from .routes import ROUTERS

logger = logging.getLogger(__name__)


# ==================== ERROR HANDLERS ====================

async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = "Endpoint not found"
    return JSONResponse(status_code=exc.status_code, content={"error": message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(p) for p in err.get("loc", [])[1:]) for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid parameter: {', '.join(fields) or 'request'}"},
    )


async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"⚠️ Bad request {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"❌ API error {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal Server Error"})


# ==================== APP ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    reset_db_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        lifespan=lifespan,
        title="BI Portal API",
        description="Read-only reporting API for sales, common fee and quality dashboards.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_app_setting("CORS_ORIGINS", []),
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/api/health", tags=["Health"])
    def health_check():
        """Liveness plus a connectivity check per database alias."""
        databases = {alias: check_db_connection(alias)[0] for alias in config.get_db_aliases()}
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "databases": databases,
        }

    for router in ROUTERS:
        app.include_router(router)

    return app


app = create_app()


def main():
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    host = config.get_app_setting("API_HOST", "0.0.0.0")
    port = config.get_app_setting("API_PORT", 4001)
    logger.info(f"🚀 API server on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
