"""
USDC Credits — FastAPI Application

Buy account credits with USDC from either an external (browser-injected)
wallet or a Circle developer-controlled wallet, and record every attempt
for later confirmation.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from domain.responses import error_response
from routes import circle, health, transactions, wallets

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: validate settings, create tables, warm destination. Shutdown: stop web3 pool."""
    if settings.database_url.startswith("sqlite:///./data/"):
        os.makedirs("data", exist_ok=True)

    settings.validate_production_settings()

    from database import init_db
    await init_db()
    logger.info("Database initialized")

    from deps import destination_resolver
    if destination_resolver.warm() is None:
        logger.info("No static destination; it will be resolved from admin_wallets on first use")

    yield  # app runs here

    from services.async_executor import shutdown_executor
    shutdown_executor()

    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="USDC Credits API",
    description="Purchase credits with USDC via external or Circle developer-controlled wallets",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ──────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(wallets.router)
app.include_router(circle.router)
app.include_router(transactions.router)


# ── Exception Handlers ──────────────────────────────────────────────


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    Raw exception details never reach clients; the traceback is logged.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_response("Internal server error", "internal_server_error"),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """
    Render HTTPException (and DomainError) as {"success": false, "error": "..."}.

    Keeps the original HTTP status code and headers.
    """
    if hasattr(exc, "message") and hasattr(exc, "details"):
        content = error_response(exc.message, exc.code, exc.details)
    else:
        detail = exc.detail
        message = detail if isinstance(detail, str) else "Request failed"
        content = error_response(message, "http_error", None if isinstance(detail, str) else detail)
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid request: {field} {first.get('msg', '')}".strip()
    return JSONResponse(
        status_code=422,
        content=error_response(message, "validation_error", {"errors": jsonable_errors(errors)}),
    )


def jsonable_errors(errors: list) -> list:
    return [
        {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
