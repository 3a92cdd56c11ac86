from pathlib import Path
from contextlib import asynccontextmanager

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routes import health, roundups, stats, wallet
from app.core.config import settings
from app.core.errors import InvalidInputError, RoundupError
from app.core.logging import get_logger
from app.ingestion.helius_source import build_transfer_source
from app.schemas.api import ErrorResponse
from app.services.price_service import build_price_oracle


log = get_logger("app")


def run_migrations() -> None:
    """Execute Alembic migrations programmatically on startup."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    log.info("Running Alembic migrations to head")
    command.upgrade(alembic_cfg, "head")
    log.info("Alembic migrations applied")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"Starting application in {settings.ENV.upper()} mode")
    if settings.is_production:
        log.info("Production mode: Debug disabled, docs disabled, stricter logging")
    else:
        log.info("Development mode: Debug enabled, docs available")

    if settings.RUN_MIGRATIONS:
        try:
            run_migrations()
        except Exception:
            log.exception("Failed to apply migrations on startup")
            raise

    # One oracle (and its price cache) and one transfer source per process
    app.state.price_oracle = build_price_oracle(settings)
    app.state.transfer_source = build_transfer_source(settings)
    log.info(f"Services ready (solana cluster: {settings.SOLANA_CLUSTER})")

    yield

    log.info("Shutting down services...")
    app.state.price_oracle.clear_cache()
    log.info("Application shutdown complete")


app = FastAPI(
    title="Round-up Tracker",
    description="Spare-change round-ups from outgoing Solana transfers, accumulated per wallet",
    version="1.0.0",
    lifespan=lifespan,
    # Disable docs in production for security
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
    debug=settings.debug_enabled,
)


@app.exception_handler(RoundupError)
async def roundup_error_handler(request: Request, exc: RoundupError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.message} ({exc.detail})")
    else:
        log.info(f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(**exc.to_dict()).model_dump())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()]
    error = InvalidInputError("Invalid request", detail="; ".join(problems))
    log.info(f"{request.method} {request.url.path} rejected: {error.detail}")
    return JSONResponse(status_code=error.status_code, content=ErrorResponse(**error.to_dict()).model_dump())


app.include_router(wallet.router)
app.include_router(roundups.router)
app.include_router(health.router)
app.include_router(stats.router)
