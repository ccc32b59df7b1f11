import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .deps import get_engine, uses_sql_storage
from .platform.config import settings
from .platform.database import create_all
from .platform.logging import setup_logging
from .platform.middleware import RequestLoggingMiddleware

logger = setup_logging()
_validation_logger = logging.getLogger("reactassess.validation")


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    if uses_sql_storage():
        await create_all(get_engine())
    logger.info(
        "%s API started | env=%s storage=%s narrative=%s",
        settings.APP_NAME,
        settings.DEPLOYMENT_ENV,
        settings.STORAGE_BACKEND,
        "on" if settings.narrative_configured else "off",
    )
    yield
    if uses_sql_storage():
        await get_engine().dispose()


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description=settings.APP_DESCRIPTION,
    version=__version__,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
    lifespan=_lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log 422s with the offending fields; ctx values may hold raw exceptions."""
    errors = jsonable_encoder(exc.errors(), custom_encoder={BaseException: str})
    _validation_logger.warning(
        "Validation error on %s %s: %s", request.method, request.url.path, errors
    )
    return JSONResponse(status_code=422, content={"detail": errors})


@app.exception_handler(LookupError)
async def not_found_handler(request: Request, exc: LookupError):
    # Routers map known lookups to 404 themselves; this catches any that slip through.
    logger.info("Not found on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=404, content={"detail": str(exc)})


app.add_middleware(RequestLoggingMiddleware)

from .api.v1.profiles import router as profiles_router  # noqa: E402
from .api.v1.scoring import router as scoring_router  # noqa: E402
from .api.v1.sessions import router as sessions_router  # noqa: E402
from .api.v1.telemetry import router as telemetry_router  # noqa: E402

for _router in (telemetry_router, scoring_router, sessions_router, profiles_router):
    app.include_router(_router, prefix="/api/v1")


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__,
        "storage": settings.STORAGE_BACKEND,
        "narrative_configured": settings.narrative_configured,
    }
