import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import DashboardError, NotFound, ValidationError
from .logging_setup import setup_logging
from .routers import clock as clock_router
from .routers import tasks as tasks_router
from .routers import timers as timers_router
from .settings import get_settings
from .ticker import get_timer_registry

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "Create, list, toggle and delete persisted tasks."},
    {"name": "timers", "description": "Countdown and stopwatch commands and samples."},
    {"name": "clock", "description": "Current local date and time."},
]

_settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(_settings.log_level, _settings.log_dir)
    logger.info("dashboard backend starting (backend=%s)", _settings.persistence_backend)
    yield
    get_timer_registry().close()
    logger.info("dashboard backend stopped")


app = FastAPI(
    title="Time Dashboard Backend",
    description="Backend API for the time dashboard: task list, countdown, stopwatch and clock.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """
    Render every domain error with the same envelope:
        {"error": "NotFound", "message": "task not found", "detail": {...}}
    """
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report malformed requests as ValidationError (400). A request whose only
    problem is an unknown path segment (timer kind or command) is NotFound.
    """
    errors = exc.errors()
    if errors and all(e.get("loc", ("",))[0] == "path" for e in errors):
        err: DashboardError = NotFound("unknown resource", detail=errors)
    else:
        err = ValidationError("Request validation failed", detail=errors)
    return JSONResponse(status_code=err.status_code, content=jsonable_encoder(err.to_dict()))


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(tasks_router.router)
app.include_router(timers_router.router)
app.include_router(clock_router.router)
