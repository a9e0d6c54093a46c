import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from personaut.config import settings
from personaut.routers import feedback, health, personas
from personaut.domain.errors import (
    FavoritesLimitError,
    GenerationError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from personaut.application.error_sanitizer import error_sanitizer
from personaut.application.event_handlers import register_event_handlers
from personaut.dependencies import get_feedback_store, get_migration_services, get_persona_store

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Personaut Store API",
    description="File-backed storage for personas and feedback history",
    version=settings.VERSION,
)


def initialize_storage() -> None:
    """Create the collections, import legacy data once, then warm the caches."""
    stores = [get_persona_store(), get_feedback_store()]
    for store in stores:
        store.initialize()
    for migration in get_migration_services():
        migration.run_if_needed()
    for store in stores:
        store.preload_cache()


@app.on_event("startup")
def startup_event():
    register_event_handlers()
    initialize_storage()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain error handlers
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(FavoritesLimitError)
async def favorites_limit_handler(request: Request, exc: FavoritesLimitError):
    return JSONResponse(status_code=409, content={"detail": str(exc), "limit": exc.limit})


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    sanitized = error_sanitizer.sanitize(exc, context=request.url.path)
    logger.warning(sanitized.log_message)
    return JSONResponse(status_code=502, content={"detail": sanitized.user_message})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    sanitized = error_sanitizer.sanitize(exc, context=request.url.path)
    logger.error(sanitized.log_message)
    return JSONResponse(
        status_code=500,
        content={"detail": sanitized.user_message, "classification": sanitized.classification},
    )

# Include routers
app.include_router(health.router, tags=["Health"])  # Health check endpoints first
app.include_router(personas.router, tags=["Personas"])
app.include_router(feedback.router, tags=["Feedback"])

@app.get("/")
async def root():
    return {"message": "Welcome to the Personaut Store API. See /docs for API documentation"}
