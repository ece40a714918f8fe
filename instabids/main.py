import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from instabids.core import database
from instabids.core.config import settings
from instabids.core.exceptions import (
    FieldValidationError, NotFoundError, PermissionDeniedError, PersistenceError
)
from instabids.routers import admin_router, bid_card_router, message_router, mock_bid_card_router

# --- Import every model module ---
# so SQLAlchemy registers them when the application starts.
from instabids.models import bid_card
from instabids.models import bid
from instabids.models import message
from instabids.models import contractor_alias


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="InstaBids API")

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Typed errors -> JSON ---
@app.exception_handler(FieldValidationError)
async def field_validation_error_handler(request: Request, exc: FieldValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": exc.message, "errors": [e.model_dump() for e in exc.errors]},
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": exc.message})


@app.exception_handler(PermissionDeniedError)
async def permission_denied_error_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(status_code=403, content={"error": exc.message})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(
        status_code=502,
        content={
            "error": exc.message,
            "stage": exc.stage,
            "uploadedUrls": exc.uploaded_urls,
            "retryable": True,
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# --- Lifecycle ---
@app.on_event("shutdown")
async def shutdown_database():
    await database.dispose_engine()


# --- Root ---
@app.get("/")
def read_root():
    return {"status": "success", "message": "Backend is running!"}


# --- API routes ---
app.include_router(bid_card_router.router)
app.include_router(message_router.router)
app.include_router(admin_router.router)
if settings.ENABLE_MOCK_API:
    logger.warning("Mock bid card API enabled (in-memory, development only)")
    app.include_router(mock_bid_card_router.router)

# --- Uploaded media (public-readable) ---
if settings.MEDIA_URL_PREFIX.startswith("/"):
    app.mount(
        settings.MEDIA_URL_PREFIX,
        StaticFiles(directory=settings.MEDIA_UPLOAD_DIR, check_dir=False),
        name="media",
    )
