# gyansetu/main.py
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from .config import Settings, settings as default_settings
from .database.base import Base
from .database.session import build_engine, build_session_factory
from .errors import PageRedirect, PortalError

# Import all models to ensure they're registered with Base
from .database.models.user import User
from .database.models.student import Student
from .database.models.system_setting import SystemSetting

from .routers import admin, auth, live, pages, payment, student
from .services.credential_service import CredentialService
from .services.intake_service import IntakeService
from .services.live_hub import LiveHub
from .services.payment_service import PaymentEngine
from .services.session_store import SessionStore
from .services.storage.factory import build_student_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Close open event streams and the storage client
    app.state.hub.close()
    await app.state.store.close()


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(PageRedirect)
    async def page_redirect_handler(request: Request, exc: PageRedirect):
        return RedirectResponse(url=exc.location, status_code=303)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if any(error.get("type") == "json_invalid" for error in errors):
            message = "Invalid JSON payload"
        elif errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "Not found" if exc.status_code == 404 else exc.detail
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title="Gyan Setu Scholarship Portal",
        description="Scholarship applications with mock payment, admin dashboard and live class",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS middleware for frontend communication
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Create all database tables
    engine = build_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    session_factory = build_session_factory(engine)

    with session_factory() as db:
        CredentialService.ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)

    # Per-app state; handlers reach it through request.app.state
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.sessions = SessionStore(max_age=timedelta(hours=settings.SESSION_MAX_AGE_HOURS))
    app.state.payments = PaymentEngine(
        default_amount=settings.PAYMENT_DEFAULT_AMOUNT,
        default_currency=settings.PAYMENT_DEFAULT_CURRENCY
    )
    app.state.hub = LiveHub(chat_limit=settings.CHAT_HISTORY_LIMIT, queue_size=settings.LIVE_QUEUE_SIZE)
    app.state.store = build_student_store(settings, session_factory)
    app.state.intake = IntakeService(
        app.state.store,
        app.state.payments,
        app.state.hub,
        max_document_size=settings.MAX_DOCUMENT_SIZE
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(payment.router)
    app.include_router(student.router)
    app.include_router(admin.router)
    app.include_router(live.router)
    app.include_router(pages.router)

    if settings.STORAGE_BACKEND.strip().lower() == "local":
        app.mount("/documents", StaticFiles(directory=settings.DOCUMENTS_DIR, check_dir=False), name="documents")

    @app.get("/")
    def root():
        return {
            "status": "ok",
            "service": "Gyan Setu Scholarship Portal API",
            "version": "1.0.0"
        }

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "storage": settings.STORAGE_BACKEND,
            "active_sessions": len(app.state.sessions),
            "live_subscribers": app.state.hub.subscriber_count
        }

    logger.info(f"Portal ready (storage={settings.STORAGE_BACKEND})")
    return app


app = create_app()

#   cd backend
#   python -m uvicorn gyansetu.main:app --reload
#   API docs (interactive): http://127.0.0.1:8000/docs
