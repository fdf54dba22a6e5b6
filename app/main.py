import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings as default_settings
from app.core.database import DatabaseSessionManager, aget_db
from app.core.errors import register_exception_handlers
from app.services.EmailService import EmailService
from app.services.ResendEmailClient import EmailTransport, ResendEmailClient
from app.services.SideEffects import SideEffectDispatcher

# Concierge routers
from app.api.v1.endpoints.auth import router as auth_router
from app.api.v1.endpoints.consultations import (
    router as consultations_router,
    admin_router as admin_consultations_router,
)
from app.api.v1.endpoints.registration import router as registration_router
from app.api.v1.endpoints.onboarding import (
    router as onboarding_router,
    admin_router as admin_onboarding_router,
)
from app.api.v1.endpoints.profile import router as profile_router
from app.api.v1.endpoints.admin import router as admin_router
from app.api.v1.endpoints.strategycalls import (
    router as strategy_calls_router,
    admin_router as admin_strategy_calls_router,
)
from app.api.v1.endpoints.interviews import (
    router as interviews_router,
    admin_router as admin_interviews_router,
)
from app.api.v1.endpoints.applications import (
    router as applications_router,
    admin_router as admin_applications_router,
)
from app.api.v1.endpoints.resources import (
    router as resources_router,
    admin_router as admin_resources_router,
)
from app.api.v1.endpoints.notifications import router as notifications_router
from app.api.v1.endpoints.contacts import (
    router as contacts_router,
    admin_router as admin_contacts_router,
)
from app.api.v1.endpoints.mocksessions import (
    router as mock_sessions_router,
    admin_router as admin_mock_sessions_router,
)
from app.api.v1.endpoints.adminaccounts import router as admin_accounts_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ROUTERS = [
    auth_router,
    consultations_router,
    admin_consultations_router,
    registration_router,
    onboarding_router,
    admin_onboarding_router,
    profile_router,
    admin_router,
    strategy_calls_router,
    admin_strategy_calls_router,
    interviews_router,
    admin_interviews_router,
    applications_router,
    admin_applications_router,
    resources_router,
    admin_resources_router,
    notifications_router,
    contacts_router,
    admin_contacts_router,
    mock_sessions_router,
    admin_mock_sessions_router,
    admin_accounts_router,
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async context manager for app lifespan events"""
    session_manager: DatabaseSessionManager = app.state.session_manager

    try:
        logger.info(f"🚀 Starting {app.state.settings.COMPANY_NAME} concierge API...")

        logger.info("🔌 Initializing database connection pool...")
        await session_manager.init()
        logger.info("✅ Database connection pool ready")
    except Exception as e:
        logger.critical(f"🔥 Application startup failed: {str(e)}")
        raise

    try:
        logger.info("🏁 Application startup complete")
        yield
    finally:
        try:
            logger.info("🔌 Closing database connections...")
            await session_manager.close()
            logger.info("✅ Database connections closed cleanly")
        except Exception as e:
            logger.error(f"⚠️ Error during shutdown: {str(e)}")
            raise
        finally:
            logger.info("👋 Application shutdown complete")


def create_app(
    settings: Optional[Settings] = None,
    session_manager: Optional[DatabaseSessionManager] = None,
    email_transport: Optional[EmailTransport] = None,
) -> FastAPI:
    """Build the API with its collaborators wired onto `app.state`."""
    settings = settings or default_settings
    session_manager = session_manager or DatabaseSessionManager.from_settings(settings)
    email_transport = email_transport or ResendEmailClient(settings.RESEND_API_KEY, settings.EMAIL_FROM)
    email_service = EmailService(settings, email_transport)

    app = FastAPI(
        title=f"{settings.COMPANY_NAME} Concierge API",
        description="Admin-gated concierge backend: consultations, onboarding, tracking and resources",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_manager = session_manager
    app.state.email_service = email_service
    app.state.dispatcher = SideEffectDispatcher(session_manager, email_service)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"Request: {request.method} {request.url}")
        response = await call_next(request)
        logger.info(f"Response status: {response.status_code}")
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/", tags=["Health Check"])
    async def health_check(db: AsyncSession = Depends(aget_db)):
        try:
            await db.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "service": app.title,
                "database": "connected",
                "environment": settings.ENVIRONMENT,
                "email_testing_mode": settings.EMAIL_TESTING_MODE,
            }
        except Exception as e:
            logger.error(f"Health check failed: {str(e)}")
            return {
                "status": "unhealthy",
                "service": app.title,
                "database": "disconnected",
                "error": str(e)
            }

    for router in ROUTERS:
        app.include_router(router, prefix="/api/v1")

    logger.info(f"✅ Loaded {len(app.routes)} routes")
    return app


app = create_app()
