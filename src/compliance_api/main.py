import logging
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from compliance_api.config import settings
from compliance_api.create_tables import create_tables
from compliance_api.database import SessionLocal
from compliance_api.exceptions import ComplianceError
from compliance_api.modules.analytics.controllers.analytics_controller import router as analytics_router
from compliance_api.modules.auth.controllers.auth_controller import router as auth_router, users_router
from compliance_api.modules.auth.services.auth_service import AuthService
from compliance_api.modules.compliance.controllers.deadline_controller import router as deadline_router
from compliance_api.modules.documents.controllers.document_controller import router as document_router
from compliance_api.modules.documents.controllers.signature_controller import router as signature_router
from compliance_api.modules.documents.job import start_expiry_job
from compliance_api.modules.documents.models import User, UserRole
from compliance_api.modules.notifications.controllers.notification_controller import router as notification_router
from compliance_api.modules.storage.client import create_storage_client
from compliance_api.modules.templates.controllers.template_controller import router as template_router
from compliance_api.modules.templates.services.template_service import TemplateService
from compliance_api.modules.user_documents.controllers.user_document_controller import router as user_document_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("admin", "System Administrator", "admin@example.com", "admin123", UserRole.ADMIN),
    ("officer", "Compliance Officer", "officer@example.com", "officer123", UserRole.COMPLIANCE_OFFICER),
    ("employee", "Jane Employee", "employee@example.com", "employee123", UserRole.EMPLOYEE),
]

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup logic ---
    logger.info("Starting %s %s", settings.APP_NAME, settings.APP_VERSION)
    create_tables()
    app.state.storage = create_storage_client(settings)
    with SessionLocal() as session:
        TemplateService.seed_default_templates(session)
        if settings.SEED_DEMO_DATA:
            _seed_demo_users(session)

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = start_expiry_job(settings.EXPIRY_SWEEP_INTERVAL_MINUTES)
    yield
    # --- Shutdown logic ---
    if scheduler is not None:
        scheduler.shutdown(wait=False)
    logger.info("Application stopped")

def _seed_demo_users(session):
    if session.query(User).count() > 0:
        logger.info("Users already present; skipping demo data")
        return

    session.add_all([
        User(
            username=username,
            name=name,
            email=email,
            password_hash=AuthService.get_password_hash(password),
            role=role,
            is_active=True,
        )
        for username, name, email, password, role in DEMO_USERS
    ])
    session.commit()
    logger.info("Demo users created: %s", ", ".join(email for _, _, email, _, _ in DEMO_USERS))

app = FastAPI(
    title=settings.APP_NAME,
    description="Compliance document management: lifecycle, signatures, audit trail and deadlines",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=86400,
)

@app.exception_handler(ComplianceError)
async def compliance_error_handler(request: Request, exc: ComplianceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

# Routers
for router in (
    auth_router,
    users_router,
    document_router,
    signature_router,
    deadline_router,
    template_router,
    user_document_router,
    notification_router,
    analytics_router,
):
    app.include_router(router, prefix="/api")

@app.get("/api/health", tags=["health"])
def health():
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "service": settings.APP_NAME,
    }

if __name__ == "__main__":
    uvicorn.run("compliance_api.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
