"""Main FastAPI application."""
import logging

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.middleware.rate_limit import setup_rate_limiting
from app.auth import routes as auth_routes
from app.businesses import routes as business_routes
from app.team import routes as team_routes
from app.forecast import routes as forecast_routes
from app.audit import routes as audit_routes
from app.messages import routes as message_routes
from app.documents import routes as document_routes
from app.notifications import routes as notification_routes
from app.coaching import routes as coaching_routes
from app.questions import routes as question_routes
from app.goals import routes as goal_routes
from app.analytics import routes as analytics_routes
from app.admin import routes as admin_routes
from app.assessments import routes as assessment_routes
from app.kpis import routes as kpi_routes

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.APP_ENV,
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    logger.info("Sentry error tracking enabled")

# Create FastAPI app
app = FastAPI(
    title="Coachboard API",
    description="Business coaching platform - forecasts, goals, sessions and client messaging",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_rate_limiting(app)

# Include routers
app.include_router(auth_routes.router, prefix=f"{settings.API_V1_PREFIX}/auth", tags=["Auth"])
app.include_router(business_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(team_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(forecast_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(audit_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(message_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(document_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(notification_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(coaching_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(question_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(goal_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(kpi_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(assessment_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(analytics_routes.router, prefix=settings.API_V1_PREFIX)
app.include_router(admin_routes.router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Coachboard API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
