"""FastAPI application entry point"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from memento_insights import __version__
from memento_insights.api.routes import health, insights
from memento_insights.config import settings

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


async def startup_event():
    """Fail fast on missing credentials"""
    logger.info("Starting Memento Insights API...")
    settings.validate_completion_config()
    settings.validate_supabase_config()
    logger.info(f"Completion Provider: {settings.completion_provider} ({settings.get_completion_model()})")
    logger.info(f"Insight Cache Provider: {settings.insight_cache_provider}")
    logger.info(f"Identity Provider: {settings.identity_provider}")


async def shutdown_event():
    """Cleanup on shutdown"""
    from memento_insights.providers.resilience import HttpClientFactory

    HttpClientFactory.reset()
    logger.info("Shutting down Memento Insights API...")


async def generate_preflight(request: Request, call_next):
    """Answer OPTIONS on the generate paths for any origin"""
    if request.method == "OPTIONS" and request.url.path in insights.GENERATE_PATHS:
        return insights.preflight_response()
    return await call_next(request)


def create_app() -> FastAPI:
    """Build the API with CORS origins taken from settings"""
    app = FastAPI(
        title="Memento Insights API",
        description="AI-generated theme summaries for journal entries",
        version=__version__
    )

    # CORS middleware - configure via CORS_ORIGINS for production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    # Registered after CORS so it runs first: preflight here ignores CORS_ORIGINS
    app.middleware("http")(generate_preflight)

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(insights.router)

    app.add_event_handler("startup", startup_event)
    app.add_event_handler("shutdown", shutdown_event)
    return app


app = create_app()
