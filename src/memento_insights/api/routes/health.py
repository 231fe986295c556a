"""Health check endpoints"""

import logging

from fastapi import APIRouter

from memento_insights import __version__
from memento_insights.config import settings
from memento_insights.insights.pipeline import get_pipeline
from memento_insights.providers.resilience import CircuitState, HttpClientFactory

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/ping")
async def ping():
    """Lightweight connectivity check - no backend calls"""
    return {"ok": True}


@router.get("/health")
async def health_check():
    """Full health check - instantiates every configured provider

    Reports "degraded" while any backend circuit breaker is not closed.
    """
    try:
        pipeline = get_pipeline()
        provider_info = pipeline.get_providers_info()
        breakers = HttpClientFactory.breaker_states()
    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        # Don't expose detailed error messages to clients
        return {
            "status": "unhealthy",
            "error": "Service initialization failed"
        }

    degraded = any(state is not CircuitState.CLOSED for state in breakers.values())
    return {
        "status": "degraded" if degraded else "healthy",
        "version": __version__,
        "providers": provider_info,
        "backends": {name: state.value for name, state in breakers.items()},
        "insight_type": settings.insight_type,
    }
