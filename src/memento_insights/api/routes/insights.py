"""Insight generation endpoint

The route reads the raw request so that authentication, method and body
checks happen in the pipeline's fixed order and map onto its error codes
instead of FastAPI's default 422 validation responses.

Preflight (OPTIONS) on these paths never reaches the route: the app answers
it with preflight_response() ahead of the CORS middleware, for any origin.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from memento_insights.insights.pipeline import get_pipeline

logger = logging.getLogger(__name__)

router = APIRouter()

GENERATE_PATHS = ("/api/insights/generate", "/functions/v1/generate-insights")

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def preflight_response() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=PREFLIGHT_HEADERS)


async def generate_insights(request: Request):
    """
    Generate (or serve cached) theme insights for a batch of journal entries

    Body: {"entries": [JournalEntry, ...], "force_refresh": false}
    Returns the insight body on success or {"error", "code", "retryAfter"?}
    """
    pipeline = get_pipeline()
    body = await request.body()
    result = await pipeline.handle(
        authorization=request.headers.get("authorization"),
        method=request.method,
        body=body,
    )
    return JSONResponse(status_code=result.status_code, content=result.body)


for path in GENERATE_PATHS:
    # Non-POST methods are routed too so the pipeline can answer them with 405 INVALID_JSON
    router.add_api_route(
        path,
        generate_insights,
        methods=["POST", "GET", "PUT", "PATCH", "DELETE"],
        tags=["insights"],
    )
