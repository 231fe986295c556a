"""Request gate: authentication plus payload shape and bounds checks.

Checks run in a fixed order and the first failure wins:

    credential present (AUTH_REQUIRED) and resolvable (AUTH_FAILED)
    -> method is POST (INVALID_JSON, 405)
    -> body is a JSON object (INVALID_JSON)
    -> entries is a list (MISSING_ENTRIES)
    -> at least min_entries (INVALID_ENTRIES)
    -> at most max_entries (TOO_MANY_ENTRIES)
    -> every content non-blank (EMPTY_CONTENT)
    -> remaining fields coerce (INVALID_ENTRIES)
"""

from __future__ import annotations

import asyncio
import json
import logging

from pydantic import ValidationError

from memento_insights.config import Settings
from memento_insights.errors import IdentityProviderError, InsightError, InsightErrorCode
from memento_insights.models import GenerateInsightsRequest
from memento_insights.providers.base import IdentityProvider, UserIdentity

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


class RequestGate:
    """Turns a credential and raw body into (identity, request) or an InsightError."""

    def __init__(self, identity_provider: IdentityProvider, config: Settings):
        self.identity_provider = identity_provider
        self.config = config

    @staticmethod
    def extract_token(authorization: str | None) -> str | None:
        """Return the bearer token, '' for a malformed header, None when absent."""
        if authorization is None or not authorization.strip():
            return None

        value = authorization.strip()
        if value.lower().startswith(BEARER_PREFIX):
            return value[len(BEARER_PREFIX):].strip()
        return value

    async def authenticate(self, authorization: str | None) -> UserIdentity:
        token = self.extract_token(authorization)
        if token is None:
            raise InsightError(InsightErrorCode.AUTH_REQUIRED)
        if not token:
            raise InsightError(InsightErrorCode.AUTH_FAILED, diagnostic="empty bearer token")

        try:
            identity = await asyncio.to_thread(self.identity_provider.resolve, token)
        except IdentityProviderError as e:
            logger.error(f"Auth error: {e}")
            raise InsightError(InsightErrorCode.AUTH_FAILED, diagnostic=str(e)) from e

        if identity is None:
            raise InsightError(InsightErrorCode.AUTH_FAILED, diagnostic="token not recognized")

        logger.info(f"Insights request from user: {identity.short_id}")
        return identity

    def check_method(self, method: str) -> None:
        if method.upper() != "POST":
            raise InsightError(
                InsightErrorCode.INVALID_JSON,
                message="Method not allowed",
                status_code=405,
            )

    def parse_request(self, raw_body: bytes | str) -> GenerateInsightsRequest:
        """Validate the body and build a GenerateInsightsRequest.

        Raises:
            InsightError: With the code of the first violated rule
        """
        try:
            body = json.loads(raw_body) if raw_body else None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InsightError(InsightErrorCode.INVALID_JSON, diagnostic=str(e)[:100]) from e

        if not isinstance(body, dict):
            raise InsightError(InsightErrorCode.INVALID_JSON, diagnostic="body is not an object")

        entries = body.get("entries")
        if not isinstance(entries, list):
            raise InsightError(InsightErrorCode.MISSING_ENTRIES)

        if len(entries) < self.config.min_entries:
            raise InsightError(
                InsightErrorCode.INVALID_ENTRIES,
                message=f"Need at least {self.config.min_entries} entry",
            )

        if len(entries) > self.config.max_entries:
            raise InsightError(
                InsightErrorCode.TOO_MANY_ENTRIES,
                message=f"Maximum {self.config.max_entries} entries allowed",
            )

        for entry in entries:
            content = entry.get("content") if isinstance(entry, dict) else None
            if not isinstance(content, str) or not content.strip():
                raise InsightError(InsightErrorCode.EMPTY_CONTENT)

        try:
            request = GenerateInsightsRequest.model_validate(body)
        except ValidationError as e:
            raise InsightError(
                InsightErrorCode.INVALID_ENTRIES,
                message="Invalid entry fields",
                diagnostic=f"{e.error_count()} validation error(s)",
            ) from e

        logger.info(f"Input validated: {len(request.entries)} entries")
        return request
