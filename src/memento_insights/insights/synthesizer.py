"""Completion stage: prompt the model and translate provider failures."""

from __future__ import annotations

import asyncio
import logging

from memento_insights.config import Settings
from memento_insights.errors import (
    CompletionProviderError,
    CompletionRateLimitError,
    InsightError,
    InsightErrorCode,
)
from memento_insights.models import JournalEntry
from memento_insights.providers.base import CompletionProvider, CompletionRequest, CompletionResult

from .prompts import SYSTEM_PROMPT, build_user_prompt, estimate_cost

logger = logging.getLogger(__name__)


class InsightSynthesizer:
    """Builds the prompt for a batch of entries and runs one completion."""

    def __init__(self, provider: CompletionProvider, config: Settings):
        self.provider = provider
        self.config = config

    def build_request(self, entries: list[JournalEntry]) -> CompletionRequest:
        return CompletionRequest(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=build_user_prompt(entries, self.config.max_content_length),
            temperature=self.config.completion_temperature,
            max_tokens=self.config.completion_max_tokens,
            json_mode=True,
        )

    async def synthesize(self, entries: list[JournalEntry]) -> CompletionResult:
        """Run the completion for these entries.

        Raises:
            InsightError: RATE_LIMIT, OPENAI_ERROR, or INVALID_RESPONSE when
                the provider returns no text
        """
        request = self.build_request(entries)
        logger.info(f"Calling {self.provider.get_name()} with {len(entries)} entries...")

        try:
            result = await asyncio.to_thread(self.provider.complete, request)
        except CompletionRateLimitError as e:
            logger.warning(f"Completion rate limited: {e}")
            raise InsightError(
                InsightErrorCode.RATE_LIMIT,
                retry_after=self.config.rate_limit_retry_after,
                diagnostic=str(e)[:200],
            ) from e
        except CompletionProviderError as e:
            logger.error(f"Completion provider error (status={e.status_code}): {e}")
            raise InsightError(InsightErrorCode.OPENAI_ERROR, diagnostic=str(e)[:200]) from e

        if not result.text or not result.text.strip():
            raise InsightError(
                InsightErrorCode.INVALID_RESPONSE,
                diagnostic="empty completion",
            )

        if result.prompt_tokens is not None or result.completion_tokens is not None:
            cost = estimate_cost(result.prompt_tokens or 0, result.completion_tokens or 0)
            logger.info(
                f"Completion received from {result.model or 'unknown model'} "
                f"({result.total_tokens} tokens, ~${cost:.6f})"
            )
        else:
            logger.info("Completion received (no usage reported)")

        return result
