"""OpenAI chat completion provider"""

import logging

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    InternalServerError,
    OpenAI,
    RateLimitError,
)

from memento_insights.config import Settings
from memento_insights.errors import CompletionProviderError, CompletionRateLimitError
from memento_insights.providers.base import CompletionProvider, CompletionRequest, CompletionResult
from memento_insights.providers.resilience import with_retry

logger = logging.getLogger(__name__)

# Failures worth one more try; everything else surfaces immediately
TRANSIENT_ERRORS = (APIConnectionError, APITimeoutError, InternalServerError)


class OpenAICompletionProvider(CompletionProvider):
    """OpenAI chat completions with bounded wait and a single transient retry"""

    def __init__(self, settings: Settings):
        settings.validate_completion_config()
        self.settings = settings
        self.model = settings.get_completion_model()
        # SDK-level retries are disabled so with_retry owns the retry budget
        self.client = OpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.completion_timeout,
            max_retries=0,
        )

    def complete(self, request: CompletionRequest) -> CompletionResult:
        """Run one chat completion, translating SDK errors into provider errors"""
        create = with_retry(
            max_retries=self.settings.completion_max_retries,
            base_delay=self.settings.completion_retry_base_delay,
            retry_on=TRANSIENT_ERRORS,
            operation_name="OpenAI chat completion",
        )(self._create)

        try:
            response = create(request)
        except RateLimitError as e:
            raise CompletionRateLimitError(f"OpenAI rate limit: {e}", status_code=429) from e
        except APIStatusError as e:
            raise CompletionProviderError(
                f"OpenAI API error {e.status_code}: {e.message}",
                status_code=e.status_code,
            ) from e
        except APIError as e:
            raise CompletionProviderError(f"OpenAI request failed: {e}") from e

        choice = response.choices[0] if response.choices else None
        text = (choice.message.content if choice else None) or ""
        usage = response.usage

        return CompletionResult(
            text=text,
            model=response.model or self.model,
            prompt_tokens=usage.prompt_tokens if usage else None,
            completion_tokens=usage.completion_tokens if usage else None,
        )

    def _create(self, request: CompletionRequest):
        kwargs = {}
        if request.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        return self.client.chat.completions.create(
            model=self.model,
            temperature=request.temperature,
            max_tokens=request.max_tokens,
            messages=[
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
            **kwargs,
        )

    def get_default_model(self) -> str:
        """Get the configured default model"""
        return self.model
