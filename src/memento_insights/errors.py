"""Error taxonomy for insight generation.

Every terminal failure of a request is an InsightError carrying a stable
code. ERROR_TAXONOMY maps each code to the user-facing message and HTTP
status; diagnostics stay in the logs and never reach the response body.
"""

from enum import Enum


class InsightErrorCode(str, Enum):
    """Error codes returned to clients."""

    # Authentication
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_FAILED = "AUTH_FAILED"

    # Request validation
    INVALID_JSON = "INVALID_JSON"
    MISSING_ENTRIES = "MISSING_ENTRIES"
    INVALID_ENTRIES = "INVALID_ENTRIES"
    TOO_MANY_ENTRIES = "TOO_MANY_ENTRIES"
    EMPTY_CONTENT = "EMPTY_CONTENT"

    # Completion provider
    RATE_LIMIT = "RATE_LIMIT"
    OPENAI_ERROR = "OPENAI_ERROR"

    # Output handling
    INVALID_RESPONSE = "INVALID_RESPONSE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_TAXONOMY: dict[InsightErrorCode, tuple[str, int]] = {
    InsightErrorCode.AUTH_REQUIRED: ("Missing authorization header", 401),
    InsightErrorCode.AUTH_FAILED: ("Unauthorized", 401),
    InsightErrorCode.INVALID_JSON: ("Invalid JSON body", 400),
    InsightErrorCode.MISSING_ENTRIES: ("Missing or invalid entries array", 400),
    InsightErrorCode.INVALID_ENTRIES: ("Need at least 1 entry", 400),
    InsightErrorCode.TOO_MANY_ENTRIES: ("Maximum 20 entries allowed", 400),
    InsightErrorCode.EMPTY_CONTENT: ("All entries must have content", 400),
    InsightErrorCode.RATE_LIMIT: ("Too many requests. Please try again in a few minutes.", 429),
    InsightErrorCode.OPENAI_ERROR: ("AI service temporarily unavailable. Please try again.", 502),
    InsightErrorCode.INVALID_RESPONSE: ("AI returned an unreadable response. Please try again.", 500),
    InsightErrorCode.INTERNAL_ERROR: ("Failed to generate insights. Please try again.", 500),
}


class InsightError(Exception):
    """Terminal request failure with a structured error code."""

    def __init__(
        self,
        code: InsightErrorCode,
        message: str | None = None,
        status_code: int | None = None,
        retry_after: int | None = None,
        diagnostic: str | None = None,
    ):
        """Initialize insight error.

        Args:
            code: Structured error code
            message: User-facing message (defaults to the taxonomy message)
            status_code: HTTP status (defaults to the taxonomy status)
            retry_after: Seconds the client should wait before retrying
            diagnostic: Short log-only detail, never sent to the client
        """
        default_message, default_status = ERROR_TAXONOMY[code]
        self.code = code
        self.message = message or default_message
        self.status_code = status_code or default_status
        self.retry_after = retry_after
        self.diagnostic = diagnostic
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to the outbound error body."""
        body = {"error": self.message, "code": self.code.value}
        if self.retry_after is not None:
            body["retryAfter"] = self.retry_after
        return body


# ===== Provider-level errors (translated into InsightError by the pipeline) =====

class CompletionProviderError(Exception):
    """Completion provider failed for a reason other than rate limiting."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class CompletionRateLimitError(CompletionProviderError):
    """Completion provider rejected the request because of rate limiting."""


class CacheProviderError(Exception):
    """Insight cache store could not be read or written."""


class IdentityProviderError(Exception):
    """Identity service could not be reached or returned an unexpected response."""
