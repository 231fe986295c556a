"""
Insight Pipeline - gate, cache, synthesize, repair, persist, assemble

Providers are resolved lazily from Settings through the factories unless
passed explicitly, so tests can inject fakes without touching the
environment.
"""

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime

from memento_insights.config import Settings, settings
from memento_insights.errors import InsightError, InsightErrorCode
from memento_insights.models import GenerateInsightsRequest
from memento_insights.providers import (
    CompletionProvider,
    CompletionProviderFactory,
    IdentityProvider,
    IdentityProviderFactory,
    InsightCacheProvider,
    InsightCacheProviderFactory,
    UserIdentity,
)
from memento_insights.utils.timestamps import utcnow

from .assembler import AssembledResponse, ResponseAssembler
from .cache import CacheReader, CacheWriter
from .gate import RequestGate
from .repair import ResponsePayloadRepairer
from .synthesizer import InsightSynthesizer

logger = logging.getLogger(__name__)


class InsightPipeline:
    """
    Theme summary generation for one user's journal entries

    Flow:
        RequestGate -> CacheReader -> hit: ResponseAssembler
                                   -> miss: InsightSynthesizer -> ResponsePayloadRepairer
                                            -> CacheWriter -> ResponseAssembler

    Any stage failure short-circuits to an error response, except cache
    reads and writes which fail open.
    """

    def __init__(
        self,
        config: Settings | None = None,
        completion_provider: CompletionProvider | None = None,
        cache_provider: InsightCacheProvider | None = None,
        identity_provider: IdentityProvider | None = None,
        clock: Callable[[], datetime] | None = None
    ):
        self.config = config or settings
        self._completion_provider = completion_provider
        self._cache_provider = cache_provider
        self._identity_provider = identity_provider
        self.clock = clock or utcnow
        self.assembler = ResponseAssembler()
        self.repairer = ResponsePayloadRepairer()

    @property
    def completion_provider(self) -> CompletionProvider:
        """Lazy-load completion provider"""
        if self._completion_provider is None:
            self._completion_provider = CompletionProviderFactory.create(self.config)
            logger.info(f"Initialized completion provider: {self._completion_provider.get_name()}")
        return self._completion_provider

    @property
    def cache_provider(self) -> InsightCacheProvider:
        """Lazy-load insight cache provider"""
        if self._cache_provider is None:
            self._cache_provider = InsightCacheProviderFactory.create(self.config)
            logger.info(f"Initialized insight cache provider: {self._cache_provider.get_name()}")
        return self._cache_provider

    @property
    def identity_provider(self) -> IdentityProvider:
        """Lazy-load identity provider"""
        if self._identity_provider is None:
            self._identity_provider = IdentityProviderFactory.create(self.config)
            logger.info(f"Initialized identity provider: {self._identity_provider.get_name()}")
        return self._identity_provider

    @property
    def gate(self) -> RequestGate:
        return RequestGate(self.identity_provider, self.config)

    @property
    def cache_reader(self) -> CacheReader:
        return CacheReader(self.cache_provider, self.config, self.clock)

    @property
    def cache_writer(self) -> CacheWriter:
        return CacheWriter(self.cache_provider, self.config)

    @property
    def synthesizer(self) -> InsightSynthesizer:
        return InsightSynthesizer(self.completion_provider, self.config)

    async def handle(
        self,
        authorization: str | None,
        method: str,
        body: bytes | str
    ) -> AssembledResponse:
        """Run one request end to end. Never raises."""
        try:
            gate = self.gate
            identity = await gate.authenticate(authorization)
            gate.check_method(method)
            request = gate.parse_request(body)
            return await self.generate(identity, request)
        except InsightError as e:
            return self._fail(e)
        except Exception as e:
            logger.error(f"Unexpected error: {e}", exc_info=True)
            return self._fail(InsightError(InsightErrorCode.INTERNAL_ERROR, diagnostic=type(e).__name__))

    async def generate(
        self,
        identity: UserIdentity,
        request: GenerateInsightsRequest
    ) -> AssembledResponse:
        """Serve from cache or generate fresh insights for a validated request.

        Raises:
            InsightError: For provider or parsing failures
        """
        lookup = await self.cache_reader.read(identity.id, force_refresh=request.force_refresh)
        if lookup.hit:
            return self.assembler.from_cache(lookup.record, lookup.content)

        logger.info("Generating fresh insights")
        started = time.monotonic()
        result = await self.synthesizer.synthesize(request.entries)
        content = self.repairer.repair(result.text)
        generation_time_ms = int((time.monotonic() - started) * 1000)
        generated_at = self.clock()

        # Outcome is logged by the writer; the response never depends on it
        await self.cache_writer.write(
            identity.id,
            content,
            len(request.entries),
            generated_at,
            metadata={
                "model_version": result.model or None,
                "generation_time_ms": generation_time_ms,
                "prompt_tokens": result.prompt_tokens,
                "completion_tokens": result.completion_tokens,
            },
        )

        logger.info(f"Fresh insights generated: {len(content.themes)} themes")
        return self.assembler.fresh(content, len(request.entries), generated_at)

    def get_providers_info(self) -> dict[str, str]:
        """Instantiate every provider and report which ones are active"""
        return {
            "completion_provider": self.completion_provider.get_name(),
            "completion_model": self.completion_provider.get_default_model(),
            "insight_cache_provider": self.cache_provider.get_name(),
            "identity_provider": self.identity_provider.get_name(),
        }

    def _fail(self, error: InsightError) -> AssembledResponse:
        detail = f" ({error.diagnostic})" if error.diagnostic else ""
        if error.status_code >= 500:
            logger.error(f"Request failed: {error.code.value}{detail}")
        else:
            logger.warning(f"Request rejected: {error.code.value}{detail}")
        return self.assembler.error(error)


# Global pipeline instance with thread-safe initialization
_pipeline: InsightPipeline | None = None
_pipeline_lock = threading.Lock()


def get_pipeline() -> InsightPipeline:
    """Get or create global pipeline instance (thread-safe)"""
    global _pipeline
    if _pipeline is None:
        with _pipeline_lock:
            # Double-check pattern
            if _pipeline is None:
                _pipeline = InsightPipeline()
    return _pipeline
