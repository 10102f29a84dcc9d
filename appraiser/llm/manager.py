"""LLM provider manager for orchestrating multiple providers."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel

from appraiser.config import get_settings
from appraiser.llm.base import BaseLLMProvider
from appraiser.llm.claude import ClaudeProvider
from appraiser.llm.deepseek import DeepSeekProvider
from appraiser.llm.exceptions import MalformedResponseError
from appraiser.llm.gemini import GeminiProvider
from appraiser.llm.grok import GrokProvider
from appraiser.llm.models import ItemAnalysisResponse, ItemContext
from appraiser.llm.openai import OpenAIProvider
from appraiser.llm.perplexity import PerplexityProvider
from appraiser.llm.registry import ROLE_REASON, ROLE_SEARCH, ROLE_TIEBREAK, get_provider_spec

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_TIMEOUT = "timeout"
STATUS_ERROR = "error"
STATUS_MALFORMED = "malformed"


class ProviderCallResult(BaseModel):
    """Outcome of one provider call."""

    provider_id: str
    status: str
    response: Optional[ItemAnalysisResponse] = None
    latency_ms: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK and self.response is not None


PROVIDER_CLASSES: Dict[str, Callable[[], BaseLLMProvider]] = {
    "anthropic": ClaudeProvider,
    "openai": OpenAIProvider,
    "google": GeminiProvider,
    "xai": GrokProvider,
    "perplexity": PerplexityProvider,
    "deepseek": DeepSeekProvider,
}


class LLMManager:
    """Manages multiple LLM providers for item appraisal."""

    def __init__(
        self,
        providers: Optional[Dict[str, BaseLLMProvider]] = None,
        enabled: Optional[List[str]] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize LLM manager.

        Args:
            providers: Pre-built providers keyed by id. If None, every
                configured provider is built from settings.
            enabled: Restrict automatic construction to these provider ids
            timeout: Per-call timeout in seconds. If None, uses config value.
        """
        settings = get_settings()
        self.timeout = timeout or settings.provider_timeout_seconds

        if providers is not None:
            self.providers = dict(providers)
            return

        self.providers = {}
        for name, factory in PROVIDER_CLASSES.items():
            if enabled is not None and name not in enabled:
                continue
            try:
                self.providers[name] = factory()
            except Exception as e:
                logger.warning(f"Provider {name} unavailable: {e}")

        if not self.providers:
            logger.warning("No LLM providers configured; analyses will degrade to FAILED")

    def get_available_providers(self) -> List[str]:
        """Get list of available provider names.

        Returns:
            List of provider names
        """
        return list(self.providers.keys())

    def providers_for_role(self, role: str) -> List[str]:
        """Configured provider ids whose registry entry lists ``role``.

        Unregistered providers are treated as reasoning providers.
        """
        selected = []
        for name in self.providers:
            spec = get_provider_spec(name)
            if spec is None:
                if role == ROLE_REASON:
                    selected.append(name)
            elif role in spec.roles:
                selected.append(name)
        return selected

    async def analyze_with_providers(
        self,
        context: ItemContext,
        provider_ids: Optional[List[str]] = None,
        timeout: Optional[float] = None,
    ) -> List[ProviderCallResult]:
        """Appraise an item with several providers in parallel.

        Args:
            context: Item context information
            provider_ids: Providers to call. If None, all reasoning providers.
            timeout: Per-call timeout override

        Returns:
            One result per provider; failures are reported, not raised
        """
        if provider_ids is None:
            provider_ids = self.providers_for_role(ROLE_REASON)
        return await self._fan_out(
            provider_ids, lambda provider: provider.analyze_item(context), timeout
        )

    async def search_with_providers(
        self,
        context: ItemContext,
        provider_ids: Optional[List[str]] = None,
        timeout: Optional[float] = None,
    ) -> List[ProviderCallResult]:
        """Run live market searches in parallel.

        Args:
            context: Item context information
            provider_ids: Providers to call. If None, all search providers.
            timeout: Per-call timeout override

        Returns:
            One result per provider
        """
        if provider_ids is None:
            provider_ids = self.providers_for_role(ROLE_SEARCH)
        return await self._fan_out(
            provider_ids, lambda provider: provider.search_market(context), timeout
        )

    def tiebreaker_provider(self) -> Optional[BaseLLMProvider]:
        """First configured tiebreaker provider, falling back to any reasoner."""
        for name in self.providers_for_role(ROLE_TIEBREAK) + self.providers_for_role(ROLE_REASON):
            return self.providers[name]
        return None

    async def _fan_out(
        self,
        provider_ids: List[str],
        call: Callable[[BaseLLMProvider], Awaitable[ItemAnalysisResponse]],
        timeout: Optional[float],
    ) -> List[ProviderCallResult]:
        tasks = []
        for name in provider_ids:
            provider = self.providers.get(name)
            if provider is None:
                continue
            tasks.append(
                asyncio.create_task(self._safe_call(name, call(provider), timeout or self.timeout))
            )

        if not tasks:
            return []

        return list(await asyncio.gather(*tasks))

    async def _safe_call(
        self, name: str, coro: Awaitable[ItemAnalysisResponse], timeout: float
    ) -> ProviderCallResult:
        """Await one provider call, converting every failure into a result.

        Args:
            name: Provider name
            coro: Pending provider call
            timeout: Deadline in seconds

        Returns:
            Call result with status and latency
        """
        started = time.monotonic()

        def elapsed() -> int:
            return int((time.monotonic() - started) * 1000)

        try:
            response = await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{name} timed out after {timeout:.1f}s")
            return ProviderCallResult(
                provider_id=name, status=STATUS_TIMEOUT, latency_ms=elapsed(), error="timeout"
            )
        except MalformedResponseError as e:
            logger.warning(f"{name} returned a malformed response: {e}")
            return ProviderCallResult(
                provider_id=name, status=STATUS_MALFORMED, latency_ms=elapsed(), error=str(e)
            )
        except Exception as e:
            logger.warning(f"{name} provider failed: {e}")
            return ProviderCallResult(
                provider_id=name, status=STATUS_ERROR, latency_ms=elapsed(), error=str(e)
            )

        return ProviderCallResult(
            provider_id=name, status=STATUS_OK, response=response, latency_ms=elapsed()
        )
