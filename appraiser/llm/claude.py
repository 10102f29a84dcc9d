"""Claude (Anthropic) LLM provider implementation."""

from typing import Optional

from anthropic import AsyncAnthropic

from appraiser.config import get_settings
from appraiser.llm.base import BaseLLMProvider
from appraiser.llm.exceptions import ProviderUnavailableError


class ClaudeProvider(BaseLLMProvider):
    """Claude provider for item appraisal."""

    provider_id = "anthropic"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize Claude provider.

        Args:
            api_key: Anthropic API key. If None, uses config value.
            model: Model to use. If None, uses config value.
        """
        settings = get_settings()
        api_key = api_key or settings.anthropic_api_key
        model = model or settings.default_llm_model_claude

        super().__init__(api_key, model)
        self.client = AsyncAnthropic(api_key=self.api_key)

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=1024,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise ProviderUnavailableError(f"Claude API error: {e}", provider_id=self.provider_id)

        return "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )
