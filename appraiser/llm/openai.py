"""OpenAI LLM provider and the shared OpenAI-compatible chat provider."""

from typing import Optional

from openai import AsyncOpenAI

from appraiser.config import get_settings
from appraiser.llm.base import BaseLLMProvider
from appraiser.llm.exceptions import ProviderUnavailableError


class OpenAICompatibleProvider(BaseLLMProvider):
    """Chat-completions provider for any endpoint speaking the OpenAI API.

    Subclasses set ``provider_id``, ``display_name`` and ``base_url``.
    """

    display_name = "OpenAI"
    base_url: Optional[str] = None

    def __init__(self, api_key: str, model: str):
        super().__init__(api_key, model)
        if self.base_url:
            self.client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        else:
            self.client = AsyncOpenAI(api_key=self.api_key)

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.2,
            )
        except Exception as e:
            raise ProviderUnavailableError(
                f"{self.display_name} API error: {e}", provider_id=self.provider_id
            )

        return response.choices[0].message.content or ""


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI provider for item appraisal."""

    provider_id = "openai"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. If None, uses config value.
            model: Model to use. If None, uses config value.
        """
        settings = get_settings()
        api_key = api_key or settings.openai_api_key
        model = model or settings.default_llm_model_openai

        super().__init__(api_key, model)
