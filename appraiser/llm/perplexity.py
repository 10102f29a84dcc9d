"""Perplexity LLM provider implementation."""

from typing import Optional

from appraiser.config import get_settings
from appraiser.llm.openai import OpenAICompatibleProvider


class PerplexityProvider(OpenAICompatibleProvider):
    """Perplexity provider with real-time web pricing."""

    provider_id = "perplexity"
    display_name = "Perplexity"
    base_url = "https://api.perplexity.ai"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize Perplexity provider.

        Args:
            api_key: Perplexity API key. If None, uses config value.
            model: Model to use. If None, uses config value.
        """
        settings = get_settings()
        api_key = api_key or settings.perplexity_api_key
        model = model or settings.default_llm_model_perplexity

        super().__init__(api_key, model)
