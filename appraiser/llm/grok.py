"""Grok (xAI) LLM provider implementation."""

from typing import Optional

from appraiser.config import get_settings
from appraiser.llm.openai import OpenAICompatibleProvider


class GrokProvider(OpenAICompatibleProvider):
    """Grok (xAI) provider, used for live market search."""

    provider_id = "xai"
    display_name = "Grok"
    # xAI uses OpenAI-compatible API
    base_url = "https://api.x.ai/v1"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize Grok provider.

        Args:
            api_key: xAI API key. If None, uses config value.
            model: Model to use. If None, uses config value.
        """
        settings = get_settings()
        api_key = api_key or settings.xai_api_key
        model = model or settings.default_llm_model_grok

        super().__init__(api_key, model)
