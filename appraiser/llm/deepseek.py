"""DeepSeek LLM provider implementation."""

from typing import Optional

from appraiser.config import get_settings
from appraiser.llm.openai import OpenAICompatibleProvider


class DeepSeekProvider(OpenAICompatibleProvider):
    """DeepSeek provider, used as the tiebreaker."""

    provider_id = "deepseek"
    display_name = "DeepSeek"
    base_url = "https://api.deepseek.com"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize DeepSeek provider.

        Args:
            api_key: DeepSeek API key. If None, uses config value.
            model: Model to use. If None, uses config value.
        """
        settings = get_settings()
        api_key = api_key or settings.deepseek_api_key
        model = model or settings.default_llm_model_deepseek

        super().__init__(api_key, model)
