"""Gemini (Google) LLM provider implementation."""

from typing import Optional

from google import genai

from appraiser.config import get_settings
from appraiser.llm.base import BaseLLMProvider
from appraiser.llm.exceptions import MalformedResponseError, ProviderUnavailableError


class GeminiProvider(BaseLLMProvider):
    """Gemini (Google) provider for item appraisal."""

    provider_id = "google"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize Gemini provider.

        Args:
            api_key: Google API key. If None, uses config value.
            model: Model to use. If None, uses config value.
        """
        settings = get_settings()
        api_key = api_key or settings.google_api_key
        model = model or settings.default_llm_model_gemini

        super().__init__(api_key, model)
        self.client = genai.Client(api_key=self.api_key)

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
            )
        except Exception as e:
            raise ProviderUnavailableError(f"Gemini API error: {e}", provider_id=self.provider_id)

        # Check if response was blocked by safety filters
        feedback = getattr(response, "prompt_feedback", None)
        if feedback and getattr(feedback, "block_reason", None):
            raise MalformedResponseError(
                f"Gemini blocked response: {feedback.block_reason}",
                provider_id=self.provider_id,
            )

        if not getattr(response, "candidates", None):
            raise MalformedResponseError(
                "Gemini returned no candidates", provider_id=self.provider_id
            )

        candidate = response.candidates[0]
        if "SAFETY" in str(getattr(candidate, "finish_reason", "")):
            raise MalformedResponseError(
                f"Gemini candidate blocked: {candidate.finish_reason}",
                provider_id=self.provider_id,
            )

        return response.text or ""
