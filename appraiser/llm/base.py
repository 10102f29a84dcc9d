"""Base interface for LLM providers."""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import ValidationError

from appraiser.llm.exceptions import MalformedResponseError, ProviderUnavailableError
from appraiser.llm.models import ItemAnalysisResponse, ItemContext


def strip_fences(text: str) -> str:
    """Remove a markdown code fence around a reply, if any."""
    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        return text[start:end if end != -1 else None].strip()
    if "```" in text:
        start = text.find("```") + 3
        end = text.find("```", start)
        return text[start:end if end != -1 else None].strip()
    return text.strip()


def extract_json(text: str, provider_id: Optional[str] = None) -> Dict[str, Any]:
    """Parse the first JSON object found in a reply.

    Raises:
        MalformedResponseError: If no JSON object can be decoded
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response", provider_id=provider_id, raw_text=text)

    body = strip_fences(text)
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        # Prose around the object
        start = body.find("{")
        end = body.rfind("}")
        if start == -1 or end <= start:
            raise MalformedResponseError(
                "No JSON object in response", provider_id=provider_id, raw_text=text
            )
        try:
            data = json.loads(body[start : end + 1])
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                f"Failed to parse response as JSON: {e}",
                provider_id=provider_id,
                raw_text=text,
            )

    if not isinstance(data, dict):
        raise MalformedResponseError(
            "Response JSON is not an object", provider_id=provider_id, raw_text=text
        )
    return data


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers.

    Subclasses only implement ``_complete``; prompting and response parsing
    are shared so every provider exposes the same call shape.
    """

    provider_id: str = "unknown"

    def __init__(self, api_key: str, model: str):
        """Initialize provider with API key and model name.

        Args:
            api_key: API key for the provider
            model: Model identifier to use

        Raises:
            ProviderUnavailableError: If no API key is configured
        """
        if not api_key:
            raise ProviderUnavailableError(
                f"{self.provider_id} API key not configured", provider_id=self.provider_id
            )
        self.api_key = api_key
        self.model = model

    @abstractmethod
    async def _complete(self, prompt: str) -> str:
        """Send a prompt and return the raw text of the reply.

        Raises:
            ProviderUnavailableError: If the API call fails
        """
        pass

    async def analyze_item(self, context: ItemContext) -> ItemAnalysisResponse:
        """Appraise an item.

        Args:
            context: Item context information

        Returns:
            Parsed analysis response

        Raises:
            ProviderUnavailableError: If the API call fails
            MalformedResponseError: If the reply cannot be parsed
        """
        text = await self._complete(self._build_analysis_prompt(context))
        return self._parse_analysis(text)

    async def search_market(self, context: ItemContext) -> ItemAnalysisResponse:
        """Look up current resale prices for an item on the web.

        Args:
            context: Item context information

        Returns:
            Parsed analysis response including market details
        """
        text = await self._complete(self._build_market_search_prompt(context))
        return self._parse_analysis(text)

    async def analyze_custom_prompt(self, prompt: str) -> str:
        """Run a custom prompt and return JSON text with code fences removed."""
        text = await self._complete(prompt)
        return self._strip_fences(text)

    def _build_analysis_prompt(self, context: ItemContext) -> str:
        """Build prompt for item appraisal.

        Args:
            context: Item context information

        Returns:
            Formatted prompt string
        """
        prompt = f"""You are an expert resale appraiser. Identify the following item and estimate what it would sell for on the secondary market today.

{context.to_prompt_text()}

Based on the above information, provide:
1. The precise item name
2. The item category
3. Your estimated resale value in US dollars
4. BUY if the item is worth acquiring for resale, otherwise SELL
5. Your confidence (0.0 to 1.0)
6. Your reasoning

Respond in JSON format:
{{
    "item_name": "<precise item name>",
    "category": "<category>",
    "estimated_value": <number>,
    "decision": "BUY" or "SELL",
    "confidence": <float between 0 and 1>,
    "reasoning": "<your detailed reasoning>",
    "summary_reasoning": "<one sentence summary>",
    "valuation_factors": ["<factor>", "..."]
}}
"""
        return prompt

    def _build_market_search_prompt(self, context: ItemContext) -> str:
        """Build prompt for a live market price search."""
        prompt = f"""Search current marketplace listings and recent sold prices for the item below. Report only prices you actually found; do not guess retail or MSRP figures.

{context.to_prompt_text()}

Respond in JSON format:
{{
    "item_name": "<item name as listed>",
    "category": "<category>",
    "estimated_value": <typical recent sold price in USD>,
    "decision": "BUY" or "SELL",
    "confidence": <float between 0 and 1>,
    "reasoning": "<where the prices came from>",
    "valuation_factors": ["<factor with $ amount>", "..."],
    "market_details": {{
        "average_price": <number or null>,
        "median_price": <number or null>,
        "recent_sold": [<number>, "..."]
    }}
}}
"""
        return prompt

    @staticmethod
    def _strip_fences(text: str) -> str:
        return strip_fences(text)

    def _extract_json(self, text: str) -> Dict[str, Any]:
        return extract_json(text, provider_id=self.provider_id)

    def _parse_analysis(self, text: str) -> ItemAnalysisResponse:
        data = self._extract_json(text)
        try:
            response = ItemAnalysisResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Invalid analysis response: {e.error_count()} field error(s)",
                provider_id=self.provider_id,
                raw_text=text,
            )
        return response.model_copy(update={"provider": self.provider_id})
