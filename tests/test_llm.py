import pytest

from appraiser.llm.base import extract_json, strip_fences
from appraiser.llm.claude import ClaudeProvider
from appraiser.llm.exceptions import MalformedResponseError, ProviderUnavailableError
from appraiser.llm.manager import (
    STATUS_ERROR,
    STATUS_MALFORMED,
    STATUS_OK,
    STATUS_TIMEOUT,
    LLMManager,
)
from appraiser.llm.models import ItemAnalysisResponse, ItemContext
from appraiser.llm.registry import (
    ROLE_REASON,
    ROLE_SEARCH,
    default_snapshot,
    get_base_weight,
    providers_with_role,
)
from tests.conftest import FakeProvider

ANSWER = {
    "item_name": "Nintendo Switch OLED",
    "category": "video games",
    "estimated_value": 240,
    "decision": "BUY",
    "confidence": 0.8,
    "reasoning": "Strong resale demand.",
}


def test_response_normalizes_provider_quirks():
    response = ItemAnalysisResponse.model_validate(
        {
            "itemName": "Rolex Submariner",
            "estimatedValue": "$1,200.50",
            "decision": " buy ",
            "confidence": 85,
            "valuationFactors": "Box and papers",
            "marketDetails": {"medianPrice": 1150},
            "sentiment": "bullish",
        }
    )

    assert response.item_name == "Rolex Submariner"
    assert response.estimated_value == 1200.5
    assert response.decision == "BUY"
    assert response.confidence == 0.85
    assert response.valuation_factors == ["Box and papers"]
    assert response.market_details.median_price == 1150
    assert not hasattr(response, "sentiment")


def test_scalar_recent_sold_is_wrapped():
    response = ItemAnalysisResponse.model_validate(
        {"estimated_value": 45, "market_details": {"median_price": 44, "recentSold": 45}}
    )

    assert response.estimated_value == 45
    assert response.market_details.median_price == 44
    assert response.market_details.recent_sold == [45.0]

    response = ItemAnalysisResponse.model_validate(
        {"estimated_value": 45, "market_details": {"recentSold": {"price": "$47.00"}}}
    )
    assert response.market_details.recent_sold == [47.0]


def test_response_rejects_bad_values():
    with pytest.raises(ValueError):
        ItemAnalysisResponse.model_validate({"estimated_value": -5})
    with pytest.raises(ValueError):
        ItemAnalysisResponse.model_validate({"estimated_value": 5, "decision": "HOLD"})


def test_strip_fences():
    assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_fences('  {"a": 1} ') == '{"a": 1}'


def test_extract_json_from_prose():
    assert extract_json('Here you go: {"a": 1} Hope it helps.') == {"a": 1}


def test_extract_json_errors():
    for text in ("", "no json", "[1, 2]", "{broken"):
        with pytest.raises(MalformedResponseError):
            extract_json(text, provider_id="openai")


def test_provider_requires_api_key():
    with pytest.raises(ProviderUnavailableError):
        ClaudeProvider()


def test_manager_without_keys_has_no_providers():
    assert LLMManager().get_available_providers() == []


@pytest.mark.asyncio
async def test_provider_parses_analysis_and_tags_itself():
    provider = FakeProvider("openai", reply="```json\n" + '{"estimated_value": 30, "decision": "sell"}' + "\n```")

    response = await provider.analyze_item(ItemContext(item_name="Lamp"))

    assert response.estimated_value == 30
    assert response.decision == "SELL"
    assert response.provider == "openai"
    assert "Item: Lamp" in provider.prompts[0]


@pytest.mark.asyncio
async def test_provider_rejects_invalid_shape():
    provider = FakeProvider("openai", reply={"decision": "BUY"})

    with pytest.raises(MalformedResponseError):
        await provider.analyze_item(ItemContext(item_name="Lamp"))


@pytest.mark.asyncio
async def test_fan_out_reports_every_outcome():
    manager = LLMManager(
        providers={
            "openai": FakeProvider("openai", reply=ANSWER),
            "anthropic": FakeProvider("anthropic", reply=ANSWER, delay=1.0),
            "google": FakeProvider("google", error=ProviderUnavailableError("quota")),
            "custom": FakeProvider("custom", reply="not json"),
        },
        timeout=0.1,
    )

    results = await manager.analyze_with_providers(ItemContext(item_name="Switch"))

    statuses = {r.provider_id: r.status for r in results}
    assert statuses == {
        "openai": STATUS_OK,
        "anthropic": STATUS_TIMEOUT,
        "google": STATUS_ERROR,
        "custom": STATUS_MALFORMED,
    }
    ok = [r for r in results if r.ok]
    assert ok[0].response.item_name == "Nintendo Switch OLED"


@pytest.mark.asyncio
async def test_unknown_provider_ids_are_skipped():
    manager = LLMManager(providers={"openai": FakeProvider("openai", reply=ANSWER)})

    results = await manager.analyze_with_providers(
        ItemContext(item_name="Switch"), provider_ids=["openai", "ghost"]
    )

    assert [r.provider_id for r in results] == ["openai"]


def test_roles():
    manager = LLMManager(
        providers={
            "openai": FakeProvider("openai"),
            "perplexity": FakeProvider("perplexity"),
            "custom": FakeProvider("custom"),
        }
    )

    assert manager.providers_for_role(ROLE_REASON) == ["openai", "custom"]
    assert manager.providers_for_role(ROLE_SEARCH) == ["perplexity"]
    # No dedicated tiebreaker: first reasoner
    assert manager.tiebreaker_provider().provider_id == "openai"
    assert set(providers_with_role(ROLE_SEARCH)) == {"xai", "perplexity"}


def test_tiebreaker_provider_prefers_dedicated_model():
    manager = LLMManager(providers={"openai": FakeProvider("openai"), "deepseek": FakeProvider("deepseek")})

    assert manager.tiebreaker_provider().provider_id == "deepseek"


def test_weight_snapshots_are_versioned():
    base = default_snapshot()

    evolved = base.evolve({"openai": 0.5}, source="adaptive")

    assert evolved.version == base.version + 1
    assert evolved.weight_for("openai") == 0.5
    assert base.weight_for("openai") == 1.0
    assert evolved.weight_for("unregistered") == get_base_weight("unregistered") == 0.75
