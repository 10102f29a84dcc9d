"""Static provider registry and versioned weight snapshots."""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_WEIGHT = 0.75

# Roles a provider can play in one analysis
ROLE_IDENTIFY = "identify"
ROLE_REASON = "reason"
ROLE_SEARCH = "search"
ROLE_TIEBREAK = "tiebreak"


class ProviderSpec(BaseModel):
    """Read-only description of a registered provider."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    display_name: str
    base_weight: float = DEFAULT_BASE_WEIGHT
    specialty: Optional[str] = None
    roles: List[str] = Field(default_factory=list)


PROVIDER_SPECS: Dict[str, ProviderSpec] = {
    spec.provider_id: spec
    for spec in [
        ProviderSpec(
            provider_id="openai",
            display_name="OpenAI",
            base_weight=1.0,
            specialty="vision",
            roles=[ROLE_IDENTIFY, ROLE_REASON],
        ),
        ProviderSpec(
            provider_id="anthropic",
            display_name="Anthropic",
            base_weight=1.0,
            specialty="reasoning",
            roles=[ROLE_IDENTIFY, ROLE_REASON],
        ),
        ProviderSpec(
            provider_id="google",
            display_name="Google",
            base_weight=1.0,
            specialty="vision",
            roles=[ROLE_IDENTIFY, ROLE_REASON],
        ),
        ProviderSpec(provider_id="mistral", display_name="Mistral", base_weight=0.75),
        ProviderSpec(provider_id="groq", display_name="Groq", base_weight=0.75),
        ProviderSpec(
            provider_id="xai",
            display_name="xAI",
            base_weight=0.80,
            specialty="search",
            roles=[ROLE_SEARCH],
        ),
        ProviderSpec(
            provider_id="perplexity",
            display_name="Perplexity",
            base_weight=0.85,
            specialty="pricing",
            roles=[ROLE_SEARCH],
        ),
        ProviderSpec(
            provider_id="deepseek",
            display_name="DeepSeek",
            base_weight=0.6,
            specialty="reasoning",
            roles=[ROLE_TIEBREAK],
        ),
    ]
}


def get_provider_spec(provider_id: str) -> Optional[ProviderSpec]:
    """Look up a registered provider."""
    return PROVIDER_SPECS.get(provider_id)


def get_base_weight(provider_id: str) -> float:
    """Base consensus weight for a provider; 0.75 when unregistered."""
    spec = PROVIDER_SPECS.get(provider_id)
    return spec.base_weight if spec else DEFAULT_BASE_WEIGHT


def get_specialty(provider_id: str) -> Optional[str]:
    """Declared specialty for a provider, if registered."""
    spec = PROVIDER_SPECS.get(provider_id)
    return spec.specialty if spec else None


def get_display_name(provider_id: str) -> str:
    """Human-readable provider name."""
    spec = PROVIDER_SPECS.get(provider_id)
    return spec.display_name if spec else provider_id


def providers_with_role(role: str) -> List[str]:
    """Registered provider ids that play ``role``."""
    return [pid for pid, spec in PROVIDER_SPECS.items() if role in spec.roles]


class WeightSnapshot(BaseModel):
    """Immutable set of base weights read once at the start of an analysis.

    New weights are published by building a new snapshot with a higher
    version; existing snapshots are never changed.
    """

    model_config = ConfigDict(frozen=True)

    version: int = 0
    weights: Dict[str, float] = Field(default_factory=dict)
    source: str = "static"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def weight_for(self, provider_id: str) -> float:
        """Base weight for a provider, falling back to the static registry."""
        if provider_id in self.weights:
            return self.weights[provider_id]
        return get_base_weight(provider_id)

    def evolve(self, weights: Dict[str, float], source: str) -> "WeightSnapshot":
        """Build the next snapshot version with updated weights."""
        merged = dict(self.weights)
        merged.update(weights)
        return WeightSnapshot(version=self.version + 1, weights=merged, source=source)


def default_snapshot() -> WeightSnapshot:
    """Snapshot of the static registry weights."""
    return WeightSnapshot(
        version=0,
        weights={pid: spec.base_weight for pid, spec in PROVIDER_SPECS.items()},
        source="static",
    )
