"""Models for LLM provider requests and responses."""

from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from appraiser.utils.helpers import validate_decision

Decision = Literal["BUY", "SELL"]


class MarketSearchDetails(BaseModel):
    """Price figures a web-search provider reports alongside its estimate."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    average_price: Optional[float] = Field(
        None, ge=0, validation_alias=AliasChoices("average_price", "averagePrice")
    )
    median_price: Optional[float] = Field(
        None, ge=0, validation_alias=AliasChoices("median_price", "medianPrice")
    )
    recent_sold: List[float] = Field(
        default_factory=list,
        validation_alias=AliasChoices("recent_sold", "recentSold", "recent_sales"),
    )

    @field_validator("recent_sold", mode="before")
    @classmethod
    def _coerce_sold(cls, value):
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            value = [value]
        prices = []
        for entry in value:
            if isinstance(entry, dict):
                entry = entry.get("price")
            try:
                price = float(str(entry).replace("$", "").replace(",", ""))
            except (TypeError, ValueError):
                continue
            if price >= 0:
                prices.append(price)
        return prices


class ItemAnalysisResponse(BaseModel):
    """Structured answer from a provider about one item.

    Unknown keys are dropped at this boundary.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    item_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("item_name", "itemName", "name")
    )
    category: Optional[str] = None
    estimated_value: float = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("estimated_value", "estimatedValue", "value"),
    )
    decision: Decision = "SELL"
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    reasoning: str = ""
    summary_reasoning: Optional[str] = Field(
        None, validation_alias=AliasChoices("summary_reasoning", "summaryReasoning")
    )
    valuation_factors: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("valuation_factors", "valuationFactors"),
    )
    market_details: Optional[MarketSearchDetails] = Field(
        None,
        validation_alias=AliasChoices(
            "market_details", "marketDetails", "additional_details", "additionalDetails"
        ),
    )
    provider: Optional[str] = Field(None, description="Provider id")

    @field_validator("estimated_value", mode="before")
    @classmethod
    def _parse_value(cls, value):
        if isinstance(value, str):
            value = value.replace("$", "").replace(",", "").strip()
        return value

    @field_validator("decision", mode="before")
    @classmethod
    def _normalize_decision(cls, value):
        if value is None:
            return "SELL"
        return validate_decision(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _normalize_confidence(cls, value):
        if value is None:
            return 0.5
        value = float(value)
        # Percent-style confidence
        if 1.0 < value <= 100.0:
            value = value / 100.0
        return value

    @field_validator("valuation_factors", mode="before")
    @classmethod
    def _coerce_factors(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]


class ItemContext(BaseModel):
    """Context information for item analysis."""

    item_name: str
    image_description: Optional[str] = None
    category_hint: Optional[str] = None
    category: Optional[str] = None
    additional_context: Optional[str] = None
    evidence_text: Optional[str] = None

    def to_prompt_text(self) -> str:
        """Convert context to text suitable for LLM prompt."""
        parts = [f"Item: {self.item_name}"]

        if self.category:
            parts.append(f"Detected Category: {self.category}")
        elif self.category_hint:
            parts.append(f"Category Hint: {self.category_hint}")

        if self.image_description:
            parts.append(f"\nImage Description:\n{self.image_description}")

        if self.additional_context:
            parts.append(f"\nAdditional Context:\n{self.additional_context}")

        if self.evidence_text:
            parts.append(f"\n{self.evidence_text}")

        return "\n".join(parts)
