"""Models for category detection."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

SOURCE_OVERRIDE = "override"
SOURCE_AI_VOTE = "ai_vote"
SOURCE_CATEGORY_HINT = "category_hint"
SOURCE_NAME_PARSING = "name_parsing"
SOURCE_KEYWORDS = "keyword_detection"
SOURCE_DEFAULT = "default"


class CategoryDetection(BaseModel):
    """Detected category for an item name."""

    model_config = ConfigDict(frozen=True)

    category: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    keywords: List[str] = Field(default_factory=list)
    source: str


class NamePatternOverride(BaseModel):
    """Patterns that force a category when found in an item name.

    Plain patterns match as substrings. Patterns containing ``\\b`` are
    regular expressions so short tokens only match whole words.
    """

    model_config = ConfigDict(frozen=True)

    patterns: List[str]
    category: str
    priority: int
