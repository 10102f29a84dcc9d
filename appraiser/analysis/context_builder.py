"""Build the context handed to appraisal models."""

from typing import Optional

from appraiser.category.models import CategoryDetection
from appraiser.evidence.models import EvidenceSummary
from appraiser.llm.models import ItemContext


class ContextBuilder:
    """Builds item context for LLM analysis."""

    def build_context(
        self,
        item_name: str,
        detection: Optional[CategoryDetection] = None,
        image_description: Optional[str] = None,
        category_hint: Optional[str] = None,
        additional_context: Optional[str] = None,
        evidence: Optional[EvidenceSummary] = None,
    ) -> ItemContext:
        """Build context for item analysis.

        Args:
            item_name: Item name or description
            detection: Detected category, if known yet
            image_description: Text description of the item photo
            category_hint: Category supplied by the caller
            additional_context: Free-form notes from the caller
            evidence: Market evidence to include in the prompt

        Returns:
            ItemContext with all available information
        """
        return ItemContext(
            item_name=item_name,
            image_description=image_description,
            category_hint=category_hint,
            category=detection.category if detection else None,
            additional_context=additional_context,
            evidence_text=evidence.formatted if evidence else None,
        )
