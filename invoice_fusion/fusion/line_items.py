"""
Line Item Enrichment Module.

Decorates OCR line items with hints from the generative source:
a parsed amount, a business category and a GL account suggestion.

Author: ML Engineering Team
"""

from typing import Any, Dict, List, Optional, Sequence

from invoice_fusion.schema.transforms import to_amount
from invoice_fusion.sources.models import GenerativeSource, LineItem
from invoice_fusion.utils.helpers import is_blank


class LineItemEnricher:
    """
    Enriches deterministic line items.

    Example:
        >>> enricher = LineItemEnricher()
        >>> enricher.enrich([LineItem("Consulting", amount="$500.00")], generative)
        [{'description': 'Consulting', ..., 'normalizedAmount': 500.0, ...}]
    """

    def enrich(self, items: Sequence[LineItem], source_b: GenerativeSource) -> List[Dict[str, Any]]:
        """
        Enrich line items.

        Args:
            items: Line items from the deterministic source.
            source_b: Generative source supplying ``line_items`` and
                      ``gl_suggestions`` sections.

        Returns:
            One dict per item: the item fields plus normalizedAmount,
            businessCategory and glAccountSuggestion.
        """
        generative_items = source_b.section('line_items')
        if not isinstance(generative_items, list):
            generative_items = []

        gl_suggestions = source_b.section('gl_suggestions')
        if not isinstance(gl_suggestions, dict):
            gl_suggestions = {}

        enriched = []
        for item in items:
            entry = item.to_dict()
            entry['normalizedAmount'] = None if is_blank(item.amount) else to_amount(item.amount)
            entry['businessCategory'] = self.categorize(item.description, generative_items)
            entry['glAccountSuggestion'] = gl_suggestions.get(item.description) or None
            enriched.append(entry)

        return enriched

    @staticmethod
    def categorize(description: str, generative_items: List[Any]) -> Optional[str]:
        """
        Category of the first generative line item whose description
        contains the given description (case-insensitive).
        """
        needle = description.lower()
        for candidate in generative_items:
            if not isinstance(candidate, dict):
                continue
            text = candidate.get('description')
            if isinstance(text, str) and needle in text.lower():
                return candidate.get('category')
        return None
