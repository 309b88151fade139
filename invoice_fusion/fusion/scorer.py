"""
Confidence Scorer Module.

Combines the whole-document confidence of each source with the
cross-validation agreement into one aggregate confidence.
"""

from typing import Optional

from invoice_fusion.utils.helpers import clamp
from .settings import FusionSettings


class ConfidenceScorer:
    """
    Weighted confidence with an agreement bonus.

    ``base = 0.6 * conf_a + 0.4 * conf_b`` (the layout-grounded OCR source
    weighs more), then ``min(base + 0.1 * agreement, 1.0)``.

    Example:
        >>> ConfidenceScorer().score(0.9, 0.8, 1.0)
        0.96
    """

    def __init__(self, settings: Optional[FusionSettings] = None) -> None:
        self.settings = settings or FusionSettings()

    def score(self, conf_a: float, conf_b: float, agreement_score: float) -> float:
        """
        Compute the aggregate confidence.

        Args:
            conf_a: Deterministic source confidence (0-1).
            conf_b: Generative source confidence (0-1).
            agreement_score: Cross-validation agreement (0-1).

        Returns:
            Aggregate confidence in [0, 1].
        """
        base = (
            clamp(conf_a) * self.settings.deterministic_weight
            + clamp(conf_b) * self.settings.generative_weight
        )
        bonus = clamp(agreement_score) * self.settings.agreement_bonus
        return min(base + bonus, 1.0)
