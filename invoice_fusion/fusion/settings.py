"""
Fusion Settings Module.

Snapshot of the fusion constants. The engine reads configuration once,
at construction, so every fusion call is a pure function of its inputs.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from config import get_config
from invoice_fusion.utils.exceptions import ConfigurationError


@dataclass(frozen=True)
class FusionSettings:
    """
    Constants driving mapping, cross-validation and scoring.

    Attributes:
        direct_mapping_confidence: Confidence of a deterministic synonym match
        consensus_confidence: Confidence when both sources agree
        conflict_penalty: Multiplier for the winning source on disagreement
        default_generative_confidence: Used when a generative guess states none
        neutral_agreement_score: Agreement score when nothing was comparable
        amount_tolerance: Relative difference under which amounts match
        deterministic_weight: Weight of the OCR source in the aggregate score
        generative_weight: Weight of the generative source in the aggregate score
        agreement_bonus: Maximum bonus granted for full agreement
        deterministic_cost_per_page: Estimated OCR cost per page
    """
    direct_mapping_confidence: float = 0.95
    consensus_confidence: float = 0.95
    conflict_penalty: float = 0.8
    default_generative_confidence: float = 0.8
    neutral_agreement_score: float = 0.5
    amount_tolerance: float = 0.01
    deterministic_weight: float = 0.6
    generative_weight: float = 0.4
    agreement_bonus: float = 0.1
    deterministic_cost_per_page: float = 0.065

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f.name, f"expected a number, got {value!r}")
            if f.name == 'deterministic_cost_per_page':
                if value < 0:
                    raise ConfigurationError(f.name, "must not be negative")
            elif not 0.0 <= value <= 1.0:
                raise ConfigurationError(f.name, "must be between 0 and 1")

    @classmethod
    def from_config(cls) -> 'FusionSettings':
        """Read settings from the 'fusion' and 'costs' configuration sections."""
        defaults = cls()
        return cls(
            direct_mapping_confidence=get_config(
                "fusion.direct_mapping_confidence", defaults.direct_mapping_confidence),
            consensus_confidence=get_config(
                "fusion.consensus_confidence", defaults.consensus_confidence),
            conflict_penalty=get_config(
                "fusion.conflict_penalty", defaults.conflict_penalty),
            default_generative_confidence=get_config(
                "fusion.default_generative_confidence", defaults.default_generative_confidence),
            neutral_agreement_score=get_config(
                "fusion.neutral_agreement_score", defaults.neutral_agreement_score),
            amount_tolerance=get_config(
                "fusion.amount_tolerance", defaults.amount_tolerance),
            deterministic_weight=get_config(
                "fusion.weights.deterministic", defaults.deterministic_weight),
            generative_weight=get_config(
                "fusion.weights.generative", defaults.generative_weight),
            agreement_bonus=get_config(
                "fusion.weights.agreement_bonus", defaults.agreement_bonus),
            deterministic_cost_per_page=get_config(
                "costs.deterministic_per_page", defaults.deterministic_cost_per_page),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
