# packages/explain_engine/fallback.py

from typing import Dict, Iterable, List, Mapping, Optional

from packages.contracts.schemas import FeatureContribution
from packages.contracts.vocabulary.explain import Direction, OutputKind
from packages.lucid_lib.logging import get_component_logger
from .encoder import EncodedExample


def _match(feature_name: str, keys: Iterable[str]) -> Optional[str]:
    """Case-insensitive lookup: exact name first, then the first key contained in the name."""
    name = feature_name.lower()
    keys = [k.lower() for k in keys]
    if name in keys:
        return name
    for key in keys:
        if key and key in name:
            return key
    return None


class FallbackHeuristicGenerator:
    """
    Configuration-driven feature importance for models that cannot be probed
    meaningfully. Never calls the model.
    """

    def __init__(
        self,
        feature_multipliers: Mapping[str, float],
        negative_features: Iterable[str] = (),
        regression_base_factor: float = 0.2,
        classification_base_factor: float = 0.25,
        min_contribution: float = 0.01,
        logger=None,
    ):
        self.feature_multipliers: Dict[str, float] = {
            k.lower(): float(v) for k, v in feature_multipliers.items()
        }
        self.negative_features = [n.lower() for n in negative_features]
        self.regression_base_factor = regression_base_factor
        self.classification_base_factor = classification_base_factor
        self.min_contribution = min_contribution
        self.logger = get_component_logger("fallback", logger)

    def multiplier(self, feature_name: str) -> float:
        key = _match(feature_name, self.feature_multipliers)
        return self.feature_multipliers[key] if key is not None else 1.0

    def direction(self, feature_name: str) -> Direction:
        if _match(feature_name, self.negative_features) is not None:
            return Direction.NEGATIVE
        return Direction.POSITIVE

    def base_factor(self, kind: Optional[OutputKind]) -> float:
        if kind == OutputKind.CLASSIFICATION:
            return self.classification_base_factor
        return self.regression_base_factor

    def generate(
        self, example: EncodedExample, kind: Optional[OutputKind] = None
    ) -> List[FeatureContribution]:
        factor = self.base_factor(kind)
        contributions = []
        for name, value in example:
            magnitude = abs(value) * factor * self.multiplier(name)
            contributions.append(
                FeatureContribution(
                    feature_name=name,
                    # Keep uninformative features visible instead of dropping them
                    contribution=max(magnitude, self.min_contribution),
                    direction=self.direction(name),
                )
            )

        self.logger.info(
            f"Generated {len(contributions)} heuristic contributions "
            f"(base factor {factor}, output kind {kind or 'unknown'})."
        )
        return contributions
