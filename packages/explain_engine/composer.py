# packages/explain_engine/composer.py

from typing import Dict, List, Optional, Sequence

from packages.contracts.schemas import ExplanationResult, FeatureContribution
from packages.contracts.vocabulary.explain import ContributionSource, Direction, OutputKind
from .degeneracy import FeatureProbe


DEGENERATE_WARNING = (
    "The model does not respond measurably to changes in its inputs, so this "
    "explanation is an approximation based on configured feature heuristics."
)
UNRESPONSIVE_WARNING = (
    "The model does not respond measurably to changes in its inputs, so the "
    "contributions below carry no real signal."
)
PROBE_FAILED_WARNING = (
    "The model failed while being probed, so this explanation is an "
    "approximation based on configured feature heuristics."
)
POOR_FIT_WARNING = (
    "This model fit its training data poorly (fit quality {fit:.2f}), so its "
    "predictions may be unreliable."
)


def clamp_fit_quality(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return min(1.0, max(0.0, float(value)))


def contributions_from_probes(probes: Sequence[FeatureProbe]) -> List[FeatureContribution]:
    return [
        FeatureContribution(
            feature_name=p.feature_name,
            contribution=abs(p.contribution),
            direction=Direction.POSITIVE if p.contribution >= 0 else Direction.NEGATIVE,
        )
        for p in probes
    ]


class ExplanationComposer:
    """Ranks contributions, writes the narrative and attaches quality warnings."""

    def __init__(self, max_features_in_text: int = 3, fit_quality_threshold: float = 0.1):
        self.max_features_in_text = max_features_in_text
        self.fit_quality_threshold = fit_quality_threshold

    @staticmethod
    def rank(contributions: Sequence[FeatureContribution]) -> List[FeatureContribution]:
        # sorted() is stable: equal magnitudes keep vocabulary order
        return sorted(contributions, key=lambda c: c.contribution, reverse=True)

    def narrative(self, ranked: Sequence[FeatureContribution]) -> str:
        if not ranked:
            return "No feature contributions could be computed for this prediction."
        parts = [
            f"{c.feature_name} ({c.direction.value} impact: {c.contribution:.2f})"
            for c in ranked[: self.max_features_in_text]
        ]
        return "The model's prediction is primarily influenced by: " + ", ".join(parts) + "."

    def warnings(
        self,
        *,
        degenerate: bool,
        probe_failed: bool,
        source: ContributionSource,
        kind: Optional[OutputKind],
        fit_quality: Optional[float],
    ) -> Optional[str]:
        messages = []
        if probe_failed:
            messages.append(PROBE_FAILED_WARNING)
        elif degenerate and source == ContributionSource.FALLBACK:
            messages.append(DEGENERATE_WARNING)
        elif degenerate:
            messages.append(UNRESPONSIVE_WARNING)

        fit = clamp_fit_quality(fit_quality)
        if kind == OutputKind.REGRESSION and fit is not None and fit <= self.fit_quality_threshold:
            messages.append(POOR_FIT_WARNING.format(fit=fit))

        return " ".join(messages) if messages else None

    def compose(
        self,
        *,
        prediction: str,
        contributions: Sequence[FeatureContribution],
        source: ContributionSource,
        degenerate: bool = False,
        probe_failed: bool = False,
        kind: Optional[OutputKind] = None,
        fit_quality: Optional[float] = None,
        input_data: Optional[Dict[str, str]] = None,
    ) -> ExplanationResult:
        ranked = self.rank(contributions)
        return ExplanationResult(
            prediction=prediction,
            feature_contributions=tuple(ranked),
            explanation_text=self.narrative(ranked),
            warning=self.warnings(
                degenerate=degenerate,
                probe_failed=probe_failed,
                source=source,
                kind=kind,
                fit_quality=fit_quality,
            ),
            source=source,
            degenerate=degenerate,
            input_data={str(k): str(v) for k, v in (input_data or {}).items()},
        )
