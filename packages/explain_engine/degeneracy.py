# packages/explain_engine/degeneracy.py

from dataclasses import dataclass
from typing import Sequence

from packages.lucid_lib.logging import get_component_logger


@dataclass(frozen=True)
class FeatureProbe:
    """Result of perturbing one feature up and down around its baseline value."""

    feature_name: str
    value: float
    delta: float
    change_up: float
    change_down: float
    contribution: float  # Signed local-derivative estimate, scaled by |value|
    insensitive: bool  # Neither direction moved the tracked output


class DegeneracyDetector:
    """
    Decides whether a model responds to its inputs at all.
    A degenerate verdict is an expected outcome, not an error: the caller routes
    the request to the fallback heuristic instead.
    """

    def __init__(self, early_exit_after: int = 3, logger=None):
        self.early_exit_after = early_exit_after
        self.logger = get_component_logger("degeneracy", logger)

    def should_abort(self, probes: Sequence[FeatureProbe]) -> bool:
        """Early exit: the first `early_exit_after` processed features were all flat."""
        if len(probes) < self.early_exit_after:
            return False
        head = probes[: self.early_exit_after]
        if all(p.insensitive for p in head):
            self.logger.warning(
                f"First {len(head)} features show zero sensitivity. "
                "Skipping the remaining probes."
            )
            return True
        return False

    def is_degenerate(self, probes: Sequence[FeatureProbe], aborted: bool = False) -> bool:
        if aborted:
            return True
        if not probes:
            self.logger.warning("No feature could be perturbed (all missing or ~0).")
            return True
        if all(p.insensitive for p in probes):
            self.logger.warning(
                f"All {len(probes)} perturbed features left the output unchanged."
            )
            return True
        return False
