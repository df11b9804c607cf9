# packages/explain_engine/adapter.py

import math
from dataclasses import dataclass
from numbers import Real
from typing import Dict, Mapping, Tuple, Union

import numpy as np

from packages.contracts.vocabulary.explain import OutputKind
from packages.lucid_lib.logging import get_component_logger
from packages.ml_ops.protocols import ModelHandle
from .encoder import EncodedExample
from .errors import PredictionError


@dataclass(frozen=True)
class DiscreteOutcome:
    """Class label -> raw, uncalibrated score."""

    scores: Tuple[Tuple[str, float], ...]

    kind = OutputKind.CLASSIFICATION

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(label for label, _ in self.scores)

    @property
    def predicted_label(self) -> str:
        # max() keeps the first of several equal scores
        return max(self.scores, key=lambda item: item[1])[0]

    def probabilities(self) -> Dict[str, float]:
        """Softmax over the raw scores: p_i = exp(s_i) / sum_j exp(s_j)."""
        raw = np.array([score for _, score in self.scores], dtype=float)
        exp = np.exp(raw - raw.max())
        probs = exp / exp.sum()
        return {label: float(p) for label, p in zip(self.labels, probs)}

    def probability(self, label: str) -> float:
        return self.probabilities().get(label, 0.0)

    @property
    def display_value(self) -> str:
        return self.predicted_label


@dataclass(frozen=True)
class ContinuousOutcome:
    """One or more output dimensions; the first one is the reported value."""

    values: Tuple[float, ...]

    kind = OutputKind.REGRESSION

    @property
    def primary(self) -> float:
        return self.values[0]

    @property
    def display_value(self) -> str:
        return str(self.primary)


Outcome = Union[DiscreteOutcome, ContinuousOutcome]


def _finite(value, what: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise PredictionError(f"Model returned a non-numeric {what}: {value!r}") from e
    if not math.isfinite(number):
        raise PredictionError(f"Model returned a non-finite {what}: {value!r}")
    return number


def to_outcome(raw) -> Outcome:
    """Resolves a raw model output into the tagged Outcome variant."""
    if isinstance(raw, (DiscreteOutcome, ContinuousOutcome)):
        return raw

    if isinstance(raw, Mapping):
        if not raw:
            raise PredictionError("Model returned an empty class-score mapping.")
        return DiscreteOutcome(
            tuple((str(label), _finite(score, "class score")) for label, score in raw.items())
        )

    if isinstance(raw, (Real, np.number)) and not isinstance(raw, bool):
        return ContinuousOutcome((_finite(raw, "output value"),))

    if isinstance(raw, (list, tuple, np.ndarray)):
        flat = np.asarray(raw, dtype=object).reshape(-1)
        if flat.size == 0:
            raise PredictionError("Model returned an empty output vector.")
        return ContinuousOutcome(tuple(_finite(v, "output value") for v in flat))

    raise PredictionError(f"Unsupported model output type: {type(raw).__name__}")


class PredictionAdapter:
    """
    The only place a model's predict capability is invoked.
    Exactly one predict call per `predict()`; no caching and no side effects.
    """

    def __init__(self, handle: ModelHandle, logger=None):
        self.handle = handle
        self.logger = get_component_logger("prediction-adapter", logger)

    def predict(self, example: EncodedExample) -> Outcome:
        try:
            raw = self.handle.predict(example)
        except PredictionError:
            raise
        except Exception as e:
            self.logger.error(f"Model predict failed: {e}")
            raise PredictionError(f"Model predict failed: {e}") from e
        return to_outcome(raw)


def tracked_value(outcome: Outcome, baseline: Outcome) -> float:
    """
    The scalar the perturbation engine watches:
    probability of the class predicted at baseline, or the baseline's primary output.
    """
    if isinstance(baseline, DiscreteOutcome):
        if not isinstance(outcome, DiscreteOutcome):
            raise PredictionError("Model switched from discrete to continuous output.")
        return outcome.probability(baseline.predicted_label)

    if not isinstance(outcome, ContinuousOutcome):
        raise PredictionError("Model switched from continuous to discrete output.")
    return outcome.primary
