# packages/explain_engine/perturbation.py

import multiprocessing
import time
from dataclasses import dataclass, field
from typing import List, Optional

from joblib import Parallel, delayed

from packages.lucid_lib.logging import get_component_logger
from .adapter import Outcome, PredictionAdapter, tracked_value
from .degeneracy import DegeneracyDetector, FeatureProbe
from .encoder import EncodedExample
from .errors import ExplanationTimeoutError


def min_delta(magnitude: float) -> float:
    """Absolute floor on the step size, growing with the feature's scale."""
    if magnitude >= 1000:
        return 100.0
    if magnitude >= 100:
        return 10.0
    if magnitude >= 10:
        return 1.0
    return 0.1


def perturbation_delta(value: float, relative: float = 0.05) -> float:
    magnitude = abs(value)
    return max(min_delta(magnitude), relative * magnitude)


@dataclass
class PerturbationReport:
    probes: List[FeatureProbe] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)  # ~0 baseline values
    aborted: bool = False

    @property
    def predict_calls(self) -> int:
        return 2 * len(self.probes)


class PerturbationEngine:
    """
    Estimates each feature's local effect on a single prediction by nudging its
    value up and down while every other feature stays at baseline.
    """

    def __init__(
        self,
        adapter: PredictionAdapter,
        detector: DegeneracyDetector,
        zero_threshold: float = 1e-6,
        relative_delta: float = 0.05,
        max_workers: int = 1,
        logger=None,
    ):
        self.adapter = adapter
        self.detector = detector
        self.zero_threshold = zero_threshold
        self.relative_delta = relative_delta
        self.max_workers = max_workers
        self.logger = get_component_logger("perturbation", logger)

    def probe(
        self,
        example: EncodedExample,
        baseline: Outcome,
        baseline_value: float,
        name: str,
    ) -> FeatureProbe:
        value = example.value_of(name)
        delta = perturbation_delta(value, self.relative_delta)

        up_outcome = self.adapter.predict(example.with_value(name, value + delta))
        down_outcome = self.adapter.predict(example.with_value(name, value - delta))
        up = tracked_value(up_outcome, baseline)
        down = tracked_value(down_outcome, baseline)

        # Both express "what happens when the feature increases"
        change_up = up - baseline_value
        change_down = baseline_value - down

        chosen = change_up if abs(change_up) >= abs(change_down) else change_down
        # Sign follows the response to an increase, also for negative feature values
        contribution = (chosen / delta) * abs(value)
        insensitive = (
            abs(change_up) < self.zero_threshold and abs(change_down) < self.zero_threshold
        )

        self.logger.debug(
            f"{name}: value={value:.6g} delta={delta:.6g} "
            f"up={change_up:+.6g} down={change_down:+.6g} -> {contribution:+.6g}"
        )
        return FeatureProbe(
            feature_name=name,
            value=value,
            delta=delta,
            change_up=change_up,
            change_down=change_down,
            contribution=contribution,
            insensitive=insensitive,
        )

    def run(
        self,
        example: EncodedExample,
        baseline: Outcome,
        deadline: Optional[float] = None,
    ) -> PerturbationReport:
        """
        Probes every feature with |value| >= zero_threshold.
        `deadline` is a time.monotonic() timestamp; crossing it raises ExplanationTimeoutError.
        PredictionError from any probe propagates to the caller.
        """
        report = PerturbationReport()
        baseline_value = tracked_value(baseline, baseline)

        candidates = []
        for name, value in example:
            if abs(value) < self.zero_threshold:
                report.skipped.append(name)
            else:
                candidates.append(name)

        if report.skipped:
            self.logger.debug(f"Skipping ~0 features: {report.skipped}")

        # 1. The first few features are always probed in order, to allow an early exit
        head = candidates[: self.detector.early_exit_after]
        tail = candidates[self.detector.early_exit_after :]

        for name in head:
            self._check_deadline(deadline)
            report.probes.append(self.probe(example, baseline, baseline_value, name))

        if self.detector.should_abort(report.probes):
            report.aborted = True
            return report

        # 2. The rest are independent of each other
        if not tail:
            return report

        if self.max_workers > 1 and len(tail) > 1:
            report.probes.extend(
                self._probe_parallel(example, baseline, baseline_value, tail, deadline)
            )
        else:
            for name in tail:
                self._check_deadline(deadline)
                report.probes.append(self.probe(example, baseline, baseline_value, name))

        return report

    def _probe_parallel(self, example, baseline, baseline_value, names, deadline):
        timeout = None
        if deadline is not None:
            timeout = self._check_deadline(deadline)

        self.logger.debug(f"Probing {len(names)} features on {self.max_workers} threads.")
        try:
            # Results come back in submission order, so the output matches a sequential run
            return Parallel(n_jobs=self.max_workers, prefer="threads", timeout=timeout)(
                delayed(self.probe)(example, baseline, baseline_value, name) for name in names
            )
        except (TimeoutError, multiprocessing.TimeoutError) as e:
            raise ExplanationTimeoutError("Explanation deadline exceeded during probing.") from e

    @staticmethod
    def _check_deadline(deadline: Optional[float]) -> Optional[float]:
        """Returns the seconds left before `deadline`."""
        if deadline is None:
            return None
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ExplanationTimeoutError("Explanation deadline exceeded during probing.")
        return remaining
