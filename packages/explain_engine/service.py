# packages/explain_engine/service.py

import time
from typing import Any, Mapping, Optional

from packages.contracts.schemas import ExplanationResult, PredictionResult
from packages.contracts.vocabulary.explain import ContributionSource
from packages.lucid_lib.config import ExplainConfig, Settings, settings as global_settings
from packages.lucid_lib.logging import get_component_logger
from packages.ml_ops.protocols import ModelHandle
from .adapter import DiscreteOutcome, PredictionAdapter
from .composer import ExplanationComposer, contributions_from_probes
from .degeneracy import DegeneracyDetector
from .encoder import FeatureEncoder
from .errors import PredictionError
from .fallback import FallbackHeuristicGenerator
from .perturbation import PerturbationEngine


class ExplainService:
    """
    Entry point for single-prediction explanations.

    Request flow:
        Encoding -> Predicting-Baseline -> Perturbing -> {Degenerate? -> Fallback}
        -> Composing -> Done

    EncodingError, a failing baseline prediction and ExplanationTimeoutError end the
    request. A PredictionError while probing abandons the whole perturbation pass
    and the configured heuristic is used instead.
    """

    def __init__(self, settings: Optional[Settings] = None, logger=None):
        self.settings = settings or global_settings
        # Sinks belong to the hosting app's LogManager
        self.logger = get_component_logger("explain-service", logger)

        cfg = self.config
        self.encoder = FeatureEncoder(cfg.derived_suffixes, logger=self.logger)
        self.fallback = FallbackHeuristicGenerator(
            feature_multipliers=cfg.feature_multipliers,
            negative_features=cfg.negative_features,
            regression_base_factor=cfg.regression_base_factor,
            classification_base_factor=cfg.classification_base_factor,
            min_contribution=cfg.min_contribution,
            logger=self.logger,
        )
        self.composer = ExplanationComposer(
            max_features_in_text=cfg.max_features_in_text,
            fit_quality_threshold=cfg.fit_quality_threshold,
        )

    @property
    def config(self) -> ExplainConfig:
        return self.settings.explain

    def _deadline(self) -> Optional[float]:
        if self.config.request_timeout_s is None:
            return None
        return time.monotonic() + self.config.request_timeout_s

    def predict(self, handle: ModelHandle, named_input: Mapping[str, Any]) -> PredictionResult:
        """Encoding and a single predict call, without perturbation."""
        example = self.encoder.encode(named_input, handle.feature_vocabulary())
        outcome = PredictionAdapter(handle, logger=self.logger).predict(example)

        if isinstance(outcome, DiscreteOutcome):
            probabilities = outcome.probabilities()
            return PredictionResult(
                prediction=outcome.predicted_label,
                confidence=probabilities[outcome.predicted_label],
                probabilities=probabilities,
                input_data=_echo(named_input),
            )
        # Regression doesn't have confidence in the same way
        return PredictionResult(
            prediction=outcome.display_value,
            confidence=1.0,
            input_data=_echo(named_input),
        )

    def explain(self, handle: ModelHandle, named_input: Mapping[str, Any]) -> ExplanationResult:
        deadline = self._deadline()
        cfg = self.config

        # 1. Encoding (EncodingError propagates: there is nothing to explain)
        example = self.encoder.encode(named_input, handle.feature_vocabulary())
        self.logger.info(f"Explaining prediction over {len(example)} encoded features.")

        # 2. Baseline (a failure here propagates: there is no prediction to report)
        adapter = PredictionAdapter(handle, logger=self.logger)
        baseline = adapter.predict(example)
        kind = baseline.kind
        fit_quality = handle.fit_quality()

        # 3. Perturbation
        detector = DegeneracyDetector(cfg.early_exit_after, logger=self.logger)
        engine = PerturbationEngine(
            adapter,
            detector,
            zero_threshold=cfg.zero_threshold,
            relative_delta=cfg.relative_delta,
            max_workers=cfg.max_workers,
            logger=self.logger,
        )

        probe_failed = False
        try:
            report = engine.run(example, baseline, deadline=deadline)
        except PredictionError as e:
            if not cfg.enable_fallback_explanation:
                raise
            self.logger.warning(f"Abandoning perturbation pass after a failed probe: {e}")
            probe_failed = True
            report = None

        # 4. Degeneracy -> Fallback
        if report is not None:
            degenerate = detector.is_degenerate(report.probes, aborted=report.aborted)
            self.logger.info(
                f"Probed {len(report.probes)} features with {report.predict_calls + 1} "
                f"predict calls (skipped {len(report.skipped)} ~0 features)."
            )
        else:
            degenerate = False

        use_fallback = (degenerate or probe_failed) and cfg.enable_fallback_explanation
        if use_fallback:
            self.logger.warning("Using heuristic fallback explanation.")
            contributions = self.fallback.generate(example, kind)
            source = ContributionSource.FALLBACK
        else:
            contributions = contributions_from_probes(report.probes)
            source = ContributionSource.PERTURBATION

        # 5. Composing
        result = self.composer.compose(
            prediction=baseline.display_value,
            contributions=contributions,
            source=source,
            degenerate=degenerate,
            probe_failed=probe_failed,
            kind=kind,
            fit_quality=fit_quality,
            input_data=_echo(named_input),
        )
        self.logger.success(
            f"Explanation ready: prediction={result.prediction}, source={source.value}, "
            f"{len(result.feature_contributions)} contributions."
        )
        return result


def _echo(named_input: Mapping[str, Any]):
    return {str(k): "" if v is None else str(v) for k, v in named_input.items()}


def explain(handle: ModelHandle, named_input: Mapping[str, Any]) -> ExplanationResult:
    return ExplainService().explain(handle, named_input)


def predict(handle: ModelHandle, named_input: Mapping[str, Any]) -> PredictionResult:
    return ExplainService().predict(handle, named_input)
