# packages/lucid_lib/config/explain.py

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import Field, model_validator

from .base import EnvConfig


# Domain knowledge table used by the fallback heuristic.
# Keys are matched case-insensitively, exact name first, then substring.
DEFAULT_FEATURE_MULTIPLIERS: Dict[str, float] = {
    "score": 1.5,
    "grade": 1.5,
    "age": 1.2,
    "year": 1.2,
    "length": 2.0,
    "width": 2.0,
    "color": 1.8,
    "type": 1.8,
    "size": 1.5,
    "area": 1.5,
    "count": 1.3,
    "number": 1.3,
}


class ExplainConfig(EnvConfig):
    """
    Knobs for the explanation engine.
    Every field can be overridden from the environment (XAI_* variables).
    """

    # --- Fallback Heuristic ---
    regression_base_factor: float = Field(
        validation_alias="XAI_REGRESSION_BASE_FACTOR", default=0.2, gt=0
    )
    classification_base_factor: float = Field(
        validation_alias="XAI_CLASSIFICATION_BASE_FACTOR", default=0.25, gt=0
    )
    min_contribution: float = Field(
        validation_alias="XAI_MIN_CONTRIBUTION", default=0.01, ge=0
    )
    feature_multipliers: Dict[str, float] = Field(
        validation_alias="XAI_FEATURE_MULTIPLIERS",
        default_factory=lambda: dict(DEFAULT_FEATURE_MULTIPLIERS),
    )
    # Features that correlate negatively with the outcome in the deployed domain
    negative_features: List[str] = Field(
        validation_alias="XAI_NEGATIVE_FEATURES", default_factory=list
    )
    # Optional YAML file with `feature_multipliers` and/or `negative_features` keys
    heuristics_path: Optional[Path] = Field(
        validation_alias="XAI_HEURISTICS_PATH", default=None
    )
    enable_fallback_explanation: bool = Field(
        validation_alias="XAI_ENABLE_FALLBACK", default=True
    )

    # --- Encoding ---
    # e.g. "age@value" in the vocabulary is also reachable as "age"
    derived_suffixes: List[str] = Field(
        validation_alias="XAI_DERIVED_SUFFIXES", default_factory=lambda: ["@value"]
    )

    # --- Perturbation ---
    zero_threshold: float = Field(
        validation_alias="XAI_ZERO_THRESHOLD", default=1e-6, gt=0
    )
    relative_delta: float = Field(
        validation_alias="XAI_RELATIVE_DELTA", default=0.05, gt=0
    )
    early_exit_after: int = Field(validation_alias="XAI_EARLY_EXIT_AFTER", default=3, ge=1)
    max_workers: int = Field(validation_alias="XAI_MAX_WORKERS", default=1, ge=1)
    request_timeout_s: Optional[float] = Field(
        validation_alias="XAI_REQUEST_TIMEOUT_S", default=30.0, gt=0
    )

    # --- Composition ---
    max_features_in_text: int = Field(
        validation_alias="XAI_MAX_FEATURES_IN_TEXT", default=3, ge=1
    )
    fit_quality_threshold: float = Field(
        validation_alias="XAI_FIT_QUALITY_THRESHOLD", default=0.1, ge=0, le=1
    )

    @model_validator(mode="after")
    def _merge_heuristics_file(self) -> "ExplainConfig":
        if self.heuristics_path is None:
            return self

        path = Path(self.heuristics_path)
        if not path.exists():
            raise ValueError(f"Heuristics file not found: {path}")

        with path.open("r", encoding="utf-8") as handle:
            table = yaml.safe_load(handle) or {}

        if not isinstance(table, dict):
            raise ValueError(
                f"Invalid heuristics file (expected a mapping at top level): {path}"
            )

        multipliers = table.get("feature_multipliers")
        if multipliers:
            self.feature_multipliers = {
                str(k).lower(): float(v) for k, v in multipliers.items()
            }
        negatives = table.get("negative_features")
        if negatives:
            self.negative_features = [str(n) for n in negatives]
        return self
