import joblib
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
import numpy as np
import mlflow.pyfunc
import pandas as pd

from packages.contracts.vocabulary.explain import OutputKind
from packages.explain_engine.encoder import EncodedExample
from packages.explain_engine.errors import ModelLoadError
from packages.lucid_lib.logging import get_component_logger
from packages.ml_ops.evaluation.regression import RegressionEvaluator


class TrainedModel:
    """
    The core serializable object for a trained model.
    Wraps a fitted scikit-learn estimator together with the frozen feature
    vocabulary it was trained on. Implements the ModelHandle protocol, so it
    is what the explanation engine probes.
    """

    def __init__(
        self,
        model: Any,
        feature_vocabulary: Sequence[str],
        output_kind: OutputKind,
        targets: Sequence[str] = (),
        fit_quality: Optional[float] = None,
        fill_value: float = 0.0,
    ):
        if not feature_vocabulary:
            raise ValueError("A trained model needs at least one feature.")

        self.model = model
        self.output_kind = OutputKind(output_kind)
        self.targets: List[str] = list(targets)
        self.fill_value = fill_value

        # Frozen at training time; never changes for the lifetime of the artifact
        self._vocabulary: Tuple[str, ...] = tuple(feature_vocabulary)
        self._fit_quality = fit_quality

        # Metadata for traceability
        self.run_id: str | None = None
        self.metadata: Dict[str, Any] = {}

    @classmethod
    def from_estimator(
        cls,
        model: Any,
        feature_vocabulary: Sequence[str],
        output_kind: OutputKind,
        targets: Sequence[str] = (),
        X_eval: Optional[pd.DataFrame] = None,
        y_eval=None,
        logger=None,
    ) -> "TrainedModel":
        """
        Builds the artifact from an already fitted estimator.
        For regressors, held-out data (X_eval, y_eval) is scored to store the fit quality.
        """
        fit_quality = None
        if OutputKind(output_kind) == OutputKind.REGRESSION and X_eval is not None:
            metrics = RegressionEvaluator().evaluate(
                model, X_eval[list(feature_vocabulary)], y_eval, logger
            )
            fit_quality = metrics["fit_quality"]

        return cls(
            model=model,
            feature_vocabulary=feature_vocabulary,
            output_kind=output_kind,
            targets=targets,
            fit_quality=fit_quality,
        )

    # --- ModelHandle ---
    def feature_vocabulary(self) -> Tuple[str, ...]:
        return self._vocabulary

    def fit_quality(self) -> Optional[float]:
        return self._fit_quality

    def to_frame(self, example: EncodedExample) -> pd.DataFrame:
        """One-row frame in vocabulary order. Features absent from the example get `fill_value`."""
        known = example.as_dict()
        row = [known.get(name, self.fill_value) for name in self._vocabulary]
        return pd.DataFrame([row], columns=list(self._vocabulary), dtype=float)

    def predict(self, example: EncodedExample):
        X = self.to_frame(example)

        if self.output_kind == OutputKind.CLASSIFICATION:
            labels = [str(c) for c in getattr(self.model, "classes_", [])]
            if hasattr(self.model, "predict_proba") and labels:
                probs = np.asarray(self.model.predict_proba(X))[0]
                # Log-probabilities: the adapter's softmax returns predict_proba
                return {
                    label: float(np.log(max(p, 1e-12))) for label, p in zip(labels, probs)
                }
            predicted = str(self.model.predict(X)[0])
            labels = labels or [predicted]
            return {label: (1.0 if label == predicted else 0.0) for label in labels}

        preds = np.asarray(self.model.predict(X), dtype=float)
        return preds.reshape(-1).tolist()

    def save(self, path: Path):
        joblib.dump(self, path)

    @staticmethod
    def load(path: Path) -> "TrainedModel":
        return load_model(path)


def load_model(path: Path) -> TrainedModel:
    """Deserialises a previously trained, immutable model artifact."""
    path = Path(path)
    logger = get_component_logger("model-loader")

    if not path.exists():
        raise ModelLoadError(f"Model artifact not found: {path}")

    try:
        obj = joblib.load(path)
    except Exception as e:
        raise ModelLoadError(f"Could not deserialise model artifact {path}: {e}") from e

    if not isinstance(obj, TrainedModel):
        raise ModelLoadError(
            f"Artifact {path} holds a {type(obj).__name__}, not a TrainedModel."
        )

    logger.info(
        f"Loaded {obj.output_kind.value} model with "
        f"{len(obj.feature_vocabulary())} features from {path}."
    )
    return obj


class LucidMLflowWrapper(mlflow.pyfunc.PythonModel):
    def __init__(self, trained: TrainedModel):
        self.trained = trained

    def predict(self, context, model_input: pd.DataFrame):
        # Row-wise prediction over named columns, for MLflow's own serving path
        results = []
        for _, row in model_input.iterrows():
            names = [c for c in self.trained.feature_vocabulary() if c in row.index]
            example = EncodedExample(tuple(names), tuple(float(row[c]) for c in names))
            results.append(self.trained.predict(example))
        return results
