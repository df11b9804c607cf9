from typing import Mapping, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from packages.explain_engine.encoder import EncodedExample

# What a model may hand back from predict():
#   - a mapping of class label -> raw (uncalibrated) score, for discrete outputs
#   - a number or a sequence of numbers, for continuous outputs
RawPrediction = Union[Mapping[str, float], Sequence[float], float]


@runtime_checkable
class ModelHandle(Protocol):
    """
    The narrow capability surface the explanation engine needs from a trained model.
    Implementations must be read-only: predict() may not mutate model state.
    """

    def feature_vocabulary(self) -> Tuple[str, ...]:
        """Ordered feature identifiers the model was trained on."""
        ...

    def predict(self, example: EncodedExample) -> RawPrediction: ...

    def fit_quality(self) -> Optional[float]:
        """
        Stored goodness-of-fit (e.g. R² on held-out data).
        Only meaningful for continuous-output models; None when unknown.
        """
        ...
