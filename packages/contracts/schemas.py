# packages/contracts/schemas.py

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional, Tuple

from .vocabulary.explain import ContributionSource, Direction


class _Payload(BaseModel):
    """Immutable response object, serialised with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FeatureContribution(_Payload):
    feature_name: str
    contribution: float = Field(ge=0)  # Always a magnitude; the sign lives in `direction`
    direction: Direction


class ExplanationResult(_Payload):
    """Terminal artifact of one explanation request."""

    prediction: str
    feature_contributions: Tuple[FeatureContribution, ...]
    explanation_text: str
    warning: Optional[str] = None

    source: ContributionSource
    degenerate: bool = False
    input_data: Dict[str, str] = {}


class PredictionResult(_Payload):
    """A plain prediction, without perturbation."""

    prediction: str
    confidence: float = Field(ge=0.0, le=1.0)
    probabilities: Optional[Dict[str, float]] = None
    input_data: Dict[str, str] = {}
