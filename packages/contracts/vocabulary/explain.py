from enum import Enum


class StrEnum(str, Enum):
    """Base class to make enums behave like strings for easy use in Pydantic/JSON."""

    def __str__(self):
        return self.value


class OutputKind(StrEnum):
    """The SHAPE of a trained model's output."""

    CLASSIFICATION = "CLASSIFICATION"  # Discrete classes with a score per class
    REGRESSION = "REGRESSION"  # One or more continuous output dimensions


class Direction(StrEnum):
    """Which way a feature pushed the prediction."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class ContributionSource(StrEnum):
    """Where the contributions of an explanation came from. Never mixed."""

    PERTURBATION = "perturbation"
    FALLBACK = "fallback"
