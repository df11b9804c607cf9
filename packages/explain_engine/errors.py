# packages/explain_engine/errors.py


class XaiError(Exception):
    """
    Base class for every failure the explanation engine surfaces.
    Carries a stable `error_code` and a message safe to show to end users.
    """

    error_code = "XAI_ERROR"
    default_user_message = "An unexpected error occurred"

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.user_message = user_message or self.default_user_message


class EncodingError(XaiError):
    """None of the supplied features resolve against the model's vocabulary."""

    error_code = "ENCODING_ERROR"
    default_user_message = "None of the supplied features are known to this model"


class PredictionError(XaiError):
    """The model's predict call failed or returned something unusable."""

    error_code = "PREDICTION_ERROR"
    default_user_message = "The model could not produce a prediction"


class ExplanationTimeoutError(XaiError):
    error_code = "EXPLANATION_TIMEOUT"
    default_user_message = "The explanation took too long and was cancelled"


class ModelLoadError(XaiError):
    error_code = "MODEL_LOAD_ERROR"
    default_user_message = "The requested model could not be loaded"
