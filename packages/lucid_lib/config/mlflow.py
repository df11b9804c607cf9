from pydantic import Field
from .base import EnvConfig


class MLflowConfig(EnvConfig):
    # Tracking Server Connection (For Clients)
    tracking_uri: str = Field(
        validation_alias="MLFLOW_TRACKING_URI", default="file:./mlruns"
    )

    # Alias resolved when a model is loaded by name
    default_alias: str = Field(validation_alias="MLFLOW_MODEL_ALIAS", default="production")
