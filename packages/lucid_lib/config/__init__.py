# packages/lucid_lib/config/__init__.py

from pydantic_settings import BaseSettings


# Import sub-configs
from .base import PROJECT_ROOT
from .explain import ExplainConfig
from .system import SystemConfig
from .mlflow import MLflowConfig


class Settings(BaseSettings):
    # Composition: Grouping configs by domain
    explain: ExplainConfig = ExplainConfig()
    mlflow: MLflowConfig = MLflowConfig()
    system: SystemConfig = SystemConfig()


# Singleton Instance
try:
    settings = Settings()
except Exception as e:
    print(f"CRITICAL: Config load failed. Details: {e}")
    raise e
