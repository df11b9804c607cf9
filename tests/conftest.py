import pytest
from loguru import logger as _logger

from packages.explain_engine.service import ExplainService
from packages.lucid_lib.config import ExplainConfig, MLflowConfig, Settings, SystemConfig


@pytest.fixture
def logger():
    return _logger.bind(context="test")


@pytest.fixture
def make_settings(tmp_path):
    def _make(**explain_overrides) -> Settings:
        return Settings(
            explain=ExplainConfig(**explain_overrides),
            mlflow=MLflowConfig(),
            system=SystemConfig(log_dir=tmp_path / "logs"),
        )

    return _make


@pytest.fixture
def make_service(make_settings, logger):
    def _make(**explain_overrides) -> ExplainService:
        return ExplainService(make_settings(**explain_overrides), logger=logger)

    return _make


@pytest.fixture
def service(make_service):
    return make_service()
