from pathlib import Path
from pydantic import Field
from .base import EnvConfig, PROJECT_ROOT


class SystemConfig(EnvConfig):
    """
    General system-wide configuration.
    """

    # Maps to LUCID_ENV in .env
    environment: str = Field(validation_alias="LUCID_ENV", default="production")

    debug: bool = Field(validation_alias="DEBUG", default=False)
    project_name: str = "Lucid"
    version: str = "0.1.0"

    # Where the JSON log sink writes
    log_dir: Path = Field(validation_alias="LOG_DIR", default=PROJECT_ROOT / "logs")
