# regions_contract/config.py
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

RESOURCES_DIR = Path(__file__).resolve().parent / "resources"


class ContractSettings(BaseSettings):
    """
    Centralized, env-driven configuration for the contract suite.
    Override via REGIONS_* environment variables or a .env file at repo root.
    """
    base_uri: str = Field(default="https://regions-test.2gis.com")
    base_path: str = Field(default="/1.0")
    timeout_s: float = Field(default=30.0, gt=0)
    log_http: bool = Field(default=True)
    log_level: str = Field(default="INFO")
    max_workers: int = Field(default=4, ge=1, le=64)
    fixtures_dir: Path = Field(default=RESOURCES_DIR / "fixtures")
    schemas_dir: Path = Field(default=RESOURCES_DIR / "schemas")
    live: bool = Field(default=False)  # gates tests that hit the real service

    # Pydantic v2 config: ignore unknown envs, load .env in UTF-8
    model_config = SettingsConfigDict(
        env_prefix="REGIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> ContractSettings:
    return ContractSettings()


def configure_logging(settings: ContractSettings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
