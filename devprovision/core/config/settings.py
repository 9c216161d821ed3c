"""
Runtime settings — environment variables with CLI overrides.

    DEVPROV_PLATFORM         ubuntu | windows (default: auto-detect)
    DEVPROV_CATALOG          path to a custom catalog YAML
    DEVPROV_QUERY_TIMEOUT    package-manager query timeout, seconds (default 8)
    DEVPROV_LOG_LEVEL        console log level
    DEVPROV_LOG_FILE         optional log file
    DEVPROV_LOG_FILE_LEVEL   level for the log file
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from devprovision.core.config.loader import ConfigError
from devprovision.core.services.resolver import DEFAULT_QUERY_TIMEOUT

ENV_PREFIX = "DEVPROV_"


class Settings(BaseModel):
    platform: str | None = None
    catalog: Path | None = None
    query_timeout: float = Field(default=DEFAULT_QUERY_TIMEOUT, gt=0)
    log_level: str | None = None
    log_file: str | None = None
    log_file_level: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> Settings:
        """Build settings from ``DEVPROV_*`` variables; non-None overrides win.

        Raises:
            ConfigError: a variable has an invalid value.
        """
        env = os.environ if environ is None else environ
        data: dict = {}
        for field_name in cls.model_fields:
            value = env.get(f"{ENV_PREFIX}{field_name.upper()}")
            if value:
                data[field_name] = value
        data.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}") from e
