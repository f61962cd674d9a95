"""Server configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when the configuration is missing or incomplete."""


_REQUIRED = (
    ("db_path", "DB_PATH", "DB_URL must be set"),
    ("jwt_secret", "JWT_SECRET", "JWT_SECRET environment variable is not set"),
    ("platform", "PLATFORM", "PLATFORM environment variable is not set"),
    ("filepath_root", "FILEPATH_ROOT", "FILEPATH_ROOT environment variable is not set"),
    ("assets_root", "ASSETS_ROOT", "ASSETS_ROOT environment variable is not set"),
    ("s3_bucket", "S3_BUCKET", "S3_BUCKET environment variable is not set"),
    ("s3_region", "S3_REGION", "S3_REGION environment variable is not set"),
    ("s3_cf_distribution", "S3_CF_DISTRO", "S3_CF_DISTRO environment variable is not set"),
    ("port", "PORT", "PORT environment variable is not set"),
)


@dataclass(frozen=True)
class Config:
    """Settings the server needs to run."""

    db_path: str
    jwt_secret: str
    platform: str
    filepath_root: str
    assets_root: str
    s3_bucket: str
    s3_region: str
    s3_cf_distribution: str
    port: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Read every setting from the environment; each one is required."""
        env = os.environ if environ is None else environ
        values = {}
        for field_name, variable, message in _REQUIRED:
            value = env.get(variable, "")
            if not value:
                raise ConfigError(message)
            values[field_name] = value
        return cls(**values)


def load_config(env_file=".env") -> Config:
    """Load variables from an env file into the environment, then read the config."""
    path = Path(env_file)
    if not path.is_file():
        raise ConfigError(f"error loading .env file: {path} not found")
    load_dotenv(path)
    return Config.from_env()