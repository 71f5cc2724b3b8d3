"""Configuration for the keycert engine."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, TextIO

import pydantic
import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from keycert.algorithms import DEFAULT_RSA_BITS, Algorithm, ECDSACurve, KeyGenParams
from keycert.exceptions import ConfigurationError
from keycert.logging_config import DEFAULT_LOG_FORMAT, setup_logging


class EngineSettings(BaseSettings):
    """Environment-driven defaults for key generation and logging."""

    model_config = SettingsConfigDict(
        env_prefix="KEYCERT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    default_algorithm: Algorithm = Algorithm.RSA
    default_rsa_bits: int = Field(default=DEFAULT_RSA_BITS, gt=0)
    default_ecdsa_curve: ECDSACurve = ECDSACurve.P224
    service_name: str = "keycert"
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT

    @field_validator("default_algorithm", "default_ecdsa_curve", "log_level", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def key_gen_params(self) -> KeyGenParams:
        return KeyGenParams(rsa_bits=self.default_rsa_bits, ecdsa_curve=self.default_ecdsa_curve)

    def configure_logging(self, stream: TextIO | None = None) -> None:
        """Apply ``log_level`` / ``log_format`` to the root logger."""
        setup_logging(self.service_name, log_level=self.log_level, log_format=self.log_format, stream=stream)

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: Any) -> EngineSettings:
        """
        Load settings from a YAML mapping; keyword overrides win over file values.

        Raises:
            ConfigurationError: If the file cannot be read, is not a mapping,
                or holds invalid values
        """
        try:
            with open(path) as file:
                data = yaml.safe_load(file) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing YAML configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error reading configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")

        data.update(overrides)
        try:
            return cls(**data)
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e


@lru_cache
def get_settings() -> EngineSettings:
    """Return a cached settings instance."""

    return EngineSettings()
