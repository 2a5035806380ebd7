"""Configuration loading and Pydantic models for s3direct."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from s3direct.errors import ConfigurationError

ENV_PREFIX = "S3DIRECT_"
_ENV_FIELDS = ("access_key", "secret_key", "region", "bucket", "endpoint_host")


class S3Config(BaseModel):
    """Credentials and location of the object store.

    Immutable once built; every signing call receives the same value.
    ``secret_key`` may be absent, which disables upload policies.
    """

    model_config = ConfigDict(frozen=True)

    access_key: str = ""
    secret_key: str | None = None
    region: str = "us-east-1"
    bucket: str
    endpoint_host: str = ""

    @field_validator("region", "bucket")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        if "/" in value:
            raise ValueError("must not contain '/'")
        return value

    @model_validator(mode="after")
    def _key_pair_complete(self) -> "S3Config":
        if self.secret_key and not self.access_key.strip():
            raise ValueError("access_key is required when secret_key is set")
        return self

    @property
    def has_secret(self) -> bool:
        """True when a usable secret key is configured."""
        return bool(self.secret_key)


class LoggingConfig(BaseModel):
    """Log output configuration."""

    level: str = "INFO"
    format: str = "text"


class ClientConfig(BaseModel):
    """HTTP client settings for direct store requests."""

    timeout: float = 30.0


class MetricsConfig(BaseModel):
    """Prometheus metrics configuration."""

    enabled: bool = False


class S3DirectConfig(BaseModel):
    """Top-level s3direct configuration."""

    s3: S3Config
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


def _env_overrides(environ: Mapping[str, str]) -> dict[str, str]:
    """Collect ``S3DIRECT_*`` variables that name S3Config fields."""
    overrides = {}
    for name in _ENV_FIELDS:
        value = environ.get(ENV_PREFIX + name.upper())
        if value is not None:
            overrides[name] = value
    return overrides


def _parse_s3(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the s3 section from YAML data into a dict for Pydantic.

    Accepts ``api_key``/``api_secret`` as aliases for the credential pair.
    """
    if data is None:
        return {}
    result: dict[str, Any] = {}
    access_key = data.get("access_key", data.get("api_key"))
    if access_key is not None:
        result["access_key"] = str(access_key)
    secret_key = data.get("secret_key", data.get("api_secret"))
    if secret_key is not None:
        result["secret_key"] = str(secret_key)
    for name in ("region", "bucket", "endpoint_host"):
        if data.get(name) is not None:
            result[name] = str(data[name])
    return result


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the logging section from YAML data."""
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_client(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the client section from YAML data."""
    if data is None:
        return {}
    return {"timeout": data.get("timeout", 30.0)}


def _parse_metrics(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the metrics section from YAML data."""
    if data is None:
        return {}
    return {"enabled": data.get("enabled", False)}


def config_from_env(environ: Mapping[str, str] | None = None) -> S3Config:
    """Build an S3Config from ``S3DIRECT_*`` environment variables.

    Raises:
        ConfigurationError: If required values are missing or invalid.
    """
    environ = os.environ if environ is None else environ
    try:
        return S3Config(**_env_overrides(environ))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid S3 configuration from environment: {exc}") from exc


def _section(data: Any, name: str, path: Path) -> dict[str, Any] | None:
    """Return a YAML section, rejecting anything but a mapping or nothing."""
    if data is None or isinstance(data, dict):
        return data
    raise ConfigurationError(f"Invalid configuration in {path}: {name} must be a mapping")


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> S3DirectConfig:
    """Load an S3DirectConfig from a YAML file.

    ``S3DIRECT_*`` environment variables override values of the ``s3``
    section.

    Args:
        path: Path to the YAML configuration file.
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        A fully populated S3DirectConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigurationError: If the file is not valid YAML, a section is not
            a mapping, or the values fail validation.
    """
    environ = os.environ if environ is None else environ
    with open(path, "r") as fh:
        try:
            raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    raw = _section(raw, "top level", path)
    sections = {
        name: _section(raw.get(name), name, path)
        for name in ("s3", "logging", "client", "metrics")
    }
    s3_data = _parse_s3(sections["s3"])
    s3_data.update(_env_overrides(environ))

    try:
        return S3DirectConfig(
            s3=S3Config(**s3_data),
            logging=LoggingConfig(**_parse_logging(sections["logging"])),
            client=ClientConfig(**_parse_client(sections["client"])),
            metrics=MetricsConfig(**_parse_metrics(sections["metrics"])),
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {path}: {exc}") from exc
