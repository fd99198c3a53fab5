"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Environment variables (QUERYBRIDGE_ prefix)
  2. YAML config file (if specified)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class BackendSettings(BaseModel):
    """Configuration for a single storage backend."""

    enabled: bool = Field(default=True, description="Whether this backend is connected at startup")
    endpoints: list[str] = Field(default_factory=list, description="Connection URIs of the backend nodes")
    collection: str = Field(default="documents", description="Index (search engines) or collection (MongoDB) name")
    database: str | None = Field(default=None, description="Database name (MongoDB only)")
    timeout: float = Field(default=10.0, gt=0, description="Client timeout in seconds")
    default_search_fields: list[str] = Field(
        default_factory=list,
        description="Fields a free-text search runs against when the filter names none",
    )
    client_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keyword arguments for the client constructor (auth, TLS, pooling)",
    )

    @field_validator("endpoints", "default_search_fields", mode="before")
    @classmethod
    def _parse_list(cls, v: Any) -> list[str]:
        """Parse a JSON list, a comma-separated string, or a list."""
        if isinstance(v, str):
            import json

            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(item) for item in parsed]
            except (json.JSONDecodeError, TypeError):
                pass
            return [item.strip() for item in v.split(",") if item.strip()]
        return list(v)


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the QUERYBRIDGE_ prefix.
    Nested settings use double underscores.

    Example:
        QUERYBRIDGE_DEFAULT_BACKEND=mongodb
        QUERYBRIDGE_BACKENDS__MONGODB__ENDPOINTS=mongodb://db1,mongodb://db2
        QUERYBRIDGE_OBSERVABILITY__LOG_LEVEL=debug
    """

    model_config = {
        "env_prefix": "QUERYBRIDGE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    default_backend: str = Field(default="elasticsearch", description="Backend used when none is named")
    backends: dict[str, BackendSettings] = Field(default_factory=dict, description="Backend configurations by name")
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are used as defaults; environment variables
        still take precedence.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
