"""Centralized configuration for tinydancer using Pydantic Settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``TINYDANCER_*`` environment variables.

    Command-line flags override these values; the settings only provide the
    defaults the CLI starts from.
    """

    model_config = SettingsConfigDict(
        env_prefix="TINYDANCER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Search settings
    top_k: int = Field(default=10, ge=1, description="Maximum number of hits shown per query")
    default_field: str = Field(default="contents", description="Field searched by bare query terms")
    all_fields_query: bool = Field(
        default=False,
        description="Rewrite every query to contents:(Q) OR title:(Q) OR modified:(Q)",
    )

    # Collection settings
    extensions: str = Field(default=".txt,.htm,.html", description="Comma-separated file extensions to index")
    follow_symlinks: bool = Field(default=False, description="Descend into symlinked directories")

    # Logging
    log_level: str = Field(default="warning", description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON log lines")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"debug", "info", "warning", "error", "critical"}:
            msg = f"Unknown log level '{value}'"
            raise ValueError(msg)
        return normalized

    @field_validator("default_field")
    @classmethod
    def _require_field_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            msg = "default_field must not be empty"
            raise ValueError(msg)
        return normalized

    def get_extensions(self) -> tuple[str, ...]:
        """Return normalized lowercase extensions, each with a leading dot."""
        extensions: list[str] = []
        for raw in self.extensions.split(","):
            candidate = raw.strip().lower()
            if not candidate:
                continue
            if not candidate.startswith("."):
                candidate = f".{candidate}"
            if candidate not in extensions:
                extensions.append(candidate)
        return tuple(extensions)
