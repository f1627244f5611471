"""
Apidex Backend — Application Configuration
===========================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
       Fails fast on bad values; a misconfigured registry never serves.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by main.py; handed to endpoint modules via ModuleContext.
When:  Loaded once at module import time; validated before app starts.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Attributes are grouped by concern for readability.
    """

    # ── Discovery Document ────────────────────────────────────────────────
    # What: Static metadata rendered at the top of GET /api/
    api_name: str = Field(default="Apidex API")
    api_version: str = Field(default="1.0.0")
    api_status: str = Field(default="active")

    # What: Path of the discovery route registered after all modules load
    discovery_path: str = Field(default="/api/")

    # ── Endpoint Modules ──────────────────────────────────────────────────
    # What: Directory scanned for endpoint modules at startup
    # Must be absolute; None means the packaged apidex/endpoints directory
    endpoints_dir: Optional[str] = Field(
        default=None,
        description="Absolute directory containing endpoint modules",
    )

    # What: How to treat two descriptors with the same (path, method)
    # warn:  log a warning, last registration wins
    # error: abort bootstrap with DuplicateEndpointError
    duplicate_endpoint_policy: str = Field(default="warn")

    # ── Cache ─────────────────────────────────────────────────────────────
    # What: TTL applied when a handler sets a value without an explicit TTL
    # Default: 5 minutes = 300000 ms
    cache_default_ttl_ms: int = Field(default=300_000, ge=1)

    # What: How long the GET /api/groups summary stays memoized
    groups_cache_ttl_ms: int = Field(default=60_000, ge=0)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs (parsed by the property below)
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("duplicate_endpoint_policy")
    @classmethod
    def validate_duplicate_policy(cls, v: str) -> str:
        lowered = v.lower()
        if lowered not in {"warn", "error"}:
            raise ValueError(
                f"Invalid duplicate_endpoint_policy '{v}'. Must be 'warn' or 'error'"
            )
        return lowered

    @field_validator("discovery_path")
    @classmethod
    def validate_discovery_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"discovery_path must start with '/', got '{v}'")
        return v

    @field_validator("endpoints_dir")
    @classmethod
    def validate_endpoints_dir(cls, v: Optional[str]) -> Optional[str]:
        """
        Rejects working-directory-relative module directories.

        What:  ENDPOINTS_DIR must be an absolute path.
        Why:   A relative path resolves differently depending on where the
               process was launched, which silently loads the wrong modules
               (or none at all).
        """
        if v is None or v == "":
            return None
        if not Path(v).is_absolute():
            raise ValueError(
                f"endpoints_dir must be an absolute path, got '{v}'. "
                "Relative module directories are not supported."
            )
        return v

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def resolved_endpoints_dir(self) -> Path:
        """Absolute endpoint directory, falling back to the packaged modules."""
        if self.endpoints_dir:
            return Path(self.endpoints_dir)
        return Path(__file__).resolve().parent / "endpoints"


# Singleton instance, imported by the application factory
settings = Settings()
