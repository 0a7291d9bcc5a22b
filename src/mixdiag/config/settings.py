"""Toolkit settings using Pydantic BaseSettings for validation & env loading.

Centralizes all environment parsing and adds validation rules:
 - MIXDIAG_DB_DRIVER normalized to lowercase and validated against allowed set.
 - Port must be a valid TCP port.
 - Timeouts coerced to non-negative numbers (a statement timeout of 0 means none).

Database operations never read these settings directly; callers hand them a
`DatabaseConfig` built by `DiagConfig.database()`.
"""
from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ALLOWED_DRIVERS = {"postgres", "sqlite"}


class DatabaseConfig(BaseModel):
    """Connection parameters handed to each database operation at call time."""
    model_config = ConfigDict(frozen=True)

    driver: str = "postgres"
    host: str = "localhost"
    port: int = 5432
    name: str = "MixWarz"
    user: str = "postgres"
    password: str = Field("", repr=False)
    schema_name: str = "public"
    path: str = "mixwarz.db"
    read_only: bool = False
    connect_timeout: int = 5
    statement_timeout_ms: Optional[int] = Field(None, ge=0)

    def describe(self) -> str:
        """Human-readable target without credentials."""
        if self.driver == "sqlite":
            mode = " (read-only)" if self.read_only else ""
            return f"sqlite:{self.path}{mode}"
        return f"postgres://{self.user}@{self.host}:{self.port}/{self.name}?schema={self.schema_name}"


class DiagConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MIXDIAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    db_driver: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "MixWarz"
    db_user: str = "postgres"
    db_password: str = Field("", repr=False)
    db_schema: str = "public"
    sqlite_path: str = "mixwarz.db"
    db_read_only: bool = False
    db_connect_timeout: int = 5
    db_statement_timeout_ms: Optional[int] = None

    # Local API server
    api_base_url: str = "https://localhost:7001"
    api_verify_tls: bool = False
    http_timeout_seconds: float = 10.0

    # Misc
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("db_driver", mode="before")
    def _normalize_driver(cls, v: str):  # noqa: D401
        return (v or "").strip().lower()

    @field_validator("http_timeout_seconds", mode="before")
    def _coerce_non_negative(cls, v):
        try:
            fv = float(v)
        except (TypeError, ValueError):
            fv = 0.0
        return max(fv, 0.0)

    @field_validator("db_connect_timeout", mode="before")
    def _coerce_connect_timeout(cls, v):
        try:
            iv = int(float(v))
        except (TypeError, ValueError):
            iv = 0
        return max(iv, 0)

    @field_validator("db_statement_timeout_ms", mode="before")
    def _coerce_statement_timeout(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        try:
            iv = int(float(v))
        except (TypeError, ValueError):
            return None
        return max(iv, 0)

    @model_validator(mode="after")
    def _validate_all(self):  # noqa: D401
        if self.db_driver not in _ALLOWED_DRIVERS:
            raise ValueError(
                f"MIXDIAG_DB_DRIVER must be one of {sorted(_ALLOWED_DRIVERS)}, got '{self.db_driver}'"
            )
        if not (1 <= self.db_port <= 65535):
            raise ValueError(f"MIXDIAG_DB_PORT out of range: {self.db_port}")
        return self

    def database(self) -> DatabaseConfig:
        return DatabaseConfig(
            driver=self.db_driver,
            host=self.db_host,
            port=self.db_port,
            name=self.db_name,
            user=self.db_user,
            password=self.db_password,
            schema_name=self.db_schema,
            path=self.sqlite_path,
            read_only=self.db_read_only,
            connect_timeout=self.db_connect_timeout,
            statement_timeout_ms=self.db_statement_timeout_ms,
        )

    def masked_summary(self) -> dict:
        data = self.model_dump()
        if data.get("db_password"):
            data["db_password"] = "***"
        return data


def load_config(**overrides) -> DiagConfig:
    return DiagConfig(**overrides)  # type: ignore[call-arg]


__all__ = ["DiagConfig", "DatabaseConfig", "load_config"]
