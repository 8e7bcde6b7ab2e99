from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the FastAPI service.

    This is separate from factory_ops.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Factory Operations API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Operations API for a metal-parts factory: work orders, production batches, "
            "quality gates, external processing, packing, dispatch, finance and SHE views."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Token verification. Tokens are issued by the identity provider; we only verify them.
    JWT_SECRET_KEY: str = Field(default="change-me", description="Shared HS256 secret")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_AUDIENCE: Optional[str] = Field(
        default=None, description="Expected 'aud' claim; audience is not checked when unset"
    )

    # Workflow thresholds
    EXTERNAL_DUE_SOON_DAYS: int = Field(default=2, ge=0)
    OVERDUE_WARNING_DAYS: int = Field(default=3, ge=0)
    OVERDUE_CRITICAL_DAYS: int = Field(default=7, ge=0)
    NCR_REJECTION_THRESHOLD_PCT: float = Field(default=5.0, ge=0)
    NCR_TYPE_THRESHOLD_PCS: int = Field(
        default=5, ge=0, description="Rejected pieces of one type above which an NCR is suggested"
    )
    PACKED_AGEING_RISK_DAYS: int = Field(default=15, ge=0)

    LOG_LEVEL: str = Field(default="INFO")

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    A fresh instance is built on each call so tests can change the environment.
    """
    return AppSettings()
