"""
Settings for Ledge, read from the environment and ``.env``.

Each concern gets its own group with its own env prefix, so a deployment
can set ``SCORING_NIGHTLY_BUDGET_SECONDS`` without touching anything else.
Provider keys also accept their conventional unprefixed names
(``GROQ_API_KEY``, ``LEGISCAN_API_KEY``, ``RESEND_API_KEY``...).

Responsibility: Centralized configuration and environment management
"""

from enum import Enum
from typing import Optional, List
import json
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ASYNC_POSTGRES_SCHEME = "postgresql+asyncpg://"


class Environment(str, Enum):
    LOCAL = "local"
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class DatabaseConfig(BaseSettings):
    """Postgres (or SQLite for local runs) connection and pool sizing"""

    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/ledge",
        validation_alias=AliasChoices("DATABASE_URL", "DB_URL"),
    )

    pool_size: int = Field(default=5)
    max_overflow: int = Field(default=10)
    pool_timeout: int = Field(default=30)
    pool_recycle: int = Field(default=3600)
    echo: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    @property
    def connection_string(self) -> str:
        """``database_url`` with hosted ``postgres://`` URLs pointed at asyncpg."""
        url = self.database_url
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return ASYNC_POSTGRES_SCHEME + url[len(prefix):]
        return url


class LLMConfig(BaseSettings):
    """OpenAI-compatible LLM provider configuration (Groq by default)"""

    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GROQ_API_KEY", "OPENAI_API_KEY", "LLM_API_KEY"),
    )
    base_url: str = Field(default="https://api.groq.com/openai/v1")

    quick_model: str = Field(default="llama-3.1-8b-instant")
    full_model: str = Field(default="llama-3.3-70b-versatile")
    synthesis_model: str = Field(default="llama-3.3-70b-versatile")
    interests_model: str = Field(default="llama-3.3-70b-versatile")

    timeout_seconds: float = Field(default=30.0)
    max_retries: int = Field(default=3, description="Retries after the first attempt")
    max_retry_delay_seconds: float = Field(default=60.0)

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )


class CongressConfig(BaseSettings):
    """Congress.gov API configuration"""

    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CONGRESS_GOV_API_KEY", "CONGRESS_API_KEY"),
    )
    base_url: str = Field(default="https://api.congress.gov/v3")
    congress: int = Field(default=119, description="Current Congress number")
    rate_limit_per_second: float = Field(default=4.0)
    timeout_seconds: int = Field(default=30)

    model_config = SettingsConfigDict(
        env_prefix="CONGRESS_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )


class LegiScanConfig(BaseSettings):
    """LegiScan state legislature API configuration"""

    api_key: Optional[str] = Field(default=None, alias="LEGISCAN_API_KEY")
    base_url: str = Field(default="https://api.legiscan.com/")
    rate_limit_per_second: float = Field(default=2.0)
    timeout_seconds: int = Field(default=30)

    model_config = SettingsConfigDict(
        env_prefix="LEGISCAN_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )


class ResearchConfig(BaseSettings):
    """Keys for the auxiliary research sources used during synthesis"""

    newsdata_api_key: Optional[str] = Field(default=None, alias="NEWSDATA_API_KEY")
    exa_api_key: Optional[str] = Field(default=None, alias="EXA_API_KEY")
    openfec_api_key: Optional[str] = Field(default=None, alias="OPENFEC_API_KEY")
    timeout_seconds: int = Field(default=30)

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )


class EmailConfig(BaseSettings):
    """Resend email delivery configuration"""

    resend_api_key: Optional[str] = Field(default=None, alias="RESEND_API_KEY")
    api_url: str = Field(default="https://api.resend.com/emails")
    from_address: str = Field(default="The Daily Law <updates@thedailylaw.org>")
    alert_min_score: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Minimum match score included as an alert in outgoing email"
    )
    timeout_seconds: int = Field(default=30)

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )


class ScoringConfig(BaseSettings):
    """Thresholds, batch sizes, delays and wall-clock budgets for batch drivers"""

    default_threshold: int = Field(default=25, ge=0, le=100)
    state_threshold: int = Field(default=40, ge=0, le=100)
    explore_min_score: int = Field(default=25, ge=0, le=100)
    explore_max_results: int = Field(default=20)
    explore_bill_limit: int = Field(default=45)
    state_bill_limit: int = Field(default=25)

    batch_size: int = Field(default=5, ge=1)
    batch_delay_seconds: float = Field(default=2.0)
    rate_limit_backoff_seconds: float = Field(default=10.0)

    # Nightly incremental scorer
    nightly_window_hours: int = Field(default=48)
    nightly_bill_delay_seconds: float = Field(default=2.0)
    nightly_subscriber_delay_seconds: float = Field(default=3.0)
    nightly_budget_seconds: float = Field(default=250.0)

    # On-demand backfill
    match_existing_limit: int = Field(default=100)
    match_existing_budget_seconds: float = Field(default=50.0)

    explore_budget_seconds: float = Field(default=50.0)

    # Status cron
    status_budget_seconds: float = Field(default=250.0)
    status_pause_every: int = Field(default=10)
    status_pause_seconds: float = Field(default=1.0)

    # Ingestion
    priority_sweep_size: int = Field(default=30)
    archive_batch_size: int = Field(default=20)
    ingest_concurrency: int = Field(default=3)
    ingest_max_per_run: int = Field(default=6)
    ingest_budget_seconds: float = Field(default=250.0)
    import_max_count: int = Field(default=50)
    update_check_limit: int = Field(default=200)

    newsletter_window_hours: int = Field(default=24)

    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        case_sensitive=False,
        extra="ignore"
    )


class AppConfig(BaseSettings):
    """Web app identity, logging and the cron shared secret"""

    environment: Environment = Field(default=Environment.LOCAL)
    debug: bool = Field(default=True)
    app_version: str = Field(default="1.0.0")
    site_url: str = Field(default="https://thedailylaw.org")
    log_level: str = Field(default="INFO")

    cron_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CRON_SECRET", "APP_CRON_SECRET"),
    )

    # JSON list or comma-separated in the environment
    cors_origins: List[str] = Field(default=["http://localhost:3000"])

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        if not isinstance(value, str):
            return value
        value = value.strip().strip("'\"")
        if value.startswith("["):
            return json.loads(value)
        return [origin.strip() for origin in value.split(",") if origin.strip()]


class Settings(BaseSettings):
    app: AppConfig = Field(default_factory=AppConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    congress: CongressConfig = Field(default_factory=CongressConfig)
    legiscan: LegiScanConfig = Field(default_factory=LegiScanConfig)
    research: ResearchConfig = Field(default_factory=ResearchConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
