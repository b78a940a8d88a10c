"""
Configuration for the SCA orchestrator and the request security middleware.

Settings are loaded once from the environment into immutable values and
passed explicitly to the components that need them.
"""
from decimal import Decimal
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, RedisDsn, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


_COMMON_CONFIG = dict(
    env_file=".env",
    env_file_encoding="utf-8",
    case_sensitive=False,
    extra="ignore",
    frozen=True,
)


class AppSettings(BaseSettings):
    """Application level settings."""

    model_config = SettingsConfigDict(**_COMMON_CONFIG)

    app_name: str = Field(default="bnpl-security")
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # Logging
    log_level: str = Field(default="INFO")
    log_verbosity: str = Field(default="NORMAL")
    log_format: str = Field(default="simple")

    # Redis
    redis_url: Optional[RedisDsn] = Field(default=None)
    redis_pool_size: int = Field(default=10)
    redis_socket_timeout: float = Field(default=2.0)
    cache_key_prefix: str = Field(default="")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


class SCASettings(BaseSettings):
    """Strong Customer Authentication thresholds, limits and signing key."""

    model_config = SettingsConfigDict(env_prefix="SCA_", **_COMMON_CONFIG)

    # Policy thresholds
    threshold_amount: Decimal = Field(default=Decimal("500"))
    daily_cumulative_threshold: Decimal = Field(default=Decimal("2000"))
    daily_transaction_count_threshold: int = Field(default=5)
    new_customer_threshold_days: int = Field(default=30)
    risk_score_threshold: int = Field(default=80)

    # Exemption ceilings and rules
    low_value_exemption_threshold: Decimal = Field(default=Decimal("30"))
    corporate_exemption_threshold: Decimal = Field(default=Decimal("10000"))
    trusted_counterparty_min_transactions: int = Field(default=5)
    recurring_min_transactions: int = Field(default=2)
    recurring_lookback_days: int = Field(default=30)
    recurring_amount_tolerance: Decimal = Field(default=Decimal("0.10"))

    # Challenge lifecycle
    challenge_expiry_minutes: int = Field(default=10, gt=0)
    exempted_challenge_ttl_minutes: int = Field(default=5, gt=0)
    max_authentication_attempts: int = Field(default=3, gt=0)
    one_time_code_expiry_minutes: int = Field(default=5, gt=0)
    one_time_code_length: int = Field(default=6, ge=4, le=10)

    # Tokens
    token_signing_key: SecretStr = Field(default=SecretStr("change-me-in-production"))
    token_expiry_minutes: int = Field(default=30, gt=0)
    token_issuer: str = Field(default="bnpl-checkout")
    token_audience: str = Field(default="bnpl-api")

    # Providers
    provider_timeout_seconds: float = Field(default=10.0, gt=0)
    provider_initiate_retries: int = Field(default=1, ge=0)

    # Store contention
    max_store_retries: int = Field(default=5, gt=0)


class SecuritySettings(BaseSettings):
    """Request security middleware settings."""

    model_config = SettingsConfigDict(env_prefix="SECURITY_", **_COMMON_CONFIG)

    max_request_size_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    # Rate limits
    default_rate_limit: int = Field(default=100, gt=0)
    default_rate_window_seconds: int = Field(default=60, gt=0)
    payment_rate_limit: int = Field(default=10, gt=0)
    payment_rate_window_seconds: int = Field(default=60, gt=0)
    auth_rate_limit: int = Field(default=5, gt=0)
    auth_rate_window_seconds: int = Field(default=300, gt=0)
    payment_path_markers: List[str] = Field(default=["/payments/", "/bnpl/"])
    auth_path_markers: List[str] = Field(default=["/auth/", "/login/", "/sca/challenges"])
    exempt_paths: List[str] = Field(default=["/health"])

    # Request signing
    signature_secret: SecretStr = Field(default=SecretStr("change-me-in-production"))
    signature_validity_minutes: int = Field(default=5, gt=0)
    signed_path_markers: List[str] = Field(
        default=["/payments/", "/settlements/", "/refunds/", "/webhooks/"]
    )

    # Heuristics
    suspicious_request_threshold: int = Field(default=50, gt=0)
    suspicious_window_seconds: int = Field(default=300, gt=0)
    suspicious_activity_retention_days: int = Field(default=7, gt=0)

    # Regional header validation
    regional_path_markers: List[str] = Field(
        default=["/bnpl/", "/vipps/", "/bankid/", "/norwegian/"]
    )

    # Logging
    enable_request_logging: bool = Field(default=True)
    enable_response_logging: bool = Field(default=False)
    log_request_body: bool = Field(default=False)


@lru_cache()
def get_app_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()


@lru_cache()
def get_sca_settings() -> SCASettings:
    """Get cached SCA settings."""
    return SCASettings()


@lru_cache()
def get_security_settings() -> SecuritySettings:
    """Get cached security middleware settings."""
    return SecuritySettings()
