"""Service configuration."""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

from fastapi_standing_orders.retry import RetryPolicy

logger = logging.getLogger(__name__)

_REQUIRED = ("shop", "admin_access_token", "app_proxy_shared_secret")


class StandingOrdersConfig(BaseSettings):
    """Runtime config read from the environment once at start-up.

    Missing credentials do not prevent start-up: the features that need
    them fail on every call instead.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    shop: str | None = None
    admin_access_token: str | None = None
    app_proxy_shared_secret: str | None = None
    port: int = 3000
    log_level: str = "INFO"

    api_version: str = "2024-10"
    admin_max_attempts: int = 5
    admin_timeout_seconds: float = 30.0
    admin_backoff_seconds: float = 1.0
    admin_max_backoff_seconds: float | None = None
    honor_retry_after: bool = True

    proxy_max_attempts: int = 2
    proxy_timeout_seconds: float = 10.0
    proxy_backoff_seconds: float = 0.5

    customers_page_size: int = 250
    job_send_invoice: bool = True
    job_max_consecutive_failures: int = 10

    def admin_retry_policy(self) -> RetryPolicy:
        """Retry policy for outbound admin API calls."""
        return RetryPolicy(
            max_attempts=self.admin_max_attempts,
            timeout_seconds=self.admin_timeout_seconds,
            backoff_seconds=self.admin_backoff_seconds,
            honor_retry_after=self.honor_retry_after,
            max_backoff_seconds=self.admin_max_backoff_seconds,
        )

    def proxy_retry_policy(self) -> RetryPolicy:
        """Shorter policy for admin calls made while a proxy request waits."""
        return RetryPolicy(
            max_attempts=self.proxy_max_attempts,
            timeout_seconds=self.proxy_timeout_seconds,
            backoff_seconds=self.proxy_backoff_seconds,
            honor_retry_after=self.honor_retry_after,
            max_backoff_seconds=self.admin_max_backoff_seconds,
        )

    def missing_settings(self) -> list[str]:
        return [name for name in _REQUIRED if not getattr(self, name)]

    def warn_missing(self) -> None:
        """Log a warning for every unset credential."""
        for name in self.missing_settings():
            logger.warning("%s is not set", name.upper())
