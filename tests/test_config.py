"""Configuration tests."""

import logging

import pytest

from fastapi_standing_orders.config import StandingOrdersConfig
from fastapi_standing_orders.retry import RetryPolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("SHOP", "ADMIN_ACCESS_TOKEN", "APP_PROXY_SHARED_SECRET", "PORT"):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = StandingOrdersConfig()
    assert config.shop is None
    assert config.port == 3000
    assert config.api_version == "2024-10"
    assert config.customers_page_size == 250
    assert config.job_send_invoice is True


def test_reads_unprefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("SHOP", "demo-shop.myshopify.com")
    monkeypatch.setenv("ADMIN_ACCESS_TOKEN", "shpat_x")
    monkeypatch.setenv("APP_PROXY_SHARED_SECRET", "s3cret")
    monkeypatch.setenv("PORT", "8080")

    config = StandingOrdersConfig()
    assert config.shop == "demo-shop.myshopify.com"
    assert config.admin_access_token == "shpat_x"
    assert config.app_proxy_shared_secret == "s3cret"
    assert config.port == 8080
    assert config.missing_settings() == []


def test_reads_dotenv_file(tmp_path) -> None:
    (tmp_path / ".env").write_text("SHOP=from-dotenv.myshopify.com\n")
    assert StandingOrdersConfig().shop == "from-dotenv.myshopify.com"


def test_warn_missing_logs_each_unset_setting(caplog) -> None:
    config = StandingOrdersConfig(shop="demo-shop.myshopify.com")

    with caplog.at_level(logging.WARNING):
        config.warn_missing()

    assert config.missing_settings() == [
        "admin_access_token",
        "app_proxy_shared_secret",
    ]
    assert "ADMIN_ACCESS_TOKEN is not set" in caplog.text
    assert "APP_PROXY_SHARED_SECRET is not set" in caplog.text
    assert "SHOP is not set" not in caplog.text


def test_admin_policy_is_more_patient_than_proxy_policy() -> None:
    config = StandingOrdersConfig()
    admin = config.admin_retry_policy()
    proxy = config.proxy_retry_policy()

    assert isinstance(admin, RetryPolicy)
    assert admin.max_attempts > proxy.max_attempts
    assert admin.timeout_seconds > proxy.timeout_seconds


def test_custom_retry_settings() -> None:
    config = StandingOrdersConfig(
        admin_max_attempts=2,
        admin_timeout_seconds=5,
        admin_backoff_seconds=0.25,
        admin_max_backoff_seconds=4,
        honor_retry_after=False,
    )
    assert config.admin_retry_policy() == RetryPolicy(
        max_attempts=2,
        timeout_seconds=5,
        backoff_seconds=0.25,
        honor_retry_after=False,
        max_backoff_seconds=4,
    )
