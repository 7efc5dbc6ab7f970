from __future__ import annotations

import pytest

from alpaca_gateway.account.gateway import AccountGateway
from alpaca_gateway.account.models import LIVE_BASE_URL, Environment
from alpaca_gateway.utils.error_handling import ConfigurationInvalid
from config import Config
from tests.conftest import API_KEY, API_SECRET


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(Config, "ALPACA_API_KEY", API_KEY)
    monkeypatch.setattr(Config, "ALPACA_SECRET_KEY", API_SECRET)
    monkeypatch.setattr(Config, "ALPACA_BASE_URL", "paper")
    monkeypatch.setattr(Config, "ALPACA_TRANSPORT", "rest")
    monkeypatch.setattr(Config, "GATEWAY_TIMEOUT", "7.5")
    monkeypatch.setattr(Config, "GATEWAY_CACHE_TTL", "0")
    monkeypatch.setattr(Config, "GATEWAY_MAX_RETRIES", "2")
    return Config


def test_load_credentials(configured):
    creds = configured.load_credentials()
    assert creds.key == API_KEY
    assert creds.environment is Environment.PAPER
    assert configured.validate_alpaca_config()


def test_live_selector(configured, monkeypatch):
    monkeypatch.setattr(Config, "ALPACA_BASE_URL", "live")
    assert configured.load_credentials().endpoint == LIVE_BASE_URL


@pytest.mark.parametrize("name", ["ALPACA_API_KEY", "ALPACA_SECRET_KEY", "ALPACA_BASE_URL"])
def test_missing_setting_is_named_not_echoed(configured, monkeypatch, name):
    monkeypatch.setattr(Config, name, "")

    with pytest.raises(ConfigurationInvalid) as excinfo:
        configured.load_credentials()
    assert name in str(excinfo.value)
    assert API_SECRET not in str(excinfo.value)


def test_numeric_settings(configured):
    assert configured.gateway_timeout() == 7.5
    assert configured.gateway_cache_ttl() == 0.0
    assert configured.gateway_max_retries() == 2


def test_malformed_numeric_setting(configured, monkeypatch):
    monkeypatch.setattr(Config, "GATEWAY_MAX_RETRIES", "many")
    with pytest.raises(ConfigurationInvalid):
        configured.gateway_max_retries()


def test_gateway_from_config(configured):
    gateway = AccountGateway.from_config()
    assert gateway.environment is Environment.PAPER
    assert gateway._transport == "rest"
    assert gateway._timeout == 7.5
    assert gateway._max_retries == 2


def test_gateway_from_config_overrides(configured):
    gateway = AccountGateway.from_config(transport="sdk", timeout=None, max_retries=0)
    assert gateway._transport == "sdk"
    assert gateway._timeout == 7.5
    assert gateway._max_retries == 0


def test_gateway_from_config_without_credentials(configured, monkeypatch):
    monkeypatch.setattr(Config, "ALPACA_SECRET_KEY", None)
    with pytest.raises(ConfigurationInvalid):
        AccountGateway.from_config()
