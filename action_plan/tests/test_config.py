"""Tests for environment-driven Settings."""

import pytest

from action_plan.config import Settings
from action_plan.transport import DirectDispatch, TimeoutDispatch

_ENV = {
    "CRM_BASE_URL": "https://crm.example.com/",
    "CRM_SERVICE_KEY": "service-key",
    "BOT_SECRET": "bot-secret",
}


def test_from_env_defaults():
    s = Settings.from_env(_ENV)
    assert s.functions_path == "/functions/v1"
    assert s.step_timeout is None
    assert s.continue_on_unresolved_reference is True
    assert isinstance(s.dispatch_policy(), DirectDispatch)


def test_from_env_missing_required_raises_key_error():
    env = dict(_ENV)
    del env["BOT_SECRET"]
    with pytest.raises(KeyError):
        Settings.from_env(env)


def test_from_env_optional_values():
    s = Settings.from_env({**_ENV, "STEP_TIMEOUT": "12.5", "STRICT_REFERENCES": "true"})
    assert s.step_timeout == 12.5
    assert s.continue_on_unresolved_reference is False
    assert isinstance(s.dispatch_policy(), TimeoutDispatch)


def test_endpoint_url_joins_cleanly():
    s = Settings.from_env(_ENV)
    assert s.endpoint_url("/email-command") == "https://crm.example.com/functions/v1/email-command"


def test_endpoint_url_without_prefix():
    s = Settings.from_env({**_ENV, "CRM_FUNCTIONS_PATH": ""})
    assert s.endpoint_url("smm-api") == "https://crm.example.com/smm-api"


def test_service_headers():
    headers = Settings.from_env(_ENV).service_headers()
    assert headers["x-bot-secret"] == "bot-secret"
    assert headers["Authorization"] == "Bearer service-key"
    assert headers["apikey"] == "service-key"
