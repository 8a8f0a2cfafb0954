from __future__ import annotations

import json
import logging

import pytest

from portfolio.config import ConfigurationError, load_server_config
from portfolio.logging_config import JSONFormatter, TextFormatter


def _record(message: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("portfolio.test", logging.WARNING, __file__, 10, message, (), None)
    record.__dict__.update(extra)
    return record


def test_json_formatter_merges_extra_fields() -> None:
    payload = json.loads(JSONFormatter().format(_record("Saved %s", client_ip="10.0.0.1")))
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "portfolio.test"
    assert payload["message"] == "Saved %s"
    assert payload["client_ip"] == "10.0.0.1"


def test_text_formatter_layout() -> None:
    line = TextFormatter().format(_record("hello"))
    assert line.endswith("| WARNING  | portfolio.test | hello")


def test_server_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PORTFOLIO_HOST", "PORTFOLIO_PORT", "PORTFOLIO_LOG_LEVEL", "PORTFOLIO_LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    config = load_server_config()
    assert (config.host, config.port, config.log_level, config.log_format) == ("0.0.0.0", 3005, "INFO", "text")


def test_server_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTFOLIO_PORT", "8080")
    monkeypatch.setenv("PORTFOLIO_LOG_LEVEL", "debug")
    monkeypatch.setenv("PORTFOLIO_LOG_FORMAT", "JSON")
    config = load_server_config()
    assert (config.port, config.log_level, config.log_format) == (8080, "DEBUG", "json")


@pytest.mark.parametrize(("name", "value"), [("PORTFOLIO_PORT", "eighty"), ("PORTFOLIO_LOG_FORMAT", "xml")])
def test_server_config_rejects_bad_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        load_server_config()
