"""Tests for configuration settings."""

import pytest


def test_settings_loads_from_env():
    """Test that settings loads from environment variables."""
    # Import after env vars are set in conftest
    from budgetwise.config.settings import get_settings

    # Clear the cache to force reload
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.google_api_key.get_secret_value() == "test-key"
    assert settings.ai_timeout == 5.0


def test_settings_has_defaults():
    """Test that settings has sensible defaults."""
    from budgetwise.config.settings import get_settings

    get_settings.cache_clear()
    settings = get_settings()

    assert settings.gemini_model == "gemini-2.5-flash"
    assert settings.transfer_category == "Transfers"
    assert settings.export_date_format is None
    assert settings.csv_mappings_path is None
    assert settings.log_level == "INFO"
    assert settings.log_format == "console"


def test_settings_are_cached():
    """Test that get_settings returns cached instance."""
    from budgetwise.config.settings import get_settings

    get_settings.cache_clear()

    settings1 = get_settings()
    settings2 = get_settings()

    assert settings1 is settings2


def test_settings_override_from_env(monkeypatch):
    """Environment variables override defaults."""
    from budgetwise.config.settings import get_settings

    monkeypatch.setenv("TRANSFER_CATEGORY", "Moves")
    monkeypatch.setenv("LOG_FORMAT", "json")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.transfer_category == "Moves"
        assert settings.log_format == "json"
    finally:
        monkeypatch.undo()
        get_settings.cache_clear()


def test_invalid_log_level_rejected(monkeypatch):
    from pydantic import ValidationError

    from budgetwise.config.settings import FlatSettings

    monkeypatch.setenv("LOG_LEVEL", "LOUD")
    with pytest.raises(ValidationError):
        FlatSettings()


def test_configure_logging_and_get_logger():
    """Loggers from get_logger emit structured events after configuration."""
    import structlog
    from structlog.testing import capture_logs

    from budgetwise.config.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", format="json")
    try:
        with capture_logs() as logs:
            get_logger("budgetwise.tests").info("ledger_ready", accounts=2)
    finally:
        structlog.reset_defaults()

    assert logs == [{"event": "ledger_ready", "accounts": 2, "log_level": "info"}]


def test_json_logs_render_money_and_dates_as_strings():
    """Decimal and date values reach the JSON renderer as exact strings."""
    import io
    import json
    from datetime import date
    from decimal import Decimal

    import structlog

    from budgetwise.config.logging import configure_logging, get_logger

    stream = io.StringIO()
    configure_logging(level="INFO", format="json", stream=stream)
    try:
        get_logger("budgetwise.tests", component="ledger").info(
            "balance_checked", balance=Decimal("12345678901234567.89"), as_of=date(2024, 3, 15)
        )
    finally:
        structlog.reset_defaults()

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["event"] == "balance_checked"
    assert record["balance"] == "12345678901234567.89"
    assert record["as_of"] == "2024-03-15"
    assert record["component"] == "ledger"
    assert record["logger"] == "budgetwise.tests"


def test_stringify_ledger_values_leaves_other_values():
    from decimal import Decimal

    from budgetwise.config.logging import stringify_ledger_values

    event = stringify_ledger_values(None, "info", {"amount": Decimal("0.10"), "count": 3})

    assert event == {"amount": "0.10", "count": 3}
