"""Tests for settings loading and app wiring without Google Sheets."""

import pytest

from supplier_ledger.config import LedgerSettings, get_settings, validate_all_settings
from supplier_ledger.orchestrator import create_app_components
from supplier_ledger.services.storage import InMemoryTransactionStorage


@pytest.fixture
def no_sheets_env(monkeypatch):
    monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
    monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:

    def test_ledger_defaults(self, monkeypatch):
        monkeypatch.delenv("LEDGER_WRITE_TIMEOUT_SECONDS", raising=False)
        settings = LedgerSettings(_env_file=None)
        assert settings.write_timeout_seconds == 10.0
        assert settings.enforce_balance_version is True
        assert settings.unknown_project_label == "Unknown Project"
        assert settings.payment_out_category == "Materials"

    def test_ledger_env_override(self, monkeypatch):
        monkeypatch.setenv("LEDGER_WRITE_TIMEOUT_SECONDS", "2.5")
        assert LedgerSettings().write_timeout_seconds == 2.5

    def test_validate_all_settings_without_sheets(self, no_sheets_env):
        results = validate_all_settings()
        assert results["ledger"] is True
        assert results["google_sheets"] is False


class TestAppComponentsFallback:

    def test_unconfigured_sheets_fall_back_to_memory(self, no_sheets_env):
        _, payment_flow, queries, sheets_client = create_app_components(use_storage=True)

        assert sheets_client is None
        assert isinstance(queries._storage, InMemoryTransactionStorage)
