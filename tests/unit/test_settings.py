"""Unit tests for operator settings."""

import pytest
from addon_operator.types import settings
from addon_operator.types.settings import Settings


class TestGetBool:
    """Tests for boolean environment variables."""

    @pytest.mark.parametrize("value", ["off", "false", "no", "0"])
    def test_false_values(self, monkeypatch, value):
        monkeypatch.setenv("ADDON_OPERATOR_TEST_FLAG", value)
        assert settings._getbool("ADDON_OPERATOR_TEST_FLAG", True) is False

    @pytest.mark.parametrize("value", ["on", "true", "yes", "1"])
    def test_true_values(self, monkeypatch, value):
        monkeypatch.setenv("ADDON_OPERATOR_TEST_FLAG", value)
        assert settings._getbool("ADDON_OPERATOR_TEST_FLAG", False) is True

    def test_default(self, monkeypatch):
        monkeypatch.delenv("ADDON_OPERATOR_TEST_FLAG", raising=False)
        assert settings._getbool("ADDON_OPERATOR_TEST_FLAG", True) is True

    def test_unknown_value(self, monkeypatch):
        monkeypatch.setenv("ADDON_OPERATOR_TEST_FLAG", "disabled")
        with pytest.raises(ValueError):
            settings._getbool("ADDON_OPERATOR_TEST_FLAG", True)


class TestSettings:
    """Tests for keyword overrides."""

    def test_overrides(self):
        conf = Settings(reconcile_workers=5, metrics_enabled=False)
        assert conf.reconcile_workers == 5
        assert conf.metrics_enabled is False
        assert conf.metrics_port == settings.METRICS_PORT
