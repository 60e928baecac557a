"""Tests for the optional MLflow tracing integration."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

import marketing_studio_mcp.tracing as mod


def _make_config(**overrides):
    """Build a mock ServerConfig with tracing-enabled defaults."""
    defaults = {
        "tracing_enabled": True,
        "mlflow_tracking_uri": "http://127.0.0.1:5001",
        "mlflow_experiment_name": "marketing-studio-mcp",
    }
    defaults.update(overrides)
    cfg = MagicMock()
    for k, v in defaults.items():
        setattr(cfg, k, v)
    return cfg


@pytest.fixture()
def fake_mlflow(monkeypatch):
    """Pretend mlflow-tracing is installed and tracing is on."""
    mock_mlflow = MagicMock()
    monkeypatch.setattr(mod, "_HAS_MLFLOW", True)
    monkeypatch.setattr(mod, "mlflow", mock_mlflow, raising=False)
    with patch("marketing_studio_mcp.config.get_config", return_value=_make_config()):
        yield mock_mlflow


class TestIsEnabled:
    def test_true_when_installed_and_enabled(self, fake_mlflow):
        assert mod.is_enabled() is True

    def test_false_when_not_installed(self, monkeypatch):
        monkeypatch.setattr(mod, "_HAS_MLFLOW", False)
        assert mod.is_enabled() is False

    def test_false_when_config_disabled(self, monkeypatch):
        monkeypatch.setattr(mod, "_HAS_MLFLOW", True)
        with patch("marketing_studio_mcp.config.get_config", return_value=_make_config(tracing_enabled=False)):
            assert mod.is_enabled() is False


class TestTraceDecorator:
    def test_identity_when_disabled(self, monkeypatch):
        monkeypatch.setattr(mod, "_HAS_MLFLOW", False)

        async def tool():
            return "ok"

        assert mod.trace(name="tool", span_type="TOOL")(tool) is tool
        assert mod.trace(tool) is tool

    def test_wraps_with_mlflow_when_enabled(self, fake_mlflow):
        decorated = mod.trace(name="sales_script", span_type="TOOL")

        fake_mlflow.trace.assert_called_once_with(None, name="sales_script", span_type="TOOL", attributes=None)
        assert decorated is fake_mlflow.trace.return_value


class TestSetupShutdown:
    def test_setup_configures_autolog(self, fake_mlflow):
        mod.setup()

        fake_mlflow.set_tracking_uri.assert_called_once_with("http://127.0.0.1:5001")
        fake_mlflow.set_experiment.assert_called_once_with("marketing-studio-mcp")
        fake_mlflow.gemini.autolog.assert_called_once()

    def test_setup_failure_is_logged(self, fake_mlflow, caplog):
        fake_mlflow.set_experiment.side_effect = Exception("connection refused")

        mod.setup()

        fake_mlflow.gemini.autolog.assert_not_called()
        assert "tracing setup failed" in caplog.text

    def test_shutdown_flushes(self, fake_mlflow):
        mod.shutdown()
        fake_mlflow.flush_trace_async_logging.assert_called_once()

    def test_noop_when_disabled(self, monkeypatch):
        mock_mlflow = MagicMock()
        monkeypatch.setattr(mod, "_HAS_MLFLOW", False)
        monkeypatch.setattr(mod, "mlflow", mock_mlflow, raising=False)

        mod.setup()
        mod.shutdown()

        mock_mlflow.set_tracking_uri.assert_not_called()
        mock_mlflow.flush_trace_async_logging.assert_not_called()
