"""
Unit tests for utility modules.
"""

import json
import time

import pytest
import yaml
from pathlib import Path

from chargeguard.utils.config_loader import APIConfig, Config, ScoringConfig
from chargeguard.utils.logging_config import LogConfig, get_logger
from chargeguard.utils.metrics import PerformanceMetrics, timer


class TestConfigLoader:
    """Test configuration loading and validation."""

    def test_scoring_config_defaults(self):
        config = ScoringConfig()
        assert config.model_version == "v1.2.3"
        assert config.risk_lookup == "static"
        assert config.behavior_default_risk == 0.0
        assert config.typical_session_min_minutes == 30.0
        assert config.typical_session_max_minutes == 120.0
        assert config.protocol_diversity_max == 5
        assert "malware_infected" in config.known_bad_fingerprints

    def test_scoring_config_validation(self):
        with pytest.raises(ValueError):
            ScoringConfig(risk_lookup="oracle")
        with pytest.raises(ValueError):
            ScoringConfig(behavior_default_risk=1.5)
        with pytest.raises(ValueError):
            ScoringConfig(typical_session_min_minutes=60, typical_session_max_minutes=30)

    def test_validate_assignment(self):
        config = ScoringConfig()
        with pytest.raises(ValueError):
            config.protocol_diversity_max = 0

    def test_api_config_defaults(self):
        config = APIConfig()
        assert config.port == 8000
        assert config.threat_detected_threshold == 0.5
        assert config.price_per_kwh == pytest.approx(0.40)
        assert config.security_check_enabled is True
        assert config.log_level == "INFO"

    def test_api_config_validation(self):
        with pytest.raises(ValueError):
            APIConfig(port=80)
        with pytest.raises(ValueError):
            APIConfig(log_level="LOUD")

    def test_missing_files_give_defaults(self, tmp_path):
        config = Config(tmp_path).load_all()
        assert config.scoring == ScoringConfig()
        assert config.api == APIConfig()

    def test_empty_file_gives_defaults(self, tmp_path):
        (tmp_path / "scoring.yaml").write_text("")
        assert Config(tmp_path).load_config("scoring.yaml", ScoringConfig) == ScoringConfig()

    def test_load_yaml(self, tmp_path):
        (tmp_path / "scoring.yaml").write_text(yaml.dump({"risk_lookup": "random", "random_seed": 9}))
        (tmp_path / "api.yaml").write_text(yaml.dump({"threat_detected_threshold": 0.7}))
        config = Config(tmp_path).load_all()
        assert config.scoring.risk_lookup == "random"
        assert config.scoring.random_seed == 9
        assert config.api.threat_detected_threshold == 0.7

    def test_env_var_config_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CHARGEGUARD_CONFIG_DIR", str(tmp_path))
        assert Config().config_dir == tmp_path

    def test_save_and_create_defaults(self, tmp_path):
        config = Config(tmp_path / "cfg")
        config.create_default_configs()
        assert (tmp_path / "cfg" / "scoring.yaml").exists()
        assert (tmp_path / "cfg" / "api.yaml").exists()

        config.save_config(APIConfig(port=9000), "api.yaml")
        assert config.load_config("api.yaml", APIConfig).port == 9000

        # existing files are left alone
        config.create_default_configs()
        assert config.load_config("api.yaml", APIConfig).port == 9000


class TestMetrics:
    """Test performance metrics."""

    def test_performance_metrics_recording(self):
        metrics = PerformanceMetrics()
        metrics.record("latency", 0.1)
        metrics.record("latency", 0.2)
        metrics.record("latency", 0.15)

        stats = metrics.get_stats("latency")
        assert stats["count"] == 3
        assert stats["mean"] == pytest.approx(0.15, abs=0.01)
        assert stats["min"] == 0.1
        assert stats["max"] == 0.2
        assert stats["median"] == pytest.approx(0.15)

    def test_unknown_metric(self):
        assert PerformanceMetrics().get_stats("nothing") == {}

    def test_summary_and_reset(self):
        metrics = PerformanceMetrics()
        metrics.record("a", 1.0)
        metrics.record("b", 2.0)
        assert set(metrics.summary()) == {"a", "b"}
        metrics.reset()
        assert metrics.summary() == {}

    def test_timer(self):
        metrics = PerformanceMetrics()
        with timer("sleep_ms", metrics) as t:
            time.sleep(0.01)
        assert t["elapsed_ms"] >= 5.0
        assert metrics.get_stats("sleep_ms")["count"] == 1

    def test_timer_records_on_error(self):
        metrics = PerformanceMetrics()
        with pytest.raises(RuntimeError):
            with timer("failing_ms", metrics):
                raise RuntimeError("boom")
        assert metrics.get_stats("failing_ms")["count"] == 1


class TestLogging:
    """Test loguru component logging."""

    def test_json_component_logs(self, tmp_path, monkeypatch):
        monkeypatch.setattr(LogConfig, "LOG_DIR", tmp_path)
        LogConfig.setup(log_level="DEBUG", enable_json=True)
        try:
            get_logger("alerts").warning("test alert")
            get_logger("sessions").info("test session")
            from loguru import logger
            logger.complete()
            alerts = (tmp_path / "alerts.jsonl").read_text()
            assert "test alert" in alerts
            assert "test session" not in alerts
        finally:
            LogConfig.setup(log_level="INFO")

    def test_audit_records_carry_charger_context(self, tmp_path, monkeypatch):
        monkeypatch.setattr(LogConfig, "LOG_DIR", tmp_path)
        LogConfig.setup(log_level="DEBUG", enable_json=True)
        try:
            get_logger("sessions", charger_id="charger-002", session_id="sess-7").info("checked")
            from loguru import logger
            logger.complete()
            line = (tmp_path / "sessions.jsonl").read_text().splitlines()[-1]
            extra = json.loads(line)["record"]["extra"]
            assert extra["component"] == "sessions"
            assert extra["charger_id"] == "charger-002"
            assert extra["session_id"] == "sess-7"
        finally:
            LogConfig.setup(log_level="INFO")

    def test_console_line_shows_context(self):
        from loguru import logger
        LogConfig.setup(log_level="DEBUG")
        lines = []
        sink_id = logger.add(lines.append, format=LogConfig.LOG_FORMAT, colorize=False)
        try:
            get_logger("alerts", charger_id="charger-001").warning("Threat detected")
            get_logger("ml_predictions").info("no charger")
        finally:
            logger.remove(sink_id)
            LogConfig.setup(log_level="INFO")
        assert "alerts charger-001/- | Threat detected" in lines[0]
        assert "ml_predictions -/- | no charger" in lines[1]

    def test_unknown_component_rejected(self):
        with pytest.raises(ValueError, match="Unknown log component"):
            get_logger("billing")
