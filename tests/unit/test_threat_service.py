"""
Tests for ThreatService — detection, incident creation, prediction logging,
session security checks.
"""

import pytest
from unittest.mock import MagicMock, patch

from chargeguard.api.store import PredictionLog, SessionStore, ThreatStore
from chargeguard.api.threat_service import ThreatService, severity_to_security_level, threat_score
from chargeguard.ml.threat.synthetic import SyntheticTelemetryGenerator
from chargeguard.ml.threat.telemetry import SupplementalSignals, TelemetrySample
from chargeguard.ml.threat.threat_scorer import Severity, ThreatScorer
from chargeguard.utils.metrics import PerformanceMetrics


def _quiet_sample(**overrides):
    fields = dict(
        packet_sizes=[100, 100, 100],
        connection_frequency=1,
        protocol_distribution={"OCPP": 1},
        message_types=["Heartbeat"],
        timing_patterns=[1000, 2000, 3000],
        payload_sizes=[100, 100],
        session_duration_ms=3_600_000,
        behavior_tag="normal",
        device_fingerprint="standard_device",
    )
    fields.update(overrides)
    return TelemetrySample(**fields)


@pytest.fixture
def service():
    return ThreatService(
        ThreatScorer(),
        ThreatStore(),
        PredictionLog(),
        metrics=PerformanceMetrics(),
        generator=SyntheticTelemetryGenerator(seed=0),
    )


class TestSecurityLevel:
    @pytest.mark.parametrize("severity, level", [
        (Severity.CRITICAL, "threat"),
        (Severity.HIGH, "threat"),
        (Severity.MEDIUM, "warning"),
        (Severity.LOW, "secure"),
    ])
    def test_mapping(self, severity, level):
        assert severity_to_security_level(severity) == level

    @pytest.mark.parametrize("probability, score", [
        (0.01, 1),
        (0.125, 13),
        (0.625, 63),
        (0.99, 99),
    ])
    def test_threat_score_rounds_halves_up(self, probability, score):
        assert threat_score(probability) == score


class TestModelInfo:
    def test_model_info(self, service):
        info = service.model_info()
        assert info["model_version"] == "v1.2.3"
        assert info["risk_lookup"] == "static"
        assert "running" in info["message"]


class TestDetect:
    def test_quiet_sample_not_detected(self, service):
        result = service.detect(_quiet_sample(), charger_id="charger-001", processed_data={})
        assert result["threat_detected"] is False
        assert result["threat"] is None
        assert result["prediction"]["threatProbability"] == pytest.approx(0.30)
        assert result["analysis"]["model_confidence"] == pytest.approx(0.40)
        assert len(service.threats) == 0

    def test_detection_creates_incident(self, service):
        sample = _quiet_sample(supplemental=SupplementalSignals(firmware_checksum_mismatch=True))
        result = service.detect(sample, charger_id="charger-001", processed_data={"chargerId": "charger-001"})
        assert result["threat_detected"] is True
        assert result["threat"]["type"] == "Firmware Tampering"
        assert result["threat"]["description"] == "Potential Firmware Tampering detected."
        assert result["analysis"]["processed_data"] == {"chargerId": "charger-001"}

        incidents = service.threats.list()
        assert len(incidents) == 1
        assert incidents[0]["charger_id"] == "charger-001"
        assert incidents[0]["status"] == "active"
        assert incidents[0]["timestamp"] == result["threat"]["timestamp"]

    def test_threshold_is_strict(self):
        # a quiet sample with empty sequences scores exactly the 0.01 floor
        floor_sample = TelemetrySample(session_duration_ms=3_600_000)
        at_floor = ThreatService(ThreatScorer(), ThreatStore(), PredictionLog(), threshold=0.01)
        below = ThreatService(ThreatScorer(), ThreatStore(), PredictionLog(), threshold=0.0)
        assert at_floor.is_detected(at_floor.score(floor_sample)) is False
        assert below.is_detected(below.score(floor_sample)) is True

    def test_every_prediction_logged(self, service):
        service.detect(_quiet_sample(), charger_id="charger-001", processed_data={})
        service.detect(_quiet_sample(device_fingerprint="malware_infected"),
                       charger_id="charger-002", processed_data={})
        entries = service.predictions.list()
        assert [e["charger_id"] for e in entries] == ["charger-002", "charger-001"]
        assert entries[0]["source"] == "api"
        assert entries[0]["severity"] == "medium"
        assert service.metrics.get_stats("scoring_ms")["count"] == 2


class TestSecurityCheck:
    def test_updates_session(self, service):
        sessions = SessionStore(seed=0)
        session = sessions.start("user-1", "CHG-001", "VEHICLE-1", "credit_card")
        updated = service.security_check(session["id"], sessions)

        assert updated is not None
        assert 0 <= updated["threat_score"] <= 99
        assert updated["security_level"] in ("secure", "warning", "threat")
        stored = sessions.get(session["id"])
        assert stored["threat_score"] == updated["threat_score"]

        entry = service.predictions.list(limit=1)[0]
        assert entry["source"] == "session_check"
        assert entry["session_id"] == session["id"]

    def test_score_matches_probability(self, service):
        sessions = SessionStore(seed=0)
        session = sessions.start("user-1", "CHG-001", "VEHICLE-1", "credit_card")
        updated = service.security_check(session["id"], sessions)
        p = service.predictions.list(limit=1)[0]["threat_probability"]
        assert updated["threat_score"] == threat_score(p)

    def test_half_point_score_rounds_up(self, service):
        sessions = SessionStore(seed=0)
        session = sessions.start("user-1", "CHG-001", "VEHICLE-1", "credit_card")
        prediction = MagicMock(
            threat_probability=0.125,
            threat_type="Unknown Threat Pattern",
            severity=Severity.LOW,
            model_version="v1.2.3",
        )
        service.scorer = MagicMock()
        service.scorer.predict.return_value = prediction
        updated = service.security_check(session["id"], sessions)
        assert updated["threat_score"] == 13
        assert updated["security_level"] == "secure"

    def test_missing_session_logged_not_raised(self, service):
        with patch("chargeguard.api.threat_service.logger") as mock_logger:
            result = service.security_check("SESSION-404", SessionStore())
        assert result is None
        mock_logger.exception.assert_called_once()

    def test_scorer_failure_logged_not_raised(self, service):
        sessions = SessionStore(seed=0)
        session = sessions.start("user-1", "CHG-001", "VEHICLE-1", "credit_card")
        service.scorer = MagicMock()
        service.scorer.predict.side_effect = RuntimeError("boom")
        assert service.security_check(session["id"], sessions) is None
        assert sessions.get(session["id"])["security_level"] == "secure"
