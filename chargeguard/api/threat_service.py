"""
ThreatService — Wraps ThreatScorer for dashboard use.

Provides on-demand threat detection, incident creation for detected threats,
prediction logging, and the background security check for new sessions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from chargeguard.api.store import PredictionLog, SessionStore, ThreatStore, parse_iso
from chargeguard.ml.threat.synthetic import SyntheticTelemetryGenerator
from chargeguard.ml.threat.telemetry import TelemetrySample
from chargeguard.ml.threat.threat_explainer import ThreatExplainer
from chargeguard.ml.threat.threat_scorer import Severity, ThreatPrediction, ThreatScorer
from chargeguard.utils.logging_config import get_logger
from chargeguard.utils.metrics import PerformanceMetrics, timer

logger = logging.getLogger(__name__)

_SECURITY_LEVELS = {
    Severity.CRITICAL: "threat",
    Severity.HIGH: "threat",
    Severity.MEDIUM: "warning",
    Severity.LOW: "secure",
}


def severity_to_security_level(severity: Severity) -> str:
    return _SECURITY_LEVELS[severity]


def threat_score(probability: float) -> int:
    """Probability as a 0-100 session score, halves rounded up."""
    return int(probability * 100 + 0.5)


class ThreatService:
    """
    High-level threat detection service for the dashboard.

    Wraps ThreatScorer with latency tracking, the prediction log, and
    incident creation whenever a prediction crosses the detection threshold.
    """

    def __init__(
        self,
        scorer: ThreatScorer,
        threats: ThreatStore,
        predictions: PredictionLog,
        metrics: Optional[PerformanceMetrics] = None,
        threshold: float = 0.5,
        generator: Optional[SyntheticTelemetryGenerator] = None,
    ):
        self.scorer = scorer
        self.threats = threats
        self.predictions = predictions
        self.metrics = metrics or PerformanceMetrics()
        self.threshold = threshold
        self.generator = generator or SyntheticTelemetryGenerator()

    @property
    def model_version(self) -> str:
        return self.scorer.model_version

    def model_info(self) -> dict:
        return {
            "message": "ML Threat Detection API is running. Send POST requests with data.",
            "model_version": self.scorer.model_version,
            "risk_lookup": self.scorer.risk_lookup.name,
        }

    def score(
        self,
        sample: TelemetrySample,
        charger_id: Optional[str] = None,
        session_id: Optional[str] = None,
        source: str = "api",
    ) -> ThreatPrediction:
        """Score a sample and record it in the prediction log."""
        with timer("scoring_ms", self.metrics) as t:
            prediction = self.scorer.predict(sample, charger_id=charger_id)

        self.predictions.append(
            threat_probability=prediction.threat_probability,
            threat_type=prediction.threat_type,
            severity=prediction.severity.value,
            threat_detected=self.is_detected(prediction),
            latency_ms=t["elapsed_ms"],
            model_version=prediction.model_version,
            source=source,
            charger_id=charger_id,
            session_id=session_id,
        )
        return prediction

    def is_detected(self, prediction: ThreatPrediction) -> bool:
        return prediction.threat_probability > self.threshold

    def detect(
        self,
        sample: TelemetrySample,
        charger_id: str,
        processed_data: dict[str, Any],
    ) -> dict:
        """
        Run threat detection for one request.

        Returns a dict matching ThreatDetectionResponse.  A detected threat
        is also recorded as an active incident.
        """
        prediction = self.score(sample, charger_id=charger_id)
        detected = self.is_detected(prediction)

        threat = None
        if detected:
            description = ThreatExplainer.describe(prediction.threat_type)
            incident = self.threats.add(
                type=prediction.threat_type,
                severity=prediction.severity.value,
                description=f"{description} Charger {charger_id}.",
                charger_id=charger_id,
            )
            threat = {
                "type": prediction.threat_type,
                "severity": prediction.severity.value,
                "description": description,
                "timestamp": incident["timestamp"],
            }
            get_logger("alerts", charger_id=charger_id).warning(
                "Threat detected: {} ({}, p={:.2f})",
                prediction.threat_type, prediction.severity.value,
                prediction.threat_probability,
                incident_id=incident["id"],
            )

        logger.info(
            "Threat detection for %s: p=%.3f severity=%s detected=%s",
            charger_id, prediction.threat_probability, prediction.severity.value, detected,
        )

        return {
            "threat_detected": detected,
            "threat": threat,
            "prediction": prediction.to_dict(),
            "analysis": {
                "processed_data": processed_data,
                "model_confidence": prediction.confidence,
            },
        }

    def security_check(self, session_id: str, sessions: SessionStore) -> Optional[dict]:
        """
        Score synthetic telemetry for a session and update its security level.

        Runs as a background task; failures are logged, never raised.
        """
        try:
            session = sessions.get(session_id)
            started = parse_iso(session["start_time"])
            duration_ms = (datetime.now(timezone.utc) - started).total_seconds() * 1000.0
            sample = self.generator.generate(session_duration_ms=duration_ms)

            prediction = self.score(
                sample,
                charger_id=session["charger_id"],
                session_id=session_id,
                source="session_check",
            )
            updated = sessions.update_security(
                session_id,
                threat_score=threat_score(prediction.threat_probability),
                security_level=severity_to_security_level(prediction.severity),
            )
        except Exception:
            logger.exception("Security check failed for session %s", session_id)
            return None

        get_logger(
            "sessions", charger_id=updated["charger_id"], session_id=session_id,
        ).info(
            "Security check: score={} level={}",
            updated["threat_score"], updated["security_level"],
        )
        return updated
