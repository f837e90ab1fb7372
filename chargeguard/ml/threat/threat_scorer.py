"""
Threat Scoring — Fuses Charging-Session Features into a Threat Probability.

Each of the ten session features (plus the optional supplemental signals)
is capped at 1.0, multiplied by a fixed weight, and summed.  The sum is
clamped to [0.01, 0.99] and reported as the threat probability.

Severity tiers (closed lower bounds):
    >= 0.8: critical — Immediately isolate charger and notify security team
    >= 0.6: high     — Increase monitoring and prepare for isolation
    >= 0.4: medium   — Enhanced logging and user notification
     < 0.4: low      — Continue monitoring with standard protocols

The threat type comes from an ordered rule list over the features; the
first matching rule wins.

Author: ChargeGuard Team
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional

from chargeguard.ml.threat.feature_extractor import (
    FeatureVector,
    SupplementalFeatures,
    ThreatFeatureExtractor,
    camel_case,
)
from chargeguard.ml.threat.risk_lookup import RiskLookup, build_risk_lookup
from chargeguard.ml.threat.telemetry import TelemetrySample
from chargeguard.utils.logging_config import get_logger

MODEL_VERSION = "v1.2.3"
PROBABILITY_FLOOR = 0.01
PROBABILITY_CEILING = 0.99
CONFIDENCE_CEILING = 0.95
CONFIDENCE_MARGIN = 0.1


# -----------------------------------------------------------------------
# Severity
# -----------------------------------------------------------------------

class Severity(str, Enum):
    """Operational severity derived from the threat probability."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def _probability_to_severity(probability: float) -> Severity:
    if probability >= 0.8:
        return Severity.CRITICAL
    elif probability >= 0.6:
        return Severity.HIGH
    elif probability >= 0.4:
        return Severity.MEDIUM
    else:
        return Severity.LOW


RECOMMENDED_ACTIONS = {
    Severity.CRITICAL: "Immediately isolate charger and notify security team",
    Severity.HIGH: "Increase monitoring and prepare for isolation",
    Severity.MEDIUM: "Enhanced logging and user notification",
    Severity.LOW: "Continue monitoring with standard protocols",
}


# -----------------------------------------------------------------------
# Threat types
# -----------------------------------------------------------------------

class ThreatType(str, Enum):
    MITM = "Man-in-the-Middle Attack"
    MALWARE_INJECTION = "Malware Injection"
    PROTOCOL_ANOMALY = "Protocol Anomaly"
    UNAUTHORIZED_ACCESS = "Unauthorized Access"
    SESSION_HIJACKING = "Session Hijacking"
    UNUSUAL_ACTIVITY = "Unusual Activity"
    BRUTE_FORCE = "Brute Force Attempt"
    FIRMWARE_TAMPERING = "Firmware Tampering"
    DDOS_SUSPECT = "DDoS Suspect"
    UNKNOWN = "Unknown Threat Pattern"


# -----------------------------------------------------------------------
# Weights
# -----------------------------------------------------------------------

@dataclass(frozen=True)
class ScoringWeights:
    """
    Per-feature weights.

    Weights do not sum to 1.0; the final probability is clamped to
    [0.01, 0.99] instead.
    """
    packet_size_mean: float = 0.10
    packet_size_std: float = 0.15
    connection_frequency: float = 0.12
    protocol_diversity: float = 0.08
    message_type_entropy: float = 0.20
    timing_anomaly_score: float = 0.25
    payload_size_anomaly: float = 0.18
    session_duration_anomaly: float = 0.10
    behavior_deviation_score: float = 0.15
    device_fingerprint_risk: float = 0.22
    # Supplemental signals
    unusual_activity_score: float = 0.20
    login_attempts: float = 0.10
    failed_login_attempts: float = 0.15
    firmware_checksum_mismatch: float = 0.30
    network_traffic_spike: float = 0.10

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def total(self) -> float:
        return sum(self.as_dict().values())


# -----------------------------------------------------------------------
# Result
# -----------------------------------------------------------------------

@dataclass
class ThreatPrediction:
    """Output of the threat scorer."""
    threat_probability: float         # [0.01, 0.99]
    confidence: float                 # min(0.95, p + 0.1)
    threat_type: str
    severity: Severity
    recommended_action: str
    features: FeatureVector
    model_version: str = MODEL_VERSION
    supplemental_features: SupplementalFeatures = field(default_factory=SupplementalFeatures)
    # Weighted, capped value of every feature (keys are snake_case names)
    contributions: Dict[str, float] = field(default_factory=dict)
    explanation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable camelCase representation."""
        return {
            "threatProbability": self.threat_probability,
            "confidence": self.confidence,
            "threatType": self.threat_type,
            "severity": self.severity.value,
            "recommendedAction": self.recommended_action,
            "features": self.features.to_dict(),
            "modelVersion": self.model_version,
            "supplementalFeatures": self.supplemental_features.to_dict(),
            "contributions": {camel_case(k): v for k, v in self.contributions.items()},
            "explanation": self.explanation,
        }


# -----------------------------------------------------------------------
# Scorer
# -----------------------------------------------------------------------

class ThreatScorer:
    """
    Scores a charging session's telemetry into a ThreatPrediction.

    Usage::

        scorer = ThreatScorer()
        prediction = scorer.predict(sample)
        print(prediction.threat_probability)  # 0.01-0.99
        print(prediction.severity)            # low / medium / high / critical

    The scorer holds no per-call state; one instance may serve concurrent
    callers as long as its RiskLookup does.
    """

    PROTOCOL_ANOMALY_RATIO = 0.6

    def __init__(
        self,
        weights: ScoringWeights | None = None,
        extractor: ThreatFeatureExtractor | None = None,
        risk_lookup: RiskLookup | None = None,
        protocol_diversity_max: int = 5,
        model_version: str = MODEL_VERSION,
    ):
        self.weights = weights or ScoringWeights()
        self.extractor = extractor or ThreatFeatureExtractor(risk_lookup=risk_lookup)
        self.protocol_diversity_max = protocol_diversity_max
        self.model_version = model_version

    @classmethod
    def from_config(cls, config) -> "ThreatScorer":
        """Build a scorer from a ScoringConfig."""
        lookup = build_risk_lookup(
            config.risk_lookup,
            seed=config.random_seed,
            behavior_default=config.behavior_default_risk,
            device_default=config.device_default_risk,
        )
        extractor = ThreatFeatureExtractor(
            risk_lookup=lookup,
            suspicious_behaviors=config.suspicious_behaviors,
            known_bad_fingerprints=config.known_bad_fingerprints,
            typical_session_min_minutes=config.typical_session_min_minutes,
            typical_session_max_minutes=config.typical_session_max_minutes,
        )
        return cls(
            extractor=extractor,
            protocol_diversity_max=config.protocol_diversity_max,
            model_version=config.model_version,
        )

    @property
    def risk_lookup(self) -> RiskLookup:
        return self.extractor.risk_lookup

    def predict(self, sample: TelemetrySample, charger_id: Optional[str] = None) -> ThreatPrediction:
        """
        Score one telemetry sample.

        Raises InvalidTelemetryError for non-finite or negative inputs.
        """
        sample.validate()

        features = self.extractor.extract(sample)
        supplemental = SupplementalFeatures.from_signals(sample.supplemental)

        contributions = self._contributions(features, supplemental)
        raw = sum(contributions.values())
        probability = max(PROBABILITY_FLOOR, min(PROBABILITY_CEILING, raw))
        confidence = min(CONFIDENCE_CEILING, probability + CONFIDENCE_MARGIN)

        threat_type = self.classify(features, supplemental)
        severity = _probability_to_severity(probability)

        prediction = ThreatPrediction(
            threat_probability=probability,
            confidence=confidence,
            threat_type=threat_type.value,
            severity=severity,
            recommended_action=RECOMMENDED_ACTIONS[severity],
            features=features,
            model_version=self.model_version,
            supplemental_features=supplemental,
            contributions=contributions,
        )

        from chargeguard.ml.threat.threat_explainer import ThreatExplainer
        prediction.explanation = ThreatExplainer.explain(prediction)

        get_logger("ml_predictions", charger_id=charger_id).debug(
            "Scored session p={:.3f} severity={} type={}",
            probability, severity.value, threat_type.value,
        )
        return prediction

    # ------------------------------------------------------------------
    # Combination and classification
    # ------------------------------------------------------------------

    def _contributions(
        self, features: FeatureVector, supplemental: SupplementalFeatures
    ) -> Dict[str, float]:
        w = self.weights.as_dict()
        values = {**features.as_dict(), **supplemental.as_dict()}
        return {name: w[name] * min(1.0, value) for name, value in values.items()}

    def protocol_diversity_ratio(self, features: FeatureVector) -> float:
        """Distinct protocol count scaled to [0, 1] by protocol_diversity_max."""
        return min(1.0, features.protocol_diversity / self.protocol_diversity_max)

    def classify(
        self,
        features: FeatureVector,
        supplemental: SupplementalFeatures | None = None,
    ) -> ThreatType:
        s = supplemental or SupplementalFeatures()

        if features.timing_anomaly_score > 0.7:
            return ThreatType.MITM
        if features.payload_size_anomaly > 0.8:
            return ThreatType.MALWARE_INJECTION
        if self.protocol_diversity_ratio(features) > self.PROTOCOL_ANOMALY_RATIO:
            return ThreatType.PROTOCOL_ANOMALY
        if features.device_fingerprint_risk > 0.7:
            return ThreatType.UNAUTHORIZED_ACCESS
        if features.behavior_deviation_score > 0.6:
            return ThreatType.SESSION_HIJACKING
        if s.unusual_activity_score > 0.7:
            return ThreatType.UNUSUAL_ACTIVITY
        if s.login_attempts > 5 and s.failed_login_attempts > 3:
            return ThreatType.BRUTE_FORCE
        if s.firmware_checksum_mismatch > 0.2:
            return ThreatType.FIRMWARE_TAMPERING
        if s.network_traffic_spike > 0.1:
            return ThreatType.DDOS_SUSPECT
        return ThreatType.UNKNOWN
