"""
Threat Scoring for EV Charging Sessions.

Extracts network, OCPP and behavioral features from session telemetry and
fuses them into a threat probability, severity tier and recommended action.
"""

from chargeguard.ml.threat.telemetry import (
    InvalidTelemetryError,
    SupplementalSignals,
    TelemetrySample,
)
from chargeguard.ml.threat.risk_lookup import (
    RandomRiskLookup,
    RiskLookup,
    StaticRiskLookup,
)
from chargeguard.ml.threat.feature_extractor import FeatureVector, ThreatFeatureExtractor
from chargeguard.ml.threat.threat_scorer import (
    ScoringWeights,
    Severity,
    ThreatPrediction,
    ThreatScorer,
    ThreatType,
)
from chargeguard.ml.threat.threat_explainer import ThreatExplainer
from chargeguard.ml.threat.synthetic import SyntheticTelemetryGenerator

__all__ = [
    "InvalidTelemetryError",
    "SupplementalSignals",
    "TelemetrySample",
    "RiskLookup",
    "StaticRiskLookup",
    "RandomRiskLookup",
    "FeatureVector",
    "ThreatFeatureExtractor",
    "ScoringWeights",
    "Severity",
    "ThreatPrediction",
    "ThreatScorer",
    "ThreatType",
    "ThreatExplainer",
    "SyntheticTelemetryGenerator",
]
