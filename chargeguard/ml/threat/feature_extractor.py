"""
Feature Extraction for Charging-Session Threat Scoring.

Turns a TelemetrySample into a ten-field FeatureVector:

    Network        (4): packet_size_mean, packet_size_std,
                        connection_frequency, protocol_diversity
    OCPP traffic   (3): message_type_entropy, timing_anomaly_score,
                        payload_size_anomaly
    User behavior  (3): session_duration_anomaly, behavior_deviation_score,
                        device_fingerprint_risk

Empty sequences yield 0 for their feature.  Behavior and device risk fall
back to an injected RiskLookup when the reference lists do not decide.

Author: ChargeGuard Team
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, fields
from typing import Dict, List, Optional, Sequence

import numpy as np

from chargeguard.ml.threat.risk_lookup import RiskLookup, StaticRiskLookup
from chargeguard.ml.threat.telemetry import SupplementalSignals, TelemetrySample

MS_PER_MINUTE = 60 * 1000

SUSPICIOUS_BEHAVIORS = ("rapid_disconnect", "unusual_timing", "multiple_attempts")
KNOWN_BAD_FINGERPRINTS = ("suspicious_device_1", "malware_infected")
MODIFIED_DEVICE_MARKERS = ("modified", "rooted")

SUSPICIOUS_BEHAVIOR_RISK = 0.8
KNOWN_BAD_DEVICE_RISK = 0.9
MODIFIED_DEVICE_RISK = 0.7

TIMING_DEVIATION_RATIO = 0.5
PAYLOAD_SIGMA = 2.0


@dataclass(frozen=True)
class FeatureVector:
    """The ten derived signals consumed by the scoring weights."""
    packet_size_mean: float = 0.0
    packet_size_std: float = 0.0
    connection_frequency: float = 0.0
    protocol_diversity: float = 0.0
    message_type_entropy: float = 0.0
    timing_anomaly_score: float = 0.0
    payload_size_anomaly: float = 0.0
    session_duration_anomaly: float = 0.0
    behavior_deviation_score: float = 0.0
    device_fingerprint_risk: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_dict(self) -> Dict[str, float]:
        """camelCase keys, as returned over the wire."""
        return {camel_case(k): v for k, v in self.as_dict().items()}


@dataclass(frozen=True)
class SupplementalFeatures:
    """Numeric form of SupplementalSignals (booleans become 0/1)."""
    unusual_activity_score: float = 0.0
    login_attempts: float = 0.0
    failed_login_attempts: float = 0.0
    firmware_checksum_mismatch: float = 0.0
    network_traffic_spike: float = 0.0

    @classmethod
    def from_signals(cls, signals: SupplementalSignals) -> "SupplementalFeatures":
        return cls(
            unusual_activity_score=float(signals.unusual_activity_score),
            login_attempts=float(signals.login_attempts),
            failed_login_attempts=float(signals.failed_login_attempts),
            firmware_checksum_mismatch=1.0 if signals.firmware_checksum_mismatch else 0.0,
            network_traffic_spike=float(signals.network_traffic_spike),
        )

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_dict(self) -> Dict[str, float]:
        return {camel_case(k): v for k, v in self.as_dict().items()}


FEATURE_NAMES: List[str] = [f.name for f in fields(FeatureVector)]
SUPPLEMENTAL_FEATURE_NAMES: List[str] = [f.name for f in fields(SupplementalFeatures)]


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


# -----------------------------------------------------------------------
# Statistical helpers
# -----------------------------------------------------------------------

def sequence_mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def population_std(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64)))


def shannon_entropy(labels: Sequence[str]) -> float:
    """Base-2 entropy of the empirical label distribution."""
    if len(labels) == 0:
        return 0.0
    counts = np.array(list(Counter(labels).values()), dtype=np.float64)
    probs = counts / counts.sum()
    return float(-np.sum(probs * np.log2(probs)))


def timing_anomaly_score(timings: Sequence[float]) -> float:
    """Fraction of intervals deviating from the mean interval by > 50% of it."""
    if len(timings) < 2:
        return 0.0
    intervals = np.diff(np.asarray(timings, dtype=np.float64))
    mean_interval = float(intervals.mean())
    anomalies = np.abs(intervals - mean_interval) > mean_interval * TIMING_DEVIATION_RATIO
    return float(np.count_nonzero(anomalies)) / len(intervals)


def payload_size_anomaly(sizes: Sequence[float]) -> float:
    """Fraction of payloads further than 2 sigma from the mean."""
    if len(sizes) == 0:
        return 0.0
    arr = np.asarray(sizes, dtype=np.float64)
    mean, std = float(arr.mean()), float(arr.std())
    anomalies = np.abs(arr - mean) > PAYLOAD_SIGMA * std
    return float(np.count_nonzero(anomalies)) / len(arr)


def session_duration_anomaly(
    duration_ms: float,
    typical_min_ms: float = 30 * MS_PER_MINUTE,
    typical_max_ms: float = 120 * MS_PER_MINUTE,
) -> float:
    if duration_ms < typical_min_ms:
        return (typical_min_ms - duration_ms) / typical_min_ms
    if duration_ms > typical_max_ms:
        return min(1.0, (duration_ms - typical_max_ms) / typical_max_ms)
    return 0.0


# -----------------------------------------------------------------------
# Extractor
# -----------------------------------------------------------------------

class ThreatFeatureExtractor:
    """
    Extracts the ten-field FeatureVector from a TelemetrySample.

    Usage::

        extractor = ThreatFeatureExtractor()
        features = extractor.extract(sample)
        print(features.message_type_entropy)
    """

    def __init__(
        self,
        risk_lookup: Optional[RiskLookup] = None,
        suspicious_behaviors: Sequence[str] = SUSPICIOUS_BEHAVIORS,
        known_bad_fingerprints: Sequence[str] = KNOWN_BAD_FINGERPRINTS,
        typical_session_min_minutes: float = 30.0,
        typical_session_max_minutes: float = 120.0,
    ):
        self.risk_lookup = risk_lookup or StaticRiskLookup()
        self.suspicious_behaviors = frozenset(suspicious_behaviors)
        self.known_bad_fingerprints = frozenset(known_bad_fingerprints)
        self.typical_min_ms = typical_session_min_minutes * MS_PER_MINUTE
        self.typical_max_ms = typical_session_max_minutes * MS_PER_MINUTE

    def extract(self, sample: TelemetrySample) -> FeatureVector:
        return FeatureVector(
            packet_size_mean=sequence_mean(sample.packet_sizes),
            packet_size_std=population_std(sample.packet_sizes),
            connection_frequency=float(sample.connection_frequency),
            protocol_diversity=float(len(sample.protocol_distribution)),
            message_type_entropy=shannon_entropy(sample.message_types),
            timing_anomaly_score=timing_anomaly_score(sample.timing_patterns),
            payload_size_anomaly=payload_size_anomaly(sample.payload_sizes),
            session_duration_anomaly=session_duration_anomaly(
                float(sample.session_duration_ms), self.typical_min_ms, self.typical_max_ms
            ),
            behavior_deviation_score=self._behavior_deviation(sample.behavior_tag),
            device_fingerprint_risk=self._device_risk(sample.device_fingerprint),
        )

    def _behavior_deviation(self, behavior_tag: str) -> float:
        if behavior_tag in self.suspicious_behaviors:
            return SUSPICIOUS_BEHAVIOR_RISK
        return float(self.risk_lookup.behavior_risk(behavior_tag))

    def _device_risk(self, fingerprint: str) -> float:
        if fingerprint in self.known_bad_fingerprints:
            return KNOWN_BAD_DEVICE_RISK
        if any(marker in fingerprint for marker in MODIFIED_DEVICE_MARKERS):
            return MODIFIED_DEVICE_RISK
        return float(self.risk_lookup.device_risk(fingerprint))
