"""
Human-Readable Threat Explanations.

Generates natural-language explanations for charging-session predictions
that security operators can understand and act upon.

Author: ChargeGuard Team
"""

from __future__ import annotations

from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from chargeguard.ml.threat.threat_scorer import ThreatPrediction


SIGNIFICANT_CONTRIBUTION = 0.05

_FEATURE_LABELS = {
    "packet_size_mean": "packet size",
    "packet_size_std": "packet size variance",
    "connection_frequency": "connection rate",
    "protocol_diversity": "protocol mix",
    "message_type_entropy": "OCPP message variety",
    "timing_anomaly_score": "irregular message timing",
    "payload_size_anomaly": "outlier payload sizes",
    "session_duration_anomaly": "atypical session duration",
    "behavior_deviation_score": "charging behavior",
    "device_fingerprint_risk": "device fingerprint",
    "unusual_activity_score": "unusual account activity",
    "login_attempts": "login attempts",
    "failed_login_attempts": "failed logins",
    "firmware_checksum_mismatch": "firmware checksum mismatch",
    "network_traffic_spike": "traffic spike",
}


class ThreatExplainer:
    """Generates human-readable threat explanations."""

    @staticmethod
    def describe(threat_type: str) -> str:
        """One-line incident description."""
        return f"Potential {threat_type} detected."

    @staticmethod
    def explain(prediction: "ThreatPrediction") -> str:
        parts: List[str] = []
        severity = prediction.severity.value

        # Summary line
        parts.append(
            f"Threat probability {prediction.threat_probability:.2f} "
            f"({severity.upper()}): {prediction.threat_type}."
        )
        parts.append(f"{prediction.recommended_action}.")

        ranked = sorted(
            prediction.contributions.items(), key=lambda kv: kv[1], reverse=True
        )
        significant = [(name, c) for name, c in ranked if c >= SIGNIFICANT_CONTRIBUTION]

        if significant:
            drivers = ", ".join(
                f"{_FEATURE_LABELS.get(name, name)}={c:.2f}" for name, c in significant
            )
            parts.append(f"Main contributors: {drivers}.")

        # Why this is NOT a threat
        if severity == "low":
            f = prediction.features
            benign = []
            if f.timing_anomaly_score == 0:
                benign.append("regular OCPP message timing")
            if f.payload_size_anomaly == 0:
                benign.append("no outlier payloads")
            if f.session_duration_anomaly == 0:
                benign.append("session duration within typical range")
            if f.device_fingerprint_risk < 0.7:
                benign.append("no known-bad device fingerprint")
            if benign:
                parts.append(f"Assessment basis: {'; '.join(benign)}.")

        return "\n".join(parts)
