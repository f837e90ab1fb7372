"""
Charging-session telemetry consumed by the threat scorer.

A TelemetrySample summarizes one charging session as seen from the network
(packet sizes, connection rate, protocol mix), from OCPP traffic (message
types, timing, payload sizes) and from user behavior (session duration,
behavior tag, device fingerprint).  Samples are immutable and built once
per scoring call.

Author: ChargeGuard Team
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Tuple


class InvalidTelemetryError(ValueError):
    """Raised when a telemetry sample contains non-finite or out-of-range values."""


@dataclass(frozen=True)
class SupplementalSignals:
    """Optional account/firmware/network signals reported alongside a session."""
    unusual_activity_score: float = 0.0
    login_attempts: int = 0
    failed_login_attempts: int = 0
    firmware_checksum_mismatch: bool = False
    network_traffic_spike: float = 0.0


@dataclass(frozen=True)
class TelemetrySample:
    """Summarized telemetry for a single charging session."""
    packet_sizes: Tuple[float, ...] = ()
    connection_frequency: float = 0.0            # connections / s
    protocol_distribution: Mapping[str, float] = field(default_factory=dict)
    message_types: Tuple[str, ...] = ()
    timing_patterns: Tuple[float, ...] = ()
    payload_sizes: Tuple[float, ...] = ()
    session_duration_ms: float = 0.0
    behavior_tag: str = ""
    device_fingerprint: str = ""
    supplemental: SupplementalSignals = field(default_factory=SupplementalSignals)

    def __post_init__(self):
        # Accept any iterable for the sequence fields, store tuples
        for name in ("packet_sizes", "message_types", "timing_patterns", "payload_sizes"):
            value = getattr(self, name)
            if isinstance(value, (str, bytes)):
                raise InvalidTelemetryError(f"{name}: expected a sequence, got {value!r}")
            try:
                object.__setattr__(self, name, tuple(value))
            except TypeError:
                raise InvalidTelemetryError(f"{name}: expected a sequence, got {value!r}") from None
        if not isinstance(self.protocol_distribution, Mapping):
            raise InvalidTelemetryError(
                f"protocol_distribution: expected a mapping, got {self.protocol_distribution!r}"
            )
        object.__setattr__(self, "protocol_distribution", dict(self.protocol_distribution))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> "TelemetrySample":
        """
        Reject non-finite numbers and negative sizes or durations.

        Empty sequences are valid.  Returns self so calls can be chained.
        """
        _check_finite("packet_sizes", self.packet_sizes, non_negative=True)
        _check_finite("timing_patterns", self.timing_patterns)
        _check_finite("payload_sizes", self.payload_sizes, non_negative=True)
        _check_finite("connection_frequency", [self.connection_frequency], non_negative=True)
        _check_finite("session_duration_ms", [self.session_duration_ms], non_negative=True)
        _check_finite("protocol_distribution", self.protocol_distribution.values())
        for label in self.message_types:
            if not isinstance(label, str):
                raise InvalidTelemetryError(f"message_types: {label!r} is not a string")

        s = self.supplemental
        _check_finite(
            "supplemental",
            [s.unusual_activity_score, s.network_traffic_spike,
             s.login_attempts, s.failed_login_attempts],
            non_negative=True,
        )
        return self

    # ------------------------------------------------------------------
    # Serialization (camelCase wire format)
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TelemetrySample":
        """
        Build a sample from the flat camelCase JSON representation.

        Missing or null fields take their defaults.  Raises
        InvalidTelemetryError when ``data`` is not a JSON object or a field
        has the wrong shape.
        """
        if not isinstance(data, Mapping):
            raise InvalidTelemetryError(
                f"telemetry must be a JSON object, got {type(data).__name__}"
            )
        return cls(
            packet_sizes=_field(data, "packetSizes", ()),
            connection_frequency=_field(data, "connectionFrequency", 0.0),
            protocol_distribution=_field(data, "protocolDistribution", {}),
            message_types=_field(data, "messageTypes", ()),
            timing_patterns=_field(data, "timingPatterns", ()),
            payload_sizes=_field(data, "payloadSizes", ()),
            session_duration_ms=_field(data, "sessionDurationMs", 0.0),
            behavior_tag=str(_field(data, "behaviorTag", "")),
            device_fingerprint=str(_field(data, "deviceFingerprint", "")),
            supplemental=SupplementalSignals(
                unusual_activity_score=_field(data, "unusualActivityScore", 0.0),
                login_attempts=_field(data, "loginAttempts", 0),
                failed_login_attempts=_field(data, "failedLoginAttempts", 0),
                firmware_checksum_mismatch=bool(_field(data, "firmwareChecksumMismatch", False)),
                network_traffic_spike=_field(data, "networkTrafficSpike", 0.0),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        s = self.supplemental
        return {
            "packetSizes": list(self.packet_sizes),
            "connectionFrequency": self.connection_frequency,
            "protocolDistribution": dict(self.protocol_distribution),
            "messageTypes": list(self.message_types),
            "timingPatterns": list(self.timing_patterns),
            "payloadSizes": list(self.payload_sizes),
            "sessionDurationMs": self.session_duration_ms,
            "behaviorTag": self.behavior_tag,
            "deviceFingerprint": self.device_fingerprint,
            "unusualActivityScore": s.unusual_activity_score,
            "loginAttempts": s.login_attempts,
            "failedLoginAttempts": s.failed_login_attempts,
            "firmwareChecksumMismatch": s.firmware_checksum_mismatch,
            "networkTrafficSpike": s.network_traffic_spike,
        }


def _field(data: Mapping[str, Any], key: str, default: Any) -> Any:
    value = data.get(key)
    return default if value is None else value


def _check_finite(name: str, values: Iterable[float], non_negative: bool = False) -> None:
    for v in values:
        if isinstance(v, (str, bytes)):
            raise InvalidTelemetryError(f"{name}: {v!r} is not a number")
        try:
            x = float(v)
        except (TypeError, ValueError):
            raise InvalidTelemetryError(f"{name}: {v!r} is not a number") from None
        if not math.isfinite(x):
            raise InvalidTelemetryError(f"{name}: non-finite value {v!r}")
        if non_negative and x < 0:
            raise InvalidTelemetryError(f"{name}: negative value {v!r}")
