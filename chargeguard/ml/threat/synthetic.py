"""
Synthetic telemetry for charging sessions that have no captured traffic.

Used by the background security check that runs after a session starts:
the generator fabricates plausible network/OCPP summaries so the scorer
has something to evaluate.
"""

from __future__ import annotations

import threading
from typing import Optional

import numpy as np

from chargeguard.ml.threat.telemetry import TelemetrySample

DEFAULT_PROTOCOLS = {"OCPP": 0.8, "HTTP": 0.15, "Other": 0.05}
DEFAULT_MESSAGE_TYPES = ("StartTransaction", "MeterValues", "Heartbeat")


class SyntheticTelemetryGenerator:
    """Seeded generator of TelemetrySample values."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def generate(
        self,
        session_duration_ms: float,
        behavior_tag: str = "normal",
        device_fingerprint: str = "standard_device",
        n_packets: int = 100,
        n_messages: int = 20,
    ) -> TelemetrySample:
        with self._lock:
            packets = self._rng.uniform(64.0, 1564.0, size=n_packets)
            frequency = float(self._rng.uniform(1.0, 11.0))
            timings = self._rng.uniform(500.0, 1500.0, size=n_messages)
            payloads = self._rng.uniform(100.0, 600.0, size=n_messages)

        return TelemetrySample(
            packet_sizes=packets.tolist(),
            connection_frequency=frequency,
            protocol_distribution=dict(DEFAULT_PROTOCOLS),
            message_types=DEFAULT_MESSAGE_TYPES,
            timing_patterns=timings.tolist(),
            payload_sizes=payloads.tolist(),
            session_duration_ms=max(0.0, float(session_duration_ms)),
            behavior_tag=behavior_tag,
            device_fingerprint=device_fingerprint,
        )
