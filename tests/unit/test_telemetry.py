"""
Tests for telemetry samples and synthetic session telemetry.
"""

import math

import pytest

from chargeguard.ml.threat.synthetic import SyntheticTelemetryGenerator
from chargeguard.ml.threat.telemetry import (
    InvalidTelemetryError,
    SupplementalSignals,
    TelemetrySample,
)


class TestTelemetrySample:
    def test_sequences_stored_as_tuples(self):
        sample = TelemetrySample(packet_sizes=[1, 2], message_types=["Heartbeat"])
        assert sample.packet_sizes == (1, 2)
        assert sample.message_types == ("Heartbeat",)

    def test_immutable(self):
        sample = TelemetrySample()
        with pytest.raises(AttributeError):
            sample.connection_frequency = 5.0

    def test_validate_returns_self(self):
        sample = TelemetrySample(packet_sizes=[64])
        assert sample.validate() is sample

    def test_empty_sequences_valid(self):
        TelemetrySample().validate()

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidTelemetryError, match="not a number"):
            TelemetrySample(packet_sizes=["big"]).validate()

    def test_non_finite_rejected(self):
        with pytest.raises(InvalidTelemetryError, match="non-finite"):
            TelemetrySample(session_duration_ms=math.inf).validate()

    def test_from_dict(self):
        sample = TelemetrySample.from_dict({
            "packetSizes": [100, 200],
            "connectionFrequency": 2.5,
            "protocolDistribution": {"OCPP": 1.0},
            "messageTypes": ["Heartbeat"],
            "timingPatterns": [0, 1000],
            "payloadSizes": [120],
            "sessionDurationMs": 3_600_000,
            "behaviorTag": "normal",
            "deviceFingerprint": "standard_device",
            "failedLoginAttempts": 4,
            "firmwareChecksumMismatch": True,
        })
        assert sample.packet_sizes == (100, 200)
        assert sample.connection_frequency == 2.5
        assert sample.session_duration_ms == 3_600_000
        assert sample.supplemental.failed_login_attempts == 4
        assert sample.supplemental.firmware_checksum_mismatch is True
        assert sample.supplemental.login_attempts == 0

    def test_from_dict_defaults(self):
        sample = TelemetrySample.from_dict({})
        assert sample == TelemetrySample()

    def test_from_dict_nulls_take_defaults(self):
        sample = TelemetrySample.from_dict({"packetSizes": None, "deviceFingerprint": None})
        assert sample == TelemetrySample()

    @pytest.mark.parametrize("data", [[1, 2], "packets", 42, None])
    def test_from_dict_requires_object(self, data):
        with pytest.raises(InvalidTelemetryError, match="JSON object"):
            TelemetrySample.from_dict(data)

    @pytest.mark.parametrize("fields", [
        {"packet_sizes": 5},
        {"timing_patterns": "1000,2000"},
        {"protocol_distribution": ["OCPP"]},
    ])
    def test_wrong_shape_rejected(self, fields):
        with pytest.raises(InvalidTelemetryError, match="expected a"):
            TelemetrySample(**fields)

    def test_non_string_message_type_rejected(self):
        with pytest.raises(InvalidTelemetryError, match="message_types"):
            TelemetrySample(message_types=[1, 2]).validate()

    def test_to_dict_keys(self):
        data = TelemetrySample(supplemental=SupplementalSignals(login_attempts=2)).to_dict()
        assert data["loginAttempts"] == 2
        assert data["sessionDurationMs"] == 0.0
        assert TelemetrySample.from_dict(data) == TelemetrySample(
            supplemental=SupplementalSignals(login_attempts=2)
        )


class TestSyntheticTelemetryGenerator:
    def test_shape_and_ranges(self):
        sample = SyntheticTelemetryGenerator(seed=0).generate(session_duration_ms=1_800_000)
        assert len(sample.packet_sizes) == 100
        assert all(64 <= p < 1564 for p in sample.packet_sizes)
        assert 1 <= sample.connection_frequency < 11
        assert sample.protocol_distribution == {"OCPP": 0.8, "HTTP": 0.15, "Other": 0.05}
        assert len(set(sample.message_types)) == 3
        assert len(sample.timing_patterns) == 20
        assert all(500 <= t < 1500 for t in sample.timing_patterns)
        assert len(sample.payload_sizes) == 20
        assert all(100 <= p < 600 for p in sample.payload_sizes)
        assert sample.session_duration_ms == 1_800_000
        assert sample.behavior_tag == "normal"
        assert sample.device_fingerprint == "standard_device"

    def test_seeded_is_reproducible(self):
        a = SyntheticTelemetryGenerator(seed=11).generate(1000)
        b = SyntheticTelemetryGenerator(seed=11).generate(1000)
        assert a == b

    def test_negative_duration_clamped(self):
        sample = SyntheticTelemetryGenerator(seed=1).generate(session_duration_ms=-50)
        assert sample.session_duration_ms == 0.0
        sample.validate()
