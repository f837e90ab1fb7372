"""
Tests for behavior/device risk lookups.
"""

import threading

import pytest

from chargeguard.ml.threat.risk_lookup import (
    RandomRiskLookup,
    RiskLookup,
    StaticRiskLookup,
    build_risk_lookup,
)


class TestStaticRiskLookup:
    def test_defaults_are_zero(self):
        lookup = StaticRiskLookup()
        assert lookup.behavior_risk("normal") == 0.0
        assert lookup.device_risk("standard_device") == 0.0
        assert lookup.name == "static"

    def test_overrides(self):
        lookup = StaticRiskLookup(
            behavior_default=0.1,
            behavior_overrides={"night_owl": 0.5},
            device_overrides={"kiosk": 0.3},
        )
        assert lookup.behavior_risk("night_owl") == 0.5
        assert lookup.behavior_risk("normal") == 0.1
        assert lookup.device_risk("kiosk") == 0.3
        assert lookup.device_risk("phone") == 0.0


class TestRandomRiskLookup:
    def test_bounds(self):
        lookup = RandomRiskLookup(seed=1)
        for _ in range(200):
            assert 0.0 <= lookup.behavior_risk("normal") < 0.3
            assert 0.0 <= lookup.device_risk("standard_device") < 0.2

    def test_seeded_is_reproducible(self):
        a, b = RandomRiskLookup(seed=42), RandomRiskLookup(seed=42)
        assert [a.behavior_risk("x") for _ in range(5)] == [b.behavior_risk("x") for _ in range(5)]
        assert a.device_risk("y") == b.device_risk("y")

    def test_concurrent_draws(self):
        lookup = RandomRiskLookup(seed=3)
        values = []

        def draw():
            for _ in range(100):
                values.append(lookup.behavior_risk("normal"))

        threads = [threading.Thread(target=draw) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(values) == 400
        assert all(0.0 <= v < 0.3 for v in values)


class TestBuildRiskLookup:
    def test_static(self):
        lookup = build_risk_lookup("static", behavior_default=0.2)
        assert isinstance(lookup, StaticRiskLookup)
        assert lookup.behavior_risk("normal") == 0.2

    def test_random(self):
        lookup = build_risk_lookup("random", seed=5)
        assert isinstance(lookup, RandomRiskLookup)
        assert lookup.seed == 5

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown risk lookup"):
            build_risk_lookup("oracle")

    def test_abstract(self):
        with pytest.raises(TypeError):
            RiskLookup()
