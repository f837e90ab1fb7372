"""
Risk lookups for behavior tags and device fingerprints that the scorer's
reference lists do not cover.

The scorer asks a RiskLookup for a bounded risk value whenever a behavior
tag is not on the suspicious list, or a fingerprint is neither known-bad nor
visibly modified.  StaticRiskLookup is deterministic and is the default.
RandomRiskLookup draws uniform values (behavior in [0, 0.3), device in
[0, 0.2)) and is reproducible when seeded.

Author: ChargeGuard Team
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

import numpy as np

BEHAVIOR_RANDOM_CEILING = 0.3
DEVICE_RANDOM_CEILING = 0.2


class RiskLookup(ABC):
    """Source of risk for otherwise unmodeled behavior/device signals."""

    name: str = "abstract"

    @abstractmethod
    def behavior_risk(self, behavior_tag: str) -> float:
        """Risk in [0, 1] for a behavior tag."""

    @abstractmethod
    def device_risk(self, device_fingerprint: str) -> float:
        """Risk in [0, 1] for a device fingerprint."""


class StaticRiskLookup(RiskLookup):
    """Fixed defaults with optional per-tag / per-fingerprint overrides."""

    name = "static"

    def __init__(
        self,
        behavior_default: float = 0.0,
        device_default: float = 0.0,
        behavior_overrides: Optional[Dict[str, float]] = None,
        device_overrides: Optional[Dict[str, float]] = None,
    ):
        self.behavior_default = behavior_default
        self.device_default = device_default
        self.behavior_overrides = dict(behavior_overrides or {})
        self.device_overrides = dict(device_overrides or {})

    def behavior_risk(self, behavior_tag: str) -> float:
        return self.behavior_overrides.get(behavior_tag, self.behavior_default)

    def device_risk(self, device_fingerprint: str) -> float:
        return self.device_overrides.get(device_fingerprint, self.device_default)


class RandomRiskLookup(RiskLookup):
    """Uniform random risk, kept for demos that want non-repeating scores."""

    name = "random"

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()  # Generator is not thread-safe

    def behavior_risk(self, behavior_tag: str) -> float:
        with self._lock:
            return float(self._rng.uniform(0.0, BEHAVIOR_RANDOM_CEILING))

    def device_risk(self, device_fingerprint: str) -> float:
        with self._lock:
            return float(self._rng.uniform(0.0, DEVICE_RANDOM_CEILING))


def build_risk_lookup(
    kind: str = "static",
    seed: Optional[int] = None,
    behavior_default: float = 0.0,
    device_default: float = 0.0,
) -> RiskLookup:
    """Construct a RiskLookup by name ("static" or "random")."""
    if kind == "static":
        return StaticRiskLookup(behavior_default=behavior_default, device_default=device_default)
    if kind == "random":
        return RandomRiskLookup(seed=seed)
    raise ValueError(f"Unknown risk lookup: {kind!r}")
