"""
In-memory stores for chargers, threat incidents, charging sessions and
prediction logs.

Each store owns its records and guards them with a lock so request handlers
and background tasks can share one instance.  Records are plain dicts with
snake_case keys, matching the response schemas in chargeguard.api.models.
Nothing is persisted; a restart reseeds the demo data.
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
import time
from collections import Counter, deque
from datetime import datetime, timedelta, timezone
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


class NotFoundError(KeyError):
    """Requested record does not exist."""


class ChargerBusyError(RuntimeError):
    """Charger already has an active session."""


class InvalidActionError(ValueError):
    """Session action is not one of stop/pause/resume."""


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _now_iso() -> str:
    return _iso(datetime.now(timezone.utc))


def parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# -----------------------------------------------------------------------
# Chargers
# -----------------------------------------------------------------------

class ChargerStore:
    """Registered charging stations."""

    def __init__(self):
        self._chargers: dict[str, dict] = {}
        self._lock = threading.Lock()

    def add(self, charger: dict) -> dict:
        with self._lock:
            self._chargers[charger["id"]] = dict(charger)
        return dict(charger)

    def get(self, charger_id: str) -> dict:
        with self._lock:
            charger = self._chargers.get(charger_id)
            if charger is None:
                raise NotFoundError(f"Charger {charger_id} not found")
            return dict(charger)

    def list(self, status: Optional[str] = None) -> list[dict]:
        with self._lock:
            chargers = [dict(c) for c in self._chargers.values()]
        if status:
            chargers = [c for c in chargers if c["status"] == status]
        return chargers

    def __len__(self) -> int:
        return len(self._chargers)

    def seed(self) -> None:
        now = datetime.now(timezone.utc)
        for charger_id, name, status, location, minutes_ago, power in [
            ("charger-001", "Main Station A", "online", "123 Electric Ave", 5, 22),
            ("charger-002", "Downtown Hub B", "charging", "456 City Center", 15, 50),
            ("charger-003", "Suburban Point C", "offline", "789 Oak Street", 120, 0),
            ("charger-004", "Industrial Park D", "maintenance", "101 Factory Rd", 30, 0),
        ]:
            self.add({
                "id": charger_id,
                "name": name,
                "status": status,
                "location": location,
                "last_activity": _iso(now - timedelta(minutes=minutes_ago)),
                "power_output": power,
            })


# -----------------------------------------------------------------------
# Threat incidents
# -----------------------------------------------------------------------

class ThreatStore:
    """Threat incidents, seeded and raised by the scorer."""

    def __init__(self):
        self._threats: dict[str, dict] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def add(
        self,
        type: str,
        severity: str,
        description: str,
        status: str = "active",
        charger_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> dict:
        with self._lock:
            threat_id = f"threat-{next(self._ids):03d}"
            threat = {
                "id": threat_id,
                "type": type,
                "severity": severity,
                "timestamp": timestamp or _now_iso(),
                "status": status,
                "description": description,
                "charger_id": charger_id,
            }
            self._threats[threat_id] = threat
            return dict(threat)

    def get(self, threat_id: str) -> dict:
        with self._lock:
            threat = self._threats.get(threat_id)
            if threat is None:
                raise NotFoundError(f"Threat {threat_id} not found")
            return dict(threat)

    def list(self, status: Optional[str] = None, severity: Optional[str] = None) -> list[dict]:
        """Incidents newest first, optionally filtered."""
        with self._lock:
            threats = [dict(t) for t in self._threats.values()]
        if status:
            threats = [t for t in threats if t["status"] == status]
        if severity:
            threats = [t for t in threats if t["severity"] == severity]
        threats.sort(key=lambda t: parse_iso(t["timestamp"]), reverse=True)
        return threats

    def update_status(self, threat_id: str, status: str) -> dict:
        with self._lock:
            threat = self._threats.get(threat_id)
            if threat is None:
                raise NotFoundError(f"Threat {threat_id} not found")
            threat["status"] = status
            return dict(threat)

    def __len__(self) -> int:
        return len(self._threats)

    def seed(self) -> None:
        now = datetime.now(timezone.utc)
        for type_, severity, minutes_ago, status, description, charger_id in [
            ("Unauthorized Access Attempt", "high", 10, "active",
             "Multiple failed login attempts on Charger #002 admin interface.", "charger-002"),
            ("Firmware Tampering Alert", "critical", 30, "active",
             "Checksum mismatch detected in Charger #001 firmware.", "charger-001"),
            ("DDoS Attack", "medium", 60, "resolved",
             "Unusual traffic spike targeting API endpoint, mitigated.", None),
            ("Malware Signature Detected", "high", 180, "active",
             "Known malware signature found in log files of central server.", None),
            ("Physical Tampering Alert", "low", 300, "ignored",
             "Proximity sensor triggered at Charger #003, no further suspicious activity.", "charger-003"),
        ]:
            self.add(
                type=type_,
                severity=severity,
                description=description,
                status=status,
                charger_id=charger_id,
                timestamp=_iso(now - timedelta(minutes=minutes_ago)),
            )


# -----------------------------------------------------------------------
# Charging sessions
# -----------------------------------------------------------------------

CHARGER_LOCATIONS = {
    "CHG-001": "Downtown Mall",
    "CHG-002": "Airport Terminal",
    "CHG-003": "Shopping Center",
    "CHG-004": "Office Complex",
}

SESSION_ACTIONS = ("stop", "pause", "resume")


class SessionStore:
    """Charging sessions and their lifecycle (active -> interrupted/completed)."""

    def __init__(self, seed: Optional[int] = None):
        self._sessions: dict[str, dict] = {}
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def get(self, session_id: str) -> dict:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError(f"Session {session_id} not found")
            return copy.deepcopy(session)

    def list(
        self,
        user_id: Optional[str] = None,
        charger_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[dict]:
        """Sessions by start time, most recent first."""
        with self._lock:
            sessions = [copy.deepcopy(s) for s in self._sessions.values()]
        if user_id:
            sessions = [s for s in sessions if s["user_id"] == user_id]
        if charger_id:
            sessions = [s for s in sessions if s["charger_id"] == charger_id]
        if status:
            sessions = [s for s in sessions if s["status"] == status]
        sessions.sort(key=lambda s: parse_iso(s["start_time"]), reverse=True)
        return sessions

    def start(
        self,
        user_id: str,
        charger_id: str,
        vehicle_id: str,
        payment_method: str,
        max_power: Optional[float] = None,
    ) -> dict:
        """Open an active session; raises ChargerBusyError if the charger is in use."""
        with self._lock:
            for s in self._sessions.values():
                if s["charger_id"] == charger_id and s["status"] == "active":
                    raise ChargerBusyError("Charger is currently in use")

            stamp = int(time.time() * 1000)
            while f"SESSION-{stamp}" in self._sessions:
                stamp += 1
            session = {
                "id": f"SESSION-{stamp}",
                "user_id": user_id,
                "charger_id": charger_id,
                "vehicle_id": vehicle_id,
                "start_time": _now_iso(),
                "end_time": None,
                "status": "active",
                "energy_delivered": 0.0,
                "cost": 0.0,
                "security_level": "secure",
                "threat_score": int(self._rng.integers(0, 20)),
                "location": CHARGER_LOCATIONS.get(charger_id, "Unknown Location"),
                "payment_method": payment_method,
                "session_data": {
                    "max_power": max_power or 50,
                    "avg_power": 0,
                    "peak_current": 0,
                    "voltage": 400,
                    "temperature": 25,
                    "efficiency": 0.95,
                },
            }
            self._sessions[session["id"]] = session
            logger.info("Session %s started on %s", session["id"], charger_id)
            return copy.deepcopy(session)

    def apply_action(self, session_id: str, action: str, price_per_kwh: float = 0.40) -> dict:
        if action not in SESSION_ACTIONS:
            raise InvalidActionError(f"Invalid action: {action!r}")

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError(f"Session {session_id} not found")

            if action == "stop":
                session["status"] = "completed"
                session["end_time"] = _now_iso()
                session["cost"] = round(session["energy_delivered"] * price_per_kwh, 2)
            elif action == "pause":
                session["status"] = "interrupted"
            elif action == "resume":
                if session["status"] == "interrupted":
                    session["status"] = "active"

            logger.info("Session %s: %s -> %s", session_id, action, session["status"])
            return copy.deepcopy(session)

    def update_security(self, session_id: str, threat_score: int, security_level: str) -> dict:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError(f"Session {session_id} not found")
            session["threat_score"] = threat_score
            session["security_level"] = security_level
            return copy.deepcopy(session)

    def __len__(self) -> int:
        return len(self._sessions)

    def seed(self) -> None:
        with self._lock:
            self._sessions["SESSION-001"] = {
                "id": "SESSION-001",
                "user_id": "user-1",
                "charger_id": "CHG-001",
                "vehicle_id": "VEHICLE-001",
                "start_time": "2024-01-15T14:30:00Z",
                "end_time": "2024-01-15T16:15:00Z",
                "status": "completed",
                "energy_delivered": 45.2,
                "cost": 18.08,
                "security_level": "secure",
                "threat_score": 5,
                "location": "Downtown Mall",
                "payment_method": "credit_card",
                "session_data": {
                    "max_power": 50, "avg_power": 42.5, "peak_current": 125,
                    "voltage": 400, "temperature": 35, "efficiency": 0.92,
                },
            }
            self._sessions["SESSION-002"] = {
                "id": "SESSION-002",
                "user_id": "user-1",
                "charger_id": "CHG-002",
                "vehicle_id": "VEHICLE-001",
                "start_time": "2024-01-16T09:15:00Z",
                "end_time": None,
                "status": "active",
                "energy_delivered": 12.8,
                "cost": 5.12,
                "security_level": "warning",
                "threat_score": 35,
                "location": "Airport Terminal",
                "payment_method": "mobile_app",
                "session_data": {
                    "max_power": 75, "avg_power": 68.2, "peak_current": 180,
                    "voltage": 400, "temperature": 42, "efficiency": 0.89,
                },
            }


# -----------------------------------------------------------------------
# Prediction log
# -----------------------------------------------------------------------

class PredictionLog:
    """
    Bounded log of recent predictions, newest last.

    ``list`` pages through the retained window only.  ``stats`` reports
    lifetime totals, so its counts keep adding up after old entries roll off.
    """

    def __init__(self, maxlen: int = 1000):
        self._entries: deque[dict] = deque(maxlen=maxlen)
        self._ids = itertools.count(1)
        self._total = 0
        self._detected = 0
        self._latency_sum_ms = 0.0
        self._severity_counts: Counter = Counter()
        self._type_counts: Counter = Counter()
        self._lock = threading.Lock()

    def append(
        self,
        threat_probability: float,
        threat_type: str,
        severity: str,
        threat_detected: bool,
        latency_ms: float,
        model_version: str,
        source: str = "api",
        charger_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> dict:
        with self._lock:
            entry = {
                "id": next(self._ids),
                "charger_id": charger_id,
                "session_id": session_id,
                "source": source,
                "threat_probability": threat_probability,
                "threat_type": threat_type,
                "severity": severity,
                "threat_detected": threat_detected,
                "latency_ms": latency_ms,
                "model_version": model_version,
                "timestamp": _now_iso(),
            }
            self._entries.append(entry)
            self._total += 1
            self._detected += int(threat_detected)
            self._latency_sum_ms += latency_ms
            self._severity_counts[severity] += 1
            self._type_counts[threat_type] += 1
            return dict(entry)

    def list(self, limit: int = 50, offset: int = 0) -> list[dict]:
        """Newest first."""
        with self._lock:
            newest_first = list(reversed(self._entries))
        return [dict(e) for e in newest_first[offset:offset + limit]]

    def stats(self) -> dict:
        with self._lock:
            total = self._total
            return {
                "total_predictions": total,
                "retained": len(self._entries),
                "threats_detected": self._detected,
                "avg_latency_ms": round(self._latency_sum_ms / total, 3) if total else 0.0,
                "severity_distribution": dict(self._severity_counts),
                "threat_type_distribution": dict(self._type_counts),
            }

    def __len__(self) -> int:
        return len(self._entries)
