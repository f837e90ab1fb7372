"""
Accessors for the shared services held in ``app_state``.

Route modules call these instead of importing ``app_state`` directly so the
import of chargeguard.api.main happens lazily, after the app is built.
"""

from __future__ import annotations

from chargeguard.api.store import ChargerStore, PredictionLog, SessionStore, ThreatStore
from chargeguard.api.threat_service import ThreatService
from chargeguard.utils.config_loader import APIConfig


def _state() -> dict:
    from chargeguard.api.main import app_state
    return app_state


def get_threat_service() -> ThreatService:
    return _state()["threat_service"]


def get_charger_store() -> ChargerStore:
    return _state()["chargers"]


def get_threat_store() -> ThreatStore:
    return _state()["threats"]


def get_session_store() -> SessionStore:
    return _state()["sessions"]


def get_prediction_log() -> PredictionLog:
    return _state()["predictions"]


def get_api_config() -> APIConfig:
    return _state()["config"].api
