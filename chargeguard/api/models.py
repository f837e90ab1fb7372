"""
Pydantic request/response schemas for the ChargeGuard API.

Attributes are snake_case; JSON bodies use camelCase aliases, matching the
dashboard's wire format.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chargeguard.ml.threat.telemetry import SupplementalSignals, TelemetrySample


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        protected_namespaces=(),
    )


class SeverityEnum(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ThreatStatusEnum(str, Enum):
    ACTIVE = "active"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    IGNORED = "ignored"


class ChargerStatusEnum(str, Enum):
    ONLINE = "online"
    CHARGING = "charging"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"


class SessionStatusEnum(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    ERROR = "error"


class SecurityLevelEnum(str, Enum):
    SECURE = "secure"
    WARNING = "warning"
    THREAT = "threat"


# --- Threat detection ---

class NetworkData(CamelModel):
    packet_sizes: List[float] = Field(default_factory=list)
    connection_frequency: float = Field(..., gt=0)
    protocol_distribution: Dict[str, float] = Field(default_factory=dict)


class OcppMessages(CamelModel):
    message_types: List[str] = Field(default_factory=list)
    timing_patterns: List[float] = Field(default_factory=list)
    payload_sizes: List[float] = Field(default_factory=list)


class UserBehavior(CamelModel):
    session_duration: float = Field(..., ge=0, description="Session duration in ms")
    charging_pattern: str = ""
    device_fingerprint: str = ""


class ThreatDetectionRequest(CamelModel):
    charger_id: str
    network_data: NetworkData
    ocpp_messages: OcppMessages
    user_behavior: UserBehavior
    unusual_activity_score: float = Field(0.0, ge=0)
    login_attempts: int = Field(0, ge=0)
    failed_login_attempts: int = Field(0, ge=0)
    firmware_checksum_mismatch: bool = False
    network_traffic_spike: float = Field(0.0, ge=0)

    def to_sample(self) -> TelemetrySample:
        return TelemetrySample(
            packet_sizes=self.network_data.packet_sizes,
            connection_frequency=self.network_data.connection_frequency,
            protocol_distribution=self.network_data.protocol_distribution,
            message_types=self.ocpp_messages.message_types,
            timing_patterns=self.ocpp_messages.timing_patterns,
            payload_sizes=self.ocpp_messages.payload_sizes,
            session_duration_ms=self.user_behavior.session_duration,
            behavior_tag=self.user_behavior.charging_pattern,
            device_fingerprint=self.user_behavior.device_fingerprint,
            supplemental=SupplementalSignals(
                unusual_activity_score=self.unusual_activity_score,
                login_attempts=self.login_attempts,
                failed_login_attempts=self.failed_login_attempts,
                firmware_checksum_mismatch=self.firmware_checksum_mismatch,
                network_traffic_spike=self.network_traffic_spike,
            ),
        )


class PredictionResponse(CamelModel):
    threat_probability: float
    confidence: float
    threat_type: str
    severity: SeverityEnum
    recommended_action: str
    features: Dict[str, float]
    model_version: str
    supplemental_features: Dict[str, float] = Field(default_factory=dict)
    contributions: Dict[str, float] = Field(default_factory=dict)
    explanation: str = ""


class DetectedThreat(CamelModel):
    type: str
    severity: SeverityEnum
    description: str
    timestamp: str


class DetectionAnalysis(CamelModel):
    processed_data: Dict[str, Any]
    model_confidence: float


class ThreatDetectionResponse(CamelModel):
    threat_detected: bool
    threat: Optional[DetectedThreat] = None
    prediction: PredictionResponse
    analysis: DetectionAnalysis


class ModelInfoResponse(CamelModel):
    message: str
    model_version: str
    risk_lookup: str


# --- Threat incidents ---

class ThreatIncident(CamelModel):
    id: str
    type: str
    severity: SeverityEnum
    timestamp: str
    status: ThreatStatusEnum
    description: str
    charger_id: Optional[str] = None


class ThreatListResponse(CamelModel):
    threats: List[ThreatIncident]


class ThreatStatusUpdate(CamelModel):
    status: ThreatStatusEnum


# --- Chargers ---

class Charger(CamelModel):
    id: str
    name: str
    status: ChargerStatusEnum
    location: str
    last_activity: str
    power_output: float


class ChargerListResponse(CamelModel):
    chargers: List[Charger]


# --- Charging sessions ---

class SessionData(CamelModel):
    max_power: float
    avg_power: float
    peak_current: float
    voltage: float
    temperature: float
    efficiency: float


class ChargingSession(CamelModel):
    id: str
    user_id: str
    charger_id: str
    vehicle_id: str
    start_time: str
    end_time: Optional[str] = None
    status: SessionStatusEnum
    energy_delivered: float
    cost: float
    security_level: SecurityLevelEnum
    threat_score: int
    location: str
    payment_method: str
    session_data: SessionData


class SessionListResponse(CamelModel):
    sessions: List[ChargingSession]
    total: int


class StartSessionRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    charger_id: str = Field(..., min_length=1)
    vehicle_id: str = Field(..., min_length=1)
    payment_method: str = Field(..., min_length=1)
    max_power: Optional[float] = Field(None, gt=0)


class SessionMutationResponse(CamelModel):
    success: bool
    session: ChargingSession


# --- Analytics ---

class ThreatTypeCount(CamelModel):
    type: str
    count: int
    percentage: float


class DailyStat(CamelModel):
    date: str
    threats: int
    blocked: int
    sessions: int
    energy: float


class MLMetrics(CamelModel):
    total_predictions: int
    threats_detected: int
    avg_latency_ms: float
    severity_distribution: Dict[str, int]
    model_version: str


class AnalyticsResponse(CamelModel):
    total_chargers: int
    chargers_by_status: Dict[str, int]
    total_threats: int
    active_threats: int
    threats_by_severity: Dict[str, int]
    threat_types: List[ThreatTypeCount]
    total_sessions: int
    active_sessions: int
    total_energy: float
    revenue: float
    ml_metrics: MLMetrics
    daily_stats: List[DailyStat]


# --- Monitoring ---

class PredictionLogResponse(CamelModel):
    id: int
    charger_id: Optional[str] = None
    session_id: Optional[str] = None
    source: str
    threat_probability: float
    threat_type: str
    severity: SeverityEnum
    threat_detected: bool
    latency_ms: float
    model_version: str
    timestamp: str


class PredictionStatsResponse(CamelModel):
    total_predictions: int
    retained: int
    threats_detected: int
    avg_latency_ms: float
    severity_distribution: Dict[str, int]
    threat_type_distribution: Dict[str, int]


class HealthResponse(CamelModel):
    status: str
    model_version: str
    chargers: int
    threats: int
    sessions: int
