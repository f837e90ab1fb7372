"""
FastAPI Application — ChargeGuard EV Charging Security Backend.

Serves the REST API behind the security dashboard: threat detection,
incidents, chargers, charging sessions, analytics and monitoring.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chargeguard.api.models import HealthResponse
from chargeguard.api.store import ChargerStore, PredictionLog, SessionStore, ThreatStore
from chargeguard.api.threat_service import ThreatService
from chargeguard.ml.threat.synthetic import SyntheticTelemetryGenerator
from chargeguard.ml.threat.threat_scorer import ThreatScorer
from chargeguard.utils.config_loader import Config
from chargeguard.utils.logging_config import LogConfig
from chargeguard.utils.metrics import PerformanceMetrics

logger = logging.getLogger(__name__)

# Global app state (accessed by route modules through chargeguard.api.deps)
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load configuration and build services on startup."""
    from dotenv import load_dotenv
    load_dotenv()

    t0 = time.perf_counter()
    config = Config().load_all()

    logging.basicConfig(
        level=getattr(logging, config.api.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    LogConfig.setup(log_level=config.api.log_level, enable_json=config.api.log_json)
    app_state["config"] = config

    scorer = ThreatScorer.from_config(config.scoring)
    logger.info(
        "Threat scorer %s ready (risk lookup: %s)",
        scorer.model_version, scorer.risk_lookup.name,
    )

    chargers = ChargerStore()
    threats = ThreatStore()
    sessions = SessionStore(seed=config.scoring.random_seed)
    if config.api.seed_mock_data:
        chargers.seed()
        threats.seed()
        sessions.seed()
        logger.info(
            "Seeded %d chargers, %d threats, %d sessions",
            len(chargers), len(threats), len(sessions),
        )

    predictions = PredictionLog(maxlen=config.api.prediction_log_size)
    metrics = PerformanceMetrics()

    app_state["chargers"] = chargers
    app_state["threats"] = threats
    app_state["sessions"] = sessions
    app_state["predictions"] = predictions
    app_state["metrics"] = metrics
    app_state["threat_service"] = ThreatService(
        scorer,
        threats,
        predictions,
        metrics=metrics,
        threshold=config.api.threat_detected_threshold,
        generator=SyntheticTelemetryGenerator(seed=config.scoring.random_seed),
    )

    elapsed = time.perf_counter() - t0
    logger.info("Backend ready in %.2fs", elapsed)

    yield

    logger.info("Scoring latency: %s", metrics.get_stats("scoring_ms"))
    app_state.clear()
    logger.info("Backend shut down")


app = FastAPI(
    title="ChargeGuard API",
    description="Security backend for EV charging infrastructure",
    version="1.2.3",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config().load_all().api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
from chargeguard.api.routes.analytics import router as analytics_router
from chargeguard.api.routes.chargers import router as chargers_router
from chargeguard.api.routes.monitoring import router as monitoring_router
from chargeguard.api.routes.sessions import router as sessions_router
from chargeguard.api.routes.threat_detection import router as threat_detection_router
from chargeguard.api.routes.threats import router as threats_router

app.include_router(threat_detection_router)
app.include_router(threats_router)
app.include_router(chargers_router)
app.include_router(sessions_router)
app.include_router(analytics_router)
app.include_router(monitoring_router)


@app.get("/api/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    service = app_state.get("threat_service")
    return HealthResponse(
        status="ok",
        model_version=service.model_version if service else "",
        chargers=len(app_state["chargers"]) if "chargers" in app_state else 0,
        threats=len(app_state["threats"]) if "threats" in app_state else 0,
        sessions=len(app_state["sessions"]) if "sessions" in app_state else 0,
    )
