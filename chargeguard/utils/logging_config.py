"""
Structured logging configuration for ChargeGuard.

Scoring decisions, incidents and session security checks each log under a
component name.  Records carry the charger and session they concern, so
the console line and the JSONL audit files can be filtered per charger.
"""

import sys
from pathlib import Path

from loguru import logger


class LogConfig:
    """Centralized logging configuration."""

    LOG_DIR = Path("data/logs")
    LOG_FORMAT = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[component]}</cyan> "
        "<magenta>{extra[charger_id]}</magenta>/<magenta>{extra[session_id]}</magenta> | "
        "<level>{message}</level>"
    )
    COMPONENTS = ("ml_predictions", "alerts", "sessions")
    # Context every record carries, so LOG_FORMAT never misses a key
    DEFAULT_EXTRA = {"component": "app", "charger_id": "-", "session_id": "-"}

    @classmethod
    def setup(cls, log_level: str = "INFO", enable_json: bool = False):
        """
        Set up logging for the entire application.

        Args:
            log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            enable_json: Whether to also write one JSONL audit file per
                component under LOG_DIR
        """
        logger.remove()
        logger.configure(extra=dict(cls.DEFAULT_EXTRA))

        logger.add(
            sys.stderr,
            format=cls.LOG_FORMAT,
            level=log_level,
            colorize=True,
        )

        if enable_json:
            cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

            for component in cls.COMPONENTS:
                logger.add(
                    cls.LOG_DIR / f"{component}.jsonl",
                    format="{message}",
                    level="DEBUG",
                    rotation="1 day",
                    retention="30 days",
                    compression="zip",
                    serialize=True,  # JSON format
                    filter=lambda record, comp=component: record["extra"].get("component") == comp,
                )

        logger.debug("Logging initialized at level {}", log_level)


def get_logger(component: str, charger_id: str = None, session_id: str = None):
    """
    Get a logger for a ChargeGuard component.

    Args:
        component: One of LogConfig.COMPONENTS
        charger_id: Charger the records concern, if any
        session_id: Charging session the records concern, if any

    Returns:
        Logger bound to the component and any charger/session context

    Raises:
        ValueError: For a component with no audit log

    Example:
        >>> from chargeguard.utils.logging_config import get_logger
        >>> log = get_logger("alerts", charger_id="charger-001")
        >>> log.warning("Threat detected: {}", "Firmware Tampering")
    """
    if component not in LogConfig.COMPONENTS:
        raise ValueError(
            f"Unknown log component {component!r}; expected one of {LogConfig.COMPONENTS}"
        )
    context = {"component": component}
    if charger_id is not None:
        context["charger_id"] = charger_id
    if session_id is not None:
        context["session_id"] = session_id
    return logger.bind(**context)
