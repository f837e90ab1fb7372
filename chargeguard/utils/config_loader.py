"""
Configuration management for ChargeGuard.
Loads YAML configs with validation and environment variable support.
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_DIR_ENV = "CHARGEGUARD_CONFIG_DIR"


class ScoringConfig(BaseModel):
    """Configuration for the threat scorer."""

    model_version: str = Field("v1.2.3", description="Version tag reported with every prediction")

    # Unmodeled behavior/device risk
    risk_lookup: str = Field("static", pattern="^(static|random)$", description="Risk lookup strategy")
    random_seed: Optional[int] = Field(None, description="Seed for the random risk lookup")
    behavior_default_risk: float = Field(0.0, ge=0, le=1, description="Static risk for unlisted behavior tags")
    device_default_risk: float = Field(0.0, ge=0, le=1, description="Static risk for unlisted fingerprints")

    # Reference lists
    suspicious_behaviors: List[str] = Field(
        ["rapid_disconnect", "unusual_timing", "multiple_attempts"],
        description="Behavior tags scored as suspicious",
    )
    known_bad_fingerprints: List[str] = Field(
        ["suspicious_device_1", "malware_infected"],
        description="Device fingerprints known to be compromised",
    )

    # Session duration window (minutes)
    typical_session_min_minutes: float = Field(30.0, gt=0, description="Shortest unremarkable session")
    typical_session_max_minutes: float = Field(120.0, gt=0, description="Longest unremarkable session")

    # Protocol diversity normalization
    protocol_diversity_max: int = Field(5, ge=1, description="Distinct protocol count treated as fully diverse")

    class Config:
        """Pydantic config."""
        validate_assignment = True
        protected_namespaces = ()

    @field_validator("typical_session_max_minutes")
    @classmethod
    def _max_after_min(cls, v, info):
        lower = info.data.get("typical_session_min_minutes")
        if lower is not None and v <= lower:
            raise ValueError("typical_session_max_minutes must exceed typical_session_min_minutes")
        return v


class APIConfig(BaseModel):
    """Configuration for API server."""

    host: str = Field("0.0.0.0", description="API host")
    port: int = Field(8000, ge=1024, le=65535, description="API port")
    cors_origins: List[str] = Field(
        ["http://localhost:3000", "http://localhost:8000"],
        description="Origins allowed by CORS",
    )

    # Threat detection
    threat_detected_threshold: float = Field(0.5, ge=0, le=1, description="Probability above which a threat is reported")
    prediction_log_size: int = Field(1000, ge=1, description="Predictions kept in the in-memory log")

    # Charging sessions
    price_per_kwh: float = Field(0.40, ge=0, description="Tariff applied when a session stops")
    security_check_enabled: bool = Field(True, description="Score new sessions in the background")
    seed_mock_data: bool = Field(True, description="Populate stores with demo chargers, threats and sessions")

    # Logging
    log_level: str = Field("INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$", description="Log level")
    log_json: bool = Field(False, description="Write per-component JSONL logs")

    class Config:
        """Pydantic config."""
        validate_assignment = True


class Config:
    """Main configuration manager."""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory containing configuration files. Defaults to
                $CHARGEGUARD_CONFIG_DIR, then ``config``.
        """
        if config_dir is None:
            config_dir = Path(os.environ.get(CONFIG_DIR_ENV, "config"))
        self.config_dir = Path(config_dir)
        self.scoring: Optional[ScoringConfig] = None
        self.api: Optional[APIConfig] = None

    def load_all(self) -> "Config":
        """Load all configuration files."""
        self.scoring = self.load_config("scoring.yaml", ScoringConfig)
        self.api = self.load_config("api.yaml", APIConfig)
        return self

    def load_config(self, filename: str, config_class: type[BaseModel]) -> BaseModel:
        """
        Load and validate a configuration file.

        Args:
            filename: Config file name
            config_class: Pydantic model class for validation

        Returns:
            Validated configuration object

        Example:
            >>> config = Config()
            >>> scoring = config.load_config("scoring.yaml", ScoringConfig)
            >>> print(f"Model {scoring.model_version}")
        """
        filepath = self.config_dir / filename

        if not filepath.exists():
            # Return default configuration
            return config_class()

        with open(filepath, 'r') as f:
            config_dict = yaml.safe_load(f)

        if config_dict is None:
            return config_class()

        return config_class(**config_dict)

    def save_config(self, config: BaseModel, filename: str):
        """
        Save configuration to YAML file.

        Args:
            config: Configuration object to save
            filename: Output filename
        """
        filepath = self.config_dir / filename
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w') as f:
            yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)

    def create_default_configs(self):
        """Create default configuration files if they don't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        configs = [
            ("scoring.yaml", ScoringConfig()),
            ("api.yaml", APIConfig()),
        ]

        for filename, config in configs:
            filepath = self.config_dir / filename
            if not filepath.exists():
                self.save_config(config, filename)
