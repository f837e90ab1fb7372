"""
Command-line threat scoring for captured session telemetry.

Reads one telemetry sample as JSON (a file path or stdin) and prints the
prediction as camelCase JSON.  Accepts either the flat sample format or the
nested threat-detection request body the API takes.
"""

import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from chargeguard.api.models import ThreatDetectionRequest
from chargeguard.ml.threat.telemetry import InvalidTelemetryError, TelemetrySample
from chargeguard.ml.threat.threat_scorer import ThreatScorer
from chargeguard.utils.config_loader import Config
from chargeguard.utils.logging_config import get_logger

logger = get_logger("ml_predictions")


def load_sample(data: dict) -> TelemetrySample:
    """Parse either a flat sample or a nested API request body."""
    if isinstance(data, dict) and "networkData" in data:
        return ThreatDetectionRequest.model_validate(data).to_sample()
    return TelemetrySample.from_dict(data)


@click.command()
@click.argument('source', type=click.File('r'), default='-')
@click.option(
    '--risk-lookup',
    type=click.Choice(['static', 'random']),
    help='Override the configured behavior/device risk lookup'
)
@click.option(
    '--seed',
    type=int,
    help='Random seed for the random risk lookup'
)
@click.option(
    '--config-dir',
    type=click.Path(file_okay=False),
    help='Directory holding scoring.yaml (default: $CHARGEGUARD_CONFIG_DIR or config/)'
)
@click.option(
    '--explain',
    is_flag=True,
    help='Print the human-readable explanation instead of JSON'
)
def main(source, risk_lookup, seed, config_dir, explain):
    """
    Score one EV charging session telemetry sample.

    Examples:
        # Score a captured sample
        chargeguard-score session.json

        # Pipe a request body, reproducible random risk
        cat request.json | chargeguard-score --risk-lookup random --seed 42
    """
    config = Config(Path(config_dir) if config_dir else None).load_all()
    scoring = config.scoring
    if risk_lookup:
        scoring.risk_lookup = risk_lookup
    if seed is not None:
        scoring.random_seed = seed

    try:
        sample = load_sample(json.load(source))
        prediction = ThreatScorer.from_config(scoring).predict(sample)
    except (json.JSONDecodeError, ValidationError, InvalidTelemetryError) as e:
        click.echo(f"Error: {e}", err=True)
        logger.warning("Rejected telemetry: {}", e)
        sys.exit(1)

    if explain:
        click.echo(prediction.explanation)
    else:
        click.echo(json.dumps(prediction.to_dict(), indent=2))


if __name__ == "__main__":
    main()
