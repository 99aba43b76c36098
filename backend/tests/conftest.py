"""Pytest configuration and fixtures."""
import sys
from pathlib import Path

import pytest

# Add backend to path
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

REPO_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def sample_csv_path():
    """Path to sample_preds.csv."""
    return REPO_ROOT / "examples" / "sample_preds.csv"


@pytest.fixture
def endpoints_yaml_path():
    """Path to the bundled sentiment endpoint config."""
    return REPO_ROOT / "config" / "sentiment_endpoints.yaml"


@pytest.fixture
def sample_rows(sample_csv_path):
    """Observations parsed from the sample predictions file."""
    from app.parsers.predictions_parser import PredictionsCSVParser

    return PredictionsCSVParser(sample_csv_path).parse_observations()


@pytest.fixture
def sample_catalog(sample_rows):
    """Run catalog built from the sample predictions file."""
    from app.analyzers.run_catalog import RunCatalog

    return RunCatalog.build(sample_rows)
