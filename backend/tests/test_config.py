"""Tests for runtime settings and endpoint config loading."""
from pathlib import Path

import pytest
import yaml

from app.config import DEFAULT_CORS_ORIGINS, Settings, load_endpoints


def _write_yaml(path: Path, content) -> Path:
    path.write_text(yaml.safe_dump(content, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return path


def test_bundled_endpoint_config(endpoints_yaml_path):
    endpoints = load_endpoints(endpoints_yaml_path)

    assert [endpoint.name for endpoint in endpoints] == [
        "Logistic Regression",
        "FinBERT",
        "o4-mini",
        "GPT-4.1-mini",
        "GPT-4.1-mini (Fine-Tuned)",
    ]
    assert [endpoint.supports_confidence for endpoint in endpoints] == [True, True, False, False, False]
    assert all(endpoint.url.startswith("https://") for endpoint in endpoints)


def test_supports_confidence_defaults_to_false(tmp_path):
    yaml_path = _write_yaml(
        tmp_path / "endpoints.yaml",
        {"endpoints": [{"name": "local", "url": "http://localhost:9000/", "supports_confidence": "yes"},
                       {"name": "other", "url": "http://localhost:9001/"}]},
    )

    endpoints = load_endpoints(yaml_path)

    assert endpoints[0].supports_confidence is True
    assert endpoints[1].supports_confidence is False


@pytest.mark.parametrize(
    "content",
    [
        {"endpoints": "not-a-list"},
        {"other": []},
        {"endpoints": ["just-a-string"]},
        {"endpoints": [{"name": "missing url"}]},
    ],
)
def test_invalid_endpoint_config(tmp_path, content):
    yaml_path = _write_yaml(tmp_path / "endpoints.yaml", content)

    with pytest.raises(ValueError):
        load_endpoints(yaml_path)


def test_unparseable_yaml(tmp_path):
    yaml_path = tmp_path / "endpoints.yaml"
    yaml_path.write_text("endpoints: [unclosed", encoding="utf-8")

    with pytest.raises(ValueError):
        load_endpoints(yaml_path)


def test_missing_endpoint_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_endpoints(tmp_path / "missing.yaml")


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("PREDICTIONS_CSV_PATH", str(tmp_path / "preds.csv"))
    monkeypatch.setenv("SENTIMENT_ENDPOINTS_FILE", str(tmp_path / "endpoints.yaml"))
    monkeypatch.setenv("SENTIMENT_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.example, http://b.example")

    settings = Settings.from_env()

    assert settings.predictions_path == tmp_path / "preds.csv"
    assert settings.endpoints_file == tmp_path / "endpoints.yaml"
    assert settings.sentiment_timeout == 2.5
    assert settings.cors_origins == ["http://a.example", "http://b.example"]


def test_settings_defaults(monkeypatch):
    for name in ("PREDICTIONS_CSV_PATH", "SENTIMENT_ENDPOINTS_FILE", "CORS_ALLOW_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SENTIMENT_TIMEOUT_SECONDS", "soon")

    settings = Settings.from_env()

    assert settings.predictions_path.name == "sample_preds.csv"
    assert settings.sentiment_timeout == 15.0
    assert settings.cors_origins == list(DEFAULT_CORS_ORIGINS)
