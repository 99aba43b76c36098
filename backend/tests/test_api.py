"""Tests for FastAPI endpoints."""
import pytest
import requests
from fastapi.testclient import TestClient

from app.analyzers.forecast_store import ForecastStore
from app.config import get_settings
from app.main import app


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        return self._payload


@pytest.fixture
def client(monkeypatch, sample_csv_path, endpoints_yaml_path):
    """Create a test client backed by the sample dataset and a fresh store."""
    monkeypatch.setenv("PREDICTIONS_CSV_PATH", str(sample_csv_path))
    monkeypatch.setenv("SENTIMENT_ENDPOINTS_FILE", str(endpoints_yaml_path))
    get_settings.cache_clear()
    monkeypatch.setattr("app.api.endpoints.forecasting.FORECAST_STORE", ForecastStore())
    yield TestClient(app)
    get_settings.cache_clear()


class TestAPI:
    """Test suite for API endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Forecast Sentiment Dashboard API"
        assert "version" in data

    def test_list_models(self, client):
        response = client.get("/api/forecast/models")
        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "success"
        assert data["default_model"] == "lstm"
        assert data["row_count"] == 12
        assert data["skipped_run_ids"] == ["ws20_scalerRobustScaler_lossmse"]

        models = {model["model_name"]: model for model in data["models"]}
        assert list(models) == ["lstm", "gru"]
        assert models["lstm"]["label"] == "LSTM"
        assert models["lstm"]["options"]["scaler"] == ["RobustScaler", "MinMaxScaler"]
        assert models["lstm"]["default_selection"]["epochs"] == "200"
        assert models["gru"]["default_selection"]["window_size"] == "10"
        assert models["lstm"]["run_count"] == 3

    def test_series_with_defaults(self, client):
        response = client.get("/api/forecast/models/lstm/series")
        assert response.status_code == 200
        data = response.json()

        assert data["via_fallback"] is False
        assert data["run_id"] == "ws20_scalerRobustScaler_lossmse_bs32_ep200"
        assert data["dates"] == ["2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05"]
        series = {item["label"]: item["data"] for item in data["series"]}
        assert series["Test Actual"] == [101.5, 102.0, 103.25, None]
        assert series["Test Predicted (no sentiment)"] == [None, 100.4, 101.9, 102.6]

    def test_series_exact_selection(self, client):
        response = client.get(
            "/api/forecast/models/lstm/series",
            params={
                "window_size": "10",
                "scaler": "MinMaxScaler",
                "loss_fn": "mae",
                "batch_size": "64",
                "epochs": "100",
            },
        )
        assert response.status_code == 200
        data = response.json()

        assert data["via_fallback"] is False
        assert data["resolved_config"]["window_size"] == "10"
        assert [item["label"] for item in data["series"]] == [
            "Test Actual",
            "Test Predicted (with sentiment)",
        ]

    def test_series_fallback_is_reported(self, client):
        response = client.get(
            "/api/forecast/models/lstm/series",
            params={"window_size": "10", "include": "without"},
        )
        assert response.status_code == 200
        data = response.json()

        assert data["via_fallback"] is True
        assert data["requested_selection"]["window_size"] == "10"
        assert data["selection"]["window_size"] == "20"
        assert data["include"] == "without"
        assert data["dates"] == ["2024-01-03", "2024-01-04", "2024-01-05"]

    def test_series_unknown_model(self, client):
        response = client.get("/api/forecast/models/transformer/series")
        assert response.status_code == 404

    def test_series_invalid_include(self, client):
        response = client.get("/api/forecast/models/lstm/series", params={"include": "sometimes"})
        assert response.status_code == 422

    def test_dataset_unavailable(self, client, monkeypatch, tmp_path):
        monkeypatch.setenv("PREDICTIONS_CSV_PATH", str(tmp_path / "missing.csv"))
        get_settings.cache_clear()

        models_response = client.get("/api/forecast/models")
        assert models_response.status_code == 200
        assert models_response.json()["status"] == "unavailable"
        assert models_response.json()["models"] == []

        series_response = client.get("/api/forecast/models/lstm/series")
        assert series_response.status_code == 503

        reload_response = client.post("/api/forecast/reload")
        assert reload_response.status_code == 400

    def test_upload_replaces_dataset(self, client):
        csv_text = (
            "run_id,date,actual,predicted\n"
            "ws5_scalerStandardScaler_losshuber_bs16_ep50_transformer,2024-03-01 00:00:00,10,11\n"
            "baseline_ws5_scalerStandardScaler_losshuber_bs16_ep50_transformer,2024-03-02,12,13\n"
        )
        files = [("predictions_csv", ("preds.csv", csv_text.encode("utf-8"), "text/csv"))]

        upload_response = client.post("/api/forecast/upload", files=files)
        assert upload_response.status_code == 200
        data = upload_response.json()
        assert data["source"] == "preds.csv"
        assert [model["model_name"] for model in data["models"]] == ["transformer"]

        series = client.get("/api/forecast/models/transformer/series").json()
        assert series["dates"] == ["2024-03-01", "2024-03-02"]
        assert series["via_fallback"] is False

    def test_upload_invalid_csv(self, client):
        files = [("predictions_csv", ("preds.csv", b"run_id,date\nx,2024-01-01\n", "text/csv"))]

        response = client.post("/api/forecast/upload", files=files)
        assert response.status_code == 400

    def test_rejected_upload_keeps_loaded_dataset(self, client):
        assert client.get("/api/forecast/models").json()["status"] == "success"

        files = [("predictions_csv", ("bad.csv", b"foo,bar\n1,2\n", "text/csv"))]
        upload_response = client.post("/api/forecast/upload", files=files)
        assert upload_response.status_code == 400

        models = client.get("/api/forecast/models").json()
        assert models["status"] == "success"
        assert models["row_count"] == 12
        assert models["last_error"]
        assert [model["model_name"] for model in models["models"]] == ["lstm", "gru"]

        series_response = client.get("/api/forecast/models/lstm/series")
        assert series_response.status_code == 200
        assert series_response.json()["dates"][0] == "2024-01-02"

    def test_upload_missing_file(self, client):
        response = client.post("/api/forecast/upload")
        assert response.status_code == 422

    def test_sentiment_endpoints_and_samples(self, client):
        endpoints = client.get("/api/sentiment/endpoints").json()["endpoints"]
        assert len(endpoints) == 5
        assert endpoints[1]["name"] == "FinBERT"

        samples = client.get("/api/sentiment/samples").json()["samples"]
        assert "Tesla beats Q2 earnings expectations" in samples

    def test_analyze_sentiment(self, client, monkeypatch):
        def fake_post(url, json=None, timeout=None):
            if "oye2e3js2vb6fmvjffuz5m5p6i0ztcne" in url:
                raise requests.exceptions.ConnectionError("unreachable")
            return FakeResponse({"sentiment": "positive", "confidence": 0.91})

        monkeypatch.setattr("app.analyzers.sentiment_consensus.requests.post", fake_post)

        response = client.post("/api/sentiment/analyze", json={"text": "Tesla beats Q2 earnings expectations"})
        assert response.status_code == 200
        data = response.json()

        assert data["overall"] == "Positive"
        assert [item["model"] for item in data["results"]] == [
            "Logistic Regression",
            "FinBERT",
            "o4-mini",
            "GPT-4.1-mini",
            "GPT-4.1-mini (Fine-Tuned)",
        ]
        assert data["results"][0]["confidence"] == "91%"
        assert data["results"][2]["sentiment"] == "Failed"
        assert data["results"][3]["confidence"] is None

    def test_analyze_sentiment_blank_text(self, client):
        response = client.post("/api/sentiment/analyze", json={"text": "   "})
        assert response.status_code == 400

    def test_analyze_sentiment_invalid_payload(self, client):
        response = client.post("/api/sentiment/analyze", json={"body": "missing text"})
        assert response.status_code == 422
