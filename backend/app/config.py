"""Runtime settings read from the environment and the endpoint YAML file."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional

import yaml

from app.analyzers.sentiment_consensus import DEFAULT_TIMEOUT_SECONDS, SentimentEndpoint

logger = logging.getLogger(__name__)

_REPO_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_PREDICTIONS_PATH = _REPO_ROOT / "examples" / "sample_preds.csv"
DEFAULT_ENDPOINTS_FILE = _REPO_ROOT / "config" / "sentiment_endpoints.yaml"
DEFAULT_CORS_ORIGINS = ("http://localhost:5173",)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def load_endpoints(path: Path | str) -> List[SentimentEndpoint]:
    """Read the sentiment endpoint list from ``path``."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sentiment endpoint config not found at: {path}")

    with path.open("r", encoding="utf-8") as yaml_file:
        try:
            raw_config = yaml.safe_load(yaml_file) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Unable to parse YAML file: {path}") from exc

    entries = raw_config.get("endpoints") if isinstance(raw_config, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"{path} must contain an 'endpoints' list.")

    endpoints: List[SentimentEndpoint] = []
    for position, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise ValueError(f"Endpoint #{position} in {path} must be a mapping.")
        name = str(entry.get("name") or "").strip()
        url = str(entry.get("url") or "").strip()
        if not name or not url:
            raise ValueError(f"Endpoint #{position} in {path} needs both 'name' and 'url'.")
        endpoints.append(
            SentimentEndpoint(
                name=name,
                url=url,
                supports_confidence=_as_bool(entry.get("supports_confidence", False)),
            )
        )
    return endpoints


@dataclass
class Settings:
    predictions_path: Path = DEFAULT_PREDICTIONS_PATH
    endpoints_file: Path = DEFAULT_ENDPOINTS_FILE
    sentiment_timeout: float = DEFAULT_TIMEOUT_SECONDS
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    _endpoints: Optional[List[SentimentEndpoint]] = field(default=None, repr=False)

    @classmethod
    def from_env(cls) -> "Settings":
        timeout_raw = os.getenv("SENTIMENT_TIMEOUT_SECONDS")
        timeout = DEFAULT_TIMEOUT_SECONDS
        if timeout_raw:
            try:
                timeout = float(timeout_raw)
            except ValueError:
                logger.warning("Invalid SENTIMENT_TIMEOUT_SECONDS=%s, using %.0fs", timeout_raw, timeout)

        origins_raw = os.getenv("CORS_ALLOW_ORIGINS")
        origins = (
            [origin.strip() for origin in origins_raw.split(",") if origin.strip()]
            if origins_raw
            else list(DEFAULT_CORS_ORIGINS)
        )

        return cls(
            predictions_path=Path(os.getenv("PREDICTIONS_CSV_PATH") or DEFAULT_PREDICTIONS_PATH),
            endpoints_file=Path(os.getenv("SENTIMENT_ENDPOINTS_FILE") or DEFAULT_ENDPOINTS_FILE),
            sentiment_timeout=timeout,
            cors_origins=origins,
        )

    @property
    def endpoints(self) -> List[SentimentEndpoint]:
        if self._endpoints is None:
            self._endpoints = load_endpoints(self.endpoints_file)
        return self._endpoints


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
