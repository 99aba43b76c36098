# -*- coding: utf-8 -*-
"""Fan a text out to the sentiment classifiers and take a majority vote."""

from __future__ import annotations

import asyncio
import logging
import numbers
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


class SentimentLabel(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class SentimentStyle:
    text_class: str
    background_class: str


# Every label has a style; there is no fallthrough entry.
SENTIMENT_STYLES: Dict[SentimentLabel, SentimentStyle] = {
    SentimentLabel.POSITIVE: SentimentStyle(
        "text-green-600 dark:text-green-400",
        "bg-green-50 dark:bg-green-900/20 border-green-200 dark:border-green-800",
    ),
    SentimentLabel.NEGATIVE: SentimentStyle(
        "text-red-600 dark:text-red-400",
        "bg-red-50 dark:bg-red-900/20 border-red-200 dark:border-red-800",
    ),
    SentimentLabel.NEUTRAL: SentimentStyle(
        "text-yellow-600 dark:text-yellow-400",
        "bg-yellow-50 dark:bg-yellow-900/20 border-yellow-200 dark:border-yellow-800",
    ),
    SentimentLabel.FAILED: SentimentStyle(
        "text-red-600 dark:text-red-400",
        "bg-gray-50 dark:bg-gray-800 border-gray-200 dark:border-gray-700",
    ),
    SentimentLabel.UNKNOWN: SentimentStyle(
        "text-gray-600 dark:text-gray-400",
        "bg-gray-50 dark:bg-gray-800 border-gray-200 dark:border-gray-700",
    ),
}

_CLASSIFIER_LABELS = {
    label.value.lower(): label
    for label in (SentimentLabel.POSITIVE, SentimentLabel.NEGATIVE, SentimentLabel.NEUTRAL)
}


class MalformedResponseError(ValueError):
    """Raised when an endpoint answers with an unusable payload."""


@dataclass(frozen=True)
class SentimentEndpoint:
    name: str
    url: str
    supports_confidence: bool = False


@dataclass(frozen=True)
class EndpointResult:
    model: str
    sentiment: SentimentLabel
    confidence: Optional[str] = None
    note: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.sentiment is SentimentLabel.FAILED

    def to_dict(self) -> Dict[str, Any]:
        style = SENTIMENT_STYLES[self.sentiment]
        return {
            "model": self.model,
            "sentiment": self.sentiment.value,
            "confidence": self.confidence,
            "note": self.note,
            "text_class": style.text_class,
            "background_class": style.background_class,
        }


@dataclass(frozen=True)
class ConsensusResult:
    results: List[EndpointResult]
    overall: SentimentLabel

    def to_dict(self) -> Dict[str, Any]:
        style = SENTIMENT_STYLES[self.overall]
        return {
            "overall": self.overall.value,
            "overall_text_class": style.text_class,
            "overall_background_class": style.background_class,
            "results": [result.to_dict() for result in self.results],
        }


def normalize_label(raw: str) -> str:
    """Trim and upper-case the first letter: ``"positive"`` -> ``"Positive"``."""
    text = raw.strip()
    return text[:1].upper() + text[1:]


def parse_label(raw: Any) -> SentimentLabel:
    if not isinstance(raw, str) or not raw.strip():
        raise MalformedResponseError("response has no 'sentiment' text")
    normalized = normalize_label(raw)
    label = _CLASSIFIER_LABELS.get(normalized.lower())
    if label is None:
        raise MalformedResponseError(f"unrecognised sentiment label {normalized!r}")
    return label


def format_confidence(value: Any) -> Optional[str]:
    """Render a confidence in [0, 1] as a rounded percentage, else ``None``."""

    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    value = float(value)
    if not 0.0 <= value <= 1.0:
        return None
    return f"{int(value * 100 + 0.5)}%"


def query_endpoint(
    endpoint: SentimentEndpoint,
    text: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> EndpointResult:
    """Call one classifier; any failure becomes a ``Failed`` result."""

    try:
        response = requests.post(endpoint.url, json={"text": text}, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise MalformedResponseError("response body is not a JSON object")
        label = parse_label(payload.get("sentiment"))
    except requests.exceptions.Timeout:
        logger.warning("%s did not answer within %.1fs", endpoint.name, timeout)
        return EndpointResult(
            model=endpoint.name,
            sentiment=SentimentLabel.FAILED,
            note=f"API call failed: timed out after {timeout:g}s",
        )
    except requests.exceptions.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else "unknown"
        logger.warning("%s answered with HTTP %s", endpoint.name, status)
        return EndpointResult(
            model=endpoint.name,
            sentiment=SentimentLabel.FAILED,
            note=f"API call failed: HTTP error status {status}",
        )
    except requests.exceptions.RequestException as exc:
        logger.warning("%s request failed: %s", endpoint.name, exc)
        return EndpointResult(
            model=endpoint.name,
            sentiment=SentimentLabel.FAILED,
            note=f"API call failed: {exc}",
        )
    except ValueError as exc:
        # Covers invalid JSON bodies as well as MalformedResponseError.
        logger.warning("%s returned an unusable payload: %s", endpoint.name, exc)
        return EndpointResult(
            model=endpoint.name,
            sentiment=SentimentLabel.FAILED,
            note=f"API call failed: {exc}",
        )

    confidence = format_confidence(payload.get("confidence")) if endpoint.supports_confidence else None
    return EndpointResult(model=endpoint.name, sentiment=label, confidence=confidence)


def majority_vote(results: Iterable[EndpointResult]) -> SentimentLabel:
    """Most frequent label among successful results; ties go to the first seen."""

    tally = Counter(result.sentiment for result in results if not result.failed)
    if not tally:
        return SentimentLabel.UNKNOWN
    return tally.most_common(1)[0][0]


async def classify_text(
    text: str,
    endpoints: Sequence[SentimentEndpoint],
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> ConsensusResult:
    """Query every endpoint concurrently and wait for all of them to settle."""

    outcomes = await asyncio.gather(
        *(run_in_threadpool(query_endpoint, endpoint, text, timeout) for endpoint in endpoints),
        return_exceptions=True,
    )

    results: List[EndpointResult] = []
    for endpoint, outcome in zip(endpoints, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            logger.error("Unexpected failure calling %s", endpoint.name, exc_info=outcome)
            outcome = EndpointResult(
                model=endpoint.name,
                sentiment=SentimentLabel.FAILED,
                note=f"API call failed: {outcome}",
            )
        results.append(outcome)

    overall = majority_vote(results)
    logger.info(
        "Sentiment consensus %s from %d/%d endpoints",
        overall.value,
        sum(1 for result in results if not result.failed),
        len(results),
    )
    return ConsensusResult(results=results, overall=overall)
