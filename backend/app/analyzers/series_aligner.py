"""Align actual and predicted series of a run onto a shared date axis."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from app.parsers.predictions_parser import RawObservation
from app.parsers.run_id_parser import RunConfig, RunIdDecodeError, decode_run_id

logger = logging.getLogger(__name__)

# Missing marker: no observation at that date. Never a real zero.
MISSING = None

ACTUAL_LABEL = "Test Actual"
WITH_SENTIMENT_LABEL = "Test Predicted (with sentiment)"
WITHOUT_SENTIMENT_LABEL = "Test Predicted (no sentiment)"


class SentimentInclusion(str, Enum):
    WITH = "with"
    WITHOUT = "without"
    BOTH = "both"

    @property
    def variants(self) -> Tuple[bool, ...]:
        if self is SentimentInclusion.WITH:
            return (True,)
        if self is SentimentInclusion.WITHOUT:
            return (False,)
        return (True, False)


@dataclass(frozen=True)
class AlignedSeries:
    """Chart-ready dates plus value series aligned index-for-index."""

    dates: Tuple[str, ...]
    series: Mapping[str, Tuple[Optional[float], ...]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dates": list(self.dates),
            "series": [
                {"label": label, "data": list(values)} for label, values in self.series.items()
            ],
        }


def _date_sort_key(value: str) -> Tuple[int, Any, str]:
    try:
        timestamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return (1, 0, value)
    if pd.isna(timestamp):
        return (1, 0, value)
    if timestamp.tzinfo is not None:
        # Compare aware and naive dates as naive UTC.
        timestamp = timestamp.tz_convert(None)
    return (0, timestamp, value)


def sort_dates(dates: Iterable[str]) -> List[str]:
    """Unique dates in calendar order; unparseable dates go last."""
    return sorted(set(dates), key=_date_sort_key)


def filter_rows(
    rows: Iterable[RawObservation],
    config: RunConfig,
    decoder: Callable[[str], RunConfig] = decode_run_id,
) -> List[RawObservation]:
    """Rows whose identifier decodes to exactly ``config``."""

    selected: List[RawObservation] = []
    for row in rows:
        try:
            decoded = decoder(row.run_id)
        except RunIdDecodeError:
            continue
        if decoded == config:
            selected.append(row)
    return selected


def _build_series(
    rows: Sequence[RawObservation], key: str, dates: Sequence[str]
) -> Tuple[Optional[float], ...]:
    by_date: Dict[str, Optional[float]] = {}
    for row in rows:
        by_date[row.date] = getattr(row, key)
    return tuple(
        MISSING if by_date.get(date) is None else by_date[date]
        for date in dates
    )


def align_series(
    rows: Sequence[RawObservation],
    config: RunConfig,
    include: SentimentInclusion = SentimentInclusion.BOTH,
    decoder: Optional[Callable[[str], RunConfig]] = None,
) -> AlignedSeries:
    """Select the rows of ``config`` and align them for charting.

    ``config`` is matched on every field with ``use_sentiment`` taken from
    each requested variant, so the sentiment and baseline runs sharing the
    hyperparameters end up side by side.

    Pass the catalog's ``config_for`` as ``decoder`` to reuse its decoded
    identifiers; otherwise identifiers are decoded once per call.
    """

    include = SentimentInclusion(include)
    if decoder is None:
        decoder = lru_cache(maxsize=None)(decode_run_id)
    with_rows: List[RawObservation] = []
    without_rows: List[RawObservation] = []
    for use_sentiment in include.variants:
        subset = filter_rows(rows, replace(config, use_sentiment=use_sentiment), decoder)
        if use_sentiment:
            with_rows = subset
        else:
            without_rows = subset

    dates = tuple(sort_dates(row.date for row in [*with_rows, *without_rows]))
    actual_rows = with_rows if with_rows else without_rows

    series: Dict[str, Tuple[Optional[float], ...]] = {
        ACTUAL_LABEL: _build_series(actual_rows, "actual", dates),
    }
    if with_rows:
        series[WITH_SENTIMENT_LABEL] = _build_series(with_rows, "predicted", dates)
    if without_rows:
        series[WITHOUT_SENTIMENT_LABEL] = _build_series(without_rows, "predicted", dates)

    logger.debug(
        "Aligned %s: %d dates, %d with-sentiment rows, %d baseline rows",
        config.model_name,
        len(dates),
        len(with_rows),
        len(without_rows),
    )
    return AlignedSeries(dates=dates, series=series)
