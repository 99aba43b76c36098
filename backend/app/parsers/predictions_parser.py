"""Utilities for loading forecasting predictions exported by the training runs."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd


LOGGER = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("run_id", "date", "actual", "predicted")


@dataclass(frozen=True)
class RawObservation:
    """One (run, date) row of the predictions file."""

    run_id: str
    date: str
    actual: Optional[float]
    predicted: Optional[float]


def truncate_date(value: Any) -> str:
    """Drop a trailing time-of-day component, keeping the calendar date."""

    text = str(value).strip()
    if not text:
        return ""
    return text.split()[0].split("T")[0]


def _to_optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


class PredictionsCSVParser:
    """Parse the ``preds.csv`` file with one row per run and date."""

    def __init__(
        self,
        csv_path: Optional[Path | str] = None,
        *,
        text: Optional[str] = None,
        source_name: Optional[str] = None,
    ) -> None:
        if csv_path is None and text is None:
            raise ValueError("Either a CSV path or CSV text is required.")
        self.csv_path = Path(csv_path) if csv_path is not None else None
        self._text = text
        self._source_name = source_name
        self._dataframe = None

    @property
    def source(self) -> str:
        if self._source_name:
            return self._source_name
        return str(self.csv_path) if self.csv_path is not None else "<upload>"

    def _load_dataframe(self):
        """Load the predictions into a cached dataframe."""

        if self._dataframe is not None:
            return self._dataframe

        if self.csv_path is not None and not self.csv_path.exists():
            raise FileNotFoundError(f"Predictions CSV not found at: {self.csv_path}")

        handle = StringIO(self._text) if self._text is not None else self.csv_path
        try:
            dataframe = pd.read_csv(handle, skip_blank_lines=True)
        except pd.errors.EmptyDataError as exc:
            raise ValueError(f"Predictions CSV is empty: {self.source}") from exc
        except Exception as exc:  # pragma: no cover - pandas specific errors
            raise ValueError(f"Unable to read predictions CSV: {self.source}") from exc

        dataframe.columns = [str(column).strip() for column in dataframe.columns]
        missing = [column for column in REQUIRED_COLUMNS if column not in dataframe.columns]
        if missing:
            raise ValueError(f"Predictions CSV is missing required columns: {', '.join(missing)}")

        if dataframe.empty:
            raise ValueError("Predictions CSV has no rows and cannot be parsed.")

        self._dataframe = dataframe
        return self._dataframe

    def parse_observations(self) -> List[RawObservation]:
        """Return every usable row as a :class:`RawObservation`."""

        dataframe = self._load_dataframe()
        actual = pd.to_numeric(dataframe["actual"], errors="coerce")
        predicted = pd.to_numeric(dataframe["predicted"], errors="coerce")

        observations: List[RawObservation] = []
        skipped = 0
        for index, run_id, raw_date in zip(dataframe.index, dataframe["run_id"], dataframe["date"]):
            if pd.isna(run_id) or pd.isna(raw_date):
                skipped += 1
                continue
            run_id = str(run_id).strip()
            date = truncate_date(raw_date)
            if not run_id or not date:
                skipped += 1
                continue
            observations.append(
                RawObservation(
                    run_id=run_id,
                    date=date,
                    actual=_to_optional_float(actual[index]),
                    predicted=_to_optional_float(predicted[index]),
                )
            )

        if skipped:
            LOGGER.debug("Skipped %d rows without run_id or date in %s", skipped, self.source)

        return observations
