"""Holds the currently loaded predictions dataset and its run catalog."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Optional, Tuple

from app.analyzers.run_catalog import RunCatalog
from app.parsers.predictions_parser import PredictionsCSVParser, RawObservation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastDataset:
    source: str
    rows: Tuple[RawObservation, ...]
    catalog: RunCatalog
    loaded_at: datetime


class ForecastStore:
    """Swap-in-place holder for the dataset.

    A reload builds a complete new dataset before replacing the old one, so
    readers never see a partial catalog. A failed load keeps the previous
    dataset and remembers the error; the store stays empty only when nothing
    has loaded yet.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        # Serialises parsing so concurrent first requests load the file once.
        self._load_lock = Lock()
        self._dataset: Optional[ForecastDataset] = None
        self._error: Optional[str] = None
        self._attempted = False

    @property
    def dataset(self) -> Optional[ForecastDataset]:
        with self._lock:
            return self._dataset

    @property
    def error(self) -> Optional[str]:
        with self._lock:
            return self._error

    def _swap(self, parser: PredictionsCSVParser) -> ForecastDataset:
        # Caller holds self._load_lock.
        with self._lock:
            self._attempted = True
        try:
            rows = tuple(parser.parse_observations())
            catalog = RunCatalog.build(rows)
        except (FileNotFoundError, ValueError) as exc:
            with self._lock:
                self._error = str(exc)
                kept = self._dataset
            if kept is None:
                logger.error("Predictions dataset could not be loaded from %s: %s", parser.source, exc)
            else:
                logger.error(
                    "Predictions dataset could not be loaded from %s, keeping %s: %s",
                    parser.source,
                    kept.source,
                    exc,
                )
            raise

        dataset = ForecastDataset(
            source=parser.source,
            rows=rows,
            catalog=catalog,
            loaded_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._dataset = dataset
            self._error = None
        logger.info("Loaded %d prediction rows from %s", len(rows), parser.source)
        return dataset

    def _replace(self, parser: PredictionsCSVParser) -> ForecastDataset:
        with self._load_lock:
            return self._swap(parser)

    def ensure_loaded(self, csv_path: Path | str) -> Optional[ForecastDataset]:
        """Load ``csv_path`` on first use; later calls return the current dataset."""
        with self._load_lock:
            with self._lock:
                if self._dataset is not None or self._attempted:
                    return self._dataset
            try:
                return self._swap(PredictionsCSVParser(csv_path))
            except (FileNotFoundError, ValueError):
                return None

    def load_path(self, csv_path: Path | str) -> ForecastDataset:
        return self._replace(PredictionsCSVParser(csv_path))

    def load_text(self, text: str, source: str = "<upload>") -> ForecastDataset:
        return self._replace(PredictionsCSVParser(text=text, source_name=source))
