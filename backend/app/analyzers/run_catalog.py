"""Index forecasting runs by model and hyperparameter."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from app.parsers.predictions_parser import RawObservation
from app.parsers.run_id_parser import (
    HYPERPARAMETER_FIELDS,
    RunConfig,
    RunIdDecodeError,
    decode_run_id,
)

logger = logging.getLogger(__name__)

MODEL_LABELS: Dict[str, str] = {
    "lstm": "LSTM",
    "stacked_lstm": "Stacked LSTM",
    "gru": "GRU",
    "lstm_gru": "LSTM+GRU",
    "transformer": "Transformer",
    "cnn_lstm": "CNN+LSTM",
    "bi_lstm": "BiLSTM",
    "bilstm_attention": "BiLSTM+Attention",
    "lstm_attention": "LSTM+Attention",
}


def model_label(model_name: str) -> str:
    return MODEL_LABELS.get(model_name, model_name)


@dataclass(frozen=True)
class ModelCatalogEntry:
    """Available hyperparameter values and runs of a single model."""

    model_name: str
    options: Mapping[str, Tuple[str, ...]]
    configs: Tuple[RunConfig, ...]

    @property
    def label(self) -> str:
        return model_label(self.model_name)

    def values(self, field_name: str) -> Tuple[str, ...]:
        return self.options.get(field_name, ())


@dataclass(frozen=True)
class RunCatalog:
    """All runs of a predictions dataset grouped by model name.

    Built once per dataset load with :meth:`build`; a changed dataset means a
    new catalog.
    """

    entries: Mapping[str, ModelCatalogEntry]
    decoded: Mapping[str, RunConfig] = field(default_factory=dict)
    skipped_run_ids: Tuple[str, ...] = ()

    @classmethod
    def build(cls, rows: Iterable[RawObservation]) -> "RunCatalog":
        decoded: Dict[str, RunConfig] = {}
        skipped: Dict[str, None] = {}
        grouped: Dict[str, Dict[RunConfig, None]] = {}

        for row in rows:
            run_id = row.run_id
            if run_id in skipped:
                continue
            config = decoded.get(run_id)
            if config is None:
                try:
                    config = decode_run_id(run_id)
                except RunIdDecodeError as exc:
                    logger.warning("Skipping rows of malformed run identifier: %s", exc)
                    skipped[run_id] = None
                    continue
                decoded[run_id] = config
            grouped.setdefault(config.model_name, {}).setdefault(config, None)

        entries: Dict[str, ModelCatalogEntry] = {}
        for model_name, configs in grouped.items():
            ordered = tuple(configs)
            options = {
                field_name: tuple(dict.fromkeys(getattr(config, field_name) for config in ordered))
                for field_name in HYPERPARAMETER_FIELDS
            }
            entries[model_name] = ModelCatalogEntry(
                model_name=model_name,
                options=options,
                configs=ordered,
            )

        logger.info(
            "Run catalog built: %d models, %d run identifiers, %d skipped",
            len(entries),
            len(decoded),
            len(skipped),
        )
        return cls(entries=entries, decoded=decoded, skipped_run_ids=tuple(skipped))

    def __contains__(self, model_name: object) -> bool:
        return model_name in self.entries

    def __iter__(self) -> Iterator[ModelCatalogEntry]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    def model_names(self) -> List[str]:
        return list(self.entries)

    def get(self, model_name: str) -> Optional[ModelCatalogEntry]:
        return self.entries.get(model_name)

    def config_for(self, run_id: str) -> RunConfig:
        """Return the decoded config of ``run_id``.

        Raises :class:`RunIdDecodeError` for identifiers skipped at build time.
        """

        config = self.decoded.get(run_id)
        if config is None:
            return decode_run_id(run_id)
        return config
