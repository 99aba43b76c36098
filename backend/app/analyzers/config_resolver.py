"""Resolve a (possibly partial) hyperparameter selection to a concrete run."""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Dict, Optional, Sequence

from app.analyzers.run_catalog import ModelCatalogEntry, RunCatalog
from app.parsers.run_id_parser import HYPERPARAMETER_FIELDS, RunConfig

logger = logging.getLogger(__name__)

CANONICAL_DEFAULTS: Dict[str, str] = {
    "window_size": "20",
    "scaler": "RobustScaler",
    "loss_fn": "mse",
    "batch_size": "32",
    "epochs": "200",
}


@dataclass
class Selection:
    """Hyperparameter values a user picked for one model.

    Owned by the caller and updated one field at a time.
    """

    window_size: Optional[str] = None
    scaler: Optional[str] = None
    loss_fn: Optional[str] = None
    batch_size: Optional[str] = None
    epochs: Optional[str] = None

    def update(self, field_name: str, value: Optional[str]) -> None:
        if field_name not in HYPERPARAMETER_FIELDS:
            raise KeyError(f"Unknown hyperparameter: {field_name}")
        setattr(self, field_name, None if value is None else str(value))

    def reconcile(self, config: RunConfig) -> None:
        """Copy the values of the run that was actually resolved."""
        for field_name in HYPERPARAMETER_FIELDS:
            setattr(self, field_name, getattr(config, field_name))

    def matches(self, config: RunConfig) -> bool:
        return all(getattr(self, item.name) == getattr(config, item.name) for item in fields(self))

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


@dataclass(frozen=True)
class ResolvedConfig:
    config: RunConfig
    via_fallback: bool


def resolve_config(
    configs: Sequence[RunConfig],
    selection: Selection,
    model_name: Optional[str] = None,
) -> ResolvedConfig:
    """Return the run matching ``selection`` exactly, else the first run.

    A miss is not an error: stale or partial selections resolve to
    ``configs[0]`` with ``via_fallback`` set so callers can tell a repaired
    selection from an exact one.
    """

    if not configs:
        raise ValueError(f"No runs available for model {model_name or '<unknown>'}.")

    for config in configs:
        if model_name is not None and config.model_name != model_name:
            continue
        if selection.matches(config):
            return ResolvedConfig(config=config, via_fallback=False)

    fallback = configs[0]
    logger.debug(
        "No exact run for model=%s selection=%s, falling back to %s",
        model_name or fallback.model_name,
        selection.to_dict(),
        fallback.hyperparameters(),
    )
    return ResolvedConfig(config=fallback, via_fallback=True)


def default_selection(entry: ModelCatalogEntry) -> Selection:
    """Prefer the canonical values, else the first available value per field.

    Fields are chosen independently, so the combination may not exist as a
    run; :func:`resolve_config` repairs that through its fallback.
    """

    selection = Selection()
    for field_name in HYPERPARAMETER_FIELDS:
        available = entry.values(field_name)
        canonical = CANONICAL_DEFAULTS[field_name]
        if canonical in available:
            selection.update(field_name, canonical)
        elif available:
            selection.update(field_name, available[0])
    return selection


def default_selections(catalog: RunCatalog) -> Dict[str, Selection]:
    return {entry.model_name: default_selection(entry) for entry in catalog}
