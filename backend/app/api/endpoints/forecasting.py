# -*- coding: utf-8 -*-
"""Forecasting run browser endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.analyzers.config_resolver import default_selection, resolve_config
from app.analyzers.forecast_store import ForecastDataset, ForecastStore
from app.analyzers.run_catalog import model_label
from app.analyzers.series_aligner import SentimentInclusion, align_series
from app.config import get_settings
from app.parsers.run_id_parser import DEFAULT_MODEL_NAME, encode_run_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/forecast", tags=["forecasting"])

FORECAST_STORE = ForecastStore()


async def _current_dataset() -> Optional[ForecastDataset]:
    return await run_in_threadpool(FORECAST_STORE.ensure_loaded, get_settings().predictions_path)


def _dataset_summary(dataset: ForecastDataset) -> Dict[str, Any]:
    catalog = dataset.catalog
    model_names = catalog.model_names()
    if DEFAULT_MODEL_NAME in catalog:
        default_model = DEFAULT_MODEL_NAME
    else:
        default_model = model_names[0] if model_names else None

    return {
        "status": "success",
        "source": dataset.source,
        "loaded_at": dataset.loaded_at.isoformat(),
        "row_count": len(dataset.rows),
        "default_model": default_model,
        "models": [
            {
                "model_name": entry.model_name,
                "label": entry.label,
                "options": {name: list(values) for name, values in entry.options.items()},
                "default_selection": default_selection(entry).to_dict(),
                "run_count": len(entry.configs),
            }
            for entry in catalog
        ],
        "skipped_run_ids": list(catalog.skipped_run_ids),
        "last_error": FORECAST_STORE.error,
    }


@router.get("/models")
async def list_models() -> Dict[str, Any]:
    """Return every model with its selectable hyperparameter values."""

    dataset = await _current_dataset()
    if dataset is None:
        return {"status": "unavailable", "detail": FORECAST_STORE.error, "models": []}
    return _dataset_summary(dataset)


@router.get("/models/{model_name}/series")
async def get_model_series(
    model_name: str,
    window_size: Optional[str] = None,
    scaler: Optional[str] = None,
    loss_fn: Optional[str] = None,
    batch_size: Optional[str] = None,
    epochs: Optional[str] = None,
    include: SentimentInclusion = SentimentInclusion.BOTH,
) -> Dict[str, Any]:
    """Resolve the selection for ``model_name`` and return aligned chart series.

    Fields left out of the query take the model's default values.
    """

    dataset = await _current_dataset()
    if dataset is None:
        raise HTTPException(
            status_code=503,
            detail=FORECAST_STORE.error or "Predictions dataset is not loaded.",
        )

    entry = dataset.catalog.get(model_name)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown model: {model_name}")

    selection = default_selection(entry)
    requested = {
        "window_size": window_size,
        "scaler": scaler,
        "loss_fn": loss_fn,
        "batch_size": batch_size,
        "epochs": epochs,
    }
    for field_name, value in requested.items():
        if value is not None:
            selection.update(field_name, value)
    requested_selection = selection.to_dict()

    resolved = resolve_config(entry.configs, selection, model_name)
    selection.reconcile(resolved.config)

    aligned = await run_in_threadpool(
        align_series,
        dataset.rows,
        resolved.config,
        include,
        dataset.catalog.config_for,
    )

    return {
        "status": "success",
        "model_name": model_name,
        "label": model_label(model_name),
        "include": include.value,
        "requested_selection": requested_selection,
        "selection": selection.to_dict(),
        "resolved_config": resolved.config.to_dict(),
        "run_id": encode_run_id(resolved.config),
        "via_fallback": resolved.via_fallback,
        **aligned.to_dict(),
    }


@router.post("/reload")
async def reload_dataset() -> Dict[str, Any]:
    """Rebuild the catalog from the configured predictions file."""

    path = get_settings().predictions_path
    try:
        dataset = await run_in_threadpool(FORECAST_STORE.load_path, path)
    except (FileNotFoundError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _dataset_summary(dataset)


@router.post("/upload")
async def upload_predictions(predictions_csv: UploadFile = File(...)) -> Dict[str, Any]:
    """Replace the dataset with an uploaded predictions CSV."""

    raw = await predictions_csv.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="Predictions CSV must be UTF-8 encoded.") from exc

    source = predictions_csv.filename or "<upload>"
    try:
        dataset = await run_in_threadpool(FORECAST_STORE.load_text, text, source)
    except (FileNotFoundError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info("Predictions dataset replaced by upload %s", source)
    return _dataset_summary(dataset)
