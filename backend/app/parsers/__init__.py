"""Parser utilities for converting raw forecasting outputs into structured data."""

from .predictions_parser import PredictionsCSVParser, RawObservation
from .run_id_parser import RunConfig, RunIdDecodeError, decode_run_id, encode_run_id

__all__ = [
    "PredictionsCSVParser",
    "RawObservation",
    "RunConfig",
    "RunIdDecodeError",
    "decode_run_id",
    "encode_run_id",
]
