"""Utilities for decoding experiment run identifiers."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Tuple


BASELINE_MARKER = "baseline"
DEFAULT_MODEL_NAME = "lstm"

# (field, prefix) in the order the tokens appear in an identifier.
HYPERPARAMETER_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("window_size", "ws"),
    ("scaler", "scaler"),
    ("loss_fn", "loss"),
    ("batch_size", "bs"),
    ("epochs", "ep"),
)
HYPERPARAMETER_FIELDS: Tuple[str, ...] = tuple(field for field, _ in HYPERPARAMETER_PREFIXES)


class RunIdDecodeError(ValueError):
    """Raised when a run identifier does not follow the expected grammar."""


@dataclass(frozen=True)
class RunConfig:
    """Configuration of a single experiment run decoded from its identifier."""

    use_sentiment: bool
    window_size: str
    scaler: str
    loss_fn: str
    batch_size: str
    epochs: str
    model_name: str = DEFAULT_MODEL_NAME

    def hyperparameters(self) -> Dict[str, str]:
        return {field: getattr(self, field) for field in HYPERPARAMETER_FIELDS}

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def decode_run_id(run_id: str) -> RunConfig:
    """Decode ``run_id`` into a :class:`RunConfig`.

    ``baseline_ws20_scalerRobustScaler_lossmse_bs32_ep200`` decodes to a run
    without sentiment features for the default ``lstm`` model, while
    ``ws10_scalerMinMax_lossmae_bs64_ep100_gru`` decodes to a sentiment run of
    the ``gru`` model.
    """

    if not isinstance(run_id, str) or not run_id.strip():
        raise RunIdDecodeError(f"Run identifier must be a non-empty string: {run_id!r}")

    tokens = run_id.strip().split("_")
    use_sentiment = True
    offset = 0
    if tokens[0] == BASELINE_MARKER:
        use_sentiment = False
        offset = 1

    positional = tokens[offset:offset + len(HYPERPARAMETER_PREFIXES)]
    if len(positional) < len(HYPERPARAMETER_PREFIXES):
        raise RunIdDecodeError(
            f"Run identifier {run_id!r} has {len(positional)} hyperparameter tokens, "
            f"expected {len(HYPERPARAMETER_PREFIXES)}."
        )

    values: Dict[str, str] = {}
    for token, (field, prefix) in zip(positional, HYPERPARAMETER_PREFIXES):
        if not token.startswith(prefix) or len(token) == len(prefix):
            raise RunIdDecodeError(
                f"Run identifier {run_id!r}: token {token!r} is not a '{prefix}<value>' token."
            )
        values[field] = token[len(prefix):]

    model_name = "_".join(tokens[offset + len(HYPERPARAMETER_PREFIXES):]) or DEFAULT_MODEL_NAME

    return RunConfig(use_sentiment=use_sentiment, model_name=model_name, **values)


def encode_run_id(config: RunConfig) -> str:
    """Build the identifier string for ``config``.

    The default model name is left implicit, mirroring how the training
    pipeline names its plain LSTM runs.
    """

    tokens = [BASELINE_MARKER] if not config.use_sentiment else []
    for field, prefix in HYPERPARAMETER_PREFIXES:
        value = str(getattr(config, field))
        if not value or "_" in value:
            raise ValueError(f"{field} value {value!r} cannot be encoded in a run identifier.")
        tokens.append(f"{prefix}{value}")

    if config.model_name and config.model_name != DEFAULT_MODEL_NAME:
        tokens.append(config.model_name)

    return "_".join(tokens)
