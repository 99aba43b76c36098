#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Renders the aligned forecast chart of every model in sample_preds.csv
"""

import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

# Output directory
output_dir = Path(__file__).parent
sys.path.insert(0, str(output_dir.parent / "backend"))

from app.analyzers.config_resolver import default_selections, resolve_config  # noqa: E402
from app.analyzers.run_catalog import RunCatalog  # noqa: E402
from app.analyzers.series_aligner import (  # noqa: E402
    ACTUAL_LABEL,
    WITH_SENTIMENT_LABEL,
    WITHOUT_SENTIMENT_LABEL,
    align_series,
)
from app.parsers.predictions_parser import PredictionsCSVParser  # noqa: E402

SERIES_STYLES = {
    ACTUAL_LABEL: {"color": "#111827", "linestyle": "-"},
    WITH_SENTIMENT_LABEL: {"color": "#2563eb", "linestyle": "--"},
    WITHOUT_SENTIMENT_LABEL: {"color": "#f59e42", "linestyle": "--"},
}


def plot_model(rows, catalog, model_name, selection):
    entry = catalog.get(model_name)
    resolved = resolve_config(entry.configs, selection, model_name)
    aligned = align_series(rows, resolved.config)

    x = np.arange(len(aligned.dates))
    fig, ax = plt.subplots(figsize=(12, 6))
    for label, values in aligned.series.items():
        # None -> NaN leaves a gap instead of dropping the line to zero
        ax.plot(x, np.array(values, dtype=float), label=label, linewidth=2, **SERIES_STYLES[label])

    step = max(len(aligned.dates) // 12, 1)
    ax.set_xticks(x[::step])
    ax.set_xticklabels(aligned.dates[::step], rotation=45, ha="right")
    ax.set_xlabel('Date', fontsize=12, fontweight='bold')
    ax.set_ylabel('Price (USD)', fontsize=12, fontweight='bold')
    title = f"{entry.label} · ws{resolved.config.window_size} {resolved.config.scaler} " \
            f"{resolved.config.loss_fn} bs{resolved.config.batch_size} ep{resolved.config.epochs}"
    ax.set_title(title, fontsize=16, fontweight='bold', pad=20)
    ax.grid(True, alpha=0.3)
    ax.legend(loc='upper left', fontsize=10)

    plt.tight_layout()
    plt.savefig(output_dir / f'forecast_{model_name}.png', dpi=150, bbox_inches='tight')
    plt.close()
    print(f"✓ forecast_{model_name}.png created")


if __name__ == '__main__':
    csv_path = Path(sys.argv[1]) if len(sys.argv) > 1 else output_dir / "sample_preds.csv"
    print(f"Rendering forecasts from {csv_path}...")
    rows = PredictionsCSVParser(csv_path).parse_observations()
    catalog = RunCatalog.build(rows)
    for model_name, selection in default_selections(catalog).items():
        plot_model(rows, catalog, model_name, selection)
    print(f"\n📁 Location: {output_dir.absolute()}")
