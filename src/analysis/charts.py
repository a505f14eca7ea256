"""
Chart rendering for analytics result tables.

Charts only read the plain tables produced by the aggregator; they never
touch the joined observations directly.

- region_totals.png
  One line per region: total emissions per year
  (input: totals_by_region_year output).
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

from adapters import StorageAdapter

logger = logging.getLogger(__name__)

REGION_TOTALS_PNG_NAME = "region_totals.png"


def build_region_totals_chart(
    totals: pd.DataFrame,
    *,
    output_dir: Path | str = Path("analytics"),
    storage: StorageAdapter | None = None,
    key_prefix: str = "analytics",
) -> Path | str:
    """
    Plot total emissions per region over time.

    Local runs write `<output_dir>/region_totals.png` and return the Path;
    with a storage adapter the PNG goes to `<key_prefix>/region_totals.png`
    and the storage location string is returned.
    """
    if totals.empty:
        raise RuntimeError("No regional totals available to plot")

    fig, ax = plt.subplots(figsize=(11, 6))
    for region, group in totals.groupby("region", sort=True):
        group = group.sort_values("year")
        ax.plot(
            group["year"].to_numpy(),
            group["total_emissions"].to_numpy(dtype=float),
            linewidth=1.8,
            label=str(region),
        )

    ax.set_xlabel("Year")
    ax.set_ylabel("Annual CO2 emissions (t)")
    ax.set_title("Annual CO2 emissions by continent")
    ax.grid(True, linestyle="--", alpha=0.3)
    ax.legend(frameon=False, fontsize=8)
    fig.tight_layout()

    try:
        if storage is None:
            output_root = Path(output_dir)
            output_root.mkdir(parents=True, exist_ok=True)
            output_path = output_root / REGION_TOTALS_PNG_NAME
            fig.savefig(output_path, dpi=150)
            logger.info("[charts] Wrote %s", output_path)
            return output_path

        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=150)
        location = storage.write_raw(f"{key_prefix}/{REGION_TOTALS_PNG_NAME}", buf.getvalue())
        logger.info("[charts] Wrote %s", location)
        return location
    finally:
        plt.close(fig)


__all__ = ["REGION_TOTALS_PNG_NAME", "build_region_totals_chart"]
