"""
Time-series analytics per entity.

Every windowed computation sorts each entity's rows by year explicitly
(stable mergesort) and scans them in order; nothing relies on the input
row order. "Previous" always means the previous *reported* row of the same
entity, i.e. the closest earlier year with a non-null value, not the
previous calendar year. Rows with a null value are kept in the outputs but
never feed a window.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from common.errors import DIVISION_BY_ZERO, DivisionByZeroError
from transformations import LoadReport

logger = logging.getLogger(__name__)

GROWTH_COLUMNS = ["region", "entity", "year", "value", "prev_year", "prev_value", "growth_rate"]
SPIKE_COLUMNS = ["region", "entity", "year", "value", "growth_rate"]
ROLLING_COLUMNS = ["region", "entity", "year", "value", "rolling_avg"]
MEDIAN_COLUMNS = ["region", "entity", "year", "value", "median_emissions", "median_flag", "above_median"]
FIRST_LAST_COLUMNS = [
    "region",
    "first_year",
    "last_year",
    "year_span",
    "first_year_total_emissions",
    "last_year_total_emissions",
    "emission_growth",
    "emission_growth_pct",
    "condition",
]


def _select_entities(df: pd.DataFrame, entities: Optional[Iterable[str]]) -> pd.DataFrame:
    if entities is None:
        return df
    wanted = list(entities)
    return df[df["entity"].isin(wanted)]


def _sorted_series(df: pd.DataFrame) -> pd.DataFrame:
    return df.sort_values(["entity", "year"], kind="mergesort").copy()


def _growth_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Unrounded growth rates; see year_over_year_growth."""
    work = _sorted_series(df)
    reported = work[work["value"].notna()]
    by_entity = reported.groupby("entity", sort=False)

    work["prev_year"] = by_entity["year"].shift(1).astype("Int64")
    work["prev_value"] = by_entity["value"].shift(1)

    prev = work["prev_value"]
    defined = prev.notna() & (prev > 0) & work["value"].notna()
    work["growth_rate"] = np.nan
    work.loc[defined, "growth_rate"] = (
        (work.loc[defined, "value"] - prev[defined]) / prev[defined] * 100.0
    )
    return work


def year_over_year_growth(
    df: pd.DataFrame,
    entities: Optional[Iterable[str]] = None,
    *,
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Percentage change versus the previous reported year, per entity.

    growth = (value - prev_value) / prev_value * 100

    growth_rate is null for the first reported row, for rows with a null
    value, and whenever prev_value <= 0. Ordered by entity then year.
    """
    work = _select_entities(df, entities)
    if work.empty:
        return pd.DataFrame(columns=GROWTH_COLUMNS)

    out = _growth_frame(work)
    out["growth_rate"] = out["growth_rate"].round(decimals)
    return out[GROWTH_COLUMNS].reset_index(drop=True)


def max_spike_per_region(df: pd.DataFrame, *, decimals: int = 2) -> pd.DataFrame:
    """
    The single largest defined growth rate per region.

    Ties resolve to the lexicographically first entity, then earliest year.
    Regions without any defined growth rate produce no row.
    """
    if df.empty:
        return pd.DataFrame(columns=SPIKE_COLUMNS)

    growth = _growth_frame(df)
    growth = growth[growth["growth_rate"].notna()]
    if growth.empty:
        return pd.DataFrame(columns=SPIKE_COLUMNS)

    growth = growth.sort_values(
        ["region", "growth_rate", "entity", "year"],
        ascending=[True, False, True, True],
        kind="mergesort",
    )
    out = growth.groupby("region", sort=False).head(1).copy()
    out["growth_rate"] = out["growth_rate"].round(decimals)
    return out[SPIKE_COLUMNS].reset_index(drop=True)


def top_growth_rates(
    df: pd.DataFrame,
    limit: Optional[int] = 20,
    *,
    decimals: int = 2,
) -> pd.DataFrame:
    """Largest defined year-over-year growth rates across all entities."""
    if df.empty:
        return pd.DataFrame(columns=SPIKE_COLUMNS)

    growth = _growth_frame(df)
    growth = growth[growth["growth_rate"].notna()]
    growth = growth.sort_values(
        ["growth_rate", "entity", "year"],
        ascending=[False, True, True],
        kind="mergesort",
    )
    if limit is not None:
        growth = growth.head(limit)
    growth = growth.copy()
    growth["growth_rate"] = growth["growth_rate"].round(decimals)
    return growth[SPIKE_COLUMNS].reset_index(drop=True)


def rolling_average(
    df: pd.DataFrame,
    window: int = 5,
    entities: Optional[Iterable[str]] = None,
    *,
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Trailing moving average over the current and up to `window - 1`
    preceding reported rows of the same entity.

    Partial windows at the start of a series average whatever rows exist
    (no padding). Rows with a null value get a null average.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")

    work = _select_entities(df, entities)
    if work.empty:
        return pd.DataFrame(columns=ROLLING_COLUMNS)

    work = _sorted_series(work)
    reported = work[work["value"].notna()]
    work["rolling_avg"] = reported.groupby("entity", sort=False)["value"].transform(
        lambda s: s.rolling(window, min_periods=1).mean(),
    )
    work["rolling_avg"] = work["rolling_avg"].round(decimals)
    return work[ROLLING_COLUMNS].reset_index(drop=True)


def median_flag(df: pd.DataFrame, entities: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Flag each year of an entity as above/below/equal to its own median.

    The median is taken per (region, entity) over all years with a value
    (continuous definition). Null values get a null flag and
    above_median=False.
    """
    work = _select_entities(df, entities)
    if work.empty:
        return pd.DataFrame(columns=MEDIAN_COLUMNS)

    work = work.sort_values(["region", "entity", "year"], kind="mergesort").copy()
    work["median_emissions"] = work.groupby(["region", "entity"], sort=False)["value"].transform(
        "median",
    )

    value = work["value"]
    median = work["median_emissions"]
    flag = pd.Series(pd.NA, index=work.index, dtype="string")
    flag[value > median] = "above"
    flag[value < median] = "below"
    flag[value == median] = "equal"
    work["median_flag"] = flag
    work["above_median"] = (value > median).fillna(False).astype(bool)
    return work[MEDIAN_COLUMNS].reset_index(drop=True)


def first_last_year_growth(
    df: pd.DataFrame,
    *,
    strict: bool = False,
    report: Optional[LoadReport] = None,
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Compare each region's total in its first and last reported year.

    first/last year are the min/max year across every entity in the region;
    the totals sum all entities' values for exactly that year. A zero
    first-year total leaves emission_growth_pct null with
    condition="division_by_zero" (or raises DivisionByZeroError when
    `strict`). A year whose values are all null has a null total.
    """
    if df.empty:
        return pd.DataFrame(columns=FIRST_LAST_COLUMNS)

    rows: List[Dict[str, Any]] = []
    for region, group in df.groupby("region", sort=True):
        first_year = int(group["year"].min())
        last_year = int(group["year"].max())
        first_total = group.loc[group["year"] == first_year, "value"].sum(min_count=1)
        last_total = group.loc[group["year"] == last_year, "value"].sum(min_count=1)

        growth: Optional[float] = None
        growth_pct: Optional[float] = None
        condition: Optional[str] = None

        if pd.notna(first_total) and pd.notna(last_total):
            growth = float(last_total - first_total)
            if first_total == 0:
                detail = f"first_year={first_year}"
                if strict:
                    raise DivisionByZeroError("first_last_year_growth", str(region), detail)
                logger.warning(
                    "[temporal] Region %s has a zero total in its first year %s; growth %% is undefined",
                    region,
                    first_year,
                )
                if report is not None:
                    report.record_condition(
                        "first_last_year_growth", str(region), DIVISION_BY_ZERO, detail,
                    )
                condition = DIVISION_BY_ZERO
            else:
                growth_pct = round(growth / float(first_total) * 100.0, decimals)

        rows.append(
            {
                "region": region,
                "first_year": first_year,
                "last_year": last_year,
                "year_span": last_year - first_year,
                "first_year_total_emissions": None if pd.isna(first_total) else float(first_total),
                "last_year_total_emissions": None if pd.isna(last_total) else float(last_total),
                "emission_growth": growth,
                "emission_growth_pct": growth_pct,
                "condition": condition,
            }
        )

    return pd.DataFrame(rows, columns=FIRST_LAST_COLUMNS)


__all__ = [
    "GROWTH_COLUMNS",
    "SPIKE_COLUMNS",
    "ROLLING_COLUMNS",
    "MEDIAN_COLUMNS",
    "FIRST_LAST_COLUMNS",
    "year_over_year_growth",
    "max_spike_per_region",
    "top_growth_rates",
    "rolling_average",
    "median_flag",
    "first_last_year_growth",
]
