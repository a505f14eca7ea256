"""
Group-by rollups over the joined emissions table.

All functions take the joined DataFrame (region, entity, code, year, value)
and return a new DataFrame; the input is never mutated. Null values are
ignored by every statistic and contribute 0 to sums. An empty input gives
an empty result with the same columns.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

TOTALS_COLUMNS = ["region", "year", "total_emissions"]
DECADE_COLUMNS = [
    "region",
    "decade",
    "mean_emissions",
    "min_emissions",
    "max_emissions",
    "total_emissions",
    "entity_count",
]
SUMMARY_COLUMNS = [
    "region",
    "min_emissions",
    "max_emissions",
    "range_emissions",
    "std_emissions",
    "mean_emissions",
    "median_emissions",
    "total_emissions",
    "total_entities",
    "total_years",
]
COMPLETENESS_COLUMNS = [
    "region",
    "entity",
    "years_reported",
    "first_year",
    "last_year",
    "expected_years",
    "reporting_completeness_pct",
]


def decade_of(year: pd.Series) -> pd.Series:
    """Floor a year to its decade: 1949 -> 1940, 2000 -> 2000."""
    return (year // 10) * 10


def totals_by_region_year(df: pd.DataFrame) -> pd.DataFrame:
    """Total emissions per (region, year), ordered by region then year."""
    if df.empty:
        return pd.DataFrame(columns=TOTALS_COLUMNS)

    out = df.groupby(["region", "year"], as_index=False, sort=True).agg(
        total_emissions=("value", "sum"),
    )
    return out[TOTALS_COLUMNS]


def decade_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Mean/min/max/sum and distinct-entity count per (region, decade)."""
    if df.empty:
        return pd.DataFrame(columns=DECADE_COLUMNS)

    work = df.assign(decade=decade_of(df["year"]))
    out = work.groupby(["region", "decade"], as_index=False, sort=True).agg(
        mean_emissions=("value", "mean"),
        min_emissions=("value", "min"),
        max_emissions=("value", "max"),
        total_emissions=("value", "sum"),
        entity_count=("entity", "nunique"),
    )
    return out[DECADE_COLUMNS]


def region_summary_stats(df: pd.DataFrame, *, ddof: int = 1, decimals: int = 2) -> pd.DataFrame:
    """
    Descriptive statistics per region across all entities and years.

    Parameters
    ----------
    ddof:
        Delta degrees of freedom for the standard deviation.
        1 gives the sample deviation (SQL STDDEV / STDDEV_SAMP, pandas
        default); 0 gives the population deviation (STDDEV_POP, numpy
        default). A region with a single observation has a null sample
        deviation.
    decimals:
        Rounding applied to std, mean and median. `total_emissions` is
        left unrounded; it matches the sum of `totals_by_region_year` up to
        float summation order (compare with a tolerance, not `==`).

    The median is the continuous 50th percentile (linear interpolation
    between the two middle values), i.e. PERCENTILE_CONT(0.5).
    """
    if df.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    def _std(values: pd.Series) -> float:
        return values.std(ddof=ddof)

    out = df.groupby("region", as_index=False, sort=True).agg(
        min_emissions=("value", "min"),
        max_emissions=("value", "max"),
        std_emissions=("value", _std),
        mean_emissions=("value", "mean"),
        median_emissions=("value", "median"),
        total_emissions=("value", "sum"),
        total_entities=("entity", "nunique"),
        total_years=("year", "nunique"),
    )
    out["range_emissions"] = out["max_emissions"] - out["min_emissions"]
    for col in ("std_emissions", "mean_emissions", "median_emissions"):
        out[col] = out[col].round(decimals)
    return out[SUMMARY_COLUMNS]


def reporting_completeness(
    df: pd.DataFrame,
    *,
    min_years: int = 50,
    limit: Optional[int] = 20,
    decimals: int = 2,
) -> pd.DataFrame:
    """
    How consistently each entity reports, relative to its own year span.

    completeness = distinct years reported / (last_year - first_year + 1) * 100

    Only entities with at least `min_years` distinct years are kept. Rows
    are ordered by completeness desc, then years reported desc, then
    (region, entity) asc. `limit=None` returns every qualifying row.
    A row with a null value still counts as a reported year.
    """
    if df.empty:
        return pd.DataFrame(columns=COMPLETENESS_COLUMNS)

    out = df.groupby(["region", "entity"], as_index=False, sort=True).agg(
        years_reported=("year", "nunique"),
        first_year=("year", "min"),
        last_year=("year", "max"),
    )
    out["expected_years"] = out["last_year"] - out["first_year"] + 1
    out["reporting_completeness_pct"] = (
        out["years_reported"] * 100.0 / out["expected_years"]
    ).round(decimals)

    out = out[out["years_reported"] >= min_years]
    out = out.sort_values(
        ["reporting_completeness_pct", "years_reported", "region", "entity"],
        ascending=[False, False, True, True],
        kind="mergesort",
    )
    if limit is not None:
        out = out.head(limit)
    return out[COMPLETENESS_COLUMNS].reset_index(drop=True)


__all__ = [
    "TOTALS_COLUMNS",
    "DECADE_COLUMNS",
    "SUMMARY_COLUMNS",
    "COMPLETENESS_COLUMNS",
    "decade_of",
    "totals_by_region_year",
    "decade_summary",
    "region_summary_stats",
    "reporting_completeness",
]
