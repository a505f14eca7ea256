"""
Wide/long reshaping and cross-tab matrices.

Two fill policies coexist on purpose and must not be unified:

- wide_by_year: a missing (entity, year) pair is null.
- matrix_by_region_year / matrix_by_entity_region: a missing combination
  is 0, because the cells are sums.

Year columns are named "year_<YYYY>" in every wide output.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .aggregator import decade_of

YEAR_COLUMN_PREFIX = "year_"
LONG_COLUMNS = ["entity", "year", "value"]
DECADE_AVERAGE_COLUMNS = ["region", "decade", "avg_emissions"]


def year_column(year: int) -> str:
    return f"{YEAR_COLUMN_PREFIX}{int(year)}"


def _as_years(years: Iterable[int]) -> List[int]:
    out = [int(y) for y in years]
    if not out:
        raise ValueError("At least one year is required")
    if len(set(out)) != len(out):
        raise ValueError(f"Duplicate years in {out}")
    return out


def _labels(series: pd.Series) -> List[str]:
    return sorted(series.dropna().astype(str).unique())


def _crosstab(
    df: pd.DataFrame,
    row: str,
    col: str,
    how: str,
    rows: pd.Index,
    cols: List,
) -> pd.DataFrame:
    """Aggregate `value` into a rows x cols grid; absent cells are NaN."""
    if df.empty:
        return pd.DataFrame(index=rows, columns=cols, dtype="float64")

    grouped = df.groupby([row, col])["value"].agg(how)
    return grouped.unstack(col).reindex(index=rows, columns=cols).astype("float64")


def wide_by_year(
    df: pd.DataFrame,
    years: Sequence[int],
    entities: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    One row per entity, one "year_<YYYY>" column per requested year.

    Every entity present in `df` (or in `entities`, when given) gets a row,
    even if it has no data in the requested years. Missing cells are null.
    """
    year_list = _as_years(years)
    work = df if entities is None else df[df["entity"].isin(list(entities))]
    entity_index = pd.Index(_labels(work["entity"]), name="entity")

    subset = work[work["year"].isin(year_list)]
    subset = subset.assign(entity=subset["entity"].astype(str))
    wide = _crosstab(subset, "entity", "year", "max", entity_index, year_list)
    wide.columns = [year_column(y) for y in year_list]
    return wide.reset_index()


def long_from_wide(wide: pd.DataFrame) -> pd.DataFrame:
    """
    Inverse of wide_by_year: one row per non-null (entity, year) cell,
    ordered by entity then year.
    """
    year_cols = [c for c in wide.columns if str(c).startswith(YEAR_COLUMN_PREFIX)]
    if wide.empty or not year_cols:
        return pd.DataFrame(
            {
                "entity": pd.Series(dtype="object"),
                "year": pd.Series(dtype="int64"),
                "value": pd.Series(dtype="float64"),
            }
        )

    long = wide.melt(
        id_vars=["entity"],
        value_vars=year_cols,
        var_name="year_column",
        value_name="value",
    )
    long = long[long["value"].notna()].copy()
    long["year"] = long["year_column"].str[len(YEAR_COLUMN_PREFIX):].astype("int64")
    long["value"] = long["value"].astype("float64")
    long = long.sort_values(["entity", "year"], kind="mergesort")
    return long[LONG_COLUMNS].reset_index(drop=True)


def matrix_by_region_year(df: pd.DataFrame, years: Sequence[int]) -> pd.DataFrame:
    """Region rows x "year_<YYYY>" columns of summed emissions, zero-filled."""
    year_list = _as_years(years)
    regions = pd.Index(_labels(df["region"]), name="region")

    subset = df[df["year"].isin(year_list)]
    subset = subset.assign(region=subset["region"].astype(str))
    matrix = _crosstab(subset, "region", "year", "sum", regions, year_list).fillna(0.0)
    matrix.columns = [year_column(y) for y in year_list]
    return matrix.reset_index()


def matrix_by_entity_region(
    df: pd.DataFrame,
    regions: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Entity rows x region columns of summed emissions, zero-filled.

    `regions` defaults to every region in `df`, sorted. Entities whose
    region is not in the list get a row of zeros.
    """
    region_list = list(regions) if regions is not None else _labels(df["region"])
    entities = pd.Index(_labels(df["entity"]), name="entity")

    work = df.assign(entity=df["entity"].astype(str), region=df["region"].astype(str))
    matrix = _crosstab(work, "entity", "region", "sum", entities, region_list).fillna(0.0)
    matrix.columns = [str(r) for r in region_list]
    return matrix.reset_index()


def decade_average(df: pd.DataFrame, *, decimals: int = 2) -> pd.DataFrame:
    """Average emissions per (region, decade), in long form."""
    if df.empty:
        return pd.DataFrame(columns=DECADE_AVERAGE_COLUMNS)

    work = df.assign(decade=decade_of(df["year"]))
    out = work.groupby(["region", "decade"], as_index=False, sort=True).agg(
        avg_emissions=("value", "mean"),
    )
    out["avg_emissions"] = out["avg_emissions"].round(decimals)
    return out[DECADE_AVERAGE_COLUMNS]


__all__ = [
    "YEAR_COLUMN_PREFIX",
    "year_column",
    "wide_by_year",
    "long_from_wide",
    "matrix_by_region_year",
    "matrix_by_entity_region",
    "decade_average",
]
