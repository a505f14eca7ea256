"""
Per-group rankings over the joined emissions table.

Tie-break policy: whenever two entities have the same score, the entity
name ascending decides. Null scores always sort after every defined score.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from common.errors import DIVISION_BY_ZERO, DivisionByZeroError
from transformations import LoadReport

logger = logging.getLogger(__name__)

TOP_N_COLUMNS = ["region", "entity", "avg_annual_emissions", "rank"]
SHARE_COLUMNS = [
    "region",
    "year",
    "top_entity",
    "top_entity_emissions",
    "total_region_emissions",
    "top_entity_share_pct",
    "rest_share_pct",
    "condition",
]
TOTALS_RANK_COLUMNS = [
    "region",
    "entity",
    "total_emissions",
    "avg_annual_emissions",
    "years_reported",
]


def top_n_by_average(df: pd.DataFrame, n: int = 3) -> pd.DataFrame:
    """
    Top `n` entities per region by average annual emissions.

    Returns at most `n` rows per region (fewer when the region has fewer
    entities), ordered by region then rank.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    if df.empty:
        return pd.DataFrame(columns=TOP_N_COLUMNS)

    avg = df.groupby(["region", "entity"], as_index=False, sort=False).agg(
        avg_annual_emissions=("value", "mean"),
    )
    avg = avg.sort_values(
        ["region", "avg_annual_emissions", "entity"],
        ascending=[True, False, True],
        na_position="last",
        kind="mergesort",
    )
    avg["rank"] = avg.groupby("region", sort=False).cumcount() + 1
    out = avg[avg["rank"] <= n]
    return out[TOP_N_COLUMNS].reset_index(drop=True)


def top_entity_share(
    df: pd.DataFrame,
    year: int,
    *,
    strict: bool = False,
    report: Optional[LoadReport] = None,
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Share of each region's total held by its single largest emitter in `year`.

    A region whose total for the year is zero cannot produce a share: the
    row carries null percentages and condition="division_by_zero", the
    condition is logged and recorded on `report`. With `strict=True` a
    DivisionByZeroError is raised instead. Regions with no non-null value
    in that year produce no row.
    """
    if df.empty:
        return pd.DataFrame(columns=SHARE_COLUMNS)

    year_df = df[df["year"] == year]
    valued = year_df[year_df["value"].notna()]
    if valued.empty:
        return pd.DataFrame(columns=SHARE_COLUMNS)

    totals = valued.groupby("region", sort=True)["value"].sum()
    ranked = valued.sort_values(
        ["region", "value", "entity"],
        ascending=[True, False, True],
        kind="mergesort",
    )
    top = ranked.groupby("region", sort=True).head(1).set_index("region")

    rows: List[Dict[str, Any]] = []
    for region, total in totals.items():
        top_row = top.loc[region]
        top_value = float(top_row["value"])
        share: Optional[float] = None
        rest: Optional[float] = None
        condition: Optional[str] = None

        if total == 0:
            detail = f"year={year}"
            if strict:
                raise DivisionByZeroError("top_entity_share", str(region), detail)
            logger.warning(
                "[ranker] Region %s has a zero total in %s; share is undefined",
                region,
                year,
            )
            if report is not None:
                report.record_condition("top_entity_share", str(region), DIVISION_BY_ZERO, detail)
            condition = DIVISION_BY_ZERO
        else:
            raw_share = top_value / float(total) * 100.0
            share = round(raw_share, decimals)
            rest = round(100.0 - raw_share, decimals)

        rows.append(
            {
                "region": region,
                "year": year,
                "top_entity": top_row["entity"],
                "top_entity_emissions": top_value,
                "total_region_emissions": float(total),
                "top_entity_share_pct": share,
                "rest_share_pct": rest,
                "condition": condition,
            }
        )

    return pd.DataFrame(rows, columns=SHARE_COLUMNS)


def top_entities_by_total(df: pd.DataFrame, limit: Optional[int] = 10) -> pd.DataFrame:
    """Entities with the highest all-time total emissions, across regions."""
    if df.empty:
        return pd.DataFrame(columns=TOTALS_RANK_COLUMNS)

    out = df.groupby(["region", "entity"], as_index=False, sort=False).agg(
        total_emissions=("value", "sum"),
        avg_annual_emissions=("value", "mean"),
        years_reported=("year", "nunique"),
    )
    out = out.sort_values(
        ["total_emissions", "entity"],
        ascending=[False, True],
        kind="mergesort",
    )
    if limit is not None:
        out = out.head(limit)
    return out[TOTALS_RANK_COLUMNS].reset_index(drop=True)


__all__ = [
    "TOP_N_COLUMNS",
    "SHARE_COLUMNS",
    "TOTALS_RANK_COLUMNS",
    "top_n_by_average",
    "top_entity_share",
    "top_entities_by_total",
]
