"""
Assembles every analytics table and persists them.

Artefacts, written under analytics/<YYYYMMDD>/ through a StorageAdapter:

- one CSV (or Parquet) per result table (totals_by_region_year.csv,
  top_n_by_average.csv, ...)
- load_summary.csv: rows read, skipped, excluded and group-level conditions
  (always written next to the tables)
- region_totals.png (see analysis.charts)

The joined table itself is kept as a region-partitioned Parquet snapshot
under processed/emissions_joined/ (see transformations.joined_observations).

run_emissions_analysis() ties loading, analysis and persistence together
and registers the run (status, rows processed/excluded) via a
MetadataAdapter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from adapters import MetadataAdapter, StorageAdapter
from metadata import EMISSIONS_ANALYSIS_SCOPE, RUN_FAILED, RUN_SUCCESS
from transformations import (
    LoadReport,
    load_joined_observations,
    save_joined_observations_parquet_partitions,
)
from .aggregator import (
    decade_summary,
    region_summary_stats,
    reporting_completeness,
    totals_by_region_year,
)
from .charts import build_region_totals_chart
from .ranker import top_entities_by_total, top_entity_share, top_n_by_average
from .reshaper import (
    decade_average,
    long_from_wide,
    matrix_by_entity_region,
    matrix_by_region_year,
    wide_by_year,
)
from .temporal import (
    first_last_year_growth,
    max_spike_per_region,
    median_flag,
    rolling_average,
    top_growth_rates,
    year_over_year_growth,
)

logger = logging.getLogger(__name__)

ANALYTICS_BASE_PREFIX = "analytics"
LOAD_SUMMARY_NAME = "load_summary"
DEFAULT_WIDE_YEAR_COUNT = 5


@dataclass(frozen=True)
class ReportOptions:
    top_n: int = 3
    share_year: int = 2000
    rolling_window: int = 5
    min_reported_years: int = 50
    stddev_ddof: int = 1
    strict_division: bool = False
    # "csv" or "parquet" for the result tables; the load summary is always CSV
    table_format: str = "csv"
    # None -> the most recent DEFAULT_WIDE_YEAR_COUNT years in the data
    wide_years: Optional[Sequence[int]] = None


def run_date_str(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).strftime("%Y%m%d")


def default_wide_years(df: pd.DataFrame, count: int = DEFAULT_WIDE_YEAR_COUNT) -> list[int]:
    years = sorted(int(y) for y in df["year"].dropna().unique())
    return years[-count:]


def build_emissions_tables(
    joined: pd.DataFrame,
    *,
    options: ReportOptions = ReportOptions(),
    report: Optional[LoadReport] = None,
) -> Dict[str, pd.DataFrame]:
    """Run every analytic stage over the joined table; keys are output names."""
    tables: Dict[str, pd.DataFrame] = {}

    # Aggregator
    totals = totals_by_region_year(joined)
    tables["totals_by_region_year"] = totals
    tables["decade_summary"] = decade_summary(joined)
    tables["region_summary_stats"] = region_summary_stats(joined, ddof=options.stddev_ddof)
    tables["reporting_completeness"] = reporting_completeness(
        joined, min_years=options.min_reported_years,
    )

    # Ranker
    tables["top_n_by_average"] = top_n_by_average(joined, n=options.top_n)
    tables["top_entity_share"] = top_entity_share(
        joined, options.share_year, strict=options.strict_division, report=report,
    )
    tables["top_entities_by_total"] = top_entities_by_total(joined)

    # Temporal analytics
    tables["year_over_year_growth"] = year_over_year_growth(joined)
    tables["max_spike_per_region"] = max_spike_per_region(joined)
    tables["top_growth_rates"] = top_growth_rates(joined)
    tables["rolling_average"] = rolling_average(joined, window=options.rolling_window)
    tables["median_flag"] = median_flag(joined)
    tables["first_last_year_growth"] = first_last_year_growth(
        joined, strict=options.strict_division, report=report,
    )

    # Reshaper
    if not joined.empty:
        years = list(options.wide_years) if options.wide_years else default_wide_years(joined)
        wide = wide_by_year(joined, years)
        tables["wide_by_year"] = wide
        tables["long_from_wide"] = long_from_wide(wide)
        tables["matrix_by_region_year"] = matrix_by_region_year(joined, years)
        tables["matrix_by_entity_region"] = matrix_by_entity_region(joined)
    tables["decade_average"] = decade_average(joined)

    for name, table in tables.items():
        logger.debug("[analysis] %s: %s rows", name, table.shape[0])
    return tables


def write_result_tables(
    tables: Dict[str, pd.DataFrame],
    storage: StorageAdapter,
    *,
    run_date: Optional[str] = None,
    table_format: str = "csv",
) -> Dict[str, str]:
    """Persist each table as analytics/<run_date>/<name>.<format>; returns name -> location."""
    run_date = run_date or run_date_str()
    locations: Dict[str, str] = {}
    for name, table in tables.items():
        key = f"{ANALYTICS_BASE_PREFIX}/{run_date}/{name}.{table_format}"
        locations[name] = storage.write_table(table, key)
    return locations


def write_load_summary(
    report: LoadReport,
    storage: StorageAdapter,
    *,
    run_date: Optional[str] = None,
) -> str:
    """Persist the skip/exclusion summary and echo it to the log."""
    run_date = run_date or run_date_str()
    for line in report.summary_lines():
        logger.info("[summary] %s", line)
    key = f"{ANALYTICS_BASE_PREFIX}/{run_date}/{LOAD_SUMMARY_NAME}.csv"
    return storage.write_table(report.to_frame(), key)


def run_emissions_analysis(
    storage: StorageAdapter,
    metadata: MetadataAdapter,
    *,
    emissions_source: Path | str,
    continents_source: Path | str,
    inputs_in_storage: bool = False,
    options: ReportOptions = ReportOptions(),
    render_chart: bool = True,
    run_scope: str = EMISSIONS_ANALYSIS_SCOPE,
) -> Dict[str, List[Path | str]]:
    """
    Load + join the inputs, build every table and persist the artefacts,
    registering the run via the metadata adapter.

    With `inputs_in_storage=True` the two sources are logical keys read
    through `storage`; otherwise they are local filesystem paths.

    Returns a mapping of artefact group -> locations.
    """
    run_id = metadata.start_run(run_scope)
    try:
        joined, report = load_joined_observations(
            emissions_source,
            continents_source,
            storage=storage if inputs_in_storage else None,
        )
        run_date = run_date_str()
        artefacts: Dict[str, List[Path | str]] = {}
        artefacts["processed"] = save_joined_observations_parquet_partitions(joined, storage)

        tables = build_emissions_tables(joined, options=options, report=report)
        artefacts["tables"] = list(
            write_result_tables(
                tables, storage, run_date=run_date, table_format=options.table_format,
            ).values()
        )

        if render_chart and not tables["totals_by_region_year"].empty:
            chart = build_region_totals_chart(
                tables["totals_by_region_year"],
                storage=storage,
                key_prefix=f"{ANALYTICS_BASE_PREFIX}/{run_date}",
            )
            artefacts["charts"] = [chart]

        artefacts["summary"] = [write_load_summary(report, storage, run_date=run_date)]

        metadata.end_run(
            run_id,
            status=RUN_SUCCESS,
            rows_processed=report.joined_rows,
            rows_excluded=report.excluded_rows,
            last_checkpoint=f"run_date={run_date}",
        )
        return artefacts
    except Exception as exc:  # noqa: BLE001
        metadata.end_run(run_id, status=RUN_FAILED, error_message=str(exc))
        raise


__all__ = [
    "ANALYTICS_BASE_PREFIX",
    "LOAD_SUMMARY_NAME",
    "ReportOptions",
    "run_date_str",
    "default_wide_years",
    "build_emissions_tables",
    "write_result_tables",
    "write_load_summary",
    "run_emissions_analysis",
]
