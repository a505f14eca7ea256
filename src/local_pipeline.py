"""
Local orchestration entrypoint for the CO2 emissions analytics.

When executed locally, runs:

1. (optional) OWID CSV download into raw/owid/ (--download)
2. Load + validate both tables, join emissions to continents on code
3. Aggregator / ranker / temporal / reshaper tables
4. Persist the region-partitioned Parquet snapshot (processed/) and the
   result tables, load summary and region totals chart under
   analytics/<YYYYMMDD>/

Intended usage (local):

    PYTHONPATH=src python -m local_pipeline \
        --emissions data/annual-co2-emissions-per-country.csv \
        --continents data/continents-according-to-our-world-in-data.csv

or, once installed, the `co2-analytics` console script. Defaults come
from the environment (see config.py).
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from adapters import LocalMetadataAdapter, LocalStorageAdapter, MetadataAdapter, StorageAdapter
from analysis import ReportOptions, run_emissions_analysis
from common.logging_config import setup_logging
from config import AnalysisSettings, load_settings
from ingestion import ingest_owid_tables


def report_options_from_settings(settings: AnalysisSettings) -> ReportOptions:
    return ReportOptions(
        top_n=settings.top_n,
        share_year=settings.share_year,
        rolling_window=settings.rolling_window,
        min_reported_years=settings.min_reported_years,
        stddev_ddof=settings.stddev_ddof,
        strict_division=settings.strict_division,
        table_format=settings.table_format,
    )


def run_local_pipeline(
    *,
    settings: Optional[AnalysisSettings] = None,
    download: bool = False,
    render_chart: bool = True,
    wide_years: Optional[Sequence[int]] = None,
    storage: Optional[StorageAdapter] = None,
    metadata: Optional[MetadataAdapter] = None,
) -> Dict[str, List[Path | str]]:
    """
    Run the analytics end-to-end on the local filesystem.

    Parameters
    ----------
    settings:
        Configuration; defaults to load_settings() (environment + .env).
    download:
        Fetch the OWID CSVs into raw/owid/ first and analyse those instead
        of the local input paths.
    wide_years:
        Years for the wide/matrix tables; defaults to the latest five.

    Returns
    -------
    artefacts:
        Dictionary mapping artefact groups to generated locations.
    """
    settings = settings or load_settings()
    storage = storage or LocalStorageAdapter(settings.output_root)
    metadata = metadata or LocalMetadataAdapter()
    options = report_options_from_settings(settings)
    if wide_years:
        options = replace(options, wide_years=list(wide_years))

    artefacts: Dict[str, List[Path | str]] = {}

    if download:
        print("[1/2] Downloading OWID emissions + continents CSVs...")
        keys = ingest_owid_tables(
            storage,
            metadata,
            emissions_url=settings.emissions_url,
            continents_url=settings.continents_url,
        )
        artefacts["raw"] = [keys["emissions"], keys["continents"]]
        emissions_source, continents_source = keys["emissions"], keys["continents"]
        inputs_in_storage = True
    else:
        print("[1/2] Using local input CSVs...")
        emissions_source, continents_source = settings.emissions_csv, settings.continents_csv
        inputs_in_storage = False
    print(f"      emissions:  {emissions_source}")
    print(f"      continents: {continents_source}")

    print("[2/2] Joining and computing analytics tables...")
    artefacts.update(
        run_emissions_analysis(
            storage,
            metadata,
            emissions_source=emissions_source,
            continents_source=continents_source,
            inputs_in_storage=inputs_in_storage,
            options=options,
            render_chart=render_chart,
        )
    )
    print(f"      Processed partitions: {len(artefacts.get('processed', []))}")
    print(f"      Generated {len(artefacts.get('tables', []))} tables.")
    for location in artefacts.get("charts", []):
        print(f"      Chart: {location}")
    for location in artefacts.get("summary", []):
        print(f"      Load summary: {location}")

    print("\nPipeline completed successfully.")
    return artefacts


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run the CO2 emissions analytics end-to-end on local files.",
    )
    parser.add_argument("--emissions", type=str, default=None, help="Emissions CSV path.")
    parser.add_argument("--continents", type=str, default=None, help="Continents CSV path.")
    parser.add_argument(
        "--output-root",
        type=str,
        default=None,
        help="Root directory for raw/ and analytics/ outputs (default: CO2_OUTPUT_ROOT or .).",
    )
    parser.add_argument(
        "--download",
        action="store_true",
        help="Download the OWID CSVs into raw/owid/ before analysing.",
    )
    parser.add_argument(
        "--years",
        type=int,
        nargs="+",
        default=None,
        help="Years used for the wide and region x year tables (default: latest five).",
    )
    parser.add_argument("--top-n", type=int, default=None, help="Entities per region in the top-N table.")
    parser.add_argument("--share-year", type=int, default=None, help="Year for the top entity share table.")
    parser.add_argument(
        "--population-std",
        action="store_true",
        help="Use the population standard deviation instead of the sample one.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on zero denominators in share/growth tables instead of reporting them.",
    )
    parser.add_argument(
        "--format",
        choices=("csv", "parquet"),
        default=None,
        help="File format of the result tables (default: CO2_TABLE_FORMAT or csv).",
    )
    parser.add_argument("--skip-chart", action="store_true", help="Skip the region totals chart.")
    parser.add_argument("--log-config", type=str, default=None, help="Logging YAML (default: logging.yml).")

    args = parser.parse_args(argv)
    log = setup_logging(args.log_config)

    settings = load_settings()
    overrides = {}
    if args.emissions:
        overrides["emissions_csv"] = Path(args.emissions)
    if args.continents:
        overrides["continents_csv"] = Path(args.continents)
    if args.output_root:
        overrides["output_root"] = Path(args.output_root)
    if args.top_n is not None:
        overrides["top_n"] = args.top_n
    if args.share_year is not None:
        overrides["share_year"] = args.share_year
    if args.population_std:
        overrides["stddev_ddof"] = 0
    if args.format:
        overrides["table_format"] = args.format
    if args.strict:
        overrides["strict_division"] = True
    settings = replace(settings, **overrides)
    log.info(
        "Settings: top_n=%s share_year=%s ddof=%s strict=%s format=%s output_root=%s",
        settings.top_n,
        settings.share_year,
        settings.stddev_ddof,
        settings.strict_division,
        settings.table_format,
        settings.output_root,
    )

    run_local_pipeline(
        settings=settings,
        download=args.download,
        render_chart=not args.skip_chart,
        wide_years=args.years,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())


__all__ = ["report_options_from_settings", "run_local_pipeline", "main"]
