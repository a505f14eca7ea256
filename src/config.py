"""
config.py
---------
Shared configuration for the emissions analytics pipeline.

Loads settings from environment variables (and a local `.env`, when
present) with sensible defaults. In AWS Lambda the variables come from the
function configuration and the `.env` file simply does not exist.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Does not override variables already present in the environment.
load_dotenv()

# Input CSVs published by Our World in Data
OWID_EMISSIONS_URL = (
    "https://ourworldindata.org/grapher/annual-co2-emissions-per-country.csv"
    "?v=1&csvType=full&useColumnShortNames=false"
)
OWID_CONTINENTS_URL = (
    "https://ourworldindata.org/grapher/continents-according-to-our-world-in-data.csv"
    "?v=1&csvType=full&useColumnShortNames=false"
)

DEFAULT_EMISSIONS_CSV = Path("data") / "annual-co2-emissions-per-country.csv"
DEFAULT_CONTINENTS_CSV = Path("data") / "continents-according-to-our-world-in-data.csv"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AnalysisSettings:
    emissions_csv: Path = DEFAULT_EMISSIONS_CSV
    continents_csv: Path = DEFAULT_CONTINENTS_CSV
    output_root: Path = Path(".")
    # 1 = sample standard deviation (STDDEV / pandas default), 0 = population
    stddev_ddof: int = 1
    top_n: int = 3
    share_year: int = 2000
    rolling_window: int = 5
    min_reported_years: int = 50
    strict_division: bool = False
    table_format: str = "csv"
    emissions_url: str = OWID_EMISSIONS_URL
    continents_url: str = OWID_CONTINENTS_URL
    s3_bucket: Optional[str] = None
    s3_base_prefix: Optional[str] = None
    metadata_table: Optional[str] = None


def load_settings() -> AnalysisSettings:
    """Build AnalysisSettings from the current environment."""
    settings = AnalysisSettings(
        emissions_csv=Path(os.getenv("CO2_EMISSIONS_CSV", str(DEFAULT_EMISSIONS_CSV))),
        continents_csv=Path(os.getenv("CO2_CONTINENTS_CSV", str(DEFAULT_CONTINENTS_CSV))),
        output_root=Path(os.getenv("CO2_OUTPUT_ROOT", ".")),
        stddev_ddof=_env_int("CO2_STDDEV_DDOF", 1),
        top_n=_env_int("CO2_TOP_N", 3),
        share_year=_env_int("CO2_SHARE_YEAR", 2000),
        rolling_window=_env_int("CO2_ROLLING_WINDOW", 5),
        min_reported_years=_env_int("CO2_MIN_REPORTED_YEARS", 50),
        strict_division=_env_bool("CO2_STRICT_DIVISION"),
        table_format=os.getenv("CO2_TABLE_FORMAT", "csv").strip().lower(),
        emissions_url=os.getenv("CO2_EMISSIONS_URL", OWID_EMISSIONS_URL),
        continents_url=os.getenv("CO2_CONTINENTS_URL", OWID_CONTINENTS_URL),
        s3_bucket=os.getenv("PIPELINE_S3_BUCKET") or None,
        s3_base_prefix=os.getenv("PIPELINE_S3_BASE_PREFIX") or None,
        metadata_table=os.getenv("PIPELINE_METADATA_TABLE") or None,
    )
    if settings.table_format not in ("csv", "parquet"):
        raise ValueError(f"CO2_TABLE_FORMAT must be csv or parquet, got {settings.table_format!r}")
    if settings.stddev_ddof not in (0, 1):
        raise ValueError(
            f"CO2_STDDEV_DDOF must be 0 (population) or 1 (sample), got {settings.stddev_ddof}",
        )
    return settings


__all__ = [
    "OWID_EMISSIONS_URL",
    "OWID_CONTINENTS_URL",
    "DEFAULT_EMISSIONS_CSV",
    "DEFAULT_CONTINENTS_CSV",
    "AnalysisSettings",
    "load_settings",
]
