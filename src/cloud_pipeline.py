"""
Cloud orchestration entrypoint for the CO2 emissions analytics.

Wires the same business logic to cloud-native adapters (S3 + DynamoDB).
All domain rules live in the ingestion, transformations and analysis
modules.

Environment variables
---------------------

- PIPELINE_S3_BUCKET
    Bucket holding raw/owid/ inputs and analytics/ outputs.

- PIPELINE_S3_BASE_PREFIX (optional)
    Logical base prefix under the bucket, e.g. "co2-analytics".

- LOG_LEVEL (optional)
    Root logger level for the run (default INFO).

- PIPELINE_METADATA_TABLE
    DynamoDB table used by DynamoMetadataAdapter (runs + checkpoints).

Analysis knobs (CO2_TOP_N, CO2_SHARE_YEAR, ...) are read as in config.py.

Lambda handler
--------------

    Handler: cloud_pipeline.lambda_handler

The event payload may optionally include:

    {
      "download": true,
      "emissions_key": "raw/owid/annual_co2_emissions.csv",
      "continents_key": "raw/owid/continents.csv",
      "years": [2019, 2020, 2021, 2022, 2023]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from adapters import DynamoMetadataAdapter, S3StorageAdapter
from analysis import run_emissions_analysis
from common.logging_config import setup_console_logging
from config import AnalysisSettings, load_settings
from ingestion import CONTINENTS_RAW_KEY, EMISSIONS_RAW_KEY, ingest_owid_tables
from local_pipeline import report_options_from_settings

logger = logging.getLogger(__name__)


def _build_s3_storage(settings: AnalysisSettings) -> S3StorageAdapter:
    if not settings.s3_bucket:
        raise RuntimeError(
            "Missing required environment variable 'PIPELINE_S3_BUCKET' for S3 bucket name.",
        )
    return S3StorageAdapter(bucket=settings.s3_bucket, base_prefix=settings.s3_base_prefix)


def _build_metadata_adapter(settings: AnalysisSettings) -> DynamoMetadataAdapter:
    if not settings.metadata_table:
        raise RuntimeError(
            "Missing required environment variable 'PIPELINE_METADATA_TABLE' for DynamoDB table name.",
        )
    return DynamoMetadataAdapter(table_name=settings.metadata_table)


def run_cloud_pipeline(
    *,
    download: bool = True,
    emissions_key: str = EMISSIONS_RAW_KEY,
    continents_key: str = CONTINENTS_RAW_KEY,
    wide_years: Optional[Sequence[int]] = None,
    settings: Optional[AnalysisSettings] = None,
) -> Dict[str, List[str]]:
    """
    Run the analytics using S3 + DynamoDB adapters.

    Inputs are always read from S3: either freshly downloaded into
    raw/owid/ (`download=True`) or already present at the given keys.
    """
    setup_console_logging()
    settings = settings or load_settings()
    storage = _build_s3_storage(settings)
    metadata = _build_metadata_adapter(settings)
    options = report_options_from_settings(settings)
    if wide_years:
        options = replace(options, wide_years=list(wide_years))

    artefacts: Dict[str, List[str]] = {}

    if download:
        logger.info("[cloud 1/2] Downloading OWID CSVs to S3...")
        keys = ingest_owid_tables(
            storage,
            metadata,
            emissions_url=settings.emissions_url,
            continents_url=settings.continents_url,
        )
        emissions_key, continents_key = keys["emissions"], keys["continents"]
        artefacts["raw"] = [emissions_key, continents_key]

    logger.info("[cloud 2/2] Computing analytics from s3 keys %s, %s", emissions_key, continents_key)
    results = run_emissions_analysis(
        storage,
        metadata,
        emissions_source=emissions_key,
        continents_source=continents_key,
        inputs_in_storage=True,
        options=options,
    )
    for group, locations in results.items():
        artefacts[group] = [str(loc) for loc in locations]

    logger.info("Cloud pipeline completed successfully.")
    return artefacts


def lambda_handler(event, context):  # pragma: no cover - AWS entrypoint
    """
    AWS Lambda handler for the cloud pipeline.

    Optional event keys: download, emissions_key, continents_key, years.
    """
    event = event or {}
    artefacts = run_cloud_pipeline(
        download=bool(event.get("download", True)),
        emissions_key=event.get("emissions_key", EMISSIONS_RAW_KEY),
        continents_key=event.get("continents_key", CONTINENTS_RAW_KEY),
        wide_years=event.get("years"),
    )

    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "message": "Cloud pipeline executed successfully.",
                "artefacts": artefacts,
            }
        ),
    }


__all__ = ["run_cloud_pipeline", "lambda_handler"]
