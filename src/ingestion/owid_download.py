"""
RAW ingestion of the two Our World in Data CSV files.

- annual CO2 emissions per entity  -> raw/owid/annual_co2_emissions.csv
- continent of each entity         -> raw/owid/continents.csv

Storage/metadata agnostic: runs locally (filesystem + JSON metadata) and
in the cloud (S3 + DynamoDB) with the same code. Each file's SHA-1 is kept
as a checkpoint so an unchanged download does not rewrite the RAW object.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Dict, Optional

import requests

from adapters import MetadataAdapter, StorageAdapter
from common.retry import http_get_with_retries
from config import OWID_CONTINENTS_URL, OWID_EMISSIONS_URL
from metadata import OWID_DOWNLOAD_SCOPE, RUN_FAILED, RUN_SUCCESS

logger = logging.getLogger(__name__)

RAW_BASE_PREFIX = "raw/owid"
EMISSIONS_RAW_KEY = f"{RAW_BASE_PREFIX}/annual_co2_emissions.csv"
CONTINENTS_RAW_KEY = f"{RAW_BASE_PREFIX}/continents.csv"
EMISSIONS_CHECKPOINT_KEY = "owid_emissions_sha1"
CONTINENTS_CHECKPOINT_KEY = "owid_continents_sha1"


def compute_content_hash(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()


def _count_data_lines(content: bytes) -> int:
    lines = [line for line in content.splitlines() if line.strip()]
    return max(0, len(lines) - 1)


def download_owid_csv(
    url: str,
    key: str,
    storage: StorageAdapter,
    metadata: MetadataAdapter,
    *,
    checkpoint_key: str,
    session: Optional[requests.Session] = None,
) -> int:
    """
    Download one CSV into RAW storage.

    Returns the number of data lines (header excluded) in the download.
    """
    resp = http_get_with_retries(url, session=session)
    content = resp.content
    digest = compute_content_hash(content)

    if metadata.load_checkpoint(checkpoint_key) == digest and storage.exists(key):
        logger.info("[ingestion] %s unchanged (sha1=%s), keeping %s", url, digest[:10], key)
    else:
        location = storage.write_raw(key, content)
        metadata.save_checkpoint(checkpoint_key, digest)
        logger.info("[ingestion] Wrote %s (%s bytes)", location, len(content))

    return _count_data_lines(content)


def ingest_owid_tables(
    storage: StorageAdapter,
    metadata: MetadataAdapter,
    *,
    emissions_url: str = OWID_EMISSIONS_URL,
    continents_url: str = OWID_CONTINENTS_URL,
    run_scope: str = OWID_DOWNLOAD_SCOPE,
    session: Optional[requests.Session] = None,
) -> Dict[str, str]:
    """
    Download both OWID tables and register the run.

    Returns the logical RAW keys: {"emissions": ..., "continents": ...}.
    """
    run_id = metadata.start_run(run_scope)
    try:
        rows = download_owid_csv(
            emissions_url,
            EMISSIONS_RAW_KEY,
            storage,
            metadata,
            checkpoint_key=EMISSIONS_CHECKPOINT_KEY,
            session=session,
        )
        rows += download_owid_csv(
            continents_url,
            CONTINENTS_RAW_KEY,
            storage,
            metadata,
            checkpoint_key=CONTINENTS_CHECKPOINT_KEY,
            session=session,
        )
        metadata.end_run(
            run_id,
            status=RUN_SUCCESS,
            rows_processed=rows,
            last_checkpoint=str(metadata.load_checkpoint(EMISSIONS_CHECKPOINT_KEY)),
        )
        return {"emissions": EMISSIONS_RAW_KEY, "continents": CONTINENTS_RAW_KEY}
    except Exception as exc:  # noqa: BLE001
        metadata.end_run(run_id, status=RUN_FAILED, error_message=str(exc))
        raise


__all__ = [
    "RAW_BASE_PREFIX",
    "EMISSIONS_RAW_KEY",
    "CONTINENTS_RAW_KEY",
    "compute_content_hash",
    "download_owid_csv",
    "ingest_owid_tables",
]
