"""
Ingestion layer
---------------

Downloads the Our World in Data CSV inputs into the RAW storage area.
"""

from .owid_download import (  # noqa: F401
    CONTINENTS_RAW_KEY,
    EMISSIONS_RAW_KEY,
    ingest_owid_tables,
)

__all__ = ["EMISSIONS_RAW_KEY", "CONTINENTS_RAW_KEY", "ingest_owid_tables"]
