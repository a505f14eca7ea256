"""
Metadata module
---------------

Run registry and checkpoints. The JSON store here backs local runs; the
DynamoDB adapter (adapters.metadata) stores records of the same shape.

    from metadata import start_run, end_run, EMISSIONS_ANALYSIS_SCOPE, RUN_SUCCESS

    run_id = start_run(EMISSIONS_ANALYSIS_SCOPE)
    # ... run the analysis ...
    end_run(run_id, status=RUN_SUCCESS, rows_processed=1234, rows_excluded=12)
"""

from .store import (
    DEFAULT_METADATA_FILE,
    METADATA_LOCAL_FILE_ENV,
    RUN_FAILED,
    RUN_RUNNING,
    RUN_SUCCESS,
    end_run,
    get_last_run,
    list_runs,
    load_checkpoint,
    new_run_record,
    reset_local_store,
    run_outcome_fields,
    save_checkpoint,
    start_run,
)

OWID_DOWNLOAD_SCOPE = "owid_download"
EMISSIONS_ANALYSIS_SCOPE = "emissions_analysis"

__all__ = [
    "DEFAULT_METADATA_FILE",
    "METADATA_LOCAL_FILE_ENV",
    "OWID_DOWNLOAD_SCOPE",
    "EMISSIONS_ANALYSIS_SCOPE",
    "RUN_RUNNING",
    "RUN_SUCCESS",
    "RUN_FAILED",
    "new_run_record",
    "run_outcome_fields",
    "start_run",
    "end_run",
    "save_checkpoint",
    "load_checkpoint",
    "get_last_run",
    "list_runs",
    "reset_local_store",
]
