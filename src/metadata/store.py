import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4


# Environment variable to override the local JSON path (tests, CI)
METADATA_LOCAL_FILE_ENV = "METADATA_LOCAL_FILE"

# Default local JSON file standing in for DynamoDB in local runs
DEFAULT_METADATA_FILE = Path("local_metadata.json")


RUN_RUNNING = "RUNNING"
RUN_SUCCESS = "SUCCESS"
RUN_FAILED = "FAILED"


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_run_record(run_scope: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    """Fresh RUNNING record; the same shape is stored locally and in DynamoDB."""
    return {
        "run_id": run_id or str(uuid4()),
        "run_scope": run_scope,
        "start_ts": _now_utc_iso(),
        "end_ts": None,
        "status": RUN_RUNNING,
        "rows_processed": None,
        "rows_excluded": None,
        "last_checkpoint": None,
        "error_message": None,
    }


def run_outcome_fields(
    status: str,
    *,
    rows_processed: Optional[int] = None,
    rows_excluded: Optional[int] = None,
    last_checkpoint: Optional[str] = None,
    error_message: Optional[str] = None,
) -> Dict[str, Any]:
    """Fields to set when a run ends; arguments left as None are not touched."""
    fields: Dict[str, Any] = {"status": status, "end_ts": _now_utc_iso()}
    if rows_processed is not None:
        fields["rows_processed"] = int(rows_processed)
    if rows_excluded is not None:
        fields["rows_excluded"] = int(rows_excluded)
    if last_checkpoint is not None:
        fields["last_checkpoint"] = str(last_checkpoint)
    if error_message is not None:
        fields["error_message"] = error_message
    return fields


def _get_metadata_file(path: Optional[Path | str] = None) -> Path:
    """Resolve the JSON file: explicit path, then env var, then default."""
    if path is not None:
        return Path(path)
    env_value = os.getenv(METADATA_LOCAL_FILE_ENV)
    if env_value:
        return Path(env_value)
    return DEFAULT_METADATA_FILE


def _load_store(path: Optional[Path | str] = None) -> Dict[str, Any]:
    """
    Read {"runs": [<run record>, ...], "checkpoints": {source: value}}.

    Run records have the keys produced by new_run_record(). A missing file
    is an empty store; unreadable JSON or a wrong shape raises RuntimeError.
    """
    file_path = _get_metadata_file(path)
    if not file_path.exists():
        return {"runs": [], "checkpoints": {}}

    with file_path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Metadata file {file_path} is corrupted") from exc

    if not isinstance(data, dict):
        raise RuntimeError(f"Metadata file {file_path} has invalid format (expected object)")

    data.setdefault("runs", [])
    data.setdefault("checkpoints", {})
    if not isinstance(data["runs"], list) or not isinstance(data["checkpoints"], dict):
        raise RuntimeError(f"Metadata file {file_path} has invalid structure")

    return data


def _save_store(store: Dict[str, Any], path: Optional[Path | str] = None) -> None:
    """Write to a temp file then swap it in, so readers never see a partial file."""
    file_path = _get_metadata_file(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = file_path.with_suffix(file_path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(store, f, indent=2, ensure_ascii=False)

    tmp_path.replace(file_path)


def start_run(run_scope: str, *, path: Optional[Path | str] = None) -> str:
    """
    Register the start of a run and return its run_id.

    Typical scopes: "owid_download", "emissions_analysis".
    """
    store = _load_store(path)
    record = new_run_record(run_scope)
    store["runs"].append(record)
    _save_store(store, path)
    return record["run_id"]


def end_run(
    run_id: str,
    status: str = RUN_SUCCESS,
    *,
    rows_processed: Optional[int] = None,
    rows_excluded: Optional[int] = None,
    last_checkpoint: Optional[str] = None,
    error_message: Optional[str] = None,
    path: Optional[Path | str] = None,
) -> Dict[str, Any]:
    """
    Mark a run as finished and return the updated record.

    Raises KeyError when `run_id` is unknown.
    """
    store = _load_store(path)
    target_run = next((r for r in reversed(store["runs"]) if r.get("run_id") == run_id), None)
    if target_run is None:
        raise KeyError(f"No run found with id={run_id!r}")

    target_run.update(
        run_outcome_fields(
            status,
            rows_processed=rows_processed,
            rows_excluded=rows_excluded,
            last_checkpoint=last_checkpoint,
            error_message=error_message,
        )
    )
    _save_store(store, path)
    return target_run


def save_checkpoint(source: str, value: Any, *, path: Optional[Path | str] = None) -> None:
    store = _load_store(path)
    store["checkpoints"][source] = value
    _save_store(store, path)


def load_checkpoint(
    source: str,
    default: Optional[Any] = None,
    *,
    path: Optional[Path | str] = None,
) -> Any:
    store = _load_store(path)
    return store["checkpoints"].get(source, default)


def get_last_run(
    run_scope: Optional[str] = None,
    *,
    path: Optional[Path | str] = None,
) -> Optional[Dict[str, Any]]:
    """Most recent run record, optionally restricted to one scope."""
    runs = list_runs(run_scope, path=path)
    return runs[-1] if runs else None


def list_runs(
    run_scope: Optional[str] = None,
    *,
    path: Optional[Path | str] = None,
) -> List[Dict[str, Any]]:
    runs: List[Dict[str, Any]] = _load_store(path)["runs"]
    if run_scope is None:
        return list(runs)
    return [r for r in runs if r.get("run_scope") == run_scope]


def reset_local_store(*, path: Optional[Path | str] = None) -> Tuple[int, int]:
    """
    Clear all runs and checkpoints. Mainly for local development/tests.

    Returns (runs_cleared, checkpoints_cleared).
    """
    store = _load_store(path)
    counts = (len(store["runs"]), len(store["checkpoints"]))
    _save_store({"runs": [], "checkpoints": {}}, path)
    return counts
