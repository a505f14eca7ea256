from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import metadata as local_store
from metadata import RUN_SUCCESS, new_run_record, run_outcome_fields


class MetadataAdapter(ABC):
    """
    Run registry + checkpoints behind one interface, so ingestion and the
    analysis record runs the same way locally (JSON) and in AWS (DynamoDB).

    A run record carries run_id, run_scope, start/end timestamps, status
    (RUNNING / SUCCESS / FAILED), rows_processed, rows_excluded,
    last_checkpoint and error_message.
    """

    @abstractmethod
    def start_run(self, run_scope: str) -> str:
        """Create a RUNNING record and return its run_id."""

    @abstractmethod
    def end_run(
        self,
        run_id: str,
        status: str = RUN_SUCCESS,
        *,
        rows_processed: Optional[int] = None,
        rows_excluded: Optional[int] = None,
        last_checkpoint: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Close the run and return the stored record."""

    @abstractmethod
    def save_checkpoint(self, source: str, value: Any) -> None:
        ...

    @abstractmethod
    def load_checkpoint(self, source: str, default: Optional[Any] = None) -> Any:
        ...

    @abstractmethod
    def list_runs(self, run_scope: Optional[str] = None) -> List[Dict[str, Any]]:
        ...

    def get_last_run(self, run_scope: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Most recently started run, optionally within one scope."""
        runs = self.list_runs(run_scope)
        if not runs:
            return None
        return max(runs, key=lambda r: r.get("start_ts") or "")


class LocalMetadataAdapter(MetadataAdapter):
    """
    JSON file store (see `metadata.store`).

    `path` pins the file; without it the store uses METADATA_LOCAL_FILE or
    `local_metadata.json` in the working directory.
    """

    def __init__(self, path: Optional[Path | str] = None) -> None:
        self.path = path

    def start_run(self, run_scope: str) -> str:
        return local_store.start_run(run_scope, path=self.path)

    def end_run(
        self,
        run_id: str,
        status: str = RUN_SUCCESS,
        *,
        rows_processed: Optional[int] = None,
        rows_excluded: Optional[int] = None,
        last_checkpoint: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        return local_store.end_run(
            run_id,
            status,
            rows_processed=rows_processed,
            rows_excluded=rows_excluded,
            last_checkpoint=last_checkpoint,
            error_message=error_message,
            path=self.path,
        )

    def save_checkpoint(self, source: str, value: Any) -> None:
        local_store.save_checkpoint(source, value, path=self.path)

    def load_checkpoint(self, source: str, default: Optional[Any] = None) -> Any:
        return local_store.load_checkpoint(source, default, path=self.path)

    def list_runs(self, run_scope: Optional[str] = None) -> List[Dict[str, Any]]:
        return local_store.list_runs(run_scope, path=self.path)


def _run_key(run_id: str) -> Dict[str, str]:
    return {"pk": f"RUN#{run_id}", "sk": "META"}


def _checkpoint_key(source: str) -> Dict[str, str]:
    return {"pk": f"CHECKPOINT#{source}", "sk": "META"}


class DynamoMetadataAdapter(MetadataAdapter):
    """
    Single DynamoDB table keyed by (pk, sk):

        RUN#<run_id>        / META  -> run record (same fields as the JSON store)
        CHECKPOINT#<source> / META  -> {"source", "value"}
    """

    def __init__(
        self,
        table_name: str,
        *,
        boto3_resource: Optional["boto3.resources.factory.dynamodb.ServiceResource"] = None,
    ) -> None:
        if boto3_resource is None:
            import boto3  # lazy import

            boto3_resource = boto3.resource("dynamodb")
        self._table = boto3_resource.Table(table_name)

    def start_run(self, run_scope: str) -> str:
        record = new_run_record(run_scope)
        self._table.put_item(Item={**_run_key(record["run_id"]), **record})
        return record["run_id"]

    def end_run(
        self,
        run_id: str,
        status: str = RUN_SUCCESS,
        *,
        rows_processed: Optional[int] = None,
        rows_excluded: Optional[int] = None,
        last_checkpoint: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        fields = run_outcome_fields(
            status,
            rows_processed=rows_processed,
            rows_excluded=rows_excluded,
            last_checkpoint=last_checkpoint,
            error_message=error_message,
        )
        # every attribute goes through a #name placeholder ("status" is reserved)
        names = {f"#{attr}": attr for attr in fields}
        values = {f":{attr}": value for attr, value in fields.items()}
        assignments = ", ".join(f"#{attr} = :{attr}" for attr in fields)

        resp = self._table.update_item(
            Key=_run_key(run_id),
            UpdateExpression=f"set {assignments}",
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="ALL_NEW",
        )
        return resp.get("Attributes", {})

    def save_checkpoint(self, source: str, value: Any) -> None:
        self._table.put_item(Item={**_checkpoint_key(source), "source": source, "value": value})

    def load_checkpoint(self, source: str, default: Optional[Any] = None) -> Any:
        item = self._table.get_item(Key=_checkpoint_key(source)).get("Item")
        if not item:
            return default
        return item.get("value", default)

    def list_runs(self, run_scope: Optional[str] = None) -> List[Dict[str, Any]]:
        scan_kwargs: Dict[str, Any] = {
            "FilterExpression": "begins_with(#pk, :run_prefix)",
            "ExpressionAttributeNames": {"#pk": "pk"},
            "ExpressionAttributeValues": {":run_prefix": "RUN#"},
        }
        items: List[Dict[str, Any]] = []
        while True:
            resp = self._table.scan(**scan_kwargs)
            items.extend(resp.get("Items", []))
            if "LastEvaluatedKey" not in resp:
                break
            scan_kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]

        if run_scope is not None:
            items = [item for item in items if item.get("run_scope") == run_scope]
        return sorted(items, key=lambda r: r.get("start_ts") or "")
