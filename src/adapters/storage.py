from __future__ import annotations

import io
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

# Tabular formats understood by write_table/read_table, keyed by file suffix
TABLE_SUFFIXES = {".csv": "csv", ".parquet": "parquet"}


def table_format_for(key: str) -> str:
    """'csv' or 'parquet' from the key's suffix; ValueError for anything else."""
    suffix = Path(key).suffix.lower()
    try:
        return TABLE_SUFFIXES[suffix]
    except KeyError:
        raise ValueError(
            f"Unsupported table key {key!r}: expected one of {sorted(TABLE_SUFFIXES)}",
        ) from None


class StorageAdapter(ABC):
    """
    Byte-level store (local FS, S3) with DataFrame helpers on top.

    Subclasses only move bytes around logical keys such as
    "raw/owid/annual_co2_emissions.csv" or
    "analytics/20240101/top_n_by_average.csv"; CSV/Parquet encoding is
    shared here so both backends write identical objects.
    """

    @abstractmethod
    def write_raw(self, key: str, content: bytes) -> str:
        """
        Store `content` at `key` and return the physical location
        ("analytics/..." on disk, "s3://bucket/analytics/..." on S3).
        """

    @abstractmethod
    def read_raw(self, key: str) -> bytes:
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def list_keys(self, prefix: str) -> List[str]:
        """Logical keys under `prefix`, sorted."""

    def write_table(self, df: pd.DataFrame, key: str) -> str:
        """Encode `df` as CSV or Parquet (from the key suffix), index dropped."""
        if table_format_for(key) == "parquet":
            buf = io.BytesIO()
            df.to_parquet(buf, index=False)
            return self.write_raw(key, buf.getvalue())

        text = io.StringIO()
        df.to_csv(text, index=False)
        return self.write_raw(key, text.getvalue().encode("utf-8"))

    def read_table(self, key: str, **csv_kwargs) -> pd.DataFrame:
        """Decode a table written by write_table; `csv_kwargs` go to read_csv."""
        if table_format_for(key) == "parquet":
            return self.read_parquet(key)
        return self.read_csv(key, **csv_kwargs)

    def read_csv(self, key: str, **kwargs) -> pd.DataFrame:
        return pd.read_csv(io.BytesIO(self.read_raw(key)), **kwargs)

    def read_parquet(self, key: str) -> pd.DataFrame:
        return pd.read_parquet(io.BytesIO(self.read_raw(key)))


class LocalStorageAdapter(StorageAdapter):
    """
    Keys are relative paths under `root_dir`:

        LocalStorageAdapter("out").write_raw("raw/owid/continents.csv", ...)
        -> out/raw/owid/continents.csv
    """

    def __init__(self, root_dir: Path | str = ".") -> None:
        self.root_dir = Path(root_dir)

    def _path(self, key: str) -> Path:
        return self.root_dir / key

    def write_raw(self, key: str, content: bytes) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return str(path)

    def read_raw(self, key: str) -> bytes:
        return self._path(key).read_bytes()

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def list_keys(self, prefix: str) -> List[str]:
        base = self._path(prefix)
        if not base.is_dir():
            return []
        return sorted(
            str(p.relative_to(self.root_dir)).replace(os.sep, "/")
            for p in base.rglob("*")
            if p.is_file()
        )


class S3StorageAdapter(StorageAdapter):
    """
    Objects live at s3://<bucket>/<base_prefix>/<key>; callers only ever
    see the logical key (base_prefix stripped).
    """

    def __init__(
        self,
        bucket: str,
        *,
        base_prefix: Optional[str] = None,
        boto3_client: Optional["boto3.client"] = None,
    ) -> None:
        if boto3_client is None:
            import boto3  # lazy import to keep local-only runs lighter

            boto3_client = boto3.client("s3")

        self.bucket = bucket
        self.base_prefix = (base_prefix or "").strip("/")
        self._s3 = boto3_client

    def _object_key(self, key: str) -> str:
        key = key.lstrip("/")
        return f"{self.base_prefix}/{key}" if self.base_prefix else key

    def _logical_key(self, object_key: str) -> str:
        if self.base_prefix and object_key.startswith(self.base_prefix + "/"):
            return object_key[len(self.base_prefix) + 1:]
        return object_key

    def write_raw(self, key: str, content: bytes) -> str:
        object_key = self._object_key(key)
        self._s3.put_object(Bucket=self.bucket, Key=object_key, Body=content)
        return f"s3://{self.bucket}/{object_key}"

    def read_raw(self, key: str) -> bytes:
        resp = self._s3.get_object(Bucket=self.bucket, Key=self._object_key(key))
        return resp["Body"].read()

    def exists(self, key: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            self._s3.head_object(Bucket=self.bucket, Key=self._object_key(key))
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in {"404", "NoSuchKey", "NotFound"}:
                return False
            raise
        return True

    def list_keys(self, prefix: str) -> List[str]:
        object_prefix = self._object_key(prefix).rstrip("/") + "/"
        paginator = self._s3.get_paginator("list_objects_v2")
        keys: List[str] = []
        for page in paginator.paginate(Bucket=self.bucket, Prefix=object_prefix):
            contents: Iterable[dict] = page.get("Contents") or []
            keys.extend(self._logical_key(obj["Key"]) for obj in contents)
        return sorted(keys)
