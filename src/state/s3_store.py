from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError
from pydantic import ValidationError

from prefs.errors import BackendError, OptimisticLockError

from .backend import TableBackend
from .models import PrefsTable, dump_table_json, load_table_json


logger = logging.getLogger(__name__)


@dataclass
class S3ObjectRef:
    bucket: str
    key: str

    def __str__(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


class S3Backend(TableBackend):
    """
    Preference table stored as one JSON object in S3.

    Usage
    - Provide the bucket/key (and optionally an injected client for tests).
    - The object is fetched on first access; a missing object is an empty table.
    - `save()` uploads the table. With `optimistic=True`, the upload only
      succeeds if the object still has the ETag seen at load (or last save),
      otherwise `OptimisticLockError` is raised and the in-memory table is kept.

    Values are already ciphertext when they reach this store, so the object is
    written as plain JSON.
    """

    def __init__(
        self,
        *,
        s3: Optional[object] = None,
        bucket: str,
        key: str,
        region_name: Optional[str] = None,
        optimistic: bool = False,
    ) -> None:
        super().__init__()
        self._s3 = s3 or boto3.client("s3", region_name=region_name)
        self._obj = S3ObjectRef(bucket=bucket, key=key)
        self._optimistic = optimistic
        self._etag: Optional[str] = None

    @property
    def etag(self) -> Optional[str]:
        return self._etag

    # -------- TableBackend hooks --------
    def _load(self) -> PrefsTable:
        try:
            resp = self._s3.get_object(Bucket=self._obj.bucket, Key=self._obj.key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                self._etag = None
                return PrefsTable.empty()
            raise BackendError(f"Failed to read {self._obj}") from e

        body = resp["Body"].read()
        self._etag = resp.get("ETag")  # usually quoted string
        try:
            return load_table_json(body)
        except (ValueError, ValidationError) as ex:
            raise BackendError(f"Failed to parse preferences object {self._obj}") from ex

    def _store(self, table: PrefsTable) -> None:
        if_match = self._etag if self._optimistic else None
        self._etag = self.write(table, if_match=if_match)

    # -------- Raw write --------
    def write(self, table: PrefsTable, *, if_match: Optional[str] = None) -> str:
        """Write the table to S3; returns the new ETag.

        When `if_match` is provided, the write proceeds only if the current
        object ETag matches it. S3 PutObject does not support If-Match, so the
        body is uploaded to a temporary key and copied over the destination
        with an If-Match precondition, then the temporary key is removed.
        """
        body = dump_table_json(table)

        if if_match is None:
            try:
                resp = self._s3.put_object(
                    Bucket=self._obj.bucket,
                    Key=self._obj.key,
                    Body=body,
                    ContentType="application/json",
                )
            except ClientError as e:
                raise BackendError(f"Failed to write {self._obj}") from e
            return str(resp.get("ETag"))

        temp_key = f"{self._obj.key}.tmp-{uuid4().hex}"
        try:
            self._s3.put_object(
                Bucket=self._obj.bucket,
                Key=temp_key,
                Body=body,
                ContentType="application/json",
            )
            resp = self._s3.copy_object(
                Bucket=self._obj.bucket,
                Key=self._obj.key,
                CopySource={"Bucket": self._obj.bucket, "Key": temp_key},
                IfMatch=if_match,
                MetadataDirective="COPY",
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("PreconditionFailed", "412"):
                raise OptimisticLockError(f"ETag mismatch for {self._obj}") from e
            raise BackendError(f"Failed to write {self._obj}") from e
        finally:
            # Best-effort cleanup of temp object
            try:
                self._s3.delete_object(Bucket=self._obj.bucket, Key=temp_key)
            except ClientError as e:
                logger.warning("Could not remove temporary object %s: %s", temp_key, e)

        return str(resp.get("ETag"))
