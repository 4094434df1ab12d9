"""S3 backend (boto3): hierarchical operations mapped onto flat object keys.

Existence is always re-derived from the bucket, never cached: the bucket is
the source of truth and may change out of band. Directories are emulated by
key prefixes, optionally materialised as zero-length ``dir/`` marker objects.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, BinaryIO, Optional

import boto3
from botocore.exceptions import ClientError

from filestore.core import timezone
from filestore.core.logger import logger
from filestore.services.pagination import ListPage
from filestore.services.storage_backends import Body, StorageAdapter
from filestore.utils.path_utils import PathRepresentation

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_not_found(exc: ClientError) -> bool:
    error = exc.response.get("Error", {})
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return error.get("Code") in _NOT_FOUND_CODES or status == 404


class S3Adapter(StorageAdapter):
    def __init__(
        self,
        *,
        bucket: str,
        region: Optional[str] = None,
        prefix: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        page_size: Optional[int] = None,
        public_url_expiry_hours: Optional[int] = None,
        client=None,
    ):
        super().__init__(page_size=page_size, public_url_expiry_hours=public_url_expiry_hours)
        self.bucket = bucket
        self.prefix = (prefix or "").strip("/")
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    # Object key for a normalised path, honouring the configured key prefix
    def _join_key(self, rel: str) -> str:
        if self.prefix:
            return f"{self.prefix}/{rel}"
        return rel

    def _strip_key(self, key: str) -> str:
        if self.prefix:
            return key[len(self.prefix) + 1 :]
        return key

    async def _call(self, operation: str, **params: Any) -> dict:
        logger.debug("S3 %s %s", operation, params.get("Key") or params.get("Prefix"))
        return await asyncio.to_thread(getattr(self._client, operation), Bucket=self.bucket, **params)

    async def _head_object(self, key: str) -> Optional[dict]:
        """Object metadata, or ``None`` when the bucket reports the key as absent."""
        try:
            return await self._call("head_object", Key=key)
        except ClientError as exc:
            if _is_not_found(exc):
                return None
            raise

    async def _file_exists(self, path: PathRepresentation) -> bool:
        return await self._head_object(self._join_key(path.normalised_path)) is not None

    async def _read_bytes(self, path: PathRepresentation) -> bytes:
        stream = await self._open_stream(path)
        try:
            return await asyncio.to_thread(stream.read)
        finally:
            stream.close()

    async def _open_stream(self, path: PathRepresentation) -> BinaryIO:
        response = await self._call("get_object", Key=self._join_key(path.normalised_path))
        return response["Body"]

    async def _put_object(self, path: PathRepresentation, body: Body, content_type: str) -> None:
        await self._call(
            "put_object",
            Key=self._join_key(path.normalised_path),
            Body=body,
            ContentType=content_type,
        )

    async def _copy_object(self, source: PathRepresentation, destination: PathRepresentation) -> None:
        await self._call(
            "copy_object",
            Key=self._join_key(destination.normalised_path),
            CopySource={"Bucket": self.bucket, "Key": self._join_key(source.normalised_path)},
        )

    async def _delete_object(self, path: PathRepresentation) -> None:
        await self._call("delete_object", Key=self._join_key(path.normalised_path))

    async def _list_page(self, prefix: str, cursor: Optional[str], max_keys: Optional[int] = None) -> ListPage:
        params: dict = {"Prefix": self._join_key(prefix), "MaxKeys": max_keys or self.page_size}
        if cursor:
            params["ContinuationToken"] = cursor
        response = await self._call("list_objects_v2", **params)
        keys = tuple(self._strip_key(item["Key"]) for item in response.get("Contents", []))
        return ListPage(
            keys=keys,
            next_cursor=response.get("NextContinuationToken"),
            is_truncated=bool(response.get("IsTruncated")),
        )

    async def _directory_exists(self, path: PathRepresentation) -> bool:
        if path.is_root:
            return True
        page = await self._list_page(path.s3_safe_directory_path(), None, max_keys=1)
        return bool(page.keys)

    async def _create_directory(self, path: PathRepresentation) -> None:
        # placeholder object so the empty prefix is listable
        await self._put_object(path.as_directory(), b"", "application/x-directory")

    async def _presign(self, path: PathRepresentation, expiry: datetime) -> str:
        expires_in = max(1, int((expiry - timezone.now()).total_seconds()))
        return await asyncio.to_thread(
            self._client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.bucket, "Key": self._join_key(path.normalised_path)},
            ExpiresIn=expires_in,
        )
