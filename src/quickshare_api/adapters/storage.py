"""
Object store adapter for uploaded files.

Wraps an S3-compatible bucket behind the handful of operations the app needs:
upload, list, public URL, remove. Every botocore failure leaves this module as
a ``BackendError`` carrying the service's own message.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import TYPE_CHECKING, BinaryIO, Callable, Iterator, List, Optional, Union
from urllib.parse import quote

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from quickshare_api.config.settings import Settings
from quickshare_api.exceptions import BackendError

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
MISSING_KEY_CODES = ("404", "NoSuchKey", "NotFound")


@dataclass
class StoredObject:
    """One object as reported by a listing."""
    name: str
    path: str
    size: int
    created_at: datetime
    mime_type: Optional[str] = None


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return error.get("Message") or error.get("Code") or str(exc)
    return str(exc)


class ObjectStore:
    """Handles one bucket of an S3-compatible object store."""

    def __init__(
        self,
        bucket_name: str,
        s3_client: "S3Client",
        public_base_url: Optional[str] = None,
        region: str = "us-east-1",
    ):
        self.bucket_name = bucket_name
        self.public_base_url = public_base_url
        self.region = region
        self._s3 = s3_client

    @classmethod
    def from_settings(cls, settings: Settings, s3_client: Optional["S3Client"] = None) -> "ObjectStore":
        if s3_client is None:
            s3_client = boto3.client(
                "s3",
                region_name=settings.aws_region,
                endpoint_url=settings.aws_endpoint_url,
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
            )
        store = cls(
            bucket_name=settings.s3_bucket_name,
            s3_client=s3_client,
            public_base_url=settings.public_base_url or settings.aws_endpoint_url,
            region=settings.aws_region,
        )
        logger.info(f"ObjectStore initialized for bucket: {store.bucket_name}")
        return store

    def upload(
        self,
        path: str,
        data: Union[bytes, BinaryIO],
        content_type: Optional[str] = None,
        upsert: bool = False,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> str:
        """
        Store ``data`` under ``path``.

        :param path: full object key, prefix included.
        :param data: raw bytes or a readable binary file object.
        :param content_type: MIME type recorded on the object.
        :param upsert: overwrite an existing object instead of failing.
        :param progress_callback: called with the number of bytes sent by each chunk.
        :return: the key the object was stored under.
        """
        if not upsert and self.exists(path):
            raise BackendError("The resource already exists")

        body = BytesIO(data) if isinstance(data, (bytes, bytearray)) else data
        try:
            self._s3.upload_fileobj(
                body,
                self.bucket_name,
                path,
                ExtraArgs={"ContentType": content_type or DEFAULT_CONTENT_TYPE},
                Callback=progress_callback,
            )
        except (ClientError, BotoCoreError, S3UploadFailedError) as e:
            logger.error(f"Error uploading {path} to bucket {self.bucket_name}: {str(e)}")
            raise BackendError(_error_message(e)) from e

        logger.info(f"Uploaded {path} to bucket {self.bucket_name}")
        return path

    def _iter_objects(self, prefix: str) -> Iterator[StoredObject]:
        key_prefix = f"{prefix.strip('/')}/" if prefix else ""
        paginator = self._s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=key_prefix, Delimiter="/"):
            for item in page.get("Contents", []):
                key = item["Key"]
                if key.endswith("/"):
                    continue
                yield StoredObject(
                    name=key[len(key_prefix):],
                    path=key,
                    size=item["Size"],
                    created_at=item["LastModified"],
                )

    def list(
        self,
        prefix: str,
        limit: Optional[int] = None,
        offset: int = 0,
        sort_by: str = "created_at",
        order: str = "desc",
        with_metadata: bool = False,
    ) -> List[StoredObject]:
        """List the objects directly under ``prefix``, sorted, then sliced by offset/limit."""
        try:
            objects = list(self._iter_objects(prefix))
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing {prefix!r} in bucket {self.bucket_name}: {str(e)}")
            raise BackendError(_error_message(e)) from e

        if sort_by == "name":
            objects.sort(key=lambda obj: obj.name, reverse=order == "desc")
        else:
            objects.sort(key=lambda obj: (obj.created_at, obj.name), reverse=order == "desc")

        end = None if limit is None else offset + limit
        selected = objects[offset:end]

        if with_metadata:
            for obj in selected:
                obj.mime_type = self._content_type(obj.path)
        return selected

    def count(self, prefix: str) -> int:
        try:
            return sum(1 for _ in self._iter_objects(prefix))
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error counting {prefix!r} in bucket {self.bucket_name}: {str(e)}")
            raise BackendError(_error_message(e)) from e

    def _content_type(self, path: str) -> Optional[str]:
        try:
            head = self._s3.head_object(Bucket=self.bucket_name, Key=path)
        except ClientError as e:
            # Removed between the listing and the head call
            if e.response.get("Error", {}).get("Code") in MISSING_KEY_CODES:
                return None
            raise BackendError(_error_message(e)) from e
        except BotoCoreError as e:
            logger.error(f"Error reading metadata of {path} in bucket {self.bucket_name}: {str(e)}")
            raise BackendError(_error_message(e)) from e
        return head.get("ContentType")

    def exists(self, path: str) -> bool:
        """Check if an object exists in the bucket."""
        try:
            self._s3.head_object(Bucket=self.bucket_name, Key=path)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in MISSING_KEY_CODES:
                return False
            raise BackendError(_error_message(e)) from e
        except BotoCoreError as e:
            raise BackendError(_error_message(e)) from e

    def get_public_url(self, path: str) -> str:
        key = quote(path)
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def remove(self, paths: List[str]) -> List[str]:
        """Delete every key in ``paths`` and return the keys the store reports as deleted."""
        if not paths:
            return []
        try:
            response = self._s3.delete_objects(
                Bucket=self.bucket_name,
                Delete={"Objects": [{"Key": path} for path in paths]},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error removing {paths} from bucket {self.bucket_name}: {str(e)}")
            raise BackendError(_error_message(e)) from e

        errors = response.get("Errors", [])
        if errors:
            logger.error(f"Bucket {self.bucket_name} refused to remove: {errors}")
            raise BackendError(errors[0].get("Message") or errors[0].get("Code", "Delete failed"))

        removed = [item["Key"] for item in response.get("Deleted", [])]
        logger.info(f"Removed {removed} from bucket {self.bucket_name}")
        return removed

    def check(self) -> None:
        """Raise ``BackendError`` unless the bucket is reachable."""
        try:
            self._s3.head_bucket(Bucket=self.bucket_name)
        except (ClientError, BotoCoreError) as e:
            raise BackendError(_error_message(e)) from e
