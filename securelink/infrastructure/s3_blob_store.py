"""
S3 Blob Store Implementation

Concrete implementation of IBlobStore for S3-compatible object storage
(AWS S3, MinIO) using boto3.
"""

import logging
from typing import BinaryIO, Dict, List, Optional
from urllib.parse import quote

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from securelink.domain.errors import ObjectNotFoundError, StorageUnavailableError
from securelink.domain.file_storage.blob_store import IBlobStore
from securelink.domain.file_storage.value_objects import ObjectStat, StoredObject

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}


def _is_not_found(error: ClientError) -> bool:
    return str(error.response.get("Error", {}).get("Code")) in _NOT_FOUND_CODES


class S3BlobStore(IBlobStore):
    """
    S3/MinIO implementation of IBlobStore.

    Thread Safety:
        boto3 clients are thread-safe; one client is shared by all requests.

    Attributes:
        client: boto3 S3 client
        public_base_url: Prefix of direct URLs for publicly readable buckets
    """

    def __init__(
        self,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region: str = "us-east-1",
        public_base_url: Optional[str] = None,
        client=None,
    ):
        """
        Initialize the S3 blob store.

        Args:
            endpoint_url: Endpoint of an S3-compatible server (None for AWS)
            access_key: Access key id
            secret_key: Secret access key
            region: Region used for signing
            public_base_url: Direct URL prefix (default: endpoint_url)
            client: Pre-built boto3 client (tests)
        """
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            # Path-style addressing is what MinIO serves
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        self.region = region
        base = public_base_url or endpoint_url or f"https://s3.{region}.amazonaws.com"
        self.public_base_url = base.rstrip("/")

    # IBlobStore interface methods

    def exists(self, bucket: str, key: str) -> bool:
        try:
            self.stat(bucket, key)
            return True
        except ObjectNotFoundError:
            return False

    def stat(self, bucket: str, key: str) -> ObjectStat:
        if not key:
            raise ObjectNotFoundError(bucket, key)
        try:
            head = self.client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(bucket, key, e) from e
            raise StorageUnavailableError(f"S3 head_object failed for {bucket}/{key}", e) from e
        except BotoCoreError as e:
            raise StorageUnavailableError(f"S3 unreachable for {bucket}/{key}", e) from e

        return ObjectStat(
            size=head.get("ContentLength", 0),
            content_type=head.get("ContentType") or "application/octet-stream",
            metadata={k.lower(): v for k, v in head.get("Metadata", {}).items()},
            etag=(head.get("ETag") or "").strip('"') or None,
            last_modified=head.get("LastModified"),
        )

    def get_stream(self, bucket: str, key: str) -> BinaryIO:
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(bucket, key, e) from e
            raise StorageUnavailableError(f"S3 get_object failed for {bucket}/{key}", e) from e
        except BotoCoreError as e:
            raise StorageUnavailableError(f"S3 unreachable for {bucket}/{key}", e) from e
        return response["Body"]

    def put(
        self,
        bucket: str,
        key: str,
        content: BinaryIO,
        length: int,
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> ObjectStat:
        if hasattr(content, "seek"):
            content.seek(0)
        try:
            response = self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=content,
                ContentLength=length,
                ContentType=content_type,
                Metadata=metadata or {},
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(f"Failed to save {bucket}/{key} to S3", e) from e

        logger.info(f"Stored object in S3: {bucket}/{key} ({length} bytes)")
        return ObjectStat(
            size=length,
            content_type=content_type,
            metadata={k.lower(): v for k, v in (metadata or {}).items()},
            etag=(response.get("ETag") or "").strip('"') or None,
        )

    def delete(self, bucket: str, key: str) -> bool:
        if not key:
            return True
        try:
            # S3 reports success for missing keys
            self.client.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if not _is_not_found(e):
                raise StorageUnavailableError(f"Failed to delete {bucket}/{key} from S3", e) from e
        except BotoCoreError as e:
            raise StorageUnavailableError(f"S3 unreachable for {bucket}/{key}", e) from e
        return True

    def list_objects(
        self, bucket: str, prefix: str = "", recursive: bool = True
    ) -> List[StoredObject]:
        params = {"Bucket": bucket, "Prefix": prefix}
        if not recursive:
            params["Delimiter"] = "/"

        objects: List[StoredObject] = []
        folders: List[StoredObject] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**params):
                for item in page.get("Contents", []):
                    objects.append(StoredObject(
                        key=item["Key"],
                        size=item.get("Size", 0),
                        last_modified=item.get("LastModified"),
                    ))
                for common in page.get("CommonPrefixes", []):
                    folders.append(StoredObject(key=common["Prefix"], is_folder=True))
        except ClientError as e:
            if _is_not_found(e):
                return []
            raise StorageUnavailableError(f"Failed to list S3 bucket {bucket}", e) from e
        except BotoCoreError as e:
            raise StorageUnavailableError(f"S3 unreachable while listing {bucket}", e) from e

        return objects + folders

    def presigned_get(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(f"Failed to sign URL for {bucket}/{key}", e) from e

    def presigned_put(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str:
        try:
            return self.client.generate_presigned_url(
                "put_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailableError(
                f"Failed to sign upload URL for {bucket}/{key}", e
            ) from e

    def copy(self, source_bucket: str, key: str, target_bucket: str) -> ObjectStat:
        if not key:
            raise ObjectNotFoundError(source_bucket, key)
        try:
            # MetadataDirective defaults to COPY
            self.client.copy_object(
                Bucket=target_bucket,
                Key=key,
                CopySource={"Bucket": source_bucket, "Key": key},
            )
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(source_bucket, key, e) from e
            raise StorageUnavailableError(
                f"Failed to copy {source_bucket}/{key} to {target_bucket}", e
            ) from e
        except BotoCoreError as e:
            raise StorageUnavailableError(f"S3 unreachable copying {source_bucket}/{key}", e) from e

        logger.info(f"Copied S3 object {source_bucket}/{key} to {target_bucket}")
        return self.stat(target_bucket, key)

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{quote(bucket, safe='')}/{quote(key, safe='/')}"

    def ensure_bucket(self, bucket: str) -> None:
        try:
            self.client.head_bucket(Bucket=bucket)
            return
        except ClientError as e:
            if not _is_not_found(e):
                raise StorageUnavailableError(f"Failed to check S3 bucket {bucket}", e) from e
        except BotoCoreError as e:
            raise StorageUnavailableError(f"S3 unreachable while checking {bucket}", e) from e

        try:
            self.client.create_bucket(Bucket=bucket)
            logger.info(f"Created S3 bucket: {bucket}")
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise StorageUnavailableError(f"Failed to create S3 bucket {bucket}", e) from e
        except BotoCoreError as e:
            raise StorageUnavailableError(f"S3 unreachable while creating {bucket}", e) from e

    def health_check(self) -> bool:
        try:
            self.client.list_buckets()
            return True
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"S3 health check failed: {e}")
            return False
