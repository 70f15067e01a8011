"""
Local Blob Store Implementation

Concrete implementation of IBlobStore on the local filesystem. Each bucket
is a directory under the base path; object metadata is kept in a JSON
sidecar next to the object. Used for development and tests.
"""

import json
import logging
import mimetypes
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional

from securelink.domain.errors import ObjectNotFoundError, StorageUnavailableError
from securelink.domain.file_storage.blob_store import IBlobStore
from securelink.domain.file_storage.signed_url_service import SignedUrlService
from securelink.domain.file_storage.value_objects import ObjectStat, StoredObject

logger = logging.getLogger(__name__)

METADATA_SUFFIX = ".meta.json"
CHUNK_SIZE = 8192


class LocalBlobStore(IBlobStore):
    """
    Local filesystem implementation of IBlobStore.

    Presigned URLs are HMAC-signed URLs served by this application's
    storage endpoint; public URLs point at the same endpoint without a
    signature.

    Thread Safety:
        Reads are safe concurrently. Writes go to a temporary file that is
        renamed into place, so readers never see a partial object.

    Attributes:
        base_path: Directory holding one sub-directory per bucket
        signer: SignedUrlService used for presigned_get() and public_url()
    """

    def __init__(self, base_path: str, signer: Optional[SignedUrlService] = None):
        """
        Initialize the local blob store.

        Args:
            base_path: Base directory for bucket directories

        Raises:
            StorageUnavailableError: If the base directory cannot be created
        """
        self.base_path = Path(base_path)
        self.signer = signer or SignedUrlService()
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Failed to create storage directory: {self.base_path}", e
            ) from e

    def _object_path(self, bucket: str, key: str) -> Path:
        """
        Resolve the file path of an object, refusing keys that escape the bucket.

        Raises:
            ObjectNotFoundError: For empty or escaping keys
        """
        if not bucket or not key or not key.strip("/"):
            raise ObjectNotFoundError(bucket, key)

        bucket_dir = (self.base_path / bucket).resolve()
        full_path = (bucket_dir / key.lstrip("/")).resolve()
        if bucket_dir != full_path and bucket_dir not in full_path.parents:
            raise ObjectNotFoundError(bucket, key)
        return full_path

    @staticmethod
    def _metadata_path(object_path: Path) -> Path:
        return object_path.with_name(object_path.name + METADATA_SUFFIX)

    def _read_sidecar(self, object_path: Path) -> Dict[str, object]:
        sidecar = self._metadata_path(object_path)
        if not sidecar.exists():
            return {}
        try:
            return json.loads(sidecar.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable metadata sidecar {sidecar}: {e}")
            return {}

    # IBlobStore interface methods

    def exists(self, bucket: str, key: str) -> bool:
        try:
            return self._object_path(bucket, key).is_file()
        except ObjectNotFoundError:
            return False

    def stat(self, bucket: str, key: str) -> ObjectStat:
        object_path = self._object_path(bucket, key)
        try:
            file_stat = object_path.stat()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(bucket, key, e) from e
        except OSError as e:
            raise StorageUnavailableError(f"Failed to stat {bucket}/{key}", e) from e

        if not object_path.is_file():
            raise ObjectNotFoundError(bucket, key)

        sidecar = self._read_sidecar(object_path)
        content_type = (
            sidecar.get("content_type")
            or mimetypes.guess_type(object_path.name)[0]
            or "application/octet-stream"
        )
        return ObjectStat(
            size=file_stat.st_size,
            content_type=content_type,
            metadata={k.lower(): str(v) for k, v in dict(sidecar.get("metadata", {})).items()},
            last_modified=datetime.fromtimestamp(file_stat.st_mtime, tz=timezone.utc),
        )

    def get_stream(self, bucket: str, key: str) -> BinaryIO:
        object_path = self._object_path(bucket, key)
        try:
            return open(object_path, "rb")
        except (FileNotFoundError, IsADirectoryError) as e:
            raise ObjectNotFoundError(bucket, key, e) from e
        except OSError as e:
            raise StorageUnavailableError(f"Failed to open {bucket}/{key}", e) from e

    def put(
        self,
        bucket: str,
        key: str,
        content: BinaryIO,
        length: int,
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> ObjectStat:
        object_path = self._object_path(bucket, key)
        temp_path = object_path.with_name(f".{object_path.name}.part")
        try:
            object_path.parent.mkdir(parents=True, exist_ok=True)
            if hasattr(content, "seek"):
                content.seek(0)
            with open(temp_path, "wb") as f:
                while True:
                    chunk = content.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)
            temp_path.replace(object_path)

            self._metadata_path(object_path).write_text(
                json.dumps({"content_type": content_type, "metadata": metadata or {}}),
                encoding="utf-8",
            )
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise StorageUnavailableError(f"Failed to save {bucket}/{key}", e) from e

        return self.stat(bucket, key)

    def delete(self, bucket: str, key: str) -> bool:
        try:
            object_path = self._object_path(bucket, key)
        except ObjectNotFoundError:
            return True

        try:
            if object_path.is_file():
                object_path.unlink()
            self._metadata_path(object_path).unlink(missing_ok=True)
            return True
        except OSError as e:
            raise StorageUnavailableError(f"Failed to delete {bucket}/{key}", e) from e

    def list_objects(
        self, bucket: str, prefix: str = "", recursive: bool = True
    ) -> List[StoredObject]:
        bucket_dir = self.base_path / bucket
        if not bucket_dir.is_dir():
            return []

        objects: List[StoredObject] = []
        folders = set()
        try:
            for path in sorted(bucket_dir.rglob("*")):
                if not path.is_file() or path.name.endswith(METADATA_SUFFIX) or path.name.endswith(".part"):
                    continue
                key = path.relative_to(bucket_dir).as_posix()
                if not key.startswith(prefix):
                    continue

                remainder = key[len(prefix):]
                if not recursive and "/" in remainder:
                    folders.add(prefix + remainder.split("/", 1)[0] + "/")
                    continue

                file_stat = path.stat()
                objects.append(StoredObject(
                    key=key,
                    size=file_stat.st_size,
                    last_modified=datetime.fromtimestamp(file_stat.st_mtime, tz=timezone.utc),
                ))
        except OSError as e:
            raise StorageUnavailableError(f"Failed to list bucket {bucket}", e) from e

        objects.extend(StoredObject(key=folder, is_folder=True) for folder in sorted(folders))
        return objects

    def presigned_get(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str:
        return self.signer.generate_signed_url(bucket, key, ttl_seconds=ttl_seconds).url

    def presigned_put(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str:
        return self.signer.generate_signed_url(
            bucket, key, ttl_seconds=ttl_seconds, method="PUT"
        ).url

    def copy(self, source_bucket: str, key: str, target_bucket: str) -> ObjectStat:
        source_path = self._object_path(source_bucket, key)
        if not source_path.is_file():
            raise ObjectNotFoundError(source_bucket, key)

        target_path = self._object_path(target_bucket, key)
        temp_path = target_path.with_name(f".{target_path.name}.part")
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, temp_path)
            temp_path.replace(target_path)

            source_sidecar = self._metadata_path(source_path)
            if source_sidecar.is_file():
                shutil.copyfile(source_sidecar, self._metadata_path(target_path))
        except FileNotFoundError as e:
            temp_path.unlink(missing_ok=True)
            raise ObjectNotFoundError(source_bucket, key, e) from e
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise StorageUnavailableError(
                f"Failed to copy {source_bucket}/{key} to {target_bucket}", e
            ) from e

        logger.info(f"Copied object {source_bucket}/{key} to {target_bucket}")
        return self.stat(target_bucket, key)

    def public_url(self, bucket: str, key: str) -> str:
        return self.signer.object_url(bucket, key)

    def ensure_bucket(self, bucket: str) -> None:
        try:
            (self.base_path / bucket).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Failed to create bucket {bucket}", e) from e

    def health_check(self) -> bool:
        return self.base_path.is_dir()
