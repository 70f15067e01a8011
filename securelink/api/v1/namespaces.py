"""
API Namespaces - Organized endpoint groups
"""

import io

from flask import Response, current_app, request, stream_with_context
from flask_restx import Namespace, Resource

from securelink.api.v1.models import (
    bucket_stats_response,
    error_response,
    file_list_response,
    link_request,
    link_response,
    secure_link_list_response,
    secure_link_stats,
    upload_response,
    upload_url_request,
    upload_url_response,
    visibility_request,
    visibility_response,
)
from securelink.application.file_access_service import (
    SECURITY_HEADERS,
    FileAccessService,
    SecureDownload,
)
from securelink.application.file_service import DEFAULT_CONTENT_TYPE, FileService
from securelink.config.storage_config import StorageConfig
from securelink.domain.errors import (
    ErrorCategory,
    FailedToGenerateUrlError,
    FileValidationError,
    ObjectNotFoundError,
    StorageUnavailableError,
    create_error_response,
)
from securelink.domain.file_storage import IBlobStore, SignedUrlService, Visibility
from securelink.domain.secure_links import LinkClass, SecureUrlRegistry
from securelink.infrastructure.event_handlers import short_id

STREAM_CHUNK_SIZE = 64 * 1024


def _parse_visibility(value):
    """Visibility from a request value, or None if invalid."""
    try:
        return Visibility.from_string(value)
    except ValueError:
        return None


def _stream_body(stream):
    """Yield the object body in chunks and close the stream afterwards."""
    try:
        while True:
            chunk = stream.read(STREAM_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        stream.close()


def _download_response(download: SecureDownload) -> Response:
    """Build a streaming (GET) or header-only (HEAD) response."""
    headers = download.headers()
    if download.stream is None:
        response = Response(status=200)
        response.headers.update(headers)
        return response
    return Response(
        stream_with_context(_stream_body(download.stream)),
        status=200,
        headers=headers,
        direct_passthrough=True,
    )


# =============================================================================
# Files Namespace - Upload, listing and link generation
# =============================================================================

files_ns = Namespace("files", description="File upload and management operations")


@files_ns.route("/")
class Files(Resource):
    """Upload and list files"""

    @files_ns.doc(
        "upload_file",
        params={
            "file": {"in": "formData", "type": "file", "required": True},
            "visibility": {"in": "formData", "type": "string", "enum": ["public", "private"]},
            "folder": {"in": "formData", "type": "string"},
            "link_class": {"in": "formData", "type": "string"},
        },
    )
    @files_ns.response(201, "Created", upload_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(413, "File Too Large", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def post(self):
        """
        Upload a file

        Images are stored publicly and other files privately unless a
        visibility is given. Private files come back with a secure link.
        """
        upload = request.files.get("file")
        if upload is None or not upload.filename:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "No file provided", status_code=400
            )

        visibility = None
        if request.form.get("visibility"):
            visibility = _parse_visibility(request.form["visibility"])
            if visibility is None:
                return create_error_response(
                    ErrorCategory.INVALID_REQUEST, "Invalid visibility", status_code=400
                )

        try:
            link_class = LinkClass.from_string(request.form.get("link_class", "standard"))
        except ValueError as e:
            return create_error_response(ErrorCategory.INVALID_REQUEST, str(e), status_code=400)

        # Measure the upload without reading it into memory
        upload.stream.seek(0, 2)
        size = upload.stream.tell()
        upload.stream.seek(0)

        try:
            file_service = current_app.container.resolve(FileService)
            stored = file_service.upload_file(
                upload.stream,
                upload.filename,
                size,
                visibility=visibility,
                folder=request.form.get("folder") or None,
                content_type=upload.mimetype or None,
                metadata={"user-agent": request.headers.get("User-Agent", "unknown")},
                link_class=link_class,
            )
            return {"success": True, "file": stored.to_dict()}, 201

        except FileValidationError as e:
            status = 413 if e.category is ErrorCategory.FILE_TOO_LARGE else 400
            return create_error_response(e.category, str(e), status_code=status)
        except StorageUnavailableError as e:
            current_app.logger.error(f"Upload failed, storage unavailable: {e}")
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )
        except FailedToGenerateUrlError as e:
            return create_error_response(
                ErrorCategory.LINK_GENERATION_FAILED, str(e), status_code=500
            )
        except Exception as e:
            current_app.logger.exception(f"Unexpected error during upload: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, f"Upload failed: {str(e)}", status_code=500
            )

    @files_ns.doc(
        "list_files",
        params={
            "visibility": "public or private (default: private)",
            "prefix": "Key prefix filter",
        },
    )
    @files_ns.response(200, "Success", file_list_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def get(self):
        """List files of one bucket"""
        visibility = _parse_visibility(request.args.get("visibility", "private"))
        if visibility is None:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Invalid visibility", status_code=400
            )

        try:
            file_service = current_app.container.resolve(FileService)
            objects = file_service.list_files(visibility, prefix=request.args.get("prefix", ""))
            return {
                "visibility": visibility.value,
                "files": [obj.to_dict() for obj in objects],
                "count": len(objects),
            }, 200
        except StorageUnavailableError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )


@files_ns.route("/stats")
class FileStats(Resource):
    """Bucket usage"""

    @files_ns.doc("get_bucket_stats", params={"visibility": "public or private"})
    @files_ns.response(200, "Success", bucket_stats_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def get(self):
        """Object count, total size and folders of a bucket"""
        visibility = _parse_visibility(request.args.get("visibility", "private"))
        if visibility is None:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Invalid visibility", status_code=400
            )

        try:
            file_service = current_app.container.resolve(FileService)
            return file_service.get_bucket_stats(visibility).to_dict(), 200
        except StorageUnavailableError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )


@files_ns.route("/<string:visibility>/<path:object_key>")
@files_ns.param("visibility", "public or private")
@files_ns.param("object_key", "Object key of the file")
class FileItem(Resource):
    """Single file operations"""

    @files_ns.doc("delete_file")
    @files_ns.response(204, "File deleted")
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def delete(self, visibility, object_key):
        """
        Delete a file

        Idempotent; secure links to the file stop resolving.
        """
        parsed = _parse_visibility(visibility)
        if parsed is None:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Invalid visibility", status_code=400
            )

        try:
            current_app.container.resolve(FileService).delete_file(parsed, object_key)
            return "", 204
        except StorageUnavailableError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )


@files_ns.route("/visibility")
class FileVisibility(Resource):
    """Move files between buckets"""

    @files_ns.doc("update_file_visibility")
    @files_ns.expect(visibility_request, validate=True)
    @files_ns.response(200, "Success", visibility_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def post(self):
        """
        Change the visibility of a file

        The file keeps its key and moves to the bucket of the new visibility.
        Secure links issued for the old location stop resolving.
        """
        data = request.get_json() or {}
        current = _parse_visibility(data.get("current_visibility", ""))
        target = _parse_visibility(data.get("visibility", ""))
        object_key = (data.get("object_key") or "").strip()
        if current is None or target is None or not object_key:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                "object_key, current_visibility and visibility are required",
                status_code=400,
            )

        try:
            file_service = current_app.container.resolve(FileService)
            ref = file_service.update_visibility(object_key, current, target)
            url = file_service.get_file_url(ref.visibility, ref.object_key)
        except ObjectNotFoundError as e:
            return create_error_response(ErrorCategory.FILE_NOT_FOUND, str(e), status_code=404)
        except StorageUnavailableError as e:
            current_app.logger.error(f"Visibility change failed, storage unavailable: {e}")
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )
        except FailedToGenerateUrlError as e:
            if isinstance(e.original_error, StorageUnavailableError):
                return create_error_response(
                    ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
                )
            return create_error_response(
                ErrorCategory.LINK_GENERATION_FAILED, str(e), status_code=500
            )

        return {
            "bucket_name": ref.bucket_name,
            "object_key": ref.object_key,
            "visibility": ref.visibility.value,
            "url": url,
        }, 200


@files_ns.route("/upload-urls")
class FileUploadUrls(Resource):
    """Direct upload URLs"""

    @files_ns.doc("create_upload_url")
    @files_ns.expect(upload_url_request, validate=True)
    @files_ns.response(200, "Success", upload_url_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def post(self):
        """
        Issue a URL the client can PUT a file body to

        The URL is signed for one key and expires after expires_in seconds.
        """
        data = request.get_json() or {}
        visibility = _parse_visibility(data.get("visibility", ""))
        object_key = (data.get("object_key") or "").strip()
        if visibility is None or not object_key:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                "visibility and object_key are required",
                status_code=400,
            )
        expires_in = data.get("expires_in") or 3600

        try:
            file_service = current_app.container.resolve(FileService)
            url = file_service.get_upload_url(visibility, object_key, expires_in)
        except FileValidationError as e:
            return create_error_response(e.category, str(e), status_code=400)
        except StorageUnavailableError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )

        return {
            "url": url,
            "method": "PUT",
            "bucket_name": file_service.bucket_for(visibility),
            "object_key": object_key,
            "expires_in": expires_in,
        }, 200


@files_ns.route("/links")
class FileLinks(Resource):
    """Generate access links"""

    @files_ns.doc("create_file_link")
    @files_ns.expect(link_request, validate=True)
    @files_ns.response(200, "Success", link_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def post(self):
        """
        Generate an access URL for a stored file

        Public files always get their direct URL; private files get a link of
        the requested class.
        """
        data = request.get_json() or {}
        visibility = _parse_visibility(data.get("visibility", ""))
        object_key = (data.get("object_key") or "").strip()
        if visibility is None or not object_key:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                "visibility and object_key are required",
                status_code=400,
            )

        try:
            link_class = LinkClass.from_string(data.get("link_class") or "standard")
        except ValueError as e:
            return create_error_response(ErrorCategory.INVALID_REQUEST, str(e), status_code=400)

        try:
            file_service = current_app.container.resolve(FileService)
            access_service = current_app.container.resolve(FileAccessService)
            url = file_service.get_file_url(visibility, object_key, link_class)
        except FailedToGenerateUrlError as e:
            if isinstance(e.original_error, ObjectNotFoundError):
                return create_error_response(
                    ErrorCategory.FILE_NOT_FOUND, str(e), status_code=404
                )
            if isinstance(e.original_error, StorageUnavailableError):
                return create_error_response(
                    ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
                )
            return create_error_response(
                ErrorCategory.LINK_GENERATION_FAILED, str(e), status_code=500
            )

        if visibility is Visibility.PUBLIC:
            return {"url": url, "link_class": "public", "expires_in": None, "max_accesses": None}, 200

        policy = access_service.policy_for(link_class)
        return {
            "url": url,
            "link_class": link_class.value,
            "expires_in": policy.expires_in_seconds,
            "max_accesses": policy.max_accesses,
        }, 200


# =============================================================================
# Secure Namespace - Secure link resolution
# =============================================================================

secure_ns = Namespace("secure", description="Secure link downloads")


@secure_ns.route("/<string:secure_id>/<string:timestamp>/<string:hash>")
@secure_ns.param("secure_id", "Secure id")
@secure_ns.param("timestamp", "Issuance timestamp (base 36)")
@secure_ns.param("hash", "Integrity hash")
class SecureDownloadResource(Resource):
    """Resolve a secure link"""

    def _resolve(self, secure_id, timestamp, hash, head: bool):
        try:
            access_service = current_app.container.resolve(FileAccessService)
            if head:
                download = access_service.inspect_secure_link(secure_id, timestamp, hash)
            else:
                download = access_service.open_secure_link(secure_id, timestamp, hash)
        except StorageUnavailableError as e:
            current_app.logger.error(
                f"[SECURE] Storage unavailable resolving {short_id(secure_id)}: {e}"
            )
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )

        if download is None:
            # One answer for every failure reason
            body, status = create_error_response(
                ErrorCategory.SECURE_LINK_NOT_FOUND, status_code=404
            )
            return body, status, dict(SECURITY_HEADERS)

        return _download_response(download)

    @secure_ns.doc("download_secure_link")
    @secure_ns.response(200, "File content")
    @secure_ns.response(404, "Invalid, expired or exhausted link", error_response)
    @secure_ns.response(503, "Service Unavailable", error_response)
    def get(self, secure_id, timestamp, hash):
        """
        Download the file behind a secure link

        Counts one access. Invalid, expired and used-up links all answer 404.
        """
        return self._resolve(secure_id, timestamp, hash, head=False)

    @secure_ns.doc("inspect_secure_link")
    @secure_ns.response(200, "File headers")
    @secure_ns.response(404, "Invalid, expired or exhausted link")
    def head(self, secure_id, timestamp, hash):
        """Headers of the file behind a secure link; counts one access."""
        return self._resolve(secure_id, timestamp, hash, head=True)


# =============================================================================
# Secure Links Namespace - Administration
# =============================================================================

secure_links_ns = Namespace("secure-links", description="Secure link administration")


@secure_links_ns.route("/")
class SecureLinkList(Resource):
    """Issued secure links"""

    @secure_links_ns.doc("list_secure_links")
    @secure_links_ns.response(200, "Success", secure_link_list_response)
    @secure_links_ns.response(503, "Service Unavailable", error_response)
    def get(self):
        """
        List stored secure links

        Links that expired since the last sweep may still be listed.
        """
        try:
            registry = current_app.container.resolve(SecureUrlRegistry)
            links = [summary.to_dict() for summary in registry.list_active()]
            return {"links": links, "count": len(links)}, 200
        except StorageUnavailableError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )


@secure_links_ns.route("/<string:secure_id>")
@secure_links_ns.param("secure_id", "Secure id")
class SecureLinkItem(Resource):
    """Single secure link"""

    @secure_links_ns.doc("get_secure_link_stats")
    @secure_links_ns.response(200, "Success", secure_link_stats)
    @secure_links_ns.response(404, "Not Found", error_response)
    @secure_links_ns.response(503, "Service Unavailable", error_response)
    def get(self, secure_id):
        """Usage statistics of a secure link; does not count as an access"""
        try:
            stats = current_app.container.resolve(SecureUrlRegistry).stats(secure_id)
        except StorageUnavailableError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )

        if stats is None:
            return create_error_response(
                ErrorCategory.SECURE_LINK_NOT_FOUND, status_code=404
            )
        return stats.to_dict(), 200

    @secure_links_ns.doc("invalidate_secure_link")
    @secure_links_ns.response(204, "Link invalidated")
    @secure_links_ns.response(404, "Not Found", error_response)
    @secure_links_ns.response(503, "Service Unavailable", error_response)
    def delete(self, secure_id):
        """Invalidate a secure link immediately"""
        try:
            existed = current_app.container.resolve(SecureUrlRegistry).invalidate(secure_id)
        except StorageUnavailableError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )

        if not existed:
            return create_error_response(
                ErrorCategory.SECURE_LINK_NOT_FOUND, status_code=404
            )
        return "", 204


# =============================================================================
# Storage Namespace - Objects of the local storage backend
# =============================================================================

storage_ns = Namespace("storage", description="Locally stored objects")


@storage_ns.route("/<string:bucket>/<path:object_key>")
@storage_ns.param("bucket", "Bucket name")
@storage_ns.param("object_key", "Object key")
class StoredObjectResource(Resource):
    """Serve an object of the local backend"""

    @storage_ns.doc(
        "get_stored_object",
        params={"expires": "Expiry (epoch seconds)", "signature": "HMAC signature"},
    )
    @storage_ns.response(200, "File content")
    @storage_ns.response(403, "Forbidden", error_response)
    @storage_ns.response(404, "File Not Found", error_response)
    def get(self, bucket, object_key):
        """
        Download an object

        Objects of the public bucket are served as is; any other bucket needs
        a valid, unexpired signature.
        """
        storage_config = current_app.container.resolve(StorageConfig)
        if bucket != storage_config.public_bucket:
            signer = current_app.container.resolve(SignedUrlService)
            try:
                expires = int(request.args.get("expires", ""))
            except ValueError:
                expires = 0
            if not signer.validate_signature(
                bucket, object_key, request.args.get("signature", ""), expires
            ):
                return create_error_response(
                    ErrorCategory.INVALID_REQUEST,
                    "Invalid or expired signature",
                    status_code=403,
                )

        blob_store = current_app.container.resolve(IBlobStore)
        try:
            stat = blob_store.stat(bucket, object_key)
            stream = blob_store.get_stream(bucket, object_key)
        except ObjectNotFoundError:
            return create_error_response(
                ErrorCategory.FILE_NOT_FOUND, status_code=404
            )
        except StorageUnavailableError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )

        return _download_response(SecureDownload(location=None, stat=stat, stream=stream))

    @storage_ns.doc(
        "put_stored_object",
        params={"expires": "Expiry (epoch seconds)", "signature": "HMAC signature of a PUT URL"},
    )
    @storage_ns.response(200, "Object stored")
    @storage_ns.response(400, "Bad Request", error_response)
    @storage_ns.response(403, "Forbidden", error_response)
    @storage_ns.response(411, "Length Required", error_response)
    @storage_ns.response(413, "File Too Large", error_response)
    @storage_ns.response(503, "Service Unavailable", error_response)
    def put(self, bucket, object_key):
        """
        Upload an object through a signed upload URL

        Every bucket, the public one included, needs a valid PUT signature.
        The body is checked against the upload size and type limits.
        """
        signer = current_app.container.resolve(SignedUrlService)
        try:
            expires = int(request.args.get("expires", ""))
        except ValueError:
            expires = 0
        if not signer.validate_signature(
            bucket, object_key, request.args.get("signature", ""), expires, method="PUT"
        ):
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                "Invalid or expired signature",
                status_code=403,
            )

        size = request.content_length
        if size is None:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Content-Length is required", status_code=411
            )
        content_type = request.mimetype or None

        try:
            file_service = current_app.container.resolve(FileService)
            file_service.validate_upload(size, content_type)
            blob_store = current_app.container.resolve(IBlobStore)
            blob_store.ensure_bucket(bucket)
            stat = blob_store.put(
                bucket,
                object_key,
                io.BytesIO(request.get_data(cache=False)),
                size,
                content_type=content_type or DEFAULT_CONTENT_TYPE,
                metadata={"source": "upload-url"},
            )
        except FileValidationError as e:
            status = 413 if e.category is ErrorCategory.FILE_TOO_LARGE else 400
            return create_error_response(e.category, str(e), status_code=status)
        except ObjectNotFoundError:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Invalid object key", status_code=400
            )
        except StorageUnavailableError as e:
            return create_error_response(
                ErrorCategory.STORAGE_UNAVAILABLE, str(e), status_code=503
            )

        return {
            "bucket_name": bucket,
            "object_key": object_key,
            "size": stat.size,
            "content_type": stat.content_type,
        }, 200
