"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields

from securelink.api.v1 import api

# =============================================================================
# Request Models
# =============================================================================

link_request = api.model(
    "LinkRequest",
    {
        "visibility": fields.String(
            required=True,
            description="Visibility of the file",
            enum=["public", "private"],
            example="private",
        ),
        "object_key": fields.String(
            required=True,
            description="Object key of the file",
            example="2025/01/31/V1StGXR8_Z5jdHi6B-myT.pdf",
        ),
        "link_class": fields.String(
            description="Kind of link for private files",
            enum=["presigned", "standard", "tracked", "temporary"],
            default="standard",
        ),
    },
)

visibility_request = api.model(
    "VisibilityRequest",
    {
        "object_key": fields.String(
            required=True,
            description="Object key of the file",
            example="2025/01/31/V1StGXR8_Z5jdHi6B-myT.pdf",
        ),
        "current_visibility": fields.String(
            required=True,
            description="Visibility the file has now",
            enum=["public", "private"],
            example="public",
        ),
        "visibility": fields.String(
            required=True,
            description="Visibility to move the file to",
            enum=["public", "private"],
            example="private",
        ),
    },
)

upload_url_request = api.model(
    "UploadUrlRequest",
    {
        "visibility": fields.String(
            required=True,
            description="Bucket visibility of the upload",
            enum=["public", "private"],
            example="private",
        ),
        "object_key": fields.String(
            required=True,
            description="Object key to upload to",
            example="2025/01/31/report.pdf",
        ),
        "expires_in": fields.Integer(
            description="Lifetime of the URL in seconds",
            default=3600,
            min=1,
            max=604800,
        ),
    },
)

# =============================================================================
# Response Models
# =============================================================================

stored_file = api.model(
    "StoredFile",
    {
        "id": fields.String(description="Generated file id"),
        "original_name": fields.String(description="Uploaded file name"),
        "file_name": fields.String(description="Stored file name"),
        "mime_type": fields.String(description="Content type"),
        "size": fields.Integer(description="Size in bytes"),
        "bucket_name": fields.String(description="Bucket holding the file"),
        "object_key": fields.String(description="Object key"),
        "visibility": fields.String(description="public or private"),
        "folder": fields.String(description="Key prefix", allow_null=True),
        "url": fields.String(description="Access URL"),
        "created_at": fields.String(description="Upload time (ISO timestamp)"),
    },
)

upload_response = api.model(
    "UploadResponse",
    {
        "success": fields.Boolean(description="Upload succeeded"),
        "file": fields.Nested(stored_file, description="Stored file record"),
    },
)

stored_object = api.model(
    "StoredObject",
    {
        "key": fields.String(description="Object key"),
        "size": fields.Integer(description="Size in bytes"),
        "last_modified": fields.String(description="ISO timestamp", allow_null=True),
        "is_folder": fields.Boolean(description="Folder placeholder entry"),
    },
)

file_list_response = api.model(
    "FileListResponse",
    {
        "visibility": fields.String(description="Listed visibility"),
        "files": fields.List(fields.Nested(stored_object), description="Objects"),
        "count": fields.Integer(description="Number of entries"),
    },
)

bucket_stats_response = api.model(
    "BucketStatsResponse",
    {
        "object_count": fields.Integer(description="Number of files"),
        "total_size": fields.Integer(description="Total size in bytes"),
        "folders": fields.List(fields.String, description="Top-level folders"),
    },
)

link_response = api.model(
    "LinkResponse",
    {
        "url": fields.String(description="URL to hand to the client"),
        "link_class": fields.String(description="Link class used"),
        "expires_in": fields.Integer(
            description="Lifetime in seconds", allow_null=True
        ),
        "max_accesses": fields.Integer(
            description="Access cap", allow_null=True
        ),
    },
)

visibility_response = api.model(
    "VisibilityResponse",
    {
        "bucket_name": fields.String(description="Bucket now holding the file"),
        "object_key": fields.String(description="Object key"),
        "visibility": fields.String(description="public or private"),
        "url": fields.String(description="Access URL at the new location"),
    },
)

upload_url_response = api.model(
    "UploadUrlResponse",
    {
        "url": fields.String(description="URL accepting a PUT of the file body"),
        "method": fields.String(description="HTTP method to use", example="PUT"),
        "bucket_name": fields.String(description="Target bucket"),
        "object_key": fields.String(description="Target object key"),
        "expires_in": fields.Integer(description="Lifetime in seconds"),
    },
)

secure_link_summary = api.model(
    "SecureLinkSummary",
    {
        "id": fields.String(description="Secure id"),
        "bucket_name": fields.String(description="Bucket of the backing object"),
        "object_key": fields.String(description="Key of the backing object"),
        "access_count": fields.Integer(description="Successful resolutions so far"),
        "created_at": fields.String(description="Issuance time (ISO timestamp)"),
        "expires_at": fields.String(description="Expiry (ISO timestamp)", allow_null=True),
        "max_accesses": fields.Integer(description="Access cap", allow_null=True),
    },
)

secure_link_list_response = api.model(
    "SecureLinkListResponse",
    {
        "links": fields.List(fields.Nested(secure_link_summary)),
        "count": fields.Integer(description="Number of links"),
    },
)

secure_link_stats = api.model(
    "SecureLinkStats",
    {
        "access_count": fields.Integer(description="Successful resolutions so far"),
        "created_at": fields.String(description="Issuance time (ISO timestamp)"),
        "expires_at": fields.String(description="Expiry (ISO timestamp)", allow_null=True),
        "max_accesses": fields.Integer(description="Access cap", allow_null=True),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short title"),
        "message": fields.String(description="User-facing message"),
        "action": fields.String(description="Suggested next step"),
    },
)
