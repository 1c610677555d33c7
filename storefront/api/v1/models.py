"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields

from storefront.api.v1 import api

# =============================================================================
# Request Models
# =============================================================================

signed_url_request = api.model(
    "SignedUrlRequest",
    {
        "expires_in": fields.Integer(
            required=False,
            description="Link lifetime in seconds (default: SIGNED_URL_DEFAULT_EXPIRY)",
            example=3600,
            min=1,
        ),
        "content_type": fields.String(
            required=False,
            description="Content type the download is served with",
            example="application/pdf",
        ),
        "content_disposition": fields.String(
            required=False,
            description="Content disposition the download is served with",
            example='attachment; filename="report.pdf"',
        ),
    },
)

# =============================================================================
# Response Models
# =============================================================================

stored_object_response = api.model(
    "StoredObject",
    {
        "key": fields.String(
            description="Storage key", example="1718000000000-9e107d9d372bb6826bd81d3542a419d6.pdf"
        ),
        "url": fields.String(description="Canonical URL of the stored file"),
        "size": fields.Integer(description="Size in bytes"),
        "mime_type": fields.String(description="MIME type", example="application/pdf"),
    },
)

signed_url_response = api.model(
    "SignedUrlResponse",
    {
        "url": fields.String(description="Time-limited download URL"),
        "expires_in": fields.Integer(description="Link lifetime in seconds"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing error message"),
        "action": fields.String(description="Suggested next step"),
    },
)
