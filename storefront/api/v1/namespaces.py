"""
API Namespaces - File storage endpoints
"""

from flask import current_app, request
from flask_restx import Namespace, Resource
from werkzeug.datastructures import FileStorage

from storefront.api.v1.models import (
    error_response,
    signed_url_request,
    signed_url_response,
    stored_object_response,
)
from storefront.application.storage_service import StorageService
from storefront.application.upload_policy import UploadPolicy
from storefront.domain.errors import (
    ErrorCategory,
    StorageError,
    UploadRejectedError,
    create_error_response,
    storage_error_response,
)

files_ns = Namespace("files", description="Product file storage operations")

upload_parser = files_ns.parser()
upload_parser.add_argument(
    "file", location="files", type=FileStorage, required=True, help="File to store"
)


def _storage_service() -> StorageService:
    return current_app.container.resolve(StorageService)


@files_ns.route("/")
class FileUpload(Resource):
    """Store product files"""

    @files_ns.doc("upload_file")
    @files_ns.expect(upload_parser)
    @files_ns.response(201, "Stored", stored_object_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(413, "File Too Large", error_response)
    @files_ns.response(415, "File Type Not Allowed", error_response)
    @files_ns.response(500, "Storage Failure", error_response)
    def post(self):
        """
        Upload a file

        Stores the file under a freshly generated key and returns its
        canonical URL. The key, not the URL, is what callers should persist.
        """
        upload = request.files.get("file")
        if upload is None or not upload.filename:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Missing multipart field 'file'", status_code=400
            )

        policy = current_app.container.resolve(UploadPolicy)
        # Read one byte past the limit so oversize uploads are detected without buffering them whole
        data = upload.stream.read(policy.max_file_size + 1)

        try:
            policy.check(len(data), upload.mimetype)
            stored = _storage_service().upload(data, upload.filename, upload.mimetype)
            return stored.to_dict(), 201

        except UploadRejectedError as e:
            return e.to_dict(), e.http_status_code
        except StorageError as e:
            current_app.logger.error(f"Upload of {upload.filename!r} failed: {e}")
            return storage_error_response(e)
        except Exception as e:
            current_app.logger.exception(f"Unexpected error storing upload: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, f"Unexpected error: {str(e)}", status_code=500
            )


@files_ns.route("/<string:key>")
@files_ns.param("key", "The storage key")
class StoredFile(Resource):
    """Stored file operations"""

    @files_ns.doc("delete_file")
    @files_ns.response(204, "Deleted")
    @files_ns.response(500, "Storage Failure", error_response)
    def delete(self, key):
        """
        Delete a stored file

        Deleting a key that does not exist also succeeds.
        """
        try:
            _storage_service().delete(key)
            return "", 204
        except StorageError as e:
            current_app.logger.error(f"Delete of {key} failed: {e}")
            return storage_error_response(e)


@files_ns.route("/<string:key>/signed-url")
@files_ns.param("key", "The storage key")
class SignedUrl(Resource):
    """Time-limited download links"""

    @files_ns.doc("create_signed_url")
    @files_ns.expect(signed_url_request)
    @files_ns.response(200, "Success", signed_url_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(500, "Storage Failure", error_response)
    def post(self, key):
        """
        Create a signed download URL

        The link stops working after ``expires_in`` seconds. Its validity is
        never extended; request a new link instead.
        """
        data = request.get_json(silent=True) or {}
        storage_service = _storage_service()
        expires_in = data.get("expires_in", storage_service.default_expiry)

        try:
            url = storage_service.signed_url(
                key,
                expires_in=expires_in,
                content_type=data.get("content_type"),
                content_disposition=data.get("content_disposition"),
            )
            return {"url": url, "expires_in": expires_in}, 200

        except ValueError as e:
            return create_error_response(ErrorCategory.INVALID_REQUEST, str(e), status_code=400)
        except StorageError as e:
            return storage_error_response(e)
