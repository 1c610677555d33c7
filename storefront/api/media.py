"""
Media Routes

Serves stored bytes directly from the application: durable objects under
the uploads prefix, and token-guarded temporary copies under the temp prefix.
"""

import io

from flask import Blueprint, current_app, request, send_file

from storefront.application.storage_service import StorageService
from storefront.domain.errors import (
    AccessTokenError,
    StorageError,
    storage_error_response,
)
from storefront.domain.file_storage.entities import resolve_mime_type
from storefront.domain.file_storage.value_objects import InvalidStorageKeyError, StorageKey


def _storage_service() -> StorageService:
    return current_app.container.resolve(StorageService)


def _guess_mime_type(key: str) -> str:
    try:
        extension = StorageKey(key).extension
    except InvalidStorageKeyError:
        extension = ""
    return resolve_mime_type(None, extension)


def create_media_blueprint(uploads_url_prefix: str, temp_url_prefix: str, serve_temp: bool) -> Blueprint:
    """
    Build the blueprint serving stored files.

    Args:
        uploads_url_prefix: Prefix durable objects are served under
        temp_url_prefix: Prefix temp copies are served under
        serve_temp: Register the temp-copy route (backends with temp copies only)
    """
    media_bp = Blueprint("media", __name__)
    uploads_rule = "/" + uploads_url_prefix.strip("/") + "/<string:key>"
    temp_rule = "/" + temp_url_prefix.strip("/") + "/<string:key>"

    @media_bp.route(uploads_rule, methods=["GET"])
    def serve_upload(key):
        try:
            data = _storage_service().read(key)
        except StorageError as e:
            body, status = storage_error_response(e)
            return body, status

        return send_file(io.BytesIO(data), mimetype=_guess_mime_type(key), download_name=key)

    if serve_temp:

        @media_bp.route(temp_rule, methods=["GET"])
        def serve_temp_copy(key):
            token = request.args.get("token", "")
            try:
                path, claims = _storage_service().open_temp_copy(key, token)
            except AccessTokenError as e:
                current_app.logger.info(f"Rejected temp copy access for {key}: {e.reason}")
                body, status = storage_error_response(e)
                return body, status
            except StorageError as e:
                body, status = storage_error_response(e)
                return body, status

            response = send_file(
                path,
                mimetype=claims.content_type or _guess_mime_type(key),
                conditional=True,
            )
            if claims.content_disposition:
                response.headers["Content-Disposition"] = claims.content_disposition
            response.headers["Cache-Control"] = "private, no-store"
            return response

    return media_bp
