"""
API v1 - Storefront file storage REST API

Versioned endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

API_VERSION = os.getenv("API_VERSION", "v1")

api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

api = Api(
    api_v1_bp,
    version="1.0",
    title="Storefront Storage API",
    description="Upload, delete and issue time-limited download links for product files",
    doc="/docs",  # Swagger UI at /api/v1/docs
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import files_ns  # noqa: E402

api.add_namespace(files_ns, path="/files")
