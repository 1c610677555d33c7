"""
Google Cloud Storage Configuration

Builds the GCS client used by the object-store backend.
"""

import logging
import os
from typing import Optional

from google.auth.exceptions import DefaultCredentialsError
from google.cloud import storage
from google.oauth2 import service_account

from storefront.domain.errors import StorageConfigurationError

logger = logging.getLogger(__name__)


def create_gcs_client(
    credentials_path: Optional[str] = None, project: Optional[str] = None
) -> storage.Client:
    """
    Initialize a Google Cloud Storage client.

    Uses the service account file when one is configured, otherwise the
    application default credentials (e.g. on GCE or Cloud Run).

    Args:
        credentials_path: Path to a service account JSON file
        project: Optional GCP project id

    Returns:
        Configured storage.Client

    Raises:
        StorageConfigurationError: If no usable credentials are found
    """
    if credentials_path:
        if not os.path.exists(credentials_path):
            raise StorageConfigurationError(
                f"GOOGLE_APPLICATION_CREDENTIALS points to a missing file: {credentials_path}"
            )
        credentials = service_account.Credentials.from_service_account_file(credentials_path)
        logger.info(f"GCS client initialized with service account: {credentials_path}")
        return storage.Client(project=project or credentials.project_id, credentials=credentials)

    try:
        client = storage.Client(project=project)
    except DefaultCredentialsError as e:
        raise StorageConfigurationError(
            "No Google Cloud credentials available for the object-store backend", e
        ) from e

    logger.info("GCS client initialized with default credentials")
    return client
