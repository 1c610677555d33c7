"""
main.py

Flask entry point for the storefront file storage service.

Notes:
  - API v1 endpoints at /api/v1/ with Swagger docs at /api/v1/docs
  - Run a Celery worker and beat (celery -A celery_app.celery_app worker -B)
    for the temp-copy reaper, or set TEMP_REAPER_MODE=thread
"""

import logging
import os

from app_factory import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    app.run(host=host, port=port, debug=debug)
