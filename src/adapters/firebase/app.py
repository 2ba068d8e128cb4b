"""
Firebase app factory.

Each adapter receives an explicitly constructed firebase_admin.App
instead of relying on the SDK's process-wide default app, so the
registry and the transport can carry their own HTTP timeouts.
"""

import json
import logging

import firebase_admin
from firebase_admin import credentials

from src.config.settings import Settings

logger = logging.getLogger(__name__)


def create_firebase_app(settings: Settings, name: str, timeout_seconds: float) -> firebase_admin.App:
    """
    Initialize a named Firebase app from settings.

    Args:
        settings: Application settings holding the service account JSON
        name: Unique app name
        timeout_seconds: HTTP timeout for every call made through this app

    Returns:
        Initialized firebase_admin.App

    Raises:
        RuntimeError: If Firebase configuration is missing or invalid
    """
    if settings.firebase_service_account_key is None or not settings.firebase_database_url:
        raise RuntimeError(
            "Missing Firebase configuration: set FIREBASE_SERVICE_ACCOUNT_KEY "
            "and FIREBASE_DATABASE_URL"
        )

    try:
        service_account = json.loads(settings.firebase_service_account_key.get_secret_value())
        credential = credentials.Certificate(service_account)
        app = firebase_admin.initialize_app(
            credential,
            {
                "databaseURL": settings.firebase_database_url,
                "httpTimeout": timeout_seconds,
            },
            name=name,
        )
    except ValueError as e:
        raise RuntimeError(f"Failed to initialize Firebase app '{name}': {e}") from e

    logger.info("Firebase app '%s' initialized", name)
    return app
