"""Firebase adapters - Realtime Database registry and Cloud Messaging transport."""

from .app import create_firebase_app
from .messaging import FcmPushTransport
from .registry import FirebaseDeviceRegistry

__all__ = ["FcmPushTransport", "FirebaseDeviceRegistry", "create_firebase_app"]
