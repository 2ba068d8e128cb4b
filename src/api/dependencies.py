"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, Request

from src.config.settings import get_settings
from src.domain.cancellation import CallCancellationService
from src.domain.dispatcher import CancellationDispatcher
from src.domain.ports import DeviceRegistry, PushTransport


def get_registry(request: Request) -> DeviceRegistry:
    """
    Get device registry from app state.

    The registry is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.registry


def get_push_transport(request: Request) -> PushTransport:
    """Get push transport from app state."""
    return request.app.state.transport


def get_cancellation_service(
    registry: DeviceRegistry = Depends(get_registry),
    transport: PushTransport = Depends(get_push_transport),
) -> CallCancellationService:
    """
    Create call cancellation service with injected dependencies.

    Wires together the registry and push transport for the domain service.
    """
    return CallCancellationService(
        registry=registry,
        dispatcher=CancellationDispatcher(transport=transport),
        prune_invalid_tokens=get_settings().prune_invalid_tokens,
    )
