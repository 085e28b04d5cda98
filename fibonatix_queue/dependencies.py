"""
FastAPI dependencies for dependency injection.

The registry is built once by the app lifespan and kept on app.state.
These dependencies hand its singletons to routes:
- Settings shape (plain or secure), read-only
- Queue backend (Redis or MongoDB), shared by all requests
"""

from typing import Union

from azure.storage.blob import BlobServiceClient
from azure.storage.queue import QueueServiceClient
from fastapi import Depends, Request

from fibonatix_queue.errors import NotInitializedError
from fibonatix_queue.queue.strategies import QueueStrategy
from fibonatix_queue.registry import Capability, ServiceRegistry
from fibonatix_queue.security.models import PlainSettings, SecureSettings


def get_registry(request: Request) -> ServiceRegistry:
    """Registry published by the lifespan (NotInitializedError before startup)."""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise NotInitializedError(Capability.SETTINGS)
    return registry


def get_service_settings(
    registry: ServiceRegistry = Depends(get_registry)
) -> Union[PlainSettings, SecureSettings]:
    return registry.get(Capability.SETTINGS)


def get_queue_service(registry: ServiceRegistry = Depends(get_registry)) -> QueueStrategy:
    return registry.get(Capability.QUEUE_BACKEND)


def get_blob_service_client(registry: ServiceRegistry = Depends(get_registry)) -> BlobServiceClient:
    return registry.get(Capability.BLOB_CLIENT)


def get_queue_service_client(registry: ServiceRegistry = Depends(get_registry)) -> QueueServiceClient:
    return registry.get(Capability.QUEUE_CLIENT)
