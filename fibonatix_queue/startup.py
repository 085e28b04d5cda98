"""
Startup routine: resolves configuration into the process-wide registry.

Runs once, synchronously, before any request is served:
1. Transform      -> PlainSettings / SecureSettings
2. Service        -> RedisQueueService / MongoQueueService (built with 1.)
3. blob / queue   -> Azure Storage service clients

Every value is resolved before anything is registered, so a bad key
leaves the registry empty.
"""

from contextlib import ExitStack
from typing import Optional

from fibonatix_queue.azure_clients import StorageClientDescriptor, StorageClientFactory
from fibonatix_queue.config import AppConfig, get_config
from fibonatix_queue.errors import DuplicateRegistrationError
from fibonatix_queue.queue.factory import QueueFactory, parse_service
from fibonatix_queue.registry import Capability, ServiceRegistry
from fibonatix_queue.security.factory import SettingsFactory

BLOB_DESCRIPTOR_KEY = "ConnectionStrings:LocalDBTesting:blob"
QUEUE_DESCRIPTOR_KEY = "ConnectionStrings:LocalDBTesting:queue"


def _descriptor(key: str, value: Optional[str], config: AppConfig) -> Optional[StorageClientDescriptor]:
    if not value:
        print(f"⚠️  {key} not set, skipping client")
        return None
    return StorageClientDescriptor(
        key=key,
        value=value,
        prefer_managed_identity=config.azure_prefer_managed_identity,
    )


def configure_services(registry: ServiceRegistry, config: AppConfig, credential=None) -> ServiceRegistry:
    """
    Resolve config and publish the resulting singletons into registry.

    Args:
        registry: Registry to populate (must not hold these capabilities yet)
        config: Application configuration
        credential: Azure credential for the identity path (default: DefaultAzureCredential)

    Raises:
        ConfigurationError: Malformed or unrecognized configuration value
        DuplicateRegistrationError: registry was already configured
    """
    settings = SettingsFactory.create(config)
    backend = parse_service(config.service)
    blob = _descriptor(BLOB_DESCRIPTOR_KEY, config.blob_descriptor, config)
    queue_storage = _descriptor(QUEUE_DESCRIPTOR_KEY, config.queue_descriptor, config)

    capabilities = [Capability.SETTINGS, Capability.QUEUE_BACKEND]
    if blob is not None:
        capabilities.append(Capability.BLOB_CLIENT)
    if queue_storage is not None:
        capabilities.append(Capability.QUEUE_CLIENT)
    for capability in capabilities:
        if registry.is_registered(capability):
            raise DuplicateRegistrationError(capability)

    # Everything built so far is closed if a later step fails
    with ExitStack() as cleanup:
        queue = QueueFactory.create(backend, settings, config)
        cleanup.callback(queue.close)

        blob_client = queue_client = None
        if blob is not None:
            blob_client = StorageClientFactory.create_blob_service_client(blob, credential)
            cleanup.callback(blob_client.close)
        if queue_storage is not None:
            queue_client = StorageClientFactory.create_queue_service_client(queue_storage, credential)
            cleanup.callback(queue_client.close)

        cleanup.pop_all()

    registry.register(Capability.SETTINGS, settings)
    registry.register(Capability.QUEUE_BACKEND, queue)
    registry.add_shutdown_hook(queue.close)

    for capability, client in (
        (Capability.BLOB_CLIENT, blob_client),
        (Capability.QUEUE_CLIENT, queue_client),
    ):
        if client is not None:
            registry.register(capability, client)
            registry.add_shutdown_hook(client.close)

    return registry


def bootstrap(config: Optional[AppConfig] = None, credential=None) -> ServiceRegistry:
    """Build a fresh registry from config (defaults to the environment)."""
    return configure_services(ServiceRegistry(), config or get_config(), credential)
