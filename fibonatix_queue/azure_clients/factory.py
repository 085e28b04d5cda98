"""
Factory for Azure Storage service clients (blob and queue).

Each client is decided on its own descriptor:
- prefer_managed_identity and an absolute URI -> account URL + DefaultAzureCredential
- anything else -> the value is used as a connection string

No request is sent at construction; connectivity problems surface on first use.
"""

from enum import Enum
from functools import lru_cache

from azure.identity import DefaultAzureCredential
from azure.storage.blob import BlobServiceClient
from azure.storage.queue import QueueServiceClient
from pydantic import AnyUrl, BaseModel, ConfigDict, TypeAdapter, ValidationError

from fibonatix_queue.errors import ConfigurationError


class ClientPath(Enum):
    """How a storage client authenticates"""
    MANAGED_IDENTITY = "managed_identity"
    CONNECTION_STRING = "connection_string"


class StorageClientDescriptor(BaseModel):
    """Service URI or connection string for one storage resource."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    prefer_managed_identity: bool = True


@lru_cache(maxsize=1)
def get_credentials() -> DefaultAzureCredential:
    """Get or create a cached DefaultAzureCredential instance.

    Enables CLI and managed identity authentication, suitable for both
    local development and Azure-hosted environments.
    """
    return DefaultAzureCredential(
        exclude_cli_credential=False,
        exclude_managed_identity_credential=False,
        exclude_interactive_browser_credential=True,
        exclude_visual_studio_code_credential=True,
        exclude_shared_token_cache_credential=True,
        exclude_powershell_credential=True,
    )


_ABSOLUTE_URI = TypeAdapter(AnyUrl)


def is_absolute_uri(value: str) -> bool:
    """True if value parses as an absolute URI (any scheme)."""
    try:
        _ABSOLUTE_URI.validate_python(value)
    except ValidationError:
        return False
    return True


def select_client_path(descriptor: StorageClientDescriptor) -> ClientPath:
    """Identity is only attempted when preferred; a non-URI falls back silently."""
    if descriptor.prefer_managed_identity and is_absolute_uri(descriptor.value):
        return ClientPath.MANAGED_IDENTITY
    return ClientPath.CONNECTION_STRING


class StorageClientFactory:
    """Builds blob and queue service clients from descriptors."""

    @classmethod
    def _create(cls, label: str, client_cls, descriptor: StorageClientDescriptor, credential=None):
        path = select_client_path(descriptor)

        if path == ClientPath.MANAGED_IDENTITY:
            client = client_cls(
                account_url=descriptor.value,
                credential=credential or get_credentials(),
            )
        else:
            try:
                client = client_cls.from_connection_string(descriptor.value)
            except ValueError as e:
                raise ConfigurationError(descriptor.key, "<redacted>", f"invalid connection string: {e}") from e

        print(f"✅ {label} service client initialized ({path.value})")
        return client

    @classmethod
    def create_blob_service_client(
        cls,
        descriptor: StorageClientDescriptor,
        credential=None
    ) -> BlobServiceClient:
        return cls._create("Blob", BlobServiceClient, descriptor, credential)

    @classmethod
    def create_queue_service_client(
        cls,
        descriptor: StorageClientDescriptor,
        credential=None
    ) -> QueueServiceClient:
        return cls._create("Queue", QueueServiceClient, descriptor, credential)
