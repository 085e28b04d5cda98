"""
Azure Storage clients for the gateway.
Managed identity when addressed by URI, connection string otherwise.
"""

from .factory import (
    ClientPath,
    StorageClientDescriptor,
    StorageClientFactory,
    get_credentials,
    is_absolute_uri,
    select_client_path,
)

__all__ = [
    "ClientPath",
    "StorageClientDescriptor",
    "StorageClientFactory",
    "get_credentials",
    "is_absolute_uri",
    "select_client_path",
]
