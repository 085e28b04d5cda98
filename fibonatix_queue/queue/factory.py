"""
Factory for creating queue backend instances.
Selects Redis or MongoDB from the Service configuration key.
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

import redis
from pymongo import MongoClient, uri_parser
from pymongo.errors import PyMongoError

from fibonatix_queue.config import AppConfig
from fibonatix_queue.errors import ConfigurationError
from fibonatix_queue.security.models import PlainSettings, SecureSettings
from .strategies import QueueStrategy, RedisQueueService, MongoQueueService


class QueueBackend(Enum):
    """Available queue backends (matched exactly against Service)"""
    REDIS = "Redis"
    MONGODB = "MongoDB"


def parse_service(raw: Optional[str]) -> QueueBackend:
    """
    Resolve the Service key to a backend.

    Raises:
        ConfigurationError: If the value is absent or not a known backend
    """
    try:
        return QueueBackend(raw)
    except ValueError:
        supported = ", ".join(b.value for b in QueueBackend)
        raise ConfigurationError(
            "Service", raw, f"unrecognized queue backend (supported: {supported})"
        ) from None


def redis_client_options(connection_string: str) -> Dict[str, Any]:
    """
    Translate a StackExchange-style connection string into redis.Redis kwargs.

    Format: host[:port][,option=value...], e.g.
    "cache.example.net:6380,password=secret,ssl=True,defaultDatabase=2".
    Only the first endpoint is used.
    """
    options: Dict[str, Any] = {}
    for part in connection_string.split(","):
        part = part.strip()
        if not part:
            continue

        if "=" not in part:
            if "host" in options:
                continue
            host, _, port = part.rpartition(":")
            if host and port.isdigit():
                options["host"] = host
                options["port"] = int(port)
            else:
                options["host"] = part
            continue

        key, _, value = part.partition("=")
        key = key.strip().lower()
        value = value.strip()
        if key == "password":
            options["password"] = value
        elif key == "user":
            options["username"] = value
        elif key == "ssl":
            options["ssl"] = value.lower() == "true"
        elif key == "defaultdatabase":
            options["db"] = int(value)
        elif key == "connecttimeout":
            options["socket_connect_timeout"] = int(value) / 1000
        elif key == "synctimeout":
            options["socket_timeout"] = int(value) / 1000

    if "host" not in options:
        raise ConfigurationError("ConnectionString", connection_string, "no Redis endpoint given")
    return options


def create_redis_client(connection_string: str, password: Optional[str]) -> redis.Redis:
    """
    Build a Redis client from a redis:// URL or a StackExchange-style string.

    The client connects lazily, on first command.
    """
    extra = {"password": password} if password else {}

    if "://" in connection_string:
        try:
            return redis.from_url(connection_string, decode_responses=False, **extra)
        except ValueError as e:
            raise ConfigurationError("ConnectionString", connection_string, str(e)) from e

    try:
        options = redis_client_options(connection_string)
    except ConfigurationError:
        raise
    except ValueError as e:
        raise ConfigurationError("ConnectionString", connection_string, str(e)) from e
    options.update(extra)
    return redis.Redis(decode_responses=False, **options)


def create_mongo_client(connection_string: str, password: Optional[str]) -> MongoClient:
    """
    Build a MongoDB client; connect=False defers the first connection.

    pymongo only authenticates when a user is named, so a configured
    Password needs a user in the connection string (mongodb://user@host).
    """
    if not password:
        return MongoClient(connection_string, connect=False)

    if not connection_string.startswith(("mongodb://", "mongodb+srv://")):
        raise ConfigurationError(
            "ConnectionString", connection_string,
            "Password is set, so a mongodb:// URI naming the user is required"
        )

    # Parse as a plain URI so a mongodb+srv host is not resolved here
    try:
        parsed = uri_parser.parse_uri(connection_string.replace("mongodb+srv://", "mongodb://", 1))
    except (PyMongoError, ValueError) as e:
        raise ConfigurationError("ConnectionString", connection_string, str(e)) from e

    if not parsed["username"]:
        raise ConfigurationError(
            "ConnectionString", connection_string,
            "Password is set but the connection string names no user"
        )
    if parsed["password"]:
        raise ConfigurationError(
            "Password", "<redacted>", "the connection string already carries a password"
        )

    return MongoClient(connection_string, connect=False, password=password)


class QueueFactory:
    """
    Simple factory for creating queue backends.

    Nothing is cached here: the startup routine registers the backend and
    the registry guarantees a single instance per process.
    """

    @classmethod
    def create(
        cls,
        backend: QueueBackend,
        settings: Union[PlainSettings, SecureSettings],
        config: AppConfig
    ) -> QueueStrategy:
        """
        Create a queue backend bound to the resolved settings.

        Args:
            backend: Type of queue backend (from enum)
            settings: Resolved settings shape
            config: Application configuration (default queue, key prefix, database names)

        Returns:
            New queue backend instance

        Raises:
            ConfigurationError: If the connection string is missing or malformed
        """
        connection_string = settings.connection_string
        if not connection_string or not connection_string.strip():
            raise ConfigurationError(
                "ConnectionString", connection_string, f"required for the {backend.value} backend"
            )

        if backend == QueueBackend.REDIS:
            client = create_redis_client(connection_string, settings.password)
            instance = RedisQueueService(
                client,
                settings,
                key_prefix=config.redis_key_prefix,
                default_queue=config.queue_name
            )

        elif backend == QueueBackend.MONGODB:
            try:
                client = create_mongo_client(connection_string, settings.password)
            except ConfigurationError:
                raise
            except (PyMongoError, ValueError) as e:
                raise ConfigurationError("ConnectionString", connection_string, str(e)) from e
            instance = MongoQueueService(
                client,
                settings,
                database=config.mongo_database,
                collection=config.mongo_collection,
                default_queue=config.queue_name
            )

        else:
            raise ConfigurationError("Service", str(backend), "unrecognized queue backend")

        print(f"✅ {backend.value} queue initialized ({settings.kind} settings)")
        return instance
