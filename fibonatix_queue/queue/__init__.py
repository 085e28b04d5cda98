"""
Message queue module for the gateway.
Implements Strategy Pattern for the Redis and MongoDB backends.
"""

from .strategies import QueueStrategy, RedisQueueService, MongoQueueService
from .factory import QueueFactory, QueueBackend, parse_service
from .models import QueueMessage

__all__ = [
    "QueueStrategy",
    "RedisQueueService",
    "MongoQueueService",
    "QueueFactory",
    "QueueBackend",
    "parse_service",
    "QueueMessage",
]
