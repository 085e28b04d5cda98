"""
Queue strategies using Strategy Pattern.
Allows switching between queue backends (Redis, MongoDB) from configuration.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

from fastapi.concurrency import run_in_threadpool
from pymongo import ASCENDING
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from fibonatix_queue.security.models import PlainSettings, SecureSettings
from .models import QueueMessage


class QueueStrategy(ABC):
    """
    Abstract base class for queue backends.

    One instance lives for the whole process; request handlers share it.
    Connection pooling and thread-safety belong to the underlying client.
    The redis and pymongo clients block, so every call to them runs in
    the threadpool and never stalls the event loop.

    Methods take an optional queue_name; without one they use default_queue.
    """

    name: str = ""

    def __init__(
        self,
        settings: Union[PlainSettings, SecureSettings],
        default_queue: str = "fibonatix"
    ):
        self.settings = settings
        self.default_queue = default_queue

    @property
    def algorithm(self) -> Optional[str]:
        """Symmetric algorithm protecting the credential (None for plain settings)"""
        return self.settings.algorithm

    def _queue(self, queue_name: Optional[str]) -> str:
        return queue_name or self.default_queue

    @abstractmethod
    async def enqueue(self, message: QueueMessage, queue_name: Optional[str] = None) -> bool:
        """
        Append a message to the queue.

        Args:
            message: Message to append
            queue_name: Name of the queue (default_queue if omitted)

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def dequeue(self, queue_name: Optional[str] = None) -> Optional[QueueMessage]:
        """
        Remove and return the oldest message.

        Returns:
            The message, or None when the queue is empty or unreachable
        """
        pass

    @abstractmethod
    async def get_queue_length(self, queue_name: Optional[str] = None) -> int:
        """Get the number of pending messages in queue"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the client connection pool"""
        pass


class RedisQueueService(QueueStrategy):
    """
    Redis list implementation.

    RPUSH appends, LPOP removes from the head, so the list is FIFO.
    Each queue is a separate key under key_prefix.
    """

    name = "Redis"

    def __init__(
        self,
        redis_client,
        settings: Union[PlainSettings, SecureSettings],
        key_prefix: str = "fibonatix:queue:",
        default_queue: str = "fibonatix"
    ):
        """
        Initialize Redis queue.

        Args:
            redis_client: Redis client instance
            settings: Settings the client was built from
            key_prefix: Prefix for queue keys
            default_queue: Queue used when a call names none
        """
        super().__init__(settings, default_queue)
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _key(self, queue_name: Optional[str]) -> str:
        return f"{self.key_prefix}{self._queue(queue_name)}"

    async def enqueue(self, message: QueueMessage, queue_name: Optional[str] = None) -> bool:
        try:
            await run_in_threadpool(self.redis.rpush, self._key(queue_name), message.model_dump_json())
            return True
        except RedisError as e:
            print(f"❌ Redis enqueue error: {e}")
            return False

    async def dequeue(self, queue_name: Optional[str] = None) -> Optional[QueueMessage]:
        try:
            raw = await run_in_threadpool(self.redis.lpop, self._key(queue_name))
        except RedisError as e:
            print(f"❌ Redis dequeue error: {e}")
            return None

        if raw is None:
            return None
        return QueueMessage.model_validate_json(raw)

    async def get_queue_length(self, queue_name: Optional[str] = None) -> int:
        try:
            return await run_in_threadpool(self.redis.llen, self._key(queue_name))
        except RedisError:
            return 0

    def close(self) -> None:
        self.redis.close()


class MongoQueueService(QueueStrategy):
    """
    MongoDB collection implementation.

    One document per message, tagged with its queue name.
    find_one_and_delete ordered by enqueue time pops atomically,
    so concurrent consumers never receive the same message.
    """

    name = "MongoDB"

    def __init__(
        self,
        mongo_client,
        settings: Union[PlainSettings, SecureSettings],
        database: str = "FibonatixQueue",
        collection: str = "messages",
        default_queue: str = "fibonatix"
    ):
        super().__init__(settings, default_queue)
        self.client = mongo_client
        self.collection = mongo_client[database][collection]

    async def enqueue(self, message: QueueMessage, queue_name: Optional[str] = None) -> bool:
        document = {
            "_id": message.id,
            "queue": self._queue(queue_name),
            "body": message.body,
            "enqueued_at": message.enqueued_at,
        }
        try:
            await run_in_threadpool(self.collection.insert_one, document)
            return True
        except PyMongoError as e:
            print(f"❌ MongoDB enqueue error: {e}")
            return False

    async def dequeue(self, queue_name: Optional[str] = None) -> Optional[QueueMessage]:
        try:
            document = await run_in_threadpool(
                self.collection.find_one_and_delete,
                {"queue": self._queue(queue_name)},
                sort=[("enqueued_at", ASCENDING), ("_id", ASCENDING)]
            )
        except PyMongoError as e:
            print(f"❌ MongoDB dequeue error: {e}")
            return None

        if document is None:
            return None
        return QueueMessage(
            id=document["_id"],
            body=document["body"],
            enqueued_at=document["enqueued_at"],
        )

    async def get_queue_length(self, queue_name: Optional[str] = None) -> int:
        try:
            return await run_in_threadpool(
                self.collection.count_documents, {"queue": self._queue(queue_name)}
            )
        except PyMongoError:
            return 0

    def close(self) -> None:
        self.client.close()
