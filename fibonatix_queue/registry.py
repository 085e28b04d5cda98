"""
Process-wide singleton registry.

Holds exactly one instance per capability for the lifetime of the process.
Built once by the startup routine and handed to the request layer through
app.state; after startup it is only read.
"""

from enum import Enum
from typing import Any, Callable, Dict, List

from fibonatix_queue.errors import DuplicateRegistrationError, NotInitializedError


class Capability(Enum):
    """Capabilities published at startup"""
    SETTINGS = "settings"
    QUEUE_BACKEND = "queue_backend"
    BLOB_CLIENT = "blob_client"
    QUEUE_CLIENT = "queue_client"


class ServiceRegistry:
    """
    Register-once container.

    - register() a second instance for a capability -> DuplicateRegistrationError
    - get() before register() -> NotInitializedError
    - shutdown() runs hooks once, newest first
    """

    def __init__(self):
        self._instances: Dict[Capability, Any] = {}
        self._shutdown_hooks: List[Callable[[], None]] = []
        self._shut_down = False

    def register(self, capability: Capability, instance: Any) -> Any:
        if capability in self._instances:
            raise DuplicateRegistrationError(capability)
        self._instances[capability] = instance
        return instance

    def get(self, capability: Capability) -> Any:
        try:
            return self._instances[capability]
        except KeyError:
            raise NotInitializedError(capability) from None

    def is_registered(self, capability: Capability) -> bool:
        return capability in self._instances

    def add_shutdown_hook(self, hook: Callable[[], None]) -> None:
        self._shutdown_hooks.append(hook)

    def shutdown(self) -> None:
        """Run shutdown hooks exactly once (later calls are no-ops)."""
        if self._shut_down:
            return
        self._shut_down = True

        errors = []
        for hook in reversed(self._shutdown_hooks):
            try:
                hook()
            except Exception as e:
                print(f"❌ Shutdown hook failed: {e}")
                errors.append(e)
        self._shutdown_hooks.clear()

        if errors:
            raise errors[0]
