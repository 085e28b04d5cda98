"""
Startup errors.

Every error here is fatal: the process refuses to serve traffic rather
than run with an undefined security posture or without a queue backend.
"""

from typing import Optional


class StartupError(Exception):
    """Base class for errors raised while wiring the process."""


class ConfigurationError(StartupError, ValueError):
    """A configuration value is missing, malformed or unrecognized."""

    def __init__(self, key: str, value: Optional[str], reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}' (value: {value!r}): {reason}")


class DuplicateRegistrationError(StartupError):
    """A capability was registered twice (resolver invoked more than once)."""

    def __init__(self, capability):
        self.capability = capability
        super().__init__(f"Capability '{capability.value}' is already registered")


class NotInitializedError(StartupError):
    """A capability was requested before startup resolution registered it."""

    def __init__(self, capability):
        self.capability = capability
        super().__init__(
            f"Capability '{capability.value}' is not registered; "
            "startup resolution has not completed"
        )
