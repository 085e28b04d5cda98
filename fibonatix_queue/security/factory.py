"""
Factory for the backing-store settings shape.
Picks plain or secure settings from the Transform flag.
"""

from enum import Enum
from typing import Optional, Union

from fibonatix_queue.config import AppConfig
from fibonatix_queue.errors import ConfigurationError
from .models import PlainSettings, SecureSettings


class SecurityMode(Enum):
    """Available settings shapes"""
    PLAIN = "plain"
    SECURE = "secure"


class SymmetricAlgorithm(Enum):
    """Symmetric ciphers accepted for the Algorithm key"""
    AES = "AES"
    RIJNDAEL = "Rijndael"
    TRIPLE_DES = "TripleDES"
    DES = "DES"
    RC2 = "RC2"


def parse_transform_flag(raw: Optional[str]) -> SecurityMode:
    """
    Parse the Transform flag.

    Accepts "true"/"false" in any case with surrounding whitespace.
    Anything else (including an absent value) is a ConfigurationError.
    """
    normalized = raw.strip().lower() if raw is not None else None
    if normalized == "true":
        return SecurityMode.SECURE
    if normalized == "false":
        return SecurityMode.PLAIN
    raise ConfigurationError("Transform", raw, "expected a boolean ('true' or 'false')")


def parse_algorithm(raw: Optional[str]) -> SymmetricAlgorithm:
    """Match an algorithm name case-insensitively against the supported ciphers."""
    if raw is None or not raw.strip():
        raise ConfigurationError("Algorithm", raw, "required when Transform is true")

    wanted = raw.strip().lower()
    for algorithm in SymmetricAlgorithm:
        if algorithm.value.lower() == wanted:
            return algorithm

    supported = ", ".join(a.value for a in SymmetricAlgorithm)
    raise ConfigurationError("Algorithm", raw, f"unsupported symmetric algorithm (supported: {supported})")


class SettingsFactory:
    """
    Factory for creating the settings model.

    Unlike the queue backend, nothing is cached here: the startup routine
    registers the result and the registry guarantees a single instance.
    """

    @classmethod
    def create(cls, config: AppConfig) -> Union[PlainSettings, SecureSettings]:
        """
        Build the settings shape selected by config.transform.

        Args:
            config: Application configuration

        Returns:
            SecureSettings when Transform is true, PlainSettings otherwise

        Raises:
            ConfigurationError: If Transform is not a boolean, or Algorithm
                is missing/unsupported while Transform is true
        """
        mode = parse_transform_flag(config.transform)

        if mode == SecurityMode.SECURE:
            algorithm = parse_algorithm(config.algorithm)
            return SecureSettings(
                connection_string=config.connection_string,
                password=config.password,
                algorithm=algorithm.value,
            )

        return PlainSettings(
            connection_string=config.connection_string,
            password=config.password,
        )
