"""
Security module for the queue gateway.
Selects the plain or secure (protected credential) settings shape.
"""

from .models import PlainSettings, SecureSettings, ServiceSettings
from .factory import SettingsFactory, SecurityMode, SymmetricAlgorithm, parse_transform_flag

__all__ = [
    "PlainSettings",
    "SecureSettings",
    "ServiceSettings",
    "SettingsFactory",
    "SecurityMode",
    "SymmetricAlgorithm",
    "parse_transform_flag",
]
