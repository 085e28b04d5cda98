"""
Settings models describing how to reach the backing store.

Two shapes, exactly one active per process:
- PlainSettings: connection string + password
- SecureSettings: same, plus the symmetric algorithm protecting the password
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PlainSettings(BaseModel):
    """Backing-store settings with an unprotected credential."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["plain"] = "plain"
    connection_string: Optional[str] = Field(None, description="Backing-store connection string")
    password: Optional[str] = Field(None, description="Backing-store credential", repr=False)

    @property
    def algorithm(self) -> Optional[str]:
        return None


class SecureSettings(BaseModel):
    """Backing-store settings whose credential is protected by a symmetric cipher."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["secure"] = "secure"
    connection_string: Optional[str] = Field(None, description="Backing-store connection string")
    password: Optional[str] = Field(None, description="Protected backing-store credential", repr=False)
    algorithm: str = Field(..., description="Symmetric cipher name, e.g. AES")


ServiceSettings = Annotated[Union[PlainSettings, SecureSettings], Field(discriminator="kind")]
