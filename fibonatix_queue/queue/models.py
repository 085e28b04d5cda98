"""
Data models for queue messages.
"""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class QueueMessage(BaseModel):
    """
    A message passing through the gateway.

    Stored as JSON in Redis and as a document in MongoDB.
    """

    id: str = Field(default_factory=lambda: uuid4().hex, description="Message identifier")
    body: str = Field(..., description="Opaque message payload")
    enqueued_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the message was enqueued"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "3f2b8c1e9a7d4e0f8b6a5c4d3e2f1a0b",
                "body": "{\"n\": 21}",
                "enqueued_at": "2025-10-29T10:30:00Z"
            }
        }
    )
