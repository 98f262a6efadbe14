from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel


class ReceivedMessage(BaseModel):
    """Represents a message delivered to the subscriber, detached from the SDK."""

    message_id: str
    data: bytes
    attributes: Dict[str, str] = {}
    publish_time: Optional[datetime] = None

    @property
    def text(self) -> str:
        return self.data.decode("utf-8")

    @classmethod
    def from_pubsub(cls, message) -> "ReceivedMessage":
        return cls(
            message_id=message.message_id,
            data=message.data,
            attributes=dict(message.attributes),
            publish_time=message.publish_time,
        )
