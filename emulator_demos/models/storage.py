from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from emulator_demos.utils.utils import format_rfc3339


class StoredObject(BaseModel):
    """Represents the metadata of an object listed from a bucket."""

    name: str
    size: int = 0
    created: Optional[datetime] = None

    def describe(self) -> str:
        created = format_rfc3339(self.created) if self.created else "unknown"
        return f"- {self.name} (size: {self.size} bytes, created: {created})"
