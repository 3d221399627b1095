"""
Share record and its payload variants.
"""
import base64
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union


@dataclass(frozen=True)
class TextPayload:
    """Plain text paste."""
    content: str


@dataclass(frozen=True)
class FilePayload:
    """Uploaded file kept in the database."""
    filename: str
    mimetype: str
    data: bytes

    def encoded_data(self) -> str:
        """Base64 form used in JSON responses."""
        return base64.b64encode(self.data).decode("ascii")


Payload = Union[TextPayload, FilePayload]


@dataclass
class Share:
    """A stored share as returned by the store."""
    id: str
    payload: Payload
    created_at: datetime
    expires_at: Optional[datetime] = None
    views: int = 0
    max_views: Optional[int] = None

    @property
    def is_file(self) -> bool:
        return isinstance(self.payload, FilePayload)

    @property
    def views_exceeded(self) -> bool:
        """True once views went past max_views (the over-limit view is counted)."""
        return self.max_views is not None and self.views > self.max_views


@dataclass(frozen=True)
class ShareStats:
    """Aggregate counts over all stored shares."""
    total_shares: int
    total_files: int
    total_texts: int
    total_views: int
