"""
Pydantic models for API responses.
"""
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from sharebin.share import FilePayload, Share, ShareStats


def _as_utc(value: datetime) -> datetime:
    # stored timestamps are naive UTC; clients need the offset to read them
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class ApiModel(BaseModel):
    """Base for responses that expose expiresAt in camelCase."""
    model_config = ConfigDict(populate_by_name=True)


class ShareResponse(ApiModel):
    """Response model after creating a share."""
    id: str
    url: str
    expires_at: Optional[UtcDatetime] = Field(None, alias="expiresAt")


class TextShareView(ApiModel):
    """A served text share."""
    type: Literal["text"] = "text"
    content: str
    views: int
    expires_at: Optional[UtcDatetime] = Field(None, alias="expiresAt")


class FileShareView(ApiModel):
    """A served file share; data is base64."""
    type: Literal["file"] = "file"
    filename: str
    mimetype: str
    data: str
    views: int
    expires_at: Optional[UtcDatetime] = Field(None, alias="expiresAt")


class StatsResponse(BaseModel):
    total_shares: int
    total_files: int
    total_texts: int
    total_views: int

    @classmethod
    def from_stats(cls, stats: ShareStats) -> "StatsResponse":
        return cls(
            total_shares=stats.total_shares,
            total_files=stats.total_files,
            total_texts=stats.total_texts,
            total_views=stats.total_views,
        )


class HealthResponse(BaseModel):
    status: str = "ok"


def share_view(share: Share):
    """Project a servable share onto its text or file response model."""
    payload = share.payload
    if isinstance(payload, FilePayload):
        return FileShareView(
            filename=payload.filename,
            mimetype=payload.mimetype,
            data=payload.encoded_data(),
            views=share.views,
            expires_at=share.expires_at,
        )
    return TextShareView(
        content=payload.content,
        views=share.views,
        expires_at=share.expires_at,
    )
