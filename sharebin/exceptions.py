"""
Exceptions raised by the share store and retrieval policy.
"""
from enum import Enum


class SharebinError(Exception):
    """Base class for ShareBin errors."""
    pass


class ValidationError(SharebinError):
    """Rejected request payload. Nothing was written to the store."""
    pass


class PayloadTooLarge(ValidationError):
    """Uploaded file exceeds the configured size cap."""
    pass


class StorageError(SharebinError):
    """
    The underlying store failed (unreachable, write failure, id space exhausted).
    """
    pass


class DenialReason(str, Enum):
    NOT_FOUND_OR_EXPIRED = "not_found_or_expired"
    MAX_VIEWS_REACHED = "max_views_reached"


class ShareUnavailable(SharebinError):
    """
    A retrieval was denied.

    The reason is for logging and tests only; callers outside the core must
    report every reason the same way.
    """

    def __init__(self, share_id: str, reason: DenialReason):
        super().__init__(f"Share {share_id} unavailable: {reason.value}")
        self.share_id = share_id
        self.reason = reason
