"""
Read-time policy: decides whether a retrieved share may be served.
"""
import logging

from sharebin.database import ShareStore
from sharebin.exceptions import DenialReason, ShareUnavailable
from sharebin.share import Share

logger = logging.getLogger(__name__)


async def handle_retrieve(store: ShareStore, share_id: str) -> Share:
    """
    Count a view of a share and return it if it may be served.

    The view is counted before the limit check so the count stays exact.
    The view that goes past max_views is counted, not served, and the share
    is deleted: exactly max_views retrievals succeed.

    Raises:
        ShareUnavailable: missing, expired, or over its view limit
        StorageError: the store failed
    """
    share = await store.retrieve_and_increment(share_id)
    if share is None:
        raise ShareUnavailable(share_id, DenialReason.NOT_FOUND_OR_EXPIRED)

    if share.views_exceeded:
        await store.delete_by_id(share_id)
        logger.info(f"Share {share_id} reached max views ({share.max_views}), deleted")
        raise ShareUnavailable(share_id, DenialReason.MAX_VIEWS_REACHED)

    return share
