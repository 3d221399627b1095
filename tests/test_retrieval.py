"""Unit tests for handle_retrieve, the read-time serve/deny policy."""

from datetime import timedelta

import pytest

from sharebin.database import utcnow
from sharebin.exceptions import DenialReason, ShareUnavailable
from sharebin.retrieval import handle_retrieve
from sharebin.share import FilePayload, TextPayload


def test_serves_share_and_counts_view(run_with_store):
    async def scenario(store):
        share_id = await store.create(FilePayload("a.png", "image/png", b"\x89PNG"))
        return await handle_retrieve(store, share_id)

    share = run_with_store(scenario)
    assert share.views == 1
    assert share.payload.data == b"\x89PNG"


def test_missing_share_is_denied(run_with_store):
    async def scenario(store):
        with pytest.raises(ShareUnavailable) as excinfo:
            await handle_retrieve(store, "abcdef01")
        return excinfo.value

    error = run_with_store(scenario)
    assert error.reason is DenialReason.NOT_FOUND_OR_EXPIRED
    assert error.share_id == "abcdef01"


def test_expired_share_is_denied(run_with_store):
    async def scenario(store):
        share_id = await store.create(TextPayload("x"), expires_at=utcnow() - timedelta(milliseconds=1))
        with pytest.raises(ShareUnavailable) as excinfo:
            await handle_retrieve(store, share_id)
        return excinfo.value.reason

    assert run_with_store(scenario) is DenialReason.NOT_FOUND_OR_EXPIRED


def test_max_views_serves_exactly_limit_then_deletes(run_with_store):
    async def scenario(store):
        share_id = await store.create(TextPayload("limited"), max_views=3)
        views = [(await handle_retrieve(store, share_id)).views for _ in range(3)]

        with pytest.raises(ShareUnavailable) as fourth:
            await handle_retrieve(store, share_id)
        rows = list(await store.db.execute_fetchall("SELECT id FROM shares WHERE id = ?", (share_id,)))

        with pytest.raises(ShareUnavailable) as fifth:
            await handle_retrieve(store, share_id)
        return views, fourth.value.reason, rows, fifth.value.reason

    views, fourth, rows, fifth = run_with_store(scenario)
    assert views == [1, 2, 3]
    assert fourth is DenialReason.MAX_VIEWS_REACHED
    assert rows == []
    assert fifth is DenialReason.NOT_FOUND_OR_EXPIRED


def test_single_view_share(run_with_store):
    async def scenario(store):
        share_id = await store.create(TextPayload("burn after reading"), max_views=1)
        first = await handle_retrieve(store, share_id)
        with pytest.raises(ShareUnavailable) as second:
            await handle_retrieve(store, share_id)
        return first, second.value.reason, await store.stats()

    first, reason, stats = run_with_store(scenario)
    assert first.payload.content == "burn after reading"
    assert reason is DenialReason.MAX_VIEWS_REACHED
    assert stats.total_shares == 0
