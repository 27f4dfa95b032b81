"""Contract tests shared by every KeyStore implementation.

Runs against InMemoryKeyStore and SqlKeyStore (file-backed SQLite).
"""

from __future__ import annotations

from datetime import UTC, timedelta, timezone

import pytest

from keyward.errors import DuplicateDigestError, NotFoundError
from keyward.store.base import KeyStore
from keyward.utils.datetime import utcnow


async def _insert(store: KeyStore, *, owner_id="u1", name="ci-bot", digest="d" * 64, prefix="sk-kw-abcdef"):
    return await store.insert(
        owner_id=owner_id,
        name=name,
        key_digest=digest,
        key_prefix=prefix,
        created_at=utcnow(),
    )


class TestInsert:
    async def test_insert_assigns_id(self, any_store: KeyStore):
        key_id = await _insert(any_store)

        assert key_id
        row = await any_store.get(key_id)
        assert row is not None
        assert row.owner_id == "u1"
        assert row.name == "ci-bot"
        assert row.key_prefix == "sk-kw-abcdef"
        assert row.last_used_at is None

    async def test_ids_are_unique(self, any_store: KeyStore):
        ids = {await _insert(any_store, digest=f"{i:064x}") for i in range(5)}
        assert len(ids) == 5

    async def test_duplicate_digest_rejected(self, any_store: KeyStore):
        """A digest collision is an error, never an overwrite."""
        first = await _insert(any_store, owner_id="u1")

        with pytest.raises(DuplicateDigestError):
            await _insert(any_store, owner_id="u2")

        row = await any_store.find_by_digest("d" * 64)
        assert row is not None
        assert row.id == first
        assert row.owner_id == "u1"


class TestFindByDigest:
    async def test_hit(self, any_store: KeyStore):
        key_id = await _insert(any_store)

        row = await any_store.find_by_digest("d" * 64)

        assert row is not None
        assert row.id == key_id

    async def test_miss(self, any_store: KeyStore):
        await _insert(any_store)
        assert await any_store.find_by_digest("e" * 64) is None

    async def test_prefix_is_not_a_lookup_path(self, any_store: KeyStore):
        await _insert(any_store)
        assert await any_store.find_by_digest("sk-kw-abcdef") is None


class TestListByOwner:
    async def test_lists_only_owner_keys(self, any_store: KeyStore):
        a = await _insert(any_store, owner_id="u1", name="a", digest="1" * 64)
        b = await _insert(any_store, owner_id="u1", name="b", digest="2" * 64)
        await _insert(any_store, owner_id="u2", name="c", digest="3" * 64)

        keys = await any_store.list_by_owner("u1")

        assert {k.id for k in keys} == {a, b}

    async def test_projection_has_no_digest(self, any_store: KeyStore):
        await _insert(any_store, digest="f" * 64)

        (info,) = await any_store.list_by_owner("u1")
        dumped = info.model_dump()

        assert "key_digest" not in dumped
        assert not hasattr(info, "key_digest")
        assert all("f" * 16 not in str(v) for v in dumped.values())

    async def test_empty(self, any_store: KeyStore):
        assert await any_store.list_by_owner("nobody") == []


class TestTouchLastUsed:
    async def test_sets_timestamp(self, any_store: KeyStore):
        key_id = await _insert(any_store)
        now = utcnow()

        await any_store.touch_last_used(key_id, now)

        row = await any_store.get(key_id)
        assert row.last_used_at == now

    async def test_never_moves_backwards(self, any_store: KeyStore):
        key_id = await _insert(any_store)
        newer = utcnow()
        older = newer - timedelta(minutes=5)

        await any_store.touch_last_used(key_id, newer)
        await any_store.touch_last_used(key_id, older)

        row = await any_store.get(key_id)
        assert row.last_used_at == newer

    async def test_moves_forward(self, any_store: KeyStore):
        key_id = await _insert(any_store)
        first = utcnow()
        second = first + timedelta(seconds=1)

        await any_store.touch_last_used(key_id, first)
        await any_store.touch_last_used(key_id, second)

        row = await any_store.get(key_id)
        assert row.last_used_at == second

    async def test_aware_timestamp_stored_as_utc(self, any_store: KeyStore):
        key_id = await _insert(any_store)
        naive = utcnow().replace(microsecond=0)
        aware = naive.replace(tzinfo=UTC).astimezone(timezone(timedelta(hours=5)))

        await any_store.touch_last_used(key_id, aware)

        row = await any_store.get(key_id)
        assert row.last_used_at == naive

    async def test_missing_key(self, any_store: KeyStore):
        with pytest.raises(NotFoundError):
            await any_store.touch_last_used("key-missing", utcnow())


class TestRemove:
    async def test_remove_invalidates_lookup(self, any_store: KeyStore):
        key_id = await _insert(any_store)

        await any_store.remove(key_id)

        assert await any_store.find_by_digest("d" * 64) is None
        assert await any_store.get(key_id) is None
        assert await any_store.list_by_owner("u1") == []

    async def test_remove_missing(self, any_store: KeyStore):
        with pytest.raises(NotFoundError):
            await any_store.remove("key-missing")

    async def test_remove_twice(self, any_store: KeyStore):
        key_id = await _insert(any_store)
        await any_store.remove(key_id)

        with pytest.raises(NotFoundError):
            await any_store.remove(key_id)

    async def test_touch_after_remove(self, any_store: KeyStore):
        key_id = await _insert(any_store)
        await any_store.remove(key_id)

        with pytest.raises(NotFoundError):
            await any_store.touch_last_used(key_id, utcnow())

    async def test_digest_reusable_after_hard_delete(self, any_store: KeyStore):
        key_id = await _insert(any_store)
        await any_store.remove(key_id)

        new_id = await _insert(any_store, owner_id="u2")
        row = await any_store.find_by_digest("d" * 64)
        assert row.id == new_id
