import time
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from fscache.core.abstract_pool import AbstractCachePool
from fscache.domain.errors import CachePoolError, InvalidArgumentError
from fscache.domain.models.cache_item import CacheItem, FetchResult


class DictCachePool(AbstractCachePool):
    """Minimal backend keeping records and tag lists in dictionaries."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.records: Dict[str, tuple] = {}
        self.lists: Dict[str, List[str]] = {}
        self.stored_ttls: Dict[str, Optional[int]] = {}

    async def fetch_object_from_cache(self, key):
        if key not in self.records:
            return FetchResult.miss()
        value, tags, expiration = self.records[key]
        return FetchResult(True, value, tags, expiration)

    async def clear_all_objects_from_cache(self):
        self.records.clear()
        self.lists.clear()
        return True

    async def clear_one_object_from_cache(self, key):
        self.records.pop(key, None)
        return True

    async def store_item_in_cache(self, item, ttl):
        self.records[item.get_key()] = (item.value, item.get_tags(), item.get_expiration_timestamp())
        self.stored_ttls[item.get_key()] = ttl
        return True

    async def get_list(self, name):
        return list(self.lists.setdefault(name, []))

    async def remove_list(self, name):
        self.lists.pop(name, None)

    async def append_list_item(self, name, key):
        self.lists.setdefault(name, []).append(key)
        return True

    async def remove_list_item(self, name, key):
        self.lists[name] = [item for item in self.lists.get(name, []) if item != key]
        return True


@pytest.fixture
def mock_logger():
    return MagicMock()


@pytest.fixture
def dict_pool(mock_logger):
    return DictCachePool(logger=mock_logger)


@pytest.mark.parametrize("key,message", [
    ("", "cannot be an empty string"),
    (12, 'must be string, "int" given'),
    ("a{b", "reserved for future extension"),
    ("a@b", "reserved for future extension"),
    ("a\\b", "reserved for future extension"),
])
def test_validate_key_rejects_bad_keys(dict_pool, key, message):
    with pytest.raises(InvalidArgumentError, match=message):
        dict_pool.validate_key(key)


def test_tag_key_uses_separator(dict_pool):
    assert dict_pool.get_tag_key("users") == "tag!users"


@pytest.mark.asyncio
async def test_get_item_miss_returns_item(dict_pool):
    item = await dict_pool.get_item("missing")
    assert isinstance(item, CacheItem)
    assert item.get_key() == "missing"
    assert not item.is_hit()


@pytest.mark.asyncio
async def test_save_and_get(dict_pool):
    item = await dict_pool.get_item("key")
    item.set("value").set_tags(["t1"])
    assert await dict_pool.save(item) is True

    fetched = await dict_pool.get_item("key")
    assert fetched.get() == "value"
    assert fetched.get_previous_tags() == ["t1"]
    assert dict_pool.lists["tag!t1"] == ["key"]
    assert dict_pool.stored_ttls["key"] is None


@pytest.mark.asyncio
async def test_save_passes_remaining_ttl(dict_pool):
    await dict_pool.set("key", "value", 100)
    assert 99 <= dict_pool.stored_ttls["key"] <= 100


@pytest.mark.asyncio
async def test_saving_expired_item_deletes_it(dict_pool):
    await dict_pool.set("key", "value")
    item = await dict_pool.get_item("key")
    item.set_tags(["t1"]).expires_at(int(time.time()) - 10)

    assert await dict_pool.save(item) is True
    assert "key" not in dict_pool.records
    assert dict_pool.lists.get("tag!t1", []) == []


@pytest.mark.asyncio
async def test_retagging_moves_key_between_lists(dict_pool):
    item = (await dict_pool.get_item("key")).set("v").set_tags(["old"])
    await dict_pool.save(item)

    item = await dict_pool.get_item("key")
    item.set("v2").set_tags(["new"])
    await dict_pool.save(item)

    assert dict_pool.lists["tag!old"] == []
    assert dict_pool.lists["tag!new"] == ["key"]


@pytest.mark.asyncio
async def test_save_rejects_foreign_items(dict_pool):
    with pytest.raises(InvalidArgumentError, match="not transferable"):
        await dict_pool.save({"key": "value"})


@pytest.mark.asyncio
async def test_deferred_item_is_visible_before_commit(dict_pool):
    item = (await dict_pool.get_item("key")).set("deferred").set_tags(["t"])
    assert await dict_pool.save_deferred(item) is True
    assert "key" not in dict_pool.records

    visible = await dict_pool.get_item("key")
    assert visible.get() == "deferred"
    assert visible.get_previous_tags() == ["t"]
    assert visible.get_tags() == []
    # The queued item itself keeps its tags
    assert item.get_tags() == ["t"]

    assert await dict_pool.commit() is True
    assert dict_pool.records["key"][0] == "deferred"
    assert dict_pool.lists["tag!t"] == ["key"]


@pytest.mark.asyncio
async def test_context_manager_commits_on_exit(dict_pool):
    async with dict_pool as pool:
        await pool.save_deferred((await pool.get_item("key")).set("value"))
        assert "key" not in dict_pool.records
    assert dict_pool.records["key"][0] == "value"


@pytest.mark.asyncio
async def test_delete_items_removes_records_tags_and_deferred(dict_pool):
    await dict_pool.save((await dict_pool.get_item("a")).set(1).set_tags(["t"]))
    await dict_pool.save_deferred((await dict_pool.get_item("b")).set(2))

    assert await dict_pool.delete_items(["a", "b"]) is True
    assert dict_pool.records == {}
    assert dict_pool.lists["tag!t"] == []
    assert not await dict_pool.has_item("b")


@pytest.mark.asyncio
async def test_delete_items_commits_other_deferred_items(dict_pool):
    await dict_pool.save_deferred((await dict_pool.get_item("keep")).set("v"))
    await dict_pool.delete_item("other")
    assert dict_pool.records["keep"][0] == "v"


@pytest.mark.asyncio
async def test_delete_reports_backend_failure(dict_pool, mocker):
    await dict_pool.set("key", "value")
    mocker.patch.object(dict_pool, "clear_one_object_from_cache", return_value=False)
    assert await dict_pool.delete("key") is False


@pytest.mark.asyncio
async def test_clear_drops_deferred_and_stored(dict_pool):
    await dict_pool.set("a", 1)
    await dict_pool.save_deferred((await dict_pool.get_item("b")).set(2))

    assert await dict_pool.clear() is True
    assert not await dict_pool.has("a")
    assert not await dict_pool.has("b")
    assert await dict_pool.commit() is True
    assert dict_pool.records == {}


@pytest.mark.asyncio
async def test_invalidate_tags(dict_pool):
    await dict_pool.save((await dict_pool.get_item("a")).set(1).set_tags(["x"]))
    await dict_pool.save((await dict_pool.get_item("b")).set(2).set_tags(["x", "y"]))
    await dict_pool.save((await dict_pool.get_item("c")).set(3).set_tags(["y"]))
    await dict_pool.save((await dict_pool.get_item("d")).set(4).set_tags(["z"]))

    assert await dict_pool.invalidate_tags(["x", "y"]) is True

    assert set(dict_pool.records) == {"d"}
    assert "tag!x" not in dict_pool.lists
    assert "tag!y" not in dict_pool.lists
    assert dict_pool.lists["tag!z"] == ["d"]


@pytest.mark.asyncio
async def test_invalidate_single_tag(dict_pool):
    await dict_pool.save((await dict_pool.get_item("a")).set(1).set_tags(["x"]))
    assert await dict_pool.invalidate_tag("x") is True
    assert await dict_pool.get("a") is None


@pytest.mark.asyncio
async def test_simple_api(dict_pool):
    assert await dict_pool.get("key", "fallback") == "fallback"
    assert await dict_pool.set("key", "value") is True
    assert await dict_pool.has("key") is True
    assert await dict_pool.get("key") == "value"
    assert await dict_pool.delete("key") is True
    assert await dict_pool.has("key") is False


@pytest.mark.asyncio
async def test_set_and_get_multiple(dict_pool):
    assert await dict_pool.set_multiple({"a": 1, 2: "two"}, ttl=60) is True

    values = await dict_pool.get_multiple(["a", "2", "missing"], default="none")
    assert values == {"a": 1, "2": "two", "missing": "none"}


@pytest.mark.asyncio
async def test_get_multiple_accepts_generators(dict_pool):
    await dict_pool.set("a", 1)
    values = await dict_pool.get_multiple(key for key in ["a"])
    assert values == {"a": 1}


@pytest.mark.asyncio
@pytest.mark.parametrize("keys", ["a", 42])
async def test_multiple_rejects_non_iterables(dict_pool, keys):
    with pytest.raises(InvalidArgumentError, match="neither a list nor an iterable"):
        await dict_pool.get_multiple(keys)
    with pytest.raises(InvalidArgumentError):
        await dict_pool.delete_multiple(keys)


@pytest.mark.asyncio
async def test_set_multiple_validates_every_key_first(dict_pool):
    with pytest.raises(InvalidArgumentError):
        await dict_pool.set_multiple({"good": 1, "bad:key": 2})
    assert dict_pool.records == {}


@pytest.mark.asyncio
async def test_set_multiple_rejects_non_mapping(dict_pool):
    with pytest.raises(InvalidArgumentError, match="must be a mapping"):
        await dict_pool.set_multiple([("a", 1)])


@pytest.mark.asyncio
async def test_delete_multiple(dict_pool):
    await dict_pool.set_multiple({"a": 1, "b": 2, "c": 3})
    assert await dict_pool.delete_multiple(["a", "b"]) is True
    assert await dict_pool.get_multiple(["a", "b", "c"]) == {"a": None, "b": None, "c": 3}


@pytest.mark.asyncio
async def test_backend_errors_are_wrapped_and_logged(dict_pool, mock_logger, mocker):
    mocker.patch.object(dict_pool, "fetch_object_from_cache", side_effect=RuntimeError("disk on fire"))

    with pytest.raises(CachePoolError, match='Exception thrown when executing "get_item"') as exc_info:
        await dict_pool.get_item("key")

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    mock_logger.critical.assert_called_once()
    assert "disk on fire" in mock_logger.critical.call_args.args[0]


@pytest.mark.asyncio
async def test_invalid_argument_from_backend_is_logged_as_warning(dict_pool, mock_logger, mocker):
    mocker.patch.object(
        dict_pool, "store_item_in_cache", side_effect=InvalidArgumentError("bad name")
    )

    with pytest.raises(InvalidArgumentError, match="bad name"):
        await dict_pool.set("key", "value")

    mock_logger.warning.assert_called_once_with("bad name")
    mock_logger.critical.assert_not_called()


@pytest.mark.asyncio
async def test_clear_errors_are_wrapped(dict_pool, mocker):
    mocker.patch.object(dict_pool, "clear_all_objects_from_cache", side_effect=OSError("nope"))
    with pytest.raises(CachePoolError, match='"clear"'):
        await dict_pool.clear()


def test_set_logger(dict_pool):
    other = MagicMock()
    dict_pool.set_logger(other)
    assert dict_pool.logger is other


@pytest.mark.asyncio
async def test_bare_string_is_not_a_list_of_keys_or_tags(dict_pool):
    await dict_pool.save((await dict_pool.get_item("a")).set(1).set_tags(["x"]))
    await dict_pool.save((await dict_pool.get_item("b")).set(2).set_tags(["y"]))

    with pytest.raises(InvalidArgumentError, match="tags is neither"):
        await dict_pool.invalidate_tags("xy")
    with pytest.raises(InvalidArgumentError, match="keys is neither"):
        await dict_pool.delete_items("ab")
    with pytest.raises(InvalidArgumentError):
        await dict_pool.get_items("ab")

    assert await dict_pool.get("a") == 1
    assert await dict_pool.get("b") == 2


@pytest.mark.asyncio
async def test_failed_commit_keeps_unsaved_items_queued(dict_pool, mocker):
    for key in ["a", "b", "c"]:
        await dict_pool.save_deferred((await dict_pool.get_item(key)).set(key))
    store = mocker.patch.object(
        dict_pool, "store_item_in_cache", side_effect=[True, RuntimeError("disk full")]
    )

    with pytest.raises(CachePoolError):
        await dict_pool.commit()
    assert store.await_count == 2
    assert await dict_pool.get("b") == "b"

    mocker.stopall()
    assert await dict_pool.commit() is True
    assert set(dict_pool.records) == {"b", "c"}
