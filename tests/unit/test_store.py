"""
Unit tests for the file-backed provider store
"""
import asyncio
import json
import os
import stat

import pytest

from conftest import provider_payload
from switchboard.errors import NotFoundError
from switchboard.models.provider import WebUiConfig
from switchboard.providers.store import ProviderStore


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "data" / "webui-config.json"


@pytest.fixture
def store(config_path):
    return ProviderStore(config_path)


def _append(provider_id):
    def mutator(current: WebUiConfig):
        data = current.to_json_dict()
        data["providers"] = data.get("providers", []) + [provider_payload(id=provider_id)]
        return data
    return mutator


@pytest.mark.asyncio
async def test_read_missing_file_returns_empty(store, config_path):
    """Reading never creates the file"""
    config = await store.read()
    assert config.providers == []
    assert config.default_provider_id is None
    assert not config_path.exists()


@pytest.mark.asyncio
async def test_read_unparsable_file_returns_empty(store, config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("{not json", encoding="utf-8")
    config = await store.read()
    assert config.providers == []


@pytest.mark.asyncio
async def test_read_normalizes_hand_edited_file(store, config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(json.dumps({
        "defaultProviderId": "nope",
        "providers": [provider_payload(id="a"), {"id": "broken"}],
    }), encoding="utf-8")
    config = await store.read()
    assert [p.id for p in config.providers] == ["a"]
    assert config.default_provider_id == "a"


@pytest.mark.asyncio
async def test_write_persists_owner_only(store, config_path):
    await store.write({"providers": [provider_payload()]})

    mode = stat.S_IMODE(os.stat(config_path).st_mode)
    assert mode == 0o600

    on_disk = json.loads(config_path.read_text(encoding="utf-8"))
    assert on_disk["defaultProviderId"] == "deepseek"
    assert on_disk["providers"][0]["apiKey"] == "sk-deepseek"
    assert on_disk["providers"][0]["baseUrl"] == "https://api.deepseek.test"
    assert not [p for p in config_path.parent.iterdir() if p.name.endswith(".tmp")]


@pytest.mark.asyncio
async def test_write_normalizes_before_persisting(store, config_path):
    written = await store.write({
        "defaultProviderId": "missing",
        "providers": [provider_payload(id="a"), provider_payload(id="a", name="dup")],
    })
    assert len(written.providers) == 1
    assert written.default_provider_id == "a"

    fresh = ProviderStore(config_path)
    assert (await fresh.read()).default_provider_id == "a"


@pytest.mark.asyncio
async def test_read_returns_independent_copy(store):
    await store.write({"providers": [provider_payload()]})
    config = await store.read()
    config.providers.clear()
    assert len((await store.read()).providers) == 1


@pytest.mark.asyncio
async def test_update_applies_mutation(store):
    await store.update(_append("a"))
    config = await store.update(_append("b"))
    assert [p.id for p in config.providers] == ["a", "b"]
    assert store.version == 2


@pytest.mark.asyncio
async def test_update_accepts_async_mutator(store):
    async def mutator(current):
        await asyncio.sleep(0)
        current.assistant_name = "Andy"
        return current

    config = await store.update(mutator)
    assert config.assistant_name == "Andy"


@pytest.mark.asyncio
async def test_update_abort_leaves_file_untouched(store, config_path):
    await store.write({"providers": [provider_payload()]})
    before = config_path.read_text(encoding="utf-8")

    def mutator(current):
        current.providers.clear()
        raise NotFoundError("provider_not_found")

    with pytest.raises(NotFoundError):
        await store.update(mutator)

    assert config_path.read_text(encoding="utf-8") == before
    assert store.version == 1
    assert len((await store.read()).providers) == 1


@pytest.mark.asyncio
async def test_strict_updates_never_lose_changes(store):
    """Concurrent updates in strict mode are applied one after the other"""
    def slow_append(provider_id):
        async def mutator(current):
            await asyncio.sleep(0.01)
            return _append(provider_id)(current)
        return mutator

    await asyncio.gather(*(store.update(slow_append(f"p{i}")) for i in range(5)))

    config = await store.reload()
    assert sorted(p.id for p in config.providers) == [f"p{i}" for i in range(5)]


@pytest.mark.asyncio
async def test_non_strict_updates_can_lose_changes(config_path):
    """Without the lock two overlapping updates start from the same state"""
    store = ProviderStore(config_path, strict=False)
    await store.write({"providers": []})

    both_started = asyncio.Event()
    started = []

    def racing_append(provider_id):
        async def mutator(current):
            started.append(provider_id)
            if len(started) == 2:
                both_started.set()
            await both_started.wait()
            return _append(provider_id)(current)
        return mutator

    await asyncio.gather(store.update(racing_append("a")), store.update(racing_append("b")))

    config = await store.reload()
    assert len(config.providers) == 1
    assert config.providers[0].id in ("a", "b")


class TestResolveDefault:

    @pytest.mark.asyncio
    async def test_explicit_id_wins(self, store):
        config = await store.write({
            "defaultProviderId": "a",
            "providers": [provider_payload(id="a"), provider_payload(id="b")],
        })
        assert ProviderStore.resolve_default(config, "b").id == "b"

    @pytest.mark.asyncio
    async def test_falls_back_to_default(self, store):
        config = await store.write({
            "defaultProviderId": "b",
            "providers": [provider_payload(id="a"), provider_payload(id="b")],
        })
        assert ProviderStore.resolve_default(config).id == "b"
        assert ProviderStore.resolve_default(config, "").id == "b"

    @pytest.mark.asyncio
    async def test_unknown_id(self, store):
        config = await store.write({"providers": [provider_payload(id="a")]})
        assert ProviderStore.resolve_default(config, "zzz") is None

    def test_empty_config(self):
        assert ProviderStore.resolve_default(WebUiConfig()) is None
