"""
Unit tests for the API registry: CRUD, status, tags and variables.
"""

import asyncio
import json
from unittest.mock import patch

import pytest

from openapi_mcp.base import ConflictError, NotFoundError, PersistenceError, ValidationError
from openapi_mcp.models import ApiStatus
from openapi_mcp.registry import ApiRegistry, StatusFilter
from openapi_mcp.store import Store


def read_file(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestAddApi:
    """Test registering definitions."""

    @pytest.mark.asyncio
    async def test_add_assigns_fresh_id_and_persists(self, registry, store_path, make_api):
        api = make_api()

        created = await registry.add_api(api)

        assert created.id != api.id
        assert created.created_at == created.updated_at
        saved = read_file(store_path)
        assert [item["id"] for item in saved["apis"]] == [created.id]

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, registry, make_api):
        await registry.add_api(make_api("weather"))

        with pytest.raises(ConflictError):
            await registry.add_api(make_api("weather"))

        assert len(await registry.list_apis()) == 1

    @pytest.mark.asyncio
    async def test_concurrent_adds(self, registry, make_api):
        await asyncio.gather(*(registry.add_api(make_api(f"api_{i}")) for i in range(20)))

        names = {api.name for api in await registry.list_apis()}
        assert names == {f"api_{i}" for i in range(20)}

    @pytest.mark.asyncio
    async def test_concurrent_same_name_only_one_wins(self, registry, make_api):
        results = await asyncio.gather(
            registry.add_api(make_api("dup")),
            registry.add_api(make_api("dup")),
            return_exceptions=True,
        )

        errors = [result for result in results if isinstance(result, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], ConflictError)

    @pytest.mark.asyncio
    async def test_persist_failure_keeps_memory_change(self, tmp_path, make_api):
        directory = tmp_path / "taken"
        directory.mkdir()
        registry = ApiRegistry(Store(directory))

        with pytest.raises(PersistenceError):
            await registry.add_api(make_api())

        assert await registry.get_api_by_name("get_user") is not None


class TestQueries:
    """Test lookups and listing filters."""

    @pytest.mark.asyncio
    async def test_get_by_id_and_name(self, registry, make_api):
        created = await registry.add_api(make_api())

        assert (await registry.get_api(created.id)).name == "get_user"
        assert (await registry.get_api_by_name("get_user")).id == created.id
        assert await registry.get_api("missing") is None
        assert await registry.get_api_by_name("missing") is None

    @pytest.mark.asyncio
    async def test_returned_definitions_are_copies(self, registry, make_api):
        created = await registry.add_api(make_api())

        fetched = await registry.get_api(created.id)
        fetched.name = "changed"
        fetched.tags.append("mutated")

        again = await registry.get_api(created.id)
        assert again.name == "get_user"
        assert again.tags == ["users"]

    @pytest.mark.asyncio
    async def test_resolve(self, registry, make_api):
        created = await registry.add_api(make_api())

        assert (await registry.resolve(api_id=created.id)).name == "get_user"
        assert (await registry.resolve(name="get_user")).id == created.id
        with pytest.raises(NotFoundError):
            await registry.resolve(name="nope")
        with pytest.raises(ValidationError):
            await registry.resolve()

    @pytest.mark.asyncio
    async def test_status_filters(self, registry, make_api):
        first = await registry.add_api(make_api("first"))
        await registry.add_api(make_api("second"))
        await registry.disable_api(first.id)

        assert [api.name for api in await registry.list_enabled_apis()] == ["second"]
        assert [api.name for api in await registry.list_apis(StatusFilter.DISABLED)] == ["first"]
        assert len(await registry.list_apis("all")) == 2

    @pytest.mark.asyncio
    async def test_tags(self, registry, make_api):
        await registry.add_api(make_api("a", tags=["weather", "public"]))
        await registry.add_api(make_api("b", tags=["public"]))
        await registry.add_api(make_api("c", tags=[]))

        assert [api.name for api in await registry.list_apis_by_tag("public")] == ["a", "b"]
        assert [api.name for api in await registry.list_apis_by_tag("weather")] == ["a"]
        assert await registry.list_apis_by_tag("nothing") == []

    @pytest.mark.asyncio
    async def test_insertion_order_kept(self, registry, make_api):
        for name in ["zeta", "alpha", "mid"]:
            await registry.add_api(make_api(name))

        assert [api.name for api in await registry.list_apis()] == ["zeta", "alpha", "mid"]


class TestUpdateDelete:
    """Test updating, deleting and toggling definitions."""

    @pytest.mark.asyncio
    async def test_update_keeps_id_and_created_at(self, registry, make_api):
        created = await registry.add_api(make_api())
        changed = created.model_copy(update={"id": "other", "description": "new", "created_at": "1999"})

        with patch("openapi_mcp.registry.utc_now", return_value="2030-01-01T00:00:00+00:00"):
            updated = await registry.update_api(created.id, changed)

        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.updated_at == "2030-01-01T00:00:00+00:00"
        assert updated.description == "new"

    @pytest.mark.asyncio
    async def test_update_rename_conflict(self, registry, make_api):
        first = await registry.add_api(make_api("first"))
        await registry.add_api(make_api("second"))

        with pytest.raises(ConflictError):
            await registry.update_api(first.id, first.model_copy(update={"name": "second"}))

    @pytest.mark.asyncio
    async def test_update_same_name_allowed(self, registry, make_api):
        created = await registry.add_api(make_api())

        updated = await registry.update_api(created.id, created.model_copy(update={"path": "/v2/users/{id}"}))

        assert updated.path == "/v2/users/{id}"

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, registry, make_api):
        with pytest.raises(NotFoundError):
            await registry.update_api("missing", make_api())

    @pytest.mark.asyncio
    async def test_delete(self, registry, store_path, make_api):
        created = await registry.add_api(make_api())

        removed = await registry.delete_api(created.id)

        assert removed.id == created.id
        assert await registry.get_api(created.id) is None
        assert read_file(store_path)["apis"] == []
        with pytest.raises(NotFoundError):
            await registry.delete_api(created.id)

    @pytest.mark.asyncio
    async def test_enable_disable(self, registry, store_path, make_api):
        created = await registry.add_api(make_api())

        with patch("openapi_mcp.registry.utc_now", return_value="2030-01-01T00:00:00+00:00"):
            disabled = await registry.disable_api(created.id)

        assert disabled.status == ApiStatus.DISABLED
        assert disabled.updated_at == "2030-01-01T00:00:00+00:00"
        assert read_file(store_path)["apis"][0]["status"] == "disabled"

        enabled = await registry.enable_api(created.id)
        assert enabled.enabled

    @pytest.mark.asyncio
    async def test_set_status_unknown_id(self, registry):
        with pytest.raises(NotFoundError):
            await registry.enable_api("missing")


class TestVariables:
    """Test global variable management."""

    @pytest.mark.asyncio
    async def test_set_get_delete(self, registry, store_path):
        await registry.set_variable("HOST", "api.example.com")
        await registry.set_variables({"TOKEN": "t", "HOST": "override"})

        assert await registry.get_variables() == {"HOST": "override", "TOKEN": "t"}
        assert await registry.get_variable("TOKEN") == "t"
        assert read_file(store_path)["variables"]["HOST"] == "override"

        assert await registry.delete_variable("TOKEN") is True
        assert await registry.get_variable("TOKEN") is None

    @pytest.mark.asyncio
    async def test_delete_missing_variable_does_not_write(self, registry, store_path):
        assert await registry.delete_variable("NOPE") is False
        assert not store_path.exists()

    @pytest.mark.asyncio
    async def test_variables_survive_reload(self, registry, store_path):
        await registry.set_variable("HOST", "h")

        reloaded = ApiRegistry(Store.load(store_path))
        assert await reloaded.get_variables() == {"HOST": "h"}
