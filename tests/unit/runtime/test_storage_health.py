"""Unit tests for the storage health probe."""

import pytest

from connections_search.adapters.index_repository import InMemoryIndexRepository
from connections_search.runtime.health import check_storage_health


class _SilentRepository(InMemoryIndexRepository):
    async def ping(self):
        return False


class _BrokenRepository(InMemoryIndexRepository):
    async def ping(self):
        raise ConnectionError("refused")


@pytest.mark.unit
class TestCheckStorageHealth:
    @pytest.mark.asyncio
    async def test_healthy(self):
        result = await check_storage_health(InMemoryIndexRepository(table="people"))
        assert result["status"] == "healthy"
        assert result["table"] == "memory.people"

    @pytest.mark.asyncio
    async def test_degraded_without_rows(self):
        result = await check_storage_health(_SilentRepository())
        assert result["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_unhealthy_on_error(self):
        result = await check_storage_health(_BrokenRepository())
        assert result == {"status": "unhealthy", "table": "memory.search_entry", "error": "refused"}

    @pytest.mark.asyncio
    async def test_table_without_keyspace(self):
        result = await check_storage_health(InMemoryIndexRepository(keyspace=None))
        assert result["table"] == "search_entry"
