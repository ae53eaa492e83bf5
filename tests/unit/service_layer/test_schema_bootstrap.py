"""Unit tests for startup schema provisioning."""

import logging

import pytest

from connections_search.adapters.index_repository import InMemoryIndexRepository
from connections_search.domain.errors import SchemaUnavailableError
from connections_search.domain.model import CompactionCheck, CompactionOutcome
from connections_search.service_layer.schema_bootstrap import (
    provision_schema,
    report_compaction_check,
    run_migrations,
)


class _NoTableRepository(InMemoryIndexRepository):
    def ensure_schema(self):
        raise OSError("disk full")


class _InvisibleCatalogRepository(InMemoryIndexRepository):
    def read_compaction(self):
        return None


class _UnavailableRepository(InMemoryIndexRepository):
    def ensure_keyspace(self):
        raise SchemaUnavailableError("no hosts")


@pytest.mark.unit
class TestProvisionSchema:
    def test_creates_table(self):
        repo = InMemoryIndexRepository()
        provision_schema(repo)
        assert repo.read_compaction() is not None

    def test_unexpected_errors_become_schema_errors(self):
        with pytest.raises(SchemaUnavailableError, match="search_entry") as excinfo:
            provision_schema(_NoTableRepository())
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_schema_errors_pass_through(self):
        with pytest.raises(SchemaUnavailableError, match="no hosts"):
            provision_schema(_UnavailableRepository())


@pytest.mark.unit
class TestReportCompactionCheck:
    def test_skipped_check_logs_warning(self, caplog):
        check = CompactionCheck(outcome=CompactionOutcome.TIMED_OUT, table="search_entry", attempts=6)

        with caplog.at_level(logging.WARNING, logger="connections_search.service_layer.schema_bootstrap"):
            report_compaction_check(check)

        assert "timed_out" in caplog.text
        assert "not visible" in caplog.text

    def test_successful_check_logs_info(self, caplog):
        check = CompactionCheck(outcome=CompactionOutcome.ALTERED, table="search_entry", compaction_class="STCS")

        with caplog.at_level(logging.INFO, logger="connections_search.service_layer.schema_bootstrap"):
            report_compaction_check(check)

        assert "altered" in caplog.text
        assert not any(record.levelno >= logging.WARNING for record in caplog.records)


@pytest.mark.unit
class TestRunMigrations:
    @pytest.mark.asyncio
    async def test_provisions_and_levels_table(self):
        repo = InMemoryIndexRepository()

        check = await run_migrations(repo, interval=0)

        assert check.outcome is CompactionOutcome.ALTERED
        assert repo.read_compaction()["class"].endswith("LeveledCompactionStrategy")

    @pytest.mark.asyncio
    async def test_is_idempotent(self):
        repo = InMemoryIndexRepository()

        await run_migrations(repo, interval=0)
        check = await run_migrations(repo, interval=0)

        assert check.outcome is CompactionOutcome.CONVERGED

    @pytest.mark.asyncio
    async def test_invisible_table_does_not_fail_startup(self):
        repo = _InvisibleCatalogRepository()

        check = await run_migrations(repo, attempts=3, interval=0)

        assert check.outcome is CompactionOutcome.TIMED_OUT
        assert check.attempts == 3

    @pytest.mark.asyncio
    async def test_schema_failure_is_fatal(self):
        with pytest.raises(SchemaUnavailableError):
            await run_migrations(_NoTableRepository(), interval=0)
