"""Shared test fixtures and configuration."""

import os

import pytest


# Complete test environment that overrides every config value the tests rely on
TEST_ENV = {
    "CASSANDRA_HOSTS": "127.0.0.1",
    "CASSANDRA_PORT": "9042",
    "CASSANDRA_USER": "",
    "CASSANDRA_PASSWORD": "",
    "CASSANDRA_KEYSPACE": "connections_test",
    "CASSANDRA_REPLICATION_CLASS": "SimpleStrategy",
    "CASSANDRA_REPLICATION_FACTOR": "1",
    "SEARCH_TABLE": "search_entry",
    "STORAGE_BACKEND": "memory",
    "SEARCH_FETCH_LIMIT": "1000",
    "SEARCH_RESULT_LIMIT": "10",
    "INDEX_WRITE_CONCURRENCY": "4",
    "COMPACTION_POLL_ATTEMPTS": "6",
    "COMPACTION_POLL_INTERVAL_MS": "0",
    "LOG_LEVEL": "info",
    "LOG_JSON": "true",
    "OTLP_ENDPOINT": "",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value

from connections_search.adapters.index_repository import InMemoryIndexRepository  # noqa: E402
from connections_search.service_layer.search_service import SearchService  # noqa: E402


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset environment variables to test defaults before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def repository() -> InMemoryIndexRepository:
    repo = InMemoryIndexRepository()
    repo.ensure_schema()
    return repo


@pytest.fixture
def service(repository: InMemoryIndexRepository) -> SearchService:
    return SearchService(repository, compaction_interval=0.0)
