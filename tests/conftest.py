"""Shared test fixtures and store doubles."""

import asyncio
from collections import Counter

import pytest
from fastapi.testclient import TestClient

from pv_counter.core.config import Settings
from pv_counter.core.exceptions import StoreError
from pv_counter.core.kv_store import InMemoryKVStore
from pv_counter.main import create_app

ADMIN_TOKEN = "test-dashboard-pwd"


class CountingStore(InMemoryKVStore):
    """In-memory store that records how often each operation is called."""

    def __init__(self, data=None):
        super().__init__(data)
        self.calls = Counter()

    async def get(self, key):
        self.calls["get"] += 1
        return await super().get(key)

    async def put(self, key, value):
        self.calls["put"] += 1
        await super().put(key, value)

    async def delete(self, key):
        self.calls["delete"] += 1
        await super().delete(key)

    async def list(self, limit, cursor=None, prefix=None):
        self.calls["list"] += 1
        return await super().list(limit, cursor=cursor, prefix=prefix)


class FailingStore(CountingStore):
    """Raises StoreError for the configured operations (optionally only for some keys)."""

    def __init__(self, data=None, fail_on=(), fail_keys=None):
        super().__init__(data)
        self.fail_on = set(fail_on)
        self.fail_keys = set(fail_keys) if fail_keys else None

    def _maybe_fail(self, operation, key=None):
        if operation in self.fail_on and (self.fail_keys is None or key in self.fail_keys):
            raise StoreError(operation, "simulated outage")

    async def get(self, key):
        self._maybe_fail("get", key)
        return await super().get(key)

    async def put(self, key, value):
        self._maybe_fail("put", key)
        await super().put(key, value)

    async def delete(self, key):
        self._maybe_fail("delete", key)
        await super().delete(key)

    async def list(self, limit, cursor=None, prefix=None):
        self._maybe_fail("list")
        return await super().list(limit, cursor=cursor, prefix=prefix)


class InterleavingStore(InMemoryKVStore):
    """Holds every read until ``readers`` reads are in flight, forcing overlapping read windows."""

    def __init__(self, readers, data=None):
        super().__init__(data)
        self.readers = readers
        self.reads = 0
        self.gate = asyncio.Event()

    async def get(self, key):
        value = await super().get(key)
        self.reads += 1
        if self.reads >= self.readers:
            self.gate.set()
        await self.gate.wait()
        return value


@pytest.fixture
def store():
    return CountingStore()


@pytest.fixture
def test_settings():
    return Settings(
        STORE_BACKEND="memory",
        DASHBOARD_PWD=ADMIN_TOKEN,
        ALLOWED_ORIGIN="*",
        DEBUG=False,
    )


@pytest.fixture
def client(test_settings, store):
    return TestClient(create_app(test_settings, store=store))


@pytest.fixture
def admin_headers():
    return {"X-Auth-Token": ADMIN_TOKEN}
