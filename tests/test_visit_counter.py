"""Tests for the read-increment-write counter protocol."""

import asyncio

import pytest

from pv_counter.core.exceptions import StoreError
from pv_counter.core.key_codec import encode_key
from pv_counter.core.kv_store import InMemoryKVStore
from pv_counter.services.visit_counter import VisitCounterService, parse_count

from conftest import CountingStore, FailingStore, InterleavingStore


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0), ("", 0), ("abc", 0), ("-3", 0), ("7", 7), (" 12 ", 12), ("1.5", 0),
        ("1_000", 0), ("\u0661\u0662", 0), ("+5", 0), ("0", 0),
    ],
)
def test_parse_count(raw, expected):
    assert parse_count(raw) == expected


async def test_first_and_second_visit():
    svc = VisitCounterService(InMemoryKVStore())
    first = await svc.record_visit("/x")
    assert (first.site_total, first.page_total) == (1, 1)
    second = await svc.record_visit("/x")
    assert (second.site_total, second.page_total) == (2, 2)


async def test_site_total_spans_pages():
    store = InMemoryKVStore()
    svc = VisitCounterService(store)
    await svc.record_visit("/a")
    totals = await svc.record_visit("/b.html")
    assert (totals.site_total, totals.page_total) == (2, 1)
    assert await store.get("site_total_pv") == "2"
    assert await store.get("_a") == "1"
    assert await store.get("_b") == "1"


async def test_non_numeric_page_value_restarts_at_zero():
    store = InMemoryKVStore({"site_total_pv": "5", encode_key("/x"): "abc"})
    totals = await VisitCounterService(store).record_visit("/x")
    assert totals.page_total == 1
    assert totals.site_total == 6


async def test_empty_path_counts_as_root():
    store = InMemoryKVStore()
    await VisitCounterService(store).record_visit("")
    assert await store.get("root") == "1"


async def test_equivalent_paths_share_a_counter():
    svc = VisitCounterService(InMemoryKVStore())
    await svc.record_visit("/foo")
    await svc.record_visit("/foo/")
    totals = await svc.record_visit("/foo.html")
    assert totals.page_total == 3


async def test_record_visit_does_two_reads_and_two_writes():
    store = CountingStore()
    await VisitCounterService(store).record_visit("/x")
    assert store.calls["get"] == 2
    assert store.calls["put"] == 2


async def test_custom_site_key():
    store = InMemoryKVStore()
    await VisitCounterService(store, site_key="all_pages").record_visit("/x")
    assert await store.get("all_pages") == "1"


async def test_read_failure_writes_nothing():
    store = FailingStore(fail_on={"get"}, fail_keys={"_x"})
    with pytest.raises(StoreError):
        await VisitCounterService(store).record_visit("/x")
    assert store.calls["put"] == 0


async def test_write_failure_fails_the_visit():
    store = FailingStore(fail_on={"put"}, fail_keys={"site_total_pv"})
    with pytest.raises(StoreError):
        await VisitCounterService(store).record_visit("/x")
    # the other write of the batch was still awaited
    assert await store.get("_x") == "1"


async def test_get_counts_does_not_mutate():
    store = CountingStore({"site_total_pv": "9", "_x": "4"})
    totals = await VisitCounterService(store).get_counts("/x/")
    assert (totals.site_total, totals.page_total) == (9, 4)
    assert store.calls["put"] == 0


async def test_sequential_visits_are_exact():
    svc = VisitCounterService(InMemoryKVStore())
    for _ in range(10):
        totals = await svc.record_visit("/x")
    assert totals.page_total == 10


@pytest.mark.parametrize("visitors", [2, 3, 5])
async def test_overlapping_visits_lose_updates(visitors):
    # every visit reads before any writes, so all but one increment is lost
    store = InterleavingStore(readers=2 * visitors)
    svc = VisitCounterService(store)

    results = await asyncio.gather(*(svc.record_visit("/x") for _ in range(visitors)))

    assert all(r.page_total == 1 for r in results)
    assert await store.get("_x") == "1"
    assert await store.get("site_total_pv") == "1"
    lost = visitors - int(await store.get("_x"))
    assert lost == visitors - 1
