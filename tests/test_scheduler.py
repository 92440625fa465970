import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from councildata.core.aggregator import SourceAggregator
from councildata.core.cache_store import EntityCacheStore
from councildata.core.storage import MemoryStorage
from councildata.models.entities import KIND_AGGREGATE, KIND_RECENT_ITEMS, AggregateResult
from councildata.refresh import ACTIVE, BACKGROUND, INACTIVE, JOB_ID, AppStateMonitor, RefreshScheduler, make_refresh_all
from tests.helpers import HOUR_MS, FakeReportSource, camden_reports


def build(policy, *, app_state=None):
    store = EntityCacheStore(MemoryStorage(), policy)
    refresh_fn = AsyncMock()
    job_scheduler = MagicMock()
    job_scheduler.get_job.return_value = None
    scheduler = RefreshScheduler(store, refresh_fn, policy, app_state or AppStateMonitor(), job_scheduler)
    return scheduler, store, refresh_fn, job_scheduler


def test_set_active_key_installs_single_interval_job(policy):
    scheduler, _, refresh_fn, job_scheduler = build(policy)
    scheduler.start()
    scheduler.set_active_key("Camden")

    job_scheduler.add_job.assert_called_once()
    args, kwargs = job_scheduler.add_job.call_args
    assert args[0] == scheduler.on_timer
    assert isinstance(args[1], IntervalTrigger)
    assert kwargs == {"id": JOB_ID, "replace_existing": True}
    refresh_fn.assert_not_called()


def test_changing_key_removes_previous_job(policy):
    scheduler, _, _, job_scheduler = build(policy)
    scheduler.start()
    scheduler.set_active_key("Camden")
    job_scheduler.get_job.return_value = MagicMock()

    scheduler.set_active_key("Westminster")

    job_scheduler.remove_job.assert_called_once_with(JOB_ID)
    assert job_scheduler.add_job.call_count == 2
    assert scheduler.active_key == "Westminster"


def test_same_key_is_a_no_op(policy):
    scheduler, _, _, job_scheduler = build(policy)
    scheduler.start()
    scheduler.set_active_key("Camden")
    scheduler.set_active_key("Camden")
    assert job_scheduler.add_job.call_count == 1


def test_timer_refreshes_only_while_active(policy):
    app_state = AppStateMonitor()
    scheduler, _, refresh_fn, _ = build(policy, app_state=app_state)
    scheduler.set_active_key("Camden")

    asyncio.run(scheduler.on_timer())
    app_state.set_state(BACKGROUND)
    asyncio.run(scheduler.on_timer())

    refresh_fn.assert_awaited_once_with("Camden")


def test_timer_swallows_refresh_failures(policy):
    scheduler, _, refresh_fn, _ = build(policy)
    refresh_fn.side_effect = RuntimeError("upstream down")
    scheduler.set_active_key("Camden")

    asyncio.run(scheduler.on_timer())
    refresh_fn.assert_awaited_once()


def test_foreground_refreshes_when_stale(policy, clock):
    app_state = AppStateMonitor(BACKGROUND)
    scheduler, store, refresh_fn, _ = build(policy, app_state=app_state)
    store.put("Camden", KIND_AGGREGATE, AggregateResult(entity_name="Camden"))
    clock.advance(2 * HOUR_MS)

    async def scenario():
        scheduler.start()
        scheduler.set_active_key("Camden")
        app_state.set_state(ACTIVE)
        await scheduler.drain()

    asyncio.run(scenario())
    refresh_fn.assert_awaited_once_with("Camden")


def test_foreground_skips_refresh_when_fresh(policy):
    app_state = AppStateMonitor(INACTIVE)
    scheduler, store, refresh_fn, _ = build(policy, app_state=app_state)
    store.put("Camden", KIND_AGGREGATE, AggregateResult(entity_name="Camden"))

    async def scenario():
        scheduler.start()
        scheduler.set_active_key("Camden")
        app_state.set_state(ACTIVE)
        app_state.set_state(ACTIVE)
        await scheduler.drain()

    asyncio.run(scenario())
    refresh_fn.assert_not_called()


def test_stop_unsubscribes_from_app_state(policy):
    app_state = AppStateMonitor(BACKGROUND)
    scheduler, _, refresh_fn, _ = build(policy, app_state=app_state)
    scheduler.start()
    scheduler.set_active_key("Camden")
    scheduler.stop()

    app_state.set_state(ACTIVE)
    refresh_fn.assert_not_called()


def test_unknown_app_state_rejected():
    with pytest.raises(ValueError):
        AppStateMonitor().set_state("suspended")


def test_refresh_all_updates_both_kinds(policy):
    store = EntityCacheStore(MemoryStorage(), policy)
    aggregator = SourceAggregator(report_source=FakeReportSource(camden_reports()))
    refresh_all = make_refresh_all(store, aggregator)

    async def scenario():
        await refresh_all("Camden")
        await store.flush()

    asyncio.run(scenario())
    assert store.get("Camden", KIND_AGGREGATE).data.stats.total == 20
    assert len(store.get("Camden", KIND_RECENT_ITEMS).data) == 20
