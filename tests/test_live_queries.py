"""
Tests for chatterhub.storage.live: LiveQueryEngine subscriptions.

Covers:
  - Initial delivery on subscribe
  - Redelivery after a relevant write, none after an unrelated one
  - Coalescing of writes made in the same tick
  - Async query functions
  - Unsubscribe stops redelivery
  - Query failures after the first evaluation keep the last value
"""

import asyncio

import pytest

from chatterhub.storage.live import LiveQueryEngine, collection_query


@pytest.fixture
def engine(store):
    engine = LiveQueryEngine(store)
    yield engine
    engine.close()


def groups_in_folder(folder_id):
    def run(store):
        return [g['id'] for g in store.query('chatGroups', where={'folderId': folder_id})]
    return run


# ── Subscribe ──────────────────────────────────────────────────────

class TestSubscribe:

    async def test_initial_value_delivered(self, store, engine):
        store.put('folders', {'id': 'f1', 'name': 'Work'})
        received = []
        subscription = await engine.subscribe(collection_query('folders'), received.append)
        assert subscription.value == [{'id': 'f1', 'name': 'Work'}]
        assert received == [subscription.value]
        assert subscription.version == 1

    async def test_first_evaluation_error_propagates(self, engine):
        def broken(store):
            raise RuntimeError("bad query")
        with pytest.raises(RuntimeError):
            await engine.subscribe(broken)
        assert engine.subscriptions == []

    async def test_async_query_function(self, store, engine):
        async def count_folders(s):
            return s.count('folders')
        subscription = await engine.subscribe(count_folders)
        store.put('folders', {'id': 'f1'})
        await engine.settle()
        assert subscription.value == 1


# ── Redelivery ─────────────────────────────────────────────────────

class TestRedelivery:

    async def test_redelivers_once_after_adding_matching_record(self, store, engine):
        received = []
        await engine.subscribe(groups_in_folder('f1'), received.append)
        store.put('chatGroups', {'id': 'g1', 'folderId': 'f1'})
        await engine.settle()
        assert received == [[], ['g1']]

    async def test_unrelated_write_does_not_redeliver(self, store, engine):
        store.put('chatGroups', {'id': 'g1', 'folderId': 'f1'})
        received = []
        await engine.subscribe(groups_in_folder('f1'), received.append)
        store.put('folders', {'id': 'f2', 'name': 'Other'})
        await engine.settle()
        assert received == [['g1']]

    async def test_writes_in_same_tick_coalesce(self, store, engine):
        received = []
        await engine.subscribe(groups_in_folder('f1'), received.append)
        evaluations_before = engine.evaluations
        for i in range(5):
            store.put('chatGroups', {'id': f'g{i}', 'folderId': 'f1'})
        await engine.settle()
        assert received == [[], ['g0', 'g1', 'g2', 'g3', 'g4']]
        assert engine.evaluations - evaluations_before == 1

    async def test_wait_for_update(self, store, engine):
        subscription = await engine.subscribe(collection_query('prompts'))
        waiter = asyncio.ensure_future(subscription.wait_for_update(timeout=1))
        await asyncio.sleep(0)
        store.put('prompts', {'id': 'p1'})
        assert await waiter == [{'id': 'p1'}]

    async def test_failed_reevaluation_keeps_last_value(self, store, engine):
        calls = {'n': 0}

        def flaky(s):
            calls['n'] += 1
            if calls['n'] > 1:
                raise RuntimeError("flaky")
            return s.count('prompts')

        subscription = await engine.subscribe(flaky)
        store.put('prompts', {'id': 'p1'})
        await engine.settle()
        assert subscription.value == 0
        assert subscription.active

    async def test_failing_callback_is_contained(self, store, engine):
        def broken(value):
            raise RuntimeError("callback")
        subscription = await engine.subscribe(collection_query('prompts'), broken)
        store.put('prompts', {'id': 'p1'})
        await engine.settle()
        assert subscription.value == [{'id': 'p1'}]


# ── Unsubscribe ────────────────────────────────────────────────────

class TestUnsubscribe:

    async def test_no_delivery_after_unsubscribe(self, store, engine):
        received = []
        subscription = await engine.subscribe(collection_query('prompts'), received.append)
        subscription.unsubscribe()
        store.put('prompts', {'id': 'p1'})
        await engine.settle()
        assert received == [[]]
        assert not subscription.active

    async def test_iteration_ends_on_unsubscribe(self, store, engine):
        subscription = await engine.subscribe(collection_query('prompts'))
        seen = []

        async def consume():
            async for value in subscription:
                seen.append(value)

        task = asyncio.ensure_future(consume())
        await asyncio.sleep(0)
        store.put('prompts', {'id': 'p1'})
        await engine.settle()
        for _ in range(100):
            if len(seen) == 2:
                break
            await asyncio.sleep(0)
        subscription.unsubscribe()
        await asyncio.wait_for(task, timeout=1)
        assert seen == [[], [{'id': 'p1'}]]

    async def test_flush_without_running_task(self, store, engine):
        subscription = await engine.subscribe(collection_query('prompts'))
        store.put('prompts', {'id': 'p1'})
        await engine.flush()
        assert subscription.value == [{'id': 'p1'}]
