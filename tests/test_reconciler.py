"""
Tests for index reconciliation and its scheduler.
"""

import threading

import fakeredis
import pytest

from order_service.orders.errors import StoreUnavailable
from order_service.orders.models import encode
from order_service.orders.reconciler import IndexReconciler, ReconcileScheduler


@pytest.fixture
def reconciler(redis_client):
    return IndexReconciler(redis_client, batch_size=3)


def seed(store, make_order, ids):
    for order_id in ids:
        store.insert(make_order(order_id))


def test_consistent_store_needs_no_repair(reconciler, store, make_order):
    seed(store, make_order, range(1, 8))

    result = reconciler.run()

    assert result.index_scanned == 7
    assert result.records_scanned == 7
    assert result.repaired == 0
    assert not result.interrupted


def test_drops_dangling_index_entries(reconciler, store, redis_client, make_order):
    seed(store, make_order, [1, 2])
    redis_client.sadd("orders", "order:3", "order:4")

    result = reconciler.run()

    assert result.dangling_removed == 2
    assert redis_client.smembers("orders") == {"order:1", "order:2"}


def test_indexes_unindexed_records(reconciler, store, redis_client, make_order):
    seed(store, make_order, [1])
    redis_client.set("order:9", encode(make_order(9)))

    result = reconciler.run()

    assert result.unindexed_added == 1
    assert redis_client.smembers("orders") == {"order:1", "order:9"}
    assert {o.order_id for o in store.iter_all(size=10)} == {1, 9}


def test_index_key_is_not_mistaken_for_a_record(reconciler, store, redis_client, make_order):
    seed(store, make_order, [1])
    reconciler.run()
    assert "orders" not in redis_client.smembers("orders")


def test_dry_run_reports_without_writing(reconciler, store, redis_client, make_order):
    seed(store, make_order, [1])
    redis_client.sadd("orders", "order:2")
    redis_client.set("order:3", encode(make_order(3)))

    result = reconciler.run(dry_run=True)

    assert result.dry_run
    assert result.dangling_removed == 1
    assert result.unindexed_added == 1
    assert redis_client.smembers("orders") == {"order:1", "order:2"}


def test_stop_event_interrupts_sweep(reconciler, store, make_order):
    seed(store, make_order, range(10))
    stop = threading.Event()
    stop.set()

    result = reconciler.run(stop_event=stop)

    assert result.interrupted
    assert result.index_scanned == 3
    assert result.records_scanned == 0


def test_offline_store_raises_store_unavailable(redis_server):
    redis_server.connected = False
    reconciler = IndexReconciler(fakeredis.FakeRedis(server=redis_server, decode_responses=True))

    with pytest.raises(StoreUnavailable):
        reconciler.run()


def test_scheduler_runs_until_stopped(reconciler, store, redis_client, make_order):
    seed(store, make_order, [1])
    redis_client.sadd("orders", "order:5")
    scheduler = ReconcileScheduler(reconciler, interval_minutes=60)
    results = []

    original_run = reconciler.run

    def run_once(**kwargs):
        results.append(original_run(**kwargs))
        scheduler.stop()
        return results[-1]

    reconciler.run = run_once
    scheduler.run()

    assert scheduler.runs == 1
    assert results[0].dangling_removed == 1
    assert redis_client.smembers("orders") == {"order:1"}


def test_scheduler_survives_store_failures(redis_server):
    redis_server.connected = False
    reconciler = IndexReconciler(fakeredis.FakeRedis(server=redis_server, decode_responses=True))
    scheduler = ReconcileScheduler(reconciler, interval_minutes=1)

    assert scheduler._run_job() is None
    assert scheduler.runs == 1
