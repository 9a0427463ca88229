import random
import threading
import time
from datetime import datetime, timedelta, timezone

from code_merger.models import FileRecord
from code_merger.store import ExpirySweeper, MemoryRecordStore, start_background_expiry

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
TTL = timedelta(seconds=600)


def make_record(file_id, uploaded_at=T0, content="x"):
    return FileRecord(
        id=file_id,
        filename=f"{file_id}.txt",
        content=content,
        uploaded_at=uploaded_at,
        size=len(content.encode("utf-8")),
    )


def test_insert_then_lookup():
    store = MemoryRecordStore()
    record = make_record("a")
    store.insert("a", record)
    assert store.lookup("a") == (record, True)
    assert "a" in store
    assert len(store) == 1


def test_lookup_missing_does_not_create_anything():
    store = MemoryRecordStore()
    assert store.lookup("missing") == (None, False)
    assert len(store) == 0


def test_insert_overwrites():
    store = MemoryRecordStore()
    store.insert("a", make_record("a", content="first"))
    store.insert("a", make_record("a", content="second"))
    record, found = store.lookup("a")
    assert found
    assert record.content == "second"
    assert len(store) == 1


def test_delete_is_idempotent():
    store = MemoryRecordStore()
    store.insert("a", make_record("a"))
    store.delete("a")
    store.delete("a")
    store.delete("never-existed")
    assert store.lookup("a") == (None, False)


def test_sweep_boundaries():
    store = MemoryRecordStore()
    store.insert("a", make_record("a"))

    assert store.sweep(TTL, now=T0 + TTL - timedelta(seconds=1)) == 0
    assert "a" in store

    # age equal to the ttl is still fresh
    assert store.sweep(TTL, now=T0 + TTL) == 0
    assert "a" in store

    assert store.sweep(TTL, now=T0 + TTL + timedelta(seconds=1)) == 1
    assert "a" not in store


def test_sweep_accepts_seconds():
    store = MemoryRecordStore()
    store.insert("a", make_record("a"))
    store.insert("b", make_record("b", uploaded_at=T0 + timedelta(seconds=30)))
    assert store.sweep(60, now=T0 + timedelta(seconds=61)) == 1
    assert "a" not in store
    assert "b" in store


def test_sweep_uses_store_clock():
    now = [T0]
    store = MemoryRecordStore(clock=lambda: now[0])
    store.insert("a", make_record("a"))
    now[0] = T0 + timedelta(seconds=601)
    store.sweep(TTL)
    assert len(store) == 0


def test_sweep_under_concurrent_load():
    store = MemoryRecordStore()
    now = T0 + TTL
    stop = threading.Event()
    errors = []

    old_ids = [f"old-{i}" for i in range(200)]
    fresh_ids = [f"fresh-{i}" for i in range(200)]
    for file_id in old_ids:
        store.insert(file_id, make_record(file_id, uploaded_at=T0 - timedelta(seconds=1)))
    for file_id in fresh_ids:
        store.insert(file_id, make_record(file_id, uploaded_at=T0))

    def churn(worker):
        rng = random.Random(worker)
        i = 0
        while not stop.is_set():
            file_id = f"churn-{worker}-{i}"
            store.insert(file_id, make_record(file_id, uploaded_at=T0 + timedelta(seconds=1)))
            record, found = store.lookup(file_id)
            if not found or record.id != file_id:
                errors.append(file_id)
            if rng.random() < 0.5:
                store.delete(file_id)
            store.lookup(rng.choice(old_ids + fresh_ids))
            i += 1

    workers = [threading.Thread(target=churn, args=(n,)) for n in range(4)]
    for w in workers:
        w.start()
    try:
        for _ in range(20):
            store.sweep(TTL, now=now)
    finally:
        stop.set()
        for w in workers:
            w.join()

    assert errors == []
    for file_id in old_ids:
        assert file_id not in store
    for file_id in fresh_ids:
        assert file_id in store


def test_expiry_sweeper_runs_periodically():
    store = MemoryRecordStore()
    store.insert("old", make_record("old", uploaded_at=datetime.now(timezone.utc) - timedelta(hours=1)))
    store.insert("new", make_record("new", uploaded_at=datetime.now(timezone.utc)))

    sweeper = start_background_expiry(store, ttl=60, interval=0.01)
    try:
        deadline = time.monotonic() + 2
        while "old" in store and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        sweeper.stop()

    assert "old" not in store
    assert "new" in store
    assert not sweeper.running


def test_expiry_sweeper_survives_failing_sweep():
    calls = []

    class FlakyStore(MemoryRecordStore):
        def sweep(self, max_age, now=None):
            calls.append(max_age)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return super().sweep(max_age, now)

    sweeper = ExpirySweeper(FlakyStore(), ttl=60, interval=0.01)
    sweeper.start()
    try:
        deadline = time.monotonic() + 2
        while len(calls) < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        sweeper.stop()

    assert len(calls) >= 3
    assert calls[0] == timedelta(seconds=60)
