"""Tests for KeyedLocks."""

import threading
import time

from shared.locks import KeyedLocks


class TestKeyedLocks:
    def test_same_key_returns_same_lock(self):
        locks = KeyedLocks()
        assert locks.lock_for("customer:1") is locks.lock_for("customer:1")

    def test_different_keys_return_different_locks(self):
        locks = KeyedLocks()
        assert locks.lock_for("customer:1") is not locks.lock_for("customer:2")

    def test_hold_is_reentrant(self):
        locks = KeyedLocks()
        with locks.hold("orders:t1"):
            with locks.hold("orders:t1", "customer:1"):
                entered = True
        assert entered

    def test_hold_ignores_empty_keys(self):
        locks = KeyedLocks()
        with locks.hold(None, "", "customer:1"):
            pass
        assert set(locks._locks) == {"customer:1"}

    def test_hold_serializes_threads_on_same_key(self):
        locks = KeyedLocks()
        events = []

        def worker(name):
            with locks.hold("customer:1"):
                events.append(f"{name}-in")
                time.sleep(0.02)
                events.append(f"{name}-out")

        threads = [threading.Thread(target=worker, args=(n,)) for n in ("a", "b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Each critical section finishes before the next one starts
        assert events[0][0] == events[1][0]
        assert events[2][0] == events[3][0]

    def test_opposite_key_order_does_not_deadlock(self):
        locks = KeyedLocks()
        done = []

        def worker(keys):
            for _ in range(50):
                with locks.hold(*keys):
                    pass
            done.append(keys)

        t1 = threading.Thread(target=worker, args=(("customer:a", "customer:b"),))
        t2 = threading.Thread(target=worker, args=(("customer:b", "customer:a"),))
        t1.start()
        t2.start()
        t1.join(timeout=5)
        t2.join(timeout=5)

        assert len(done) == 2
