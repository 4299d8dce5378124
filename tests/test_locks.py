"""
Tests for per-key locking.
"""

import threading
import time

from talentrank.locks import KeyedLock


class TestKeyedLock:
    """Per-key mutual exclusion."""

    def test_entries_released_after_use(self):
        locks = KeyedLock()
        with locks.hold(("job", 1)):
            with locks.hold(("job", 2)):
                assert len(locks) == 2
            assert len(locks) == 1
        assert len(locks) == 0

    def test_many_keys_do_not_accumulate(self):
        locks = KeyedLock()
        for candidate_id in range(500):
            with locks.hold((1, candidate_id)):
                pass
        assert len(locks) == 0

    def test_released_on_error(self):
        locks = KeyedLock()
        try:
            with locks.hold(3):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert len(locks) == 0
        with locks.hold(3):
            pass

    def test_same_key_serializes(self):
        locks = KeyedLock()
        active = []
        overlaps = []

        def work():
            with locks.hold(5):
                active.append(1)
                if len(active) > 1:
                    overlaps.append(1)
                time.sleep(0.01)
                active.pop()

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert overlaps == []
        assert len(locks) == 0

    def test_different_keys_independent(self):
        locks = KeyedLock()
        entered = threading.Event()

        def other_key():
            with locks.hold(2):
                entered.set()

        with locks.hold(1):
            t = threading.Thread(target=other_key)
            t.start()
            assert entered.wait(timeout=1.0)
            t.join()
