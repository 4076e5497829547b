from __future__ import annotations

import unittest

from data.cache import ResultCache


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class ResultCacheTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = ResultCache(ttl_seconds=60, clock=self.clock)

    def test_get_within_ttl(self):
        self.cache.set("u1", "result")
        self.clock.now = 59
        self.assertEqual(self.cache.get("u1"), "result")

    def test_entry_expires(self):
        self.cache.set("u1", "result")
        self.clock.now = 60
        self.assertIsNone(self.cache.get("u1"))
        self.assertEqual(len(self.cache), 0)

    def test_last_write_wins(self):
        self.cache.set("u1", "old")
        self.cache.set("u1", "new")
        self.assertEqual(self.cache.get("u1"), "new")

    def test_invalidate_and_clear(self):
        self.cache.set("u1", "a")
        self.cache.set("u2", "b")
        self.cache.invalidate("u1")
        self.cache.invalidate("missing")
        self.assertIsNone(self.cache.get("u1"))
        self.assertEqual(self.cache.get("u2"), "b")
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)

    def test_prune(self):
        self.cache.set("old", 1)
        self.clock.now = 30
        self.cache.set("new", 2)
        self.clock.now = 75
        self.assertEqual(self.cache.prune(), 1)
        self.assertEqual(self.cache.get("new"), 2)

    def test_set_drops_expired_entries_for_other_keys(self):
        cache = ResultCache(ttl_seconds=1, clock=self.clock)
        for i in range(1000):
            cache.set(f"user-{i}", i)
        self.clock.now = 10
        cache.set("fresh", "x")
        self.assertEqual(len(cache), 1)
        self.assertEqual(cache.get("fresh"), "x")


if __name__ == "__main__":
    unittest.main()
