"""
In-memory Redis double covering the commands the job queue uses.
"""

from collections import defaultdict
from typing import Any, Optional

import pytest

from src.jobs.descriptors import ENRICHMENT, MEDIA
from src.jobs.queue import JobQueue


def _bound(value: Any, default: float) -> float:
    # float() also parses "-inf" / "+inf"
    return default if value is None else float(value)


class FakeRedis:
    """Sorted sets and hashes kept in dicts."""

    def __init__(self):
        self.zsets: dict[str, dict[str, float]] = defaultdict(dict)
        self.hashes: dict[str, dict[str, str]] = defaultdict(dict)

    # ----- sync implementations, shared with the pipeline -----

    def _zadd(self, key: str, mapping: dict[str, float]) -> int:
        added = sum(1 for member in mapping if member not in self.zsets[key])
        self.zsets[key].update({m: float(s) for m, s in mapping.items()})
        return added

    def _zrangebyscore(
        self,
        key: str,
        min: Any,
        max: Any,
        start: Optional[int] = None,
        num: Optional[int] = None,
    ) -> list[str]:
        lo = _bound(min, float("-inf"))
        hi = _bound(max, float("inf"))
        members = sorted(
            (score, member) for member, score in self.zsets[key].items() if lo <= score <= hi
        )
        ids = [member for _, member in members]
        if start is not None and num is not None:
            ids = ids[start : start + num]
        return ids

    def _zrem(self, key: str, *members: str) -> int:
        return sum(1 for m in members if self.zsets[key].pop(m, None) is not None)

    def _zcard(self, key: str) -> int:
        return len(self.zsets[key])

    def _hset(self, key: str, field: str, value: str) -> int:
        is_new = field not in self.hashes[key]
        self.hashes[key][field] = value
        return int(is_new)

    def _hget(self, key: str, field: str) -> Optional[str]:
        return self.hashes[key].get(field)

    def _hdel(self, key: str, *fields: str) -> int:
        return sum(1 for f in fields if self.hashes[key].pop(f, None) is not None)

    def _hgetall(self, key: str) -> dict[str, str]:
        return dict(self.hashes[key])

    # ----- async client API -----

    async def zadd(self, key, mapping):
        return self._zadd(key, mapping)

    async def zrangebyscore(self, key, min, max, start=None, num=None):
        return self._zrangebyscore(key, min, max, start, num)

    async def zrem(self, key, *members):
        return self._zrem(key, *members)

    async def zcard(self, key):
        return self._zcard(key)

    async def hset(self, key, field, value):
        return self._hset(key, field, value)

    async def hget(self, key, field):
        return self._hget(key, field)

    async def hdel(self, key, *fields):
        return self._hdel(key, *fields)

    async def hgetall(self, key):
        return self._hgetall(key)

    def pipeline(self) -> "FakePipeline":
        return FakePipeline(self)


class FakePipeline:
    """Buffers commands until execute()."""

    def __init__(self, redis: FakeRedis):
        self._redis = redis
        self._commands: list[tuple[str, tuple, dict]] = []

    def __getattr__(self, name: str):
        impl = getattr(self._redis, f"_{name}")

        def buffer(*args, **kwargs):
            self._commands.append((impl, args, kwargs))
            return self

        return buffer

    async def execute(self) -> list[Any]:
        results = [impl(*args, **kwargs) for impl, args, kwargs in self._commands]
        self._commands.clear()
        return results


# ============================================================
# Fixtures
# ============================================================


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Empty in-memory Redis."""
    return FakeRedis()


@pytest.fixture
def enrichment_queue(fake_redis) -> JobQueue:
    """Enrichment queue on the fake Redis."""
    return JobQueue(fake_redis, ENRICHMENT)


@pytest.fixture
def media_queue(fake_redis) -> JobQueue:
    """Media queue on the fake Redis."""
    return JobQueue(fake_redis, MEDIA)
