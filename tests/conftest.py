"""
Shared fixtures: an in-process stand-in for the Redis list commands the
remote backend uses.
"""
import pytest
import redis
import structlog


class FakePipeline:
    """Buffers commands and applies them on execute()."""

    def __init__(self, client):
        self.client = client
        self.commands = []

    def delete(self, *keys):
        self.commands.append(("delete", keys))
        return self

    def rpush(self, key, *values):
        self.commands.append(("rpush", (key,) + values))
        return self

    def execute(self):
        results = [getattr(self.client, name)(*args) for name, args in self.commands]
        self.commands = []
        return results


class FakeRedis:
    """
    Minimal list store speaking the redis-py method names.

    Values are stored as bytes, like a client created without
    ``decode_responses``. Set ``fail`` to make every call raise.
    """

    def __init__(self):
        self.lists = {}
        self.calls = []
        self.fail = None

    def _record(self, name):
        self.calls.append(name)
        if self.fail is not None:
            raise self.fail

    @staticmethod
    def _encode(value):
        return value if isinstance(value, bytes) else str(value).encode()

    def llen(self, key):
        self._record("llen")
        return len(self.lists.get(key, []))

    def delete(self, *keys):
        self._record("delete")
        return sum(1 for key in keys if self.lists.pop(key, None) is not None)

    def rpush(self, key, *values):
        self._record("rpush")
        items = self.lists.setdefault(key, [])
        items.extend(self._encode(v) for v in values)
        return len(items)

    def lset(self, key, index, value):
        self._record("lset")
        items = self.lists.get(key)
        if items is None:
            raise redis.ResponseError("ERR no such key")
        if not -len(items) <= index < len(items):
            raise redis.ResponseError("ERR index out of range")
        items[index] = self._encode(value)
        return True

    def lindex(self, key, index):
        self._record("lindex")
        items = self.lists.get(key, [])
        if not -len(items) <= index < len(items):
            return None
        return items[index]

    def pipeline(self, transaction=True):
        return FakePipeline(self)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any structlog level set by the test."""
    yield
    structlog.reset_defaults()
