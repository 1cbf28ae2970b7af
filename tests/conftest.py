"""
Shared fixtures: in-memory connections that record the issued commands and
answer with canned raw replies, shaped like redis-py's RESP2 output.
"""
import pytest

from redis_ts_client import AsyncTsClient, TsClient


class FakeConnection:
    """Stands in for redis.Redis. Replies are consumed in order; exceptions are raised."""

    def __init__(self):
        self.commands = []
        self.replies = []
        self.closed = False

    def reply_with(self, *replies):
        self.replies.extend(replies)
        return self

    def _next(self, args):
        self.commands.append(list(args))
        result = self.replies.pop(0) if self.replies else b"OK"
        if isinstance(result, Exception):
            raise result
        return result

    def execute_command(self, *args):
        return self._next(args)

    @property
    def last(self):
        return self.commands[-1]

    def close(self):
        self.closed = True


class FakeAsyncConnection(FakeConnection):
    """Stands in for redis.asyncio.Redis."""

    async def execute_command(self, *args):
        return self._next(args)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def conn():
    return FakeConnection()


@pytest.fixture
def client(conn):
    return TsClient(conn)


@pytest.fixture
def async_conn():
    return FakeAsyncConnection()


@pytest.fixture
def async_client(async_conn):
    return AsyncTsClient(async_conn)


# Raw TS.INFO reply as returned by RedisTimeSeries 1.8 without decode_responses.
INFO_REPLY = [
    b"totalSamples", 3,
    b"memoryUsage", 4184,
    b"firstTimestamp", 100,
    b"lastTimestamp", 300,
    b"retentionTime", 60000,
    b"chunkCount", 1,
    b"chunkSize", 4096,
    b"chunkType", b"compressed",
    b"duplicatePolicy", b"last",
    b"labels", [[b"region", b"eu"], [b"type", b"temperature"]],
    b"sourceKey", None,
    b"rules", [[b"temp:avg", 60000, b"AVG"]],
]


@pytest.fixture
def info_reply():
    return list(INFO_REPLY)
