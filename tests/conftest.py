"""
Pytest configuration and fixtures.
Shared timelines, data stores, log capture and fake clients.
"""

import re
from typing import Any, Dict, List

import pytest
from loguru import logger as loguru_logger

from marktrace.timeline import Timeline

CORRELATED_MARK = re.compile(r"^(start|end):(?P<integration>[a-z]+)-(?P<id>.{36})$")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every test away from any real .marktrace file or MARKTRACE_* env var."""
    monkeypatch.chdir(tmp_path)
    for key in (
        "MARKTRACE_AUTO_HTTP",
        "MARKTRACE_AUTO_REDIS",
        "MARKTRACE_AUTO_MEASURE",
        "MARKTRACE_LOG_LEVEL",
        "MARKTRACE_DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


@pytest.fixture
def timeline():
    """Fresh timeline with epoch timestamps."""
    return Timeline(timestamp=True)


@pytest.fixture
def data():
    """Empty captured record store."""
    return {}


@pytest.fixture
def log_records():
    """Collect loguru records emitted during the test."""
    records: List[Dict[str, Any]] = []
    handler_id = loguru_logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    loguru_logger.remove(handler_id)


def warnings_of(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [r for r in records if r["level"].name == "WARNING"]


def mark_names(timeline: Timeline) -> List[str]:
    return [entry.name for entry in timeline.get_entries() if entry.entry_type == "mark"]


def correlation_ids(timeline: Timeline, kind: str) -> List[str]:
    """Correlation IDs of the start or end marks of wrapped calls."""
    ids = []
    for name in mark_names(timeline):
        match = CORRELATED_MARK.match(name)
        if match and match.group(1) == kind:
            ids.append(match.group("id"))
    return ids


class FakeRedis:
    """In-memory stand-in for a redis client: helpers go through execute_command."""

    def __init__(self):
        self.store: Dict[str, Any] = {}
        self.commands: List[tuple] = []

    def execute_command(self, *args, **options):
        self.commands.append(args)
        command = str(args[0]).upper()
        if command == "SET":
            self.store[args[1]] = args[2]
            return True
        if command == "GET":
            return self.store.get(args[1])
        if command == "FAIL":
            raise ConnectionError("connection refused")
        return None

    def set(self, key, value):
        return self.execute_command("SET", key, value)

    def get(self, key):
        return self.execute_command("GET", key)


class FakeResponse:
    def __init__(self, status_code: int):
        self.status_code = status_code


class FakeSession:
    """requests.Session look-alike that never touches the network."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.calls: List[tuple] = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url))
        return FakeResponse(self.status_code)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)


@pytest.fixture
def redis_cls():
    """A fresh FakeRedis subclass per test so class patches never leak."""
    return type("TestRedis", (FakeRedis,), {})


@pytest.fixture
def session_cls():
    return type("TestSession", (FakeSession,), {})
