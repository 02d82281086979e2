"""Tests for RuntimeLogStore and RuntimeLogHandler."""

import logging

import pytest
from chathub.runtime_logs import RuntimeLogHandler, RuntimeLogStore


def _record(level: int, name: str, message: str) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, message, None, None)


@pytest.fixture
def log_store():
    return RuntimeLogStore(max_entries=5)


def test_ring_buffer_keeps_latest(log_store):
    for i in range(8):
        log_store.record(_record(logging.INFO, "test", f"msg-{i}"))
    entries = log_store.list_entries()
    assert log_store.count() == 5
    assert [e["message"] for e in entries] == [f"msg-{i}" for i in range(3, 8)]


def test_level_filter_is_a_minimum(log_store):
    log_store.record(_record(logging.INFO, "chathub.ws", "client connected"))
    log_store.record(_record(logging.WARNING, "chathub.hub", "delivery failed"))
    log_store.record(_record(logging.ERROR, "chathub.ws", "duplicate id"))
    assert [e["level"] for e in log_store.list_entries(level="warning")] == ["WARNING", "ERROR"]
    assert len(log_store.list_entries(level="bogus")) == 3


def test_contains_and_limit(log_store):
    log_store.record(_record(logging.INFO, "chathub.ws", "client connected"))
    log_store.record(_record(logging.INFO, "chathub.hub", "broadcast"))
    assert len(log_store.list_entries(contains="WS")) == 1
    assert len(log_store.list_entries(limit=1)) == 1


def test_handler_copies_records(log_store):
    logger = logging.getLogger("chathub.test.handler")
    handler = RuntimeLogHandler(log_store)
    logger.addHandler(handler)
    try:
        logger.warning("hello %s", "there")
    finally:
        logger.removeHandler(handler)
    (entry,) = log_store.list_entries(contains="hello")
    assert entry["message"] == "hello there"
    assert entry["level"] == "WARNING"
