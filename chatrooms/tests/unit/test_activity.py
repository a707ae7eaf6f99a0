import logging
from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from chatrooms.infrastructure.activity import ActivityRecorder, request_metadata


@pytest.fixture
def recorder():
    return ActivityRecorder(logging.getLogger("test_activity"))


@pytest.mark.asyncio
async def test_record_is_written_in_background(recorder, caplog):
    caplog.set_level(logging.INFO, logger="test_activity")

    recorder.record(
        1,
        "Joined chatroom 3",
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        metadata={"ip_address": "10.0.0.1", "user_agent": "pytest"},
    )
    await recorder.flush()

    [record] = [r for r in caplog.records if r.name == "test_activity"]
    assert "user_id=1" in record.getMessage()
    assert "activity='Joined chatroom 3'" in record.getMessage()
    assert record.activity_entry == {
        "user_id": 1,
        "activity": "Joined chatroom 3",
        "timestamp": "2024-05-01T12:00:00+00:00",
        "ip_address": "10.0.0.1",
        "user_agent": "pytest",
    }


def test_record_without_running_loop(recorder, caplog):
    caplog.set_level(logging.INFO, logger="test_activity")

    recorder.record(2, "Opened live connection")

    assert "activity='Opened live connection'" in caplog.text


@pytest.mark.asyncio
async def test_flush_with_nothing_pending(recorder):
    await recorder.flush()


def test_request_metadata():
    request = SimpleNamespace(
        client=SimpleNamespace(host="127.0.0.1"),
        headers={"user-agent": "httpx"},
    )

    assert request_metadata(request) == {
        "ip_address": "127.0.0.1",
        "user_agent": "httpx",
    }


def test_request_metadata_without_client():
    request = SimpleNamespace(client=None, headers={})

    assert request_metadata(request) == {"ip_address": None, "user_agent": None}
