import json
from unittest.mock import patch

import pytest

from offline_llm.endpoints import format_sse
from offline_llm.events import BroadcastEventSink, LoggingEventSink
from offline_llm.models import StatusEvent, TokenEvent


def test_status_event_omits_missing_device():
    event = StatusEvent(status="loading", message="Loading model...")
    assert event.model_dump(by_alias=True, exclude_none=True) == {
        "status": "loading",
        "message": "Loading model...",
    }


def test_token_event_uses_camel_case_count():
    event = TokenEvent(token="hi", tps=1.5, num_tokens=3)
    assert event.model_dump(by_alias=True) == {"token": "hi", "tps": 1.5, "numTokens": 3}


@pytest.mark.asyncio
async def test_broadcast_fans_out_to_subscribers():
    sink = BroadcastEventSink()
    a = sink.subscribe()
    b = sink.subscribe()

    sink.emit("llm-status", {"status": "start", "message": "go"})

    assert a.get_nowait() == ("llm-status", {"status": "start", "message": "go"})
    assert b.get_nowait() == ("llm-status", {"status": "start", "message": "go"})

    sink.unsubscribe(a)
    sink.emit("llm-token", {"token": "x", "tps": 0.0, "numTokens": 1})
    assert a.empty()
    assert b.qsize() == 1
    assert sink.subscriber_count == 1


def test_broadcast_without_subscribers_is_silent():
    BroadcastEventSink().emit("llm-status", {"status": "ready", "message": "ok"})


def test_logging_sink_routes_tokens_to_debug():
    sink = LoggingEventSink()
    with patch("offline_llm.events.LOG") as log:
        sink.emit("llm-token", {"token": "a"})
        sink.emit("llm-status", {"status": "ready"})
    log.debug.assert_called_once()
    log.info.assert_called_once()


def test_format_sse():
    frame = format_sse("llm-token", {"token": "a", "tps": 1.0, "numTokens": 1})
    assert frame.startswith("event: llm-token\ndata: ")
    assert frame.endswith("\n\n")
    data = frame.split("data: ", 1)[1].strip()
    assert json.loads(data) == {"token": "a", "tps": 1.0, "numTokens": 1}
