import asyncio
from typing import Any, Dict, List, Protocol, Tuple

from .llmlog import LOG

STATUS_EVENT = "llm-status"
TOKEN_EVENT = "llm-token"


class EventSink(Protocol):
    """Receives status and token notifications from the service.

    ``emit`` should raise if the event cannot be delivered; the service turns
    that into an EventDeliveryError for the calling operation.
    """

    def emit(self, event: str, payload: Dict[str, Any]) -> None: ...


class LoggingEventSink:
    """Writes every event to the service log. Token events go to DEBUG."""

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        if event == TOKEN_EVENT:
            LOG.debug("%s %s", event, payload)
        else:
            LOG.info("%s %s", event, payload)


class BroadcastEventSink:
    """
    Fans events out to any number of asyncio queues.

    Must be used from the event loop thread; subscribers typically stream the
    queue to an HTTP client.
    """

    def __init__(self):
        self._subscribers: List["asyncio.Queue[Tuple[str, Dict[str, Any]]]"] = []

    def subscribe(self) -> "asyncio.Queue[Tuple[str, Dict[str, Any]]]":
        queue: "asyncio.Queue[Tuple[str, Dict[str, Any]]]" = asyncio.Queue()
        self._subscribers.append(queue)
        LOG.info("Event subscriber added (%d total)", len(self._subscribers))
        return queue

    def unsubscribe(self, queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)
            LOG.info("Event subscriber removed (%d left)", len(self._subscribers))

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait((event, payload))
