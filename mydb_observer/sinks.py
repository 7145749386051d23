"""Forwarding of change events to an external publish/subscribe sink."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Optional, Protocol, Set, Union

from mydb_observer.core.change_event import ChangeEvent

logger = logging.getLogger(__name__)


class PublishSink(Protocol):
    """Anything with a redis-style `publish`; synchronous and asyncio clients both qualify."""

    def publish(self, channel: str, message: str) -> Union[Any, Awaitable[Any]]: ...


class SinkPublisher:
    """`op` listener that publishes `[query, op]` on the channel named after the document id."""

    def __init__(self, sink: PublishSink) -> None:
        self.sink = sink
        # Strong references to in-flight publishes of asyncio sinks.
        self._pending: Set["asyncio.Future[Any]"] = set()

    @property
    def pending(self) -> Set["asyncio.Future[Any]"]:
        """Return a *copy* of the publishes that have not completed yet."""
        return set(self._pending)

    def __call__(self, id: str, query: Any, op: Any) -> Optional["asyncio.Future[Any]"]:
        logger.debug(f"publishing to sink {id} channel")
        message = ChangeEvent(id=id, query=query, op=op).to_message()
        result = self.sink.publish(id, message)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._on_publish_done)
            return task
        return None

    def _on_publish_done(self, task: "asyncio.Future[Any]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Publishing change event to sink failed: {error}", exc_info=error)
