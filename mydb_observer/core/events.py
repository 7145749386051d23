"""Node-style event emitter used as the observer's event bus."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# An EventListener is any callable; it receives the positional arguments passed to `emit`.
EventListener = Callable[..., Any]


@dataclass(eq=False)
class _Registration:
    """A single listener registration. The same callable may be registered more than once."""

    listener: EventListener
    once: bool = False
    fired: bool = False


class EventBus:
    """A named registry of listeners, dispatched on demand or on the next loop turn.

    Typical usage:
        bus = EventBus()
        bus.on("op", lambda id, query, op: print(id))
        bus.emit("op", "5f1d...", {}, {"$set": {"a": 1}})

    Listeners run in registration order. Every emission dispatches over a snapshot of
    the registrations taken when it starts, so listeners added or removed by a listener
    only take effect from the next emission. A failing listener is logged and does not
    stop the remaining listeners, nor is it unregistered.
    """

    def __init__(self) -> None:
        """Initializes the EventBus with no listeners."""
        self._listeners: Dict[str, List[_Registration]] = {}

    def on(self, event_name: str, listener: EventListener) -> "EventBus":
        """Registers a listener for a specific event name.

        Args:
            event_name: The name of the event to listen for.
            listener: The callable to execute when the event is emitted.

        Returns:
            The bus itself, so registrations can be chained.
        """
        return self._add(event_name, _Registration(listener))

    add_listener = on

    def once(self, event_name: str, listener: EventListener) -> "EventBus":
        """Registers a listener that is removed right before its first invocation."""
        return self._add(event_name, _Registration(listener, once=True))

    def remove_listener(self, event_name: str, listener: EventListener) -> "EventBus":
        """Removes the most recently added registration of `listener` for `event_name`.

        Removing a listener that is not registered is a no-op.
        """
        registrations = self._listeners.get(event_name)
        if not registrations:
            return self
        for index in range(len(registrations) - 1, -1, -1):
            if registrations[index].listener == listener:
                self._replace(event_name, registrations[:index] + registrations[index + 1 :])
                break
        return self

    off = remove_listener

    def remove_all_listeners(self, event_name: Optional[str] = None) -> "EventBus":
        """Removes every listener for `event_name`, or for all events when it is omitted."""
        if event_name is None:
            self._listeners = {}
        else:
            self._listeners.pop(event_name, None)
        return self

    def listeners(self, event_name: str) -> List[EventListener]:
        """Return a *copy* of the listeners registered for `event_name`."""
        return [registration.listener for registration in self._listeners.get(event_name, [])]

    def listener_count(self, event_name: str) -> int:
        """Return the number of listeners registered for `event_name`."""
        return len(self._listeners.get(event_name, []))

    def emit(self, event_name: str, *args: Any) -> bool:
        """Synchronously calls every listener registered for `event_name` with `args`.

        Returns:
            True if the event had listeners, False otherwise.
        """
        snapshot = self._listeners.get(event_name)
        if not snapshot:
            return False
        for registration in snapshot:
            if registration.once:
                if registration.fired:
                    continue
                registration.fired = True
                self._discard(event_name, registration)
            try:
                registration.listener(*args)
            except Exception as e:
                logger.exception(f"Error dispatching '{event_name}' event to listener {registration.listener!r}: {e}")
        return True

    def schedule(self, event_name: str, *args: Any) -> asyncio.Handle:
        """Emits `event_name` on a later turn of the running event loop.

        The emission never runs inline with the caller, so nothing a listener does can
        reach the coroutine that scheduled it.

        Raises:
            RuntimeError: If called outside of a running event loop.
        """
        loop = asyncio.get_running_loop()
        return loop.call_soon(self.emit, event_name, *args)

    def _add(self, event_name: str, registration: _Registration) -> "EventBus":
        self._replace(event_name, self._listeners.get(event_name, []) + [registration])
        return self

    def _discard(self, event_name: str, registration: _Registration) -> None:
        registrations = self._listeners.get(event_name, [])
        self._replace(event_name, [r for r in registrations if r is not registration])

    def _replace(self, event_name: str, registrations: List[_Registration]) -> None:
        # Lists are swapped, never mutated in place; an in-flight emit keeps its snapshot.
        if registrations:
            self._listeners[event_name] = registrations
        else:
            self._listeners.pop(event_name, None)
