"""Explicit decorator that intercepts the mutation entry points of a collection."""

import inspect
import logging
from typing import TYPE_CHECKING, Any, Optional

from mydb_observer.core.change_event import ChangeEvent
from mydb_observer.interception import emission_policy
from mydb_observer.interception.arguments import (
    FIND_AND_MODIFY,
    FIND_ONE_AND_UPDATE,
    UPDATE,
    MutationCall,
    normalize_arguments,
)
from mydb_observer.interception.emission_policy import UpdateRoute

if TYPE_CHECKING:
    from mydb_observer.observer import MyDBObserver

logger = logging.getLogger(__name__)


async def _resolve(value: Any) -> Any:
    """Await `value` if it is awaitable; synchronous drivers return results directly."""
    if inspect.isawaitable(value):
        return await value
    return value


class ObservedCollection:
    """Wraps a collection so its mutations are reported to a MyDBObserver.

    `update`, `find_and_modify` and `find_one_and_update` are intercepted; every other
    attribute is read from the wrapped collection. Each intercepted method returns what
    the underlying method returns and raises what it raises. If a completion handler is
    supplied it is also called as `handler(None, result)` or `handler(error, None)`.
    """

    def __init__(self, collection: Any, observer: "MyDBObserver") -> None:
        self._collection = collection
        self._observer = observer

    @property
    def collection(self) -> Any:
        """The raw, unobserved collection."""
        return self._collection

    @property
    def observer(self) -> "MyDBObserver":
        return self._observer

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined on the wrapper.
        if name in ("_collection", "_observer"):
            raise AttributeError(name)
        return getattr(self._collection, name)

    def __repr__(self) -> str:
        return f"ObservedCollection({self._collection!r})"

    async def find_and_modify(self, *args: Any, **kwargs: Any) -> Any:
        """find_and_modify(selector, sort, document[, options][, callback])"""
        call = normalize_arguments(FIND_AND_MODIFY, args, kwargs)
        return await self._intercept(call, self._event_from_result)

    async def find_one_and_update(self, *args: Any, **kwargs: Any) -> Any:
        """find_one_and_update(selector, document[, options][, callback])"""
        call = normalize_arguments(FIND_ONE_AND_UPDATE, args, kwargs)
        return await self._intercept(call, self._event_from_result)

    async def update(self, *args: Any, **kwargs: Any) -> Any:
        """update(selector, document[, options][, callback])

        Updates flagged `multi` only produce an event when the selector pins an
        identifier. A single-document update without an identifier is re-issued through
        `find_and_modify`, whose result carries the identifier of the matched document.
        """
        call = normalize_arguments(UPDATE, args, kwargs)
        route = emission_policy.update_route(call, self._observer.id_field)
        if route is UpdateRoute.FALLBACK:
            return await self._update_via_find_and_modify(call)
        if route is UpdateRoute.SUPPRESS:
            logger.debug("`options.multi` specified without an identifier, calling `update` without an event")
        else:
            logger.debug(f"query has {self._observer.id_field}: {call.selector[self._observer.id_field]}")
        return await self._intercept(call, self._event_from_selector)

    async def _update_via_find_and_modify(self, call: MutationCall) -> Any:
        """Delegate an update to find_and_modify so the identifier of the modified document is returned."""
        logger.debug(f"falling back to `{FIND_AND_MODIFY}` to grab `{self._observer.id_field}`")
        id_field = self._observer.id_field
        options = emission_policy.include_id(call.options, id_field)
        fallback = MutationCall(
            entry_point=FIND_AND_MODIFY,
            selector=call.selector,
            document=call.document,
            sort=[(id_field, 1)],
            options=options,
            handler=call.handler,
        )
        return await self._intercept(fallback, self._event_from_result)

    async def _intercept(self, call: MutationCall, derive_event) -> Any:
        """Run the original entry point, then report its outcome to the observer and the handler."""
        method = getattr(self._collection, call.entry_point)
        args = call.primary_args if call.options is None else call.primary_args + (call.options,)
        try:
            result = await _resolve(method(*args))
        except Exception as error:
            if call.handler is not None:
                await _resolve(call.handler(error, None))
            raise

        # The write went through; nothing on the event side may change what the caller sees.
        try:
            event = derive_event(call, result)
            if event is not None:
                self._observer.schedule_change(event)
        except Exception as e:
            logger.exception(f"Could not derive change event for `{call.entry_point}`: {e}")
        if call.handler is not None:
            await _resolve(call.handler(None, result))
        return result

    def _event_from_result(self, call: MutationCall, result: Any) -> Optional[ChangeEvent]:
        return emission_policy.event_from_result(call, result, self._observer.id_field)

    def _event_from_selector(self, call: MutationCall, result: Any) -> Optional[ChangeEvent]:
        # Suppressed multi updates pin no identifier, so this yields None for them.
        return emission_policy.event_from_selector(call, self._observer.id_field)
