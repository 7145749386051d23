"""MyDBObserver: emits `op` events for mutations issued through observed collections."""

import logging
from typing import Any, Dict, Mapping, Optional

from mydb_observer.core.change_event import ChangeEvent
from mydb_observer.core.events import EventBus
from mydb_observer.exceptions import CollectionContractError
from mydb_observer.interception import emission_policy
from mydb_observer.interception.arguments import ENTRY_POINTS
from mydb_observer.interception.observed_collection import ObservedCollection
from mydb_observer.settings import Settings
from mydb_observer.sinks import PublishSink, SinkPublisher

logger = logging.getLogger(__name__)

OP_EVENT = "op"


class MyDBObserver(EventBus):
    """Observes collections and emits an `op` event for each attributable mutation.

    Listeners of `op` are called as `listener(id, query, op)` on a later turn of the
    event loop than the one that completed the mutation.

    Typical usage:
        observer = MyDBObserver(redis_client)
        users = observer.observe(db.users)
        observer.on("op", lambda id, query, op: ...)
        await users.update({"_id": user_id}, {"$set": {"name": "Ada"}})
    """

    def __init__(self, sink: Optional[PublishSink] = None, id_field: Optional[str] = None) -> None:
        """
        Initializes the observer.

        Args:
            sink: Optional publish-capable client (e.g. a redis client). Every event is also
                  published on the channel named after the document id.
            id_field: Name of the document identifier field. Defaults to the configured
                      MYDB_OBSERVER_ID_FIELD, or `_id`.
        """
        super().__init__()
        self.id_field = id_field or Settings().get_id_field()
        self.sink = sink
        if sink is not None:
            self.on(OP_EVENT, SinkPublisher(sink))
        self.on(OP_EVENT, self._log_change)

    def observe(self, collection: Any) -> ObservedCollection:
        """Returns a wrapper around `collection` whose mutations emit `op` events.

        The collection itself is left untouched; use the returned wrapper in its place.

        Raises:
            CollectionContractError: If the collection lacks one of the mutation entry points.
        """
        missing = [name for name in ENTRY_POINTS if not callable(getattr(collection, name, None))]
        if missing:
            raise CollectionContractError(
                f"{type(collection).__name__} cannot be observed, missing: {', '.join(missing)}", missing=missing
            )
        logger.debug(f"wrapping {type(collection).__name__} mutation methods")
        return ObservedCollection(collection, self)

    def schedule_change(self, event: ChangeEvent) -> None:
        """Emits `event` as an `op` event on the next turn of the event loop."""
        self.schedule(OP_EVENT, *event.as_args())

    def omit(self, object_to_filter: Mapping[str, Any], omit_value: str) -> Dict[str, Any]:
        """Omits a value from a mapping based on its key."""
        return emission_policy.omit(object_to_filter, omit_value)

    def put(self, object_to_clone: Mapping[str, Any], new_key: str, new_value: Any) -> Dict[str, Any]:
        """Copies a mapping and sets a new key/value pair on the copy."""
        return {**object_to_clone, new_key: new_value}

    def _include_id(self, options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Make sure the identifier is requested in `options["fields"]`, without modifying `options`."""
        return emission_policy.include_id(options, self.id_field)

    def _log_change(self, id: str, query: Any, op: Any) -> None:
        logger.debug(f'emitted ("{id}", {query}, {op})')
