"""Change notifications for document store writes."""

import logging

from mydb_observer.core.change_event import ChangeEvent
from mydb_observer.core.events import EventBus
from mydb_observer.exceptions import CollectionContractError, MyDBObserverError, UnknownEntryPointError
from mydb_observer.interception.observed_collection import ObservedCollection
from mydb_observer.observer import OP_EVENT, MyDBObserver

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ChangeEvent",
    "CollectionContractError",
    "EventBus",
    "MyDBObserver",
    "MyDBObserverError",
    "OP_EVENT",
    "ObservedCollection",
    "UnknownEntryPointError",
]
