"""Decides whether an intercepted mutation produces a change event, and builds it."""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from mydb_observer.core.change_event import ChangeEvent
from mydb_observer.interception.arguments import MutationCall

DEFAULT_ID_FIELD = "_id"


class UpdateRoute(str, Enum):
    """How a filter-based `update` call is handled."""

    SUPPRESS = "suppress"  # bulk update without an identifier: not attributable
    BY_SELECTOR = "by_selector"  # identifier pinned in the selector
    FALLBACK = "fallback"  # re-issue through find_and_modify to learn the identifier


def omit(mapping: Mapping[str, Any], key: str) -> Dict[str, Any]:
    """Return a shallow copy of `mapping` without `key`."""
    return {k: v for k, v in mapping.items() if k != key}


def include_id(options: Optional[Mapping[str, Any]], id_field: str = DEFAULT_ID_FIELD) -> Dict[str, Any]:
    """Return new options that also request `id_field` in the returned document.

    Neither `options` nor its `fields` map is modified. Fields already requested are kept;
    a list of field names is converted to the equivalent `{name: 1}` map.

    Examples:
        include_id(None) == {"fields": {"_id": 1}}
        include_id({"bar": "baz", "fields": {"foo": 1}}) == {"bar": "baz", "fields": {"foo": 1, "_id": 1}}
    """
    new_options = dict(options or {})
    fields = new_options.get("fields") or {}
    if isinstance(fields, (list, tuple)):
        fields = {name: 1 for name in fields}
    new_options["fields"] = {**fields, id_field: 1}
    return new_options


def pinned_id(selector: Mapping[str, Any], id_field: str = DEFAULT_ID_FIELD) -> Any:
    """Return the identifier a selector pins, or None.

    An operator expression such as `{"$in": [...]}` does not pin a single document.
    """
    value = selector.get(id_field)
    if isinstance(value, Mapping) and any(str(key).startswith("$") for key in value):
        return None
    return value


def update_route(call: MutationCall, id_field: str = DEFAULT_ID_FIELD) -> UpdateRoute:
    """Choose how a filter-based update call is handled."""
    if pinned_id(call.selector, id_field) is not None:
        return UpdateRoute.BY_SELECTOR
    if call.is_multi:
        return UpdateRoute.SUPPRESS
    return UpdateRoute.FALLBACK


def matched_document(result: Any, id_field: str = DEFAULT_ID_FIELD) -> Optional[Mapping[str, Any]]:
    """Extract the written/matched document from an identifier-returning result.

    Drivers either return the document itself or wrap it as `{"value": document, "ok": 1}`
    (or an object with a `value` attribute). Returns None if nothing matched.
    """
    if result is None:
        return None
    if isinstance(result, Mapping):
        if id_field in result:
            return result
        document = result.get("value")
    else:
        document = getattr(result, "value", None)
    return document if isinstance(document, Mapping) else None


def event_from_result(call: MutationCall, result: Any, id_field: str = DEFAULT_ID_FIELD) -> Optional[ChangeEvent]:
    """Build the event for an identifier-returning call, or None if no document matched."""
    document = matched_document(result, id_field)
    if not document or document.get(id_field) is None:
        return None
    return ChangeEvent(id=str(document[id_field]), query=omit(call.selector, id_field), op=call.document)


def event_from_selector(call: MutationCall, id_field: str = DEFAULT_ID_FIELD) -> Optional[ChangeEvent]:
    """Build the event for an update whose selector pins the identifier."""
    identifier = pinned_id(call.selector, id_field)
    if identifier is None:
        return None
    return ChangeEvent(id=str(identifier), query=omit(call.selector, id_field), op=call.document)
