"""Canonicalization of the overloaded call shapes accepted by the intercepted entry points."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from mydb_observer.exceptions import UnknownEntryPointError

UPDATE = "update"
FIND_AND_MODIFY = "find_and_modify"
FIND_ONE_AND_UPDATE = "find_one_and_update"

# Entry point name -> names of its primary (non-options) parameters, in call order.
# Every entry point additionally accepts a trailing `options` and `callback`.
ENTRY_POINTS: Dict[str, Tuple[str, ...]] = {
    UPDATE: ("selector", "document"),
    FIND_AND_MODIFY: ("selector", "sort", "document"),
    FIND_ONE_AND_UPDATE: ("selector", "document"),
}

# Completion handler invoked as handler(error, result).
CompletionHandler = Callable[[Optional[BaseException], Any], Any]


@dataclass
class MutationCall:
    """One normalized invocation of an intercepted entry point."""

    entry_point: str
    selector: Dict[str, Any]
    document: Dict[str, Any]
    options: Optional[Dict[str, Any]] = None
    handler: Optional[CompletionHandler] = None
    sort: Any = None

    @property
    def primary_args(self) -> tuple:
        """Positional arguments for the underlying entry point, without options or handler."""
        return tuple(getattr(self, name) for name in ENTRY_POINTS[self.entry_point])

    @property
    def is_multi(self) -> bool:
        return bool(self.options and self.options.get("multi"))


def normalize_arguments(entry_point: str, args: tuple, kwargs: Mapping[str, Any]) -> MutationCall:
    """Collapse the accepted call shapes of `entry_point` into a MutationCall.

    The primaries may be passed positionally or by keyword. If the options slot holds a
    callable and no callback was given, it is the callback and options are None, so
    `update(selector, document, callback)` is the same call as
    `update(selector, document, None, callback)`.

    Raises:
        UnknownEntryPointError: If `entry_point` is not intercepted.
        TypeError: If arguments are missing, unexpected, or given twice.
    """
    try:
        primaries = ENTRY_POINTS[entry_point]
    except KeyError:
        raise UnknownEntryPointError(entry_point) from None

    parameters = primaries + ("options", "callback")
    if len(args) > len(parameters):
        raise TypeError(
            f"{entry_point}() takes at most {len(parameters)} positional arguments but {len(args)} were given"
        )

    bound: Dict[str, Any] = dict(zip(parameters, args))
    for name, value in kwargs.items():
        if name not in parameters:
            raise TypeError(f"{entry_point}() got an unexpected keyword argument '{name}'")
        if name in bound:
            raise TypeError(f"{entry_point}() got multiple values for argument '{name}'")
        bound[name] = value

    missing = [name for name in primaries if name not in bound]
    if missing:
        raise TypeError(f"{entry_point}() missing required arguments: {', '.join(missing)}")

    options = bound.get("options")
    handler = bound.get("callback")
    if handler is None and callable(options):
        handler, options = options, None

    return MutationCall(
        entry_point=entry_point,
        selector=bound["selector"],
        document=bound["document"],
        options=options,
        handler=handler,
        sort=bound.get("sort"),
    )
