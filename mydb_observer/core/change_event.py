"""ChangeEvent model describing one attributable mutation."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChangeEvent(BaseModel):
    """A normalized change notification.

    `query` and `op` are carried as the caller passed them: stores accept shapes such as
    pipeline updates (a list of stages) or selectors with non-string keys, and a write
    the store accepted must always be reportable.

    Attributes:
        id: String form of the affected document's identifier.
        query: The caller's selector with the identifier field removed.
        op: The mutation document exactly as the caller supplied it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    query: Any = Field(default_factory=dict)
    op: Any = Field(default_factory=dict)

    def to_message(self) -> str:
        """Serialize `[query, op]` for transport through a publish sink.

        Values JSON cannot represent natively (ObjectIds, datetimes, ...) are written as their `str()`.
        """
        return json.dumps([self.query, self.op], default=str, separators=(",", ":"))

    def as_args(self) -> tuple[str, Any, Any]:
        """Return the positional arguments `op` listeners receive."""
        return self.id, self.query, self.op
