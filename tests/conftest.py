import copy
import uuid
from typing import Any, Dict, List, Optional

import pytest
from mydb_observer import MyDBObserver


class FakeStoreError(Exception):
    """Raised by FakeCollection to simulate a failing write."""


def _matches(document: Dict[str, Any], selector: Dict[str, Any]) -> bool:
    for key, expected in selector.items():
        actual = document.get(key)
        if isinstance(expected, dict) and expected and all(k.startswith("$") for k in expected):
            for operator, operand in expected.items():
                if operator == "$gt" and not (actual is not None and actual > operand):
                    return False
                if operator == "$in" and actual not in operand:
                    return False
        elif actual != expected:
            return False
    return True


def _apply(document: Dict[str, Any], mutation: Dict[str, Any]) -> None:
    for operator, changes in mutation.items():
        if operator == "$set":
            document.update(changes)
        elif operator == "$inc":
            for key, amount in changes.items():
                document[key] = document.get(key, 0) + amount
        else:
            raise FakeStoreError(f"Unsupported update operator {operator}")


def _project(document: Dict[str, Any], fields: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not fields:
        return copy.deepcopy(document)
    return {key: copy.deepcopy(value) for key, value in document.items() if key in fields}


class FakeCollection:
    """In-memory async collection exposing the three observed entry points."""

    def __init__(self, documents: Optional[List[Dict[str, Any]]] = None) -> None:
        self.documents: List[Dict[str, Any]] = [dict(d) for d in documents or []]
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None
        self.name = "users"

    def insert_one(self, document: Dict[str, Any]) -> uuid.UUID:
        document = {"_id": uuid.uuid4(), **document}
        self.documents.append(document)
        return document["_id"]

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    async def update(self, selector, document, options=None):
        self.calls.append(("update", selector, document, options))
        self._check()
        matched = [d for d in self.documents if _matches(d, selector)]
        if not (options or {}).get("multi"):
            matched = matched[:1]
        for target in matched:
            _apply(target, document)
        return {"n": len(matched), "nModified": len(matched), "ok": 1}

    async def find_and_modify(self, selector, sort, document, options=None):
        self.calls.append(("find_and_modify", selector, sort, document, options))
        self._check()
        matched = [d for d in self.documents if _matches(d, selector)]
        if not matched:
            return {"value": None, "ok": 1}
        _apply(matched[0], document)
        return {"value": _project(matched[0], (options or {}).get("fields")), "ok": 1}

    async def find_one_and_update(self, selector, document, options=None):
        self.calls.append(("find_one_and_update", selector, document, options))
        self._check()
        matched = [d for d in self.documents if _matches(d, selector)]
        if not matched:
            return None
        _apply(matched[0], document)
        return copy.deepcopy(matched[0])

    def count_documents(self, selector):
        return len([d for d in self.documents if _matches(d, selector)])


@pytest.fixture
def collection() -> FakeCollection:
    """Provides an empty in-memory collection."""
    return FakeCollection()


@pytest.fixture
def observer() -> MyDBObserver:
    """Provides an observer without an external sink."""
    return MyDBObserver()


@pytest.fixture
def users(observer, collection):
    """Provides the observed wrapper of the in-memory collection."""
    return observer.observe(collection)
