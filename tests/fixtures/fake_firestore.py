"""In-memory Firestore stand-in for cache tests.

Implements the slice of the google-cloud-firestore sync API the ZIP code
cache uses: collection/document references, get/set(merge)/delete, and
single-field ``where(filter=FieldFilter(...))`` queries.
"""

import copy
import operator
from typing import Any, Dict, List, Optional


_OPERATORS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}


class FakeDocumentSnapshot:
    def __init__(self, reference: "FakeDocumentReference", data: Optional[Dict[str, Any]]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, store: Dict[str, Dict[str, Any]], doc_id: str):
        self._store = store
        self.id = doc_id

    def get(self) -> FakeDocumentSnapshot:
        return FakeDocumentSnapshot(self, self._store.get(self.id))

    def set(self, data: Dict[str, Any], merge: bool = False) -> None:
        if merge and self.id in self._store:
            self._store[self.id].update(copy.deepcopy(data))
        else:
            self._store[self.id] = copy.deepcopy(data)

    def delete(self) -> None:
        self._store.pop(self.id, None)


class FakeQuery:
    def __init__(self, collection: "FakeCollectionReference", filters: List[Any]):
        self._collection = collection
        self._filters = filters

    def where(self, filter=None) -> "FakeQuery":
        return FakeQuery(self._collection, self._filters + [filter])

    def _matches(self, data: Dict[str, Any]) -> bool:
        for field_filter in self._filters:
            value = data.get(field_filter.field_path)
            if value is None:
                return False
            if not _OPERATORS[field_filter.op_string](value, field_filter.value):
                return False
        return True

    def get(self) -> List[FakeDocumentSnapshot]:
        return [
            snapshot for snapshot in self._collection.get()
            if self._matches(snapshot.to_dict())
        ]


class FakeCollectionReference:
    def __init__(self, store: Dict[str, Dict[str, Any]]):
        self._store = store

    def document(self, doc_id: str) -> FakeDocumentReference:
        return FakeDocumentReference(self._store, doc_id)

    def where(self, filter=None) -> FakeQuery:
        return FakeQuery(self, [filter])

    def get(self) -> List[FakeDocumentSnapshot]:
        return [self.document(doc_id).get() for doc_id in list(self._store)]


class FakeFirestore:
    """Dict-backed Firestore client. ``data[collection][doc_id]`` is the raw document."""

    def __init__(self):
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def collection(self, name: str) -> FakeCollectionReference:
        return FakeCollectionReference(self.data.setdefault(name, {}))
