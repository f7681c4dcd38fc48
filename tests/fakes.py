"""
Test doubles: an in-memory stand-in for the parts of the Firestore client the
remote services use, and sample request payloads.
"""
import copy
import datetime as dt
import uuid
from collections import defaultdict

from google.api_core import exceptions as google_exceptions


class FakeDocumentSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = copy.deepcopy(data)

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocumentReference:
    def __init__(self, client, collection_name, doc_id):
        self._client = client
        self._collection_name = collection_name
        self.id = doc_id

    @property
    def _documents(self):
        return self._client.data[self._collection_name]

    def get(self):
        self._client.check("get")
        return FakeDocumentSnapshot(self, self._documents.get(self.id))

    def set(self, data):
        self._client.check("set")
        self._documents[self.id] = copy.deepcopy(data)

    def update(self, changes):
        self._client.check("update")
        if self.id not in self._documents:
            raise google_exceptions.NotFound(f"No document to update: {self._collection_name}/{self.id}")
        self._documents[self.id].update(copy.deepcopy(changes))

    def delete(self):
        self._client.check("delete")
        self._documents.pop(self.id, None)


def firestore_order(value):
    """Sort key following Firestore's value ordering: by type first, then by value."""
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, dt.datetime):
        return (3, value)
    if isinstance(value, str):
        return (4, value)
    raise NotImplementedError(type(value).__name__)


class FakeQuery:
    def __init__(self, client, collection_name, filters=(), orders=(), limit=None):
        self._client = client
        self._collection_name = collection_name
        self._filters = filters
        self._orders = orders
        self._limit = limit

    def _copy(self, **changes):
        state = {"filters": self._filters, "orders": self._orders, "limit": self._limit, **changes}
        return FakeQuery(self._client, self._collection_name, **state)

    def where(self, filter=None):
        return self._copy(filters=self._filters + (filter,))

    def order_by(self, field_path, direction="ASCENDING"):
        return self._copy(orders=self._orders + ((field_path, direction),))

    def limit(self, count):
        return self._copy(limit=count)

    def _matches(self, data):
        for field_filter in self._filters:
            if field_filter.op_string != "==":
                raise NotImplementedError(field_filter.op_string)
            if data.get(field_filter.field_path) != field_filter.value:
                return False
        return True

    def stream(self):
        self._client.check("stream")
        documents = self._client.data[self._collection_name]
        rows = [(doc_id, data) for doc_id, data in documents.items() if self._matches(data)]
        for field_path, direction in reversed(self._orders):
            # Firestore leaves out documents lacking an ordered field
            rows = [row for row in rows if field_path in row[1]]
            rows.sort(key=lambda row: firestore_order(row[1][field_path]), reverse=direction == "DESCENDING")
        if self._limit is not None:
            rows = rows[:self._limit]
        for doc_id, data in rows:
            reference = FakeDocumentReference(self._client, self._collection_name, doc_id)
            yield FakeDocumentSnapshot(reference, data)


class FakeCollectionReference(FakeQuery):
    def document(self, doc_id=None):
        return FakeDocumentReference(self._client, self._collection_name, doc_id or uuid.uuid4().hex[:20])


class FakeWriteBatch:
    def __init__(self, client):
        self._client = client
        self._deletes = []

    def delete(self, reference):
        self._deletes.append(reference)

    def commit(self):
        self._client.check("commit")
        for reference in self._deletes:
            self._client.data[reference._collection_name].pop(reference.id, None)
        self._client.commits += 1


class FakeFirestoreClient:
    """
    Documents live in `data[collection][doc_id]`. Operations named in `fail_on`
    ("get", "set", "update", "delete", "stream", "commit") raise ServiceUnavailable.
    """

    def __init__(self):
        self.data = defaultdict(dict)
        self.fail_on = set()
        self.commits = 0

    def check(self, operation):
        if operation in self.fail_on:
            raise google_exceptions.ServiceUnavailable(f"Simulated outage during {operation}")

    def collection(self, name):
        return FakeCollectionReference(self, name)

    def batch(self):
        return FakeWriteBatch(self)


def patient_payload(**overrides):
    """Valid patient creation payload in the API's camelCase layout."""
    payload = {
        "firstName": "Ana",
        "lastName": "Pérez",
        "dni": "12345678",
        "age": 34,
        "gender": "femenino",
        "bloodType": "A+",
        "address": "Av. Siempre Viva 742",
        "phone": "+54 11 5555-1234",
        "email": "ana.perez@example.com",
        "chronicDiseases": ["Asma"],
    }
    payload.update(overrides)
    return payload
