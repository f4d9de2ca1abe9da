import copy
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from pydantic import BaseModel as PydanticBaseModel

from wifmart.core.security import create_access_token
from wifmart.db.firebase_ops import _to_firestore_value, get_firestore_ops_instance
from wifmart.main import app
from wifmart.models.schemas import User


class InMemoryFirestoreOps:
    """
    Stand-in for FirestoreBaseModel keeping collections in dicts.

    Mirrors its contract: failures come back as None / False, queries
    support equality filters, ordering, offset and limit.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._seq = itertools.count()
        self._order: Dict[str, int] = {}
        self.fail_saves = False
        self.fail_updates = False

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(name, {})

    def _prepare(self, data_model: Any) -> Dict[str, Any]:
        data = data_model.model_dump() if isinstance(data_model, PydanticBaseModel) else dict(data_model)
        return {key: _to_firestore_value(value) for key, value in data.items()}

    def save(self, collection_name: str, data_model: Any, document_id: Optional[str] = None) -> Optional[str]:
        if self.fail_saves:
            return None
        data = self._prepare(data_model)
        now = datetime.now(timezone.utc)
        data["updated_at"] = now
        data.setdefault("created_at", now)
        document_id = document_id or f"doc-{next(self._seq)}"
        collection = self._collection(collection_name)
        if document_id in collection:
            collection[document_id].update(data)
        else:
            collection[document_id] = data
            self._order[f"{collection_name}/{document_id}"] = next(self._seq)
        return document_id

    def get(self, collection_name: str, document_id: str, pydantic_model=None) -> Optional[Any]:
        data = self._collection(collection_name).get(document_id)
        if data is None:
            return None
        data = copy.deepcopy(data)
        return pydantic_model(**data) if pydantic_model else data

    def query(self, collection_name: str, field: str, operator: str, value: Any, pydantic_model=None) -> List[Any]:
        return self.query_ordered(collection_name, [(field, operator, value)], pydantic_model=pydantic_model)

    def _matching(self, collection_name: str, filters):
        for document_id, data in self._collection(collection_name).items():
            if all(op == "==" and data.get(field) == _to_firestore_value(value) for field, op, value in filters):
                yield document_id, data

    def query_ordered(self, collection_name, filters, order_by=None, descending=True, limit=None, offset=0, pydantic_model=None):
        rows = list(self._matching(collection_name, filters))
        if order_by:
            rows.sort(
                key=lambda row: (row[1].get(order_by), self._order[f"{collection_name}/{row[0]}"]),
                reverse=descending,
            )
        rows = rows[offset:]
        if limit:
            rows = rows[:limit]
        results = []
        for document_id, data in rows:
            data = {"id": document_id, **copy.deepcopy(data)}
            results.append(pydantic_model(**data) if pydantic_model else data)
        return results

    def count(self, collection_name: str, filters) -> int:
        return sum(1 for _ in self._matching(collection_name, filters))

    def update(self, collection_name: str, document_id: str, updates: Dict[str, Any]) -> bool:
        if self.fail_updates:
            return False
        data = self._collection(collection_name).get(document_id)
        if data is None:
            return False
        data.update({key: _to_firestore_value(value) for key, value in updates.items()})
        data["updated_at"] = datetime.now(timezone.utc)
        return True

    def compare_and_set(self, collection_name, document_id, field, expected, updates):
        data = self._collection(collection_name).get(document_id)
        if data is None:
            return False, None
        current = data.get(field)
        if current != _to_firestore_value(expected):
            return False, current
        # A failed write inside the transaction surfaces as None, like Firestore's
        if not self.update(collection_name, document_id, updates):
            return None
        return True, current


@pytest.fixture
def store():
    return InMemoryFirestoreOps()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_firestore_ops_instance] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.user_id})}"}


@pytest.fixture
def make_user(store):
    """Store a user and return it; keyword arguments override User fields."""
    counter = itertools.count(1)

    def _make_user(name: str = None, **fields) -> User:
        n = next(counter)
        name = name or f"User {n}"
        user = User(
            user_id=fields.pop("user_id", f"user-{n}"),
            name=name,
            email=fields.pop("email", f"user{n}@example.com"),
            **fields,
        )
        store.save("users", user, document_id=user.user_id)
        return user

    return _make_user


@pytest.fixture
def active_badge_fields():
    now = datetime.now(timezone.utc)
    return {
        "has_badge": True,
        "subscription_start": now - timedelta(days=1),
        "subscription_end": now + timedelta(days=29),
    }
