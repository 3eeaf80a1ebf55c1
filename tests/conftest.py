import asyncio
import copy
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app import create_api
from config import Settings
from context import AppContext
from routes.delivery_socket import DeliverySocketHandler


class FakeCursor:
    """Subset of the async cursor API the route modules use."""

    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs = sorted(self._docs, key=lambda d: d.get(key), reverse=direction < 0)
        return self

    async def to_list(self, length=None):
        docs = [copy.deepcopy(d) for d in self._docs]
        return docs if length is None else docs[:length]


class FakeCollection:
    """
    In-memory collection covering the query and update operators the route
    modules use. Every call yields to the event loop first, so concurrent
    requests interleave between awaits the way they do against a server.
    """

    def __init__(self):
        self.docs = []

    @staticmethod
    def _values(doc, key):
        head, _, rest = key.partition(".")
        value = doc.get(head)
        if not rest:
            return [value]
        if isinstance(value, list):
            return [item.get(rest) for item in value if isinstance(item, dict)]
        if isinstance(value, dict):
            return [value.get(rest)]
        return [None]

    @classmethod
    def _matches(cls, doc, query):
        for key, condition in query.items():
            values = cls._values(doc, key)
            if isinstance(condition, dict) and "$ne" in condition:
                if condition["$ne"] in values:
                    return False
            elif condition not in values:
                return False
        return True

    @staticmethod
    def _positional(doc, array, query):
        conditions = {
            key.split(".", 1)[1]: value
            for key, value in query.items()
            if key.startswith(array + ".") and not isinstance(value, dict)
        }
        return next(
            item for item in doc[array]
            if all(item.get(k) == v for k, v in conditions.items())
        )

    def _apply(self, doc, query, update, inserting=False):
        if inserting:
            for key, value in update.get("$setOnInsert", {}).items():
                doc[key] = copy.deepcopy(value)
        for key, value in update.get("$set", {}).items():
            doc[key] = copy.deepcopy(value)
        for key, amount in update.get("$inc", {}).items():
            if ".$." in key:
                array, field = key.split(".$.")
                item = self._positional(doc, array, query)
                item[field] = item.get(field, 0) + amount
            else:
                doc[key] = doc.get(key, 0) + amount
        for key, value in update.get("$push", {}).items():
            values = value["$each"] if isinstance(value, dict) and "$each" in value else [value]
            doc.setdefault(key, []).extend(copy.deepcopy(values))
        for key, condition in update.get("$pull", {}).items():
            doc[key] = [i for i in doc.get(key, []) if not self._matches(i, condition)]

    def _upsert(self, query, update):
        doc = {
            key: copy.deepcopy(value)
            for key, value in query.items()
            if "." not in key and not isinstance(value, dict)
        }
        self._apply(doc, query, update, inserting=True)
        self.docs.append(doc)
        return doc

    async def insert_one(self, doc):
        await asyncio.sleep(0)
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc.get("_id"))

    async def find_one(self, query):
        await asyncio.sleep(0)
        for doc in self.docs:
            if self._matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query=None):
        return FakeCursor([d for d in self.docs if self._matches(d, query or {})])

    async def update_one(self, query, update, upsert=False):
        await asyncio.sleep(0)
        for doc in self.docs:
            if self._matches(doc, query):
                self._apply(doc, query, update)
                return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if upsert:
            doc = self._upsert(query, update)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc.get("_id"))
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def find_one_and_update(self, query, update, upsert=False, return_document=False):
        await asyncio.sleep(0)
        for doc in self.docs:
            if self._matches(doc, query):
                before = copy.deepcopy(doc)
                self._apply(doc, query, update)
                return copy.deepcopy(doc) if return_document else before
        if upsert:
            doc = self._upsert(query, update)
            return copy.deepcopy(doc) if return_document else None
        return None

    async def delete_one(self, query):
        await asyncio.sleep(0)
        for i, doc in enumerate(self.docs):
            if self._matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


def make_mock_sio():
    sio = MagicMock()
    sio.emit = AsyncMock()
    sio.enter_room = AsyncMock()
    sio.leave_room = AsyncMock()
    sio.save_session = AsyncMock()
    sio.get_session = AsyncMock(return_value={})
    return sio


@pytest.fixture
def settings():
    return Settings(
        stripe_webhook_secret="whsec_test",
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret="rzp_test_secret",
        razorpay_webhook_secret="rzp_webhook_secret",
    )


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def delivery(settings, fake_db):
    return DeliverySocketHandler(settings.allowed_origins, db=fake_db, sio=make_mock_sio())


@pytest.fixture
def ctx(settings, fake_db, delivery):
    return AppContext(settings=settings, db=fake_db, delivery=delivery)


@pytest.fixture(name="client")
def client_fixture(ctx):
    return TestClient(create_api(ctx))


@pytest.fixture
def auth_headers(client):
    response = client.post("/api/auth/register", json={
        "name": "Test User",
        "email": "user@example.com",
        "password": "secret123"
    })
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def seeded_products(fake_db):
    products = [
        {"_id": "p1", "name": "Chicken Bowl", "price": 9.5, "category": "bowls"},
        {"_id": "p2", "name": "Protein Shake", "price": 4.25, "category": "drinks"},
    ]
    fake_db["products"].docs.extend(products)
    return products


@pytest.fixture
def driver_headers(fake_db):
    fake_db["users"].docs.append({
        "_id": "driver1",
        "name": "Ravi",
        "email": "ravi@example.com",
        "role": "driver"
    })
    fake_db["sessions"].docs.append({"_id": "driver-token", "user_id": "driver1"})
    return {"Authorization": "Bearer driver-token"}
