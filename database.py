"""
In-memory document store.

Mirrors the small collection API the routes used against MongoDB
(create_document / get_documents / find_one / update_one / delete_one)
but keeps every collection in process memory. A Database is constructed
explicitly and handed to whoever needs it; state resets on restart.
"""

import copy
import threading
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Union

from bson import ObjectId

COLLECTIONS = (
    "product",
    "cart_item",
    "user",
    "promo_code",
    "gift_code",
    "gift_code_redemption",
    "order",
    "review",
    "admin",
    "contact_message",
)

Filter = Union[Dict, Callable[[Dict], bool], None]


def new_id() -> str:
    return str(ObjectId())


def _matches(doc: dict, filter_dict: Filter) -> bool:
    if filter_dict is None:
        return True
    if callable(filter_dict):
        return bool(filter_dict(doc))
    return all(doc.get(k) == v for k, v in filter_dict.items())


class Database:
    def __init__(self, name: str = "storefront"):
        self.name = name
        self._collections: Dict[str, Dict[str, dict]] = {c: {} for c in COLLECTIONS}
        self._guard = threading.RLock()
        self._key_locks: Dict[str, threading.RLock] = {}

    def _collection(self, collection: str) -> Dict[str, dict]:
        try:
            return self._collections[collection]
        except KeyError:
            raise KeyError(f"Unknown collection: {collection}")

    def list_collection_names(self) -> List[str]:
        return list(self._collections)

    def count_documents(self, collection: str, filter_dict: Filter = None) -> int:
        with self._guard:
            return sum(1 for d in self._collection(collection).values() if _matches(d, filter_dict))

    def create_document(self, collection: str, data: dict) -> dict:
        """Insert a copy of ``data``; an ``id`` is generated unless one is given."""
        doc = copy.deepcopy(data)
        doc["id"] = doc.get("id") or new_id()
        with self._guard:
            docs = self._collection(collection)
            if doc["id"] in docs:
                raise ValueError(f"Duplicate id {doc['id']} in {collection}")
            docs[doc["id"]] = doc
        return copy.deepcopy(doc)

    def get_documents(self, collection: str, filter_dict: Filter = None, limit: Optional[int] = None) -> List[dict]:
        with self._guard:
            found = [copy.deepcopy(d) for d in self._collection(collection).values() if _matches(d, filter_dict)]
        return found[:limit] if limit else found

    def find_one(self, collection: str, filter_dict: Filter = None) -> Optional[dict]:
        with self._guard:
            for d in self._collection(collection).values():
                if _matches(d, filter_dict):
                    return copy.deepcopy(d)
        return None

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._guard:
            doc = self._collection(collection).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def update_one(self, collection: str, doc_id: str, updates: dict) -> Optional[dict]:
        """Merge ``updates`` into the document; returns the new version or None."""
        updates = {k: v for k, v in updates.items() if k != "id"}
        with self._guard:
            doc = self._collection(collection).get(doc_id)
            if doc is None:
                return None
            doc.update(copy.deepcopy(updates))
            return copy.deepcopy(doc)

    def delete_one(self, collection: str, doc_id: str) -> bool:
        with self._guard:
            return self._collection(collection).pop(doc_id, None) is not None

    def delete_many(self, collection: str, filter_dict: Filter = None) -> int:
        with self._guard:
            docs = self._collection(collection)
            doomed = [k for k, d in docs.items() if _matches(d, filter_dict)]
            for k in doomed:
                del docs[k]
        return len(doomed)

    @contextmanager
    def lock(self, *keys: str):
        """
        Hold the per-key locks for ``keys`` (e.g. ``user:<id>``).

        Locks are re-entrant and taken in sorted order, so two scopes that
        share keys cannot deadlock each other.
        """
        with self._guard:
            locks = [self._key_locks.setdefault(k, threading.RLock()) for k in sorted(set(keys))]
        for lk in locks:
            lk.acquire()
        try:
            yield
        finally:
            for lk in reversed(locks):
                lk.release()


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


def gift_code_key(gift_code_id: str) -> str:
    return f"gift_code:{gift_code_id}"
