"""
Persistence backend contract

The store only talks to a `PersistenceBackend`: create/get/update/delete of
documents, ordered bulk reads, and a push feed of full-collection snapshots.
`MemoryBackend` keeps documents in-process; `JsonFileBackend` (storage.py)
reuses the same operations and snapshot feed on top of JSON files.

Documents are plain dicts holding JSON-ready values (datetimes and dates as
ISO strings), so every backend hands back the same shapes.
"""
import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, date, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from app.core.errors import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

PATIENTS = "patients"
APPOINTMENTS = "appointments"
VISITS = "visits"
ALERTS = "alerts"

COLLECTIONS = [PATIENTS, APPOINTMENTS, VISITS, ALERTS]

Document = Dict[str, Any]


def to_jsonable(value: Any) -> Any:
    """
    Convert datetimes/dates (also nested in dicts and lists) to ISO strings

    Datetimes always carry microseconds so ISO strings sort chronologically.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat(timespec="microseconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


@dataclass(frozen=True)
class Query:
    """
    Ordering and filtering for bulk reads and snapshot feeds

    `where` is evaluated every time the query runs, so date-relative filters
    ("today or later") stay current.
    """
    order_by: Optional[str] = None
    descending: bool = False
    where: Optional[Callable[[Document], bool]] = None

    def apply(self, documents: List[Document]) -> List[Document]:
        result = [doc for doc in documents if self.where is None or self.where(doc)]
        if self.order_by:
            key = self.order_by
            # Documents missing the key sort last in either direction
            present = [doc for doc in result if doc.get(key) is not None]
            missing = [doc for doc in result if doc.get(key) is None]
            present.sort(key=lambda doc: doc[key], reverse=self.descending)
            result = present + missing
        return result


_CLOSED = object()


class Subscription:
    """
    Async iterator of full snapshots for one collection

    The current snapshot is delivered immediately on subscribe; afterwards one
    snapshot per change. Iteration stops after `close()`.
    """
    def __init__(self, backend: "PersistenceBackend", collection: str, query: Query):
        self.collection = collection
        self.query = query
        self._backend = backend
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, snapshot: List[Document]):
        if not self.closed:
            self._queue.put_nowait(snapshot)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._backend._remove_subscription(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> List[Document]:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class PersistenceBackend(ABC):
    """
    What the store requires from a document store
    """

    @abstractmethod
    async def create(self, collection: str, document: Document) -> str:
        """Insert a document, stamping created_at/updated_at. Returns the new id."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Document:
        """Fetch one document (NotFoundError if absent)."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, partial: Document) -> None:
        """Merge fields into a document, stamping updated_at."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document (NotFoundError if absent)."""

    @abstractmethod
    async def get_all(self, collection: str, query: Optional[Query] = None) -> List[Document]:
        """All documents of a collection, filtered and ordered by `query`."""

    @abstractmethod
    def subscribe(self, collection: str, query: Optional[Query] = None) -> Subscription:
        """Push feed of full snapshots until the subscription is closed."""

    @abstractmethod
    def _remove_subscription(self, subscription: Subscription):
        pass

    async def close(self):
        pass


class MemoryBackend(PersistenceBackend):
    """
    In-process document store with a snapshot feed

    Subclasses change where documents live by overriding `_documents` and
    `_save`; every write goes through copy-on-write so a failed save leaves
    the previous state untouched.
    """
    def __init__(self):
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._last_timestamp: Optional[datetime] = None

    # Storage hooks

    def _documents(self, collection: str) -> Dict[str, Document]:
        return self._collections.get(collection, {})

    def _save(self, collection: str, documents: Dict[str, Document]):
        self._collections[collection] = documents

    # Helpers

    def _now(self) -> datetime:
        # Strictly increasing server clock: updated_at >= created_at and
        # created_at ordering matches write order
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _new_id(self) -> str:
        return str(uuid.uuid4())

    def _snapshot(self, collection: str, query: Query) -> List[Document]:
        documents = [{**doc, "id": doc_id} for doc_id, doc in self._documents(collection).items()]
        return query.apply(documents)

    def _publish(self, collection: str):
        subscriptions = list(self._subscriptions.get(collection, []))
        for subscription in subscriptions:
            subscription.push(self._snapshot(collection, subscription.query))
        if subscriptions:
            logger.debug("Published %s snapshot to %d subscriber(s)", collection, len(subscriptions))

    def _commit(self, collection: str, documents: Dict[str, Document]):
        try:
            self._save(collection, documents)
        except OSError as exc:
            raise PersistenceError(f"Could not write {collection}: {exc}", kind=collection) from exc
        self._publish(collection)

    # Contract

    async def create(self, collection: str, document: Document) -> str:
        doc_id = self._new_id()
        stamp = to_jsonable(self._now())
        stored = to_jsonable({k: v for k, v in document.items() if k != "id"})
        stored["created_at"] = stamp
        stored["updated_at"] = stamp
        documents = dict(self._documents(collection))
        documents[doc_id] = stored
        self._commit(collection, documents)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Document:
        doc = self._documents(collection).get(doc_id)
        if doc is None:
            raise NotFoundError(collection, doc_id)
        return {**doc, "id": doc_id}

    async def update(self, collection: str, doc_id: str, partial: Document) -> None:
        existing = self._documents(collection).get(doc_id)
        if existing is None:
            raise NotFoundError(collection, doc_id)
        updated = {**existing, **to_jsonable({k: v for k, v in partial.items() if k != "id"})}
        updated["updated_at"] = to_jsonable(self._now())
        documents = dict(self._documents(collection))
        documents[doc_id] = updated
        self._commit(collection, documents)

    async def delete(self, collection: str, doc_id: str) -> None:
        if doc_id not in self._documents(collection):
            raise NotFoundError(collection, doc_id)
        documents = dict(self._documents(collection))
        del documents[doc_id]
        self._commit(collection, documents)

    async def get_all(self, collection: str, query: Optional[Query] = None) -> List[Document]:
        return self._snapshot(collection, query or Query())

    def subscribe(self, collection: str, query: Optional[Query] = None) -> Subscription:
        subscription = Subscription(self, collection, query or Query())
        self._subscriptions.setdefault(collection, []).append(subscription)
        subscription.push(self._snapshot(collection, subscription.query))
        return subscription

    def _remove_subscription(self, subscription: Subscription):
        subscriptions = self._subscriptions.get(subscription.collection, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)

    async def close(self):
        for subscriptions in list(self._subscriptions.values()):
            for subscription in list(subscriptions):
                subscription.close()
