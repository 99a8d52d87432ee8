"""
Document store over the ``documents`` table.

Collections hold schemaless JSON documents addressed by ``_id``. The SQL
layer only narrows rows by collection (and by ``_id`` when the query pins
it); predicates, ordering and paging are evaluated on the decoded documents
so regex, presence and array matching behave the same on SQLite and
PostgreSQL.

``unwind`` mirrors a document database ``$unwind`` stage: each element of
the array at the given path becomes its own row, with the array replaced by
that element. Unwinding ``transactions`` then ``transactions.messages`` turns
every message of every task into a row.

``remove_all`` and ``pull_all`` commit each document on its own, against a
row read under ``FOR UPDATE`` and checked by its ``version`` column, so
concurrent bulk changes over the same collection never undo each other.
"""
from __future__ import annotations

import copy
import logging
import uuid
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import ObjectDeletedError, StaleDataError

from task_manager.db import models
from task_manager.errors import StorageError

from .query import MATCH_ALL, And, Equals, Predicate, Sort, first_path_value

logger = logging.getLogger(__name__)

ID_KEY = "_id"

# Re-reads of a row written concurrently before a change gives up
MAX_CHANGE_ATTEMPTS = 5

JsonDocument = Dict[str, Any]


class DocumentStore(Protocol):
    """Storage collaborator consumed by the repositories."""

    def count(self, collection: str, query: Predicate, unwind: Sequence[str] = ()) -> int: ...

    def find_page(
        self,
        collection: str,
        query: Predicate,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: Optional[int] = None,
        projection: Optional[Sequence[str]] = None,
        unwind: Sequence[str] = (),
    ) -> List[JsonDocument]: ...

    def find_one(self, collection: str, query: Predicate, projection: Optional[Sequence[str]] = None) -> Optional[JsonDocument]: ...

    def save(self, collection: str, document: JsonDocument) -> str: ...

    def update_one(self, collection: str, query: Predicate, patch: JsonDocument) -> int: ...

    def remove_one(self, collection: str, query: Predicate) -> int: ...

    def remove_all(self, collection: str, query: Predicate) -> List[str]: ...

    def pull_all(self, collection: str, array_path: str, element_query: Predicate) -> int: ...


def _pinned_id(query: Predicate) -> Optional[str]:
    """Return the ``_id`` an equality predicate pins, if any."""
    if isinstance(query, Equals) and query.path == ID_KEY:
        return query.value
    if isinstance(query, And):
        for predicate in query.predicates:
            pinned = _pinned_id(predicate)
            if pinned is not None:
                return pinned
    return None


def _with_path_value(document: JsonDocument, path: str, value: Any) -> JsonDocument:
    """Shallow copy of ``document`` with ``path`` set to ``value``."""
    keys = path.split(".")
    result = dict(document)
    cursor = result
    for key in keys[:-1]:
        child = cursor.get(key)
        child = dict(child) if isinstance(child, dict) else {}
        cursor[key] = child
        cursor = child
    cursor[keys[-1]] = value
    return result


def unwind_documents(documents: Iterable[JsonDocument], path: str) -> Iterator[JsonDocument]:
    for document in documents:
        elements = first_path_value(document, path)
        if not isinstance(elements, list):
            continue
        for element in elements:
            yield _with_path_value(document, path, element)


def project_document(document: JsonDocument, fields: Sequence[str]) -> JsonDocument:
    projected: JsonDocument = {}
    for path in [ID_KEY, *fields]:
        value = first_path_value(document, path)
        if value is not None:
            projected = _with_path_value(projected, path, value)
    return projected


def _pull(value: Any, keys: Sequence[str], predicate: Predicate) -> bool:
    if isinstance(value, list):
        changed = False
        for item in value:
            changed = _pull(item, keys, predicate) or changed
        return changed
    if not isinstance(value, dict):
        return False
    if len(keys) > 1:
        child = value.get(keys[0])
        return _pull(child, keys[1:], predicate) if child is not None else False
    elements = value.get(keys[0])
    if not isinstance(elements, list):
        return False
    kept = [element for element in elements if not predicate.matches(element)]
    if len(kept) == len(elements):
        return False
    value[keys[0]] = kept
    return True


class SqlDocumentStore:
    """:class:`DocumentStore` implementation bound to a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, collection: str, error: Exception):
        self.db.rollback()
        logger.error(f"Document store failed to {operation} on '{collection}': {error}")
        raise StorageError(f"Cannot {operation} the documents of '{collection}'.") from error

    def _rows(self, collection: str, query: Predicate = MATCH_ALL) -> List[models.Document]:
        rows = self.db.query(models.Document).filter(models.Document.collection == collection)
        pinned = _pinned_id(query)
        if pinned is not None:
            rows = rows.filter(models.Document.id == pinned)
        return rows.order_by(models.Document.pk).all()

    @staticmethod
    def _decode(row: models.Document) -> JsonDocument:
        document = copy.deepcopy(row.body) if row.body else {}
        document[ID_KEY] = row.id
        return document

    def _matching(self, collection: str, query: Predicate, unwind: Sequence[str] = ()) -> List[JsonDocument]:
        documents: Iterable[JsonDocument] = (self._decode(row) for row in self._rows(collection, query))
        for path in unwind:
            documents = unwind_documents(documents, path)
        return [document for document in documents if query.matches(document)]

    def _matching_rows(self, collection: str, query: Predicate) -> Iterator[models.Document]:
        for row in self._rows(collection, query):
            if query.matches(self._decode(row)):
                yield row

    def count(self, collection, query, unwind=()):
        try:
            return len(self._matching(collection, query, unwind))
        except SQLAlchemyError as e:
            self._fail("count", collection, e)

    def find_page(self, collection, query, sort=None, skip=0, limit=None, projection=None, unwind=()):
        try:
            documents = self._matching(collection, query, unwind)
        except SQLAlchemyError as e:
            self._fail("find", collection, e)
        if sort:
            documents = sort.apply(documents)
        end = skip + limit if limit is not None else None
        documents = documents[skip:end]
        if projection:
            documents = [project_document(document, projection) for document in documents]
        return documents

    def find_one(self, collection, query, projection=None):
        try:
            documents = self._matching(collection, query)
        except SQLAlchemyError as e:
            self._fail("find", collection, e)
        if not documents:
            return None
        document = documents[0]
        return project_document(document, projection) if projection else document

    def save(self, collection, document):
        body = dict(document)
        identifier = body.pop(ID_KEY, None) or str(uuid.uuid4())
        try:
            row = (
                self.db.query(models.Document)
                .filter(models.Document.collection == collection, models.Document.id == identifier)
                .first()
            )
            if row is None:
                self.db.add(models.Document(collection=collection, id=identifier, body=body))
            else:
                row.body = body
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("save", collection, e)
        return identifier

    def update_one(self, collection, query, patch):
        try:
            row = next(self._matching_rows(collection, query), None)
            if row is None:
                return 0
            body = dict(row.body or {})
            for key, value in patch.items():
                if key == ID_KEY:
                    continue
                if value is None:
                    body.pop(key, None)
                else:
                    body[key] = value
            row.body = body
            self.db.commit()
            return 1
        except SQLAlchemyError as e:
            self._fail("update", collection, e)

    def remove_one(self, collection, query):
        try:
            row = next(self._matching_rows(collection, query), None)
            if row is None:
                return 0
            self.db.delete(row)
            self.db.commit()
            return 1
        except SQLAlchemyError as e:
            self._fail("remove", collection, e)

    def remove_all(self, collection, query):
        try:
            candidates = [row.id for row in self._matching_rows(collection, query)]
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("remove", collection, e)

        def remove(row: models.Document) -> bool:
            if not query.matches(self._decode(row)):
                return False
            self.db.delete(row)
            return True

        return [
            identifier for identifier in candidates
            if self._change_row("remove", collection, identifier, remove)
        ]

    def pull_all(self, collection, array_path, element_query):
        keys = array_path.split(".")
        try:
            candidates = [
                row.id for row in self._rows(collection)
                if _pull(self._decode(row), keys, element_query)
            ]
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("update", collection, e)

        def pull(row: models.Document) -> bool:
            body = copy.deepcopy(row.body) if row.body else {}
            if not _pull(body, keys, element_query):
                return False
            row.body = body
            return True

        return sum(1 for identifier in candidates if self._change_row("update", collection, identifier, pull))

    def _locked_row(self, collection: str, identifier: str) -> Optional[models.Document]:
        return (
            self.db.query(models.Document)
            .filter(models.Document.collection == collection, models.Document.id == identifier)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def _change_row(self, operation: str, collection: str, identifier: str, change: Callable[[models.Document], bool]) -> bool:
        """Apply ``change`` to a freshly read row and commit it on its own.

        ``change`` returns False when the row needs no write. A row written by
        someone else in between is read again and the change re-applied; a row
        that has gone away needs nothing.
        """
        for attempt in range(1, MAX_CHANGE_ATTEMPTS + 1):
            try:
                row = self._locked_row(collection, identifier)
                if row is None or not change(row):
                    self.db.rollback()
                    return False
                self.db.commit()
                return True
            except (StaleDataError, ObjectDeletedError) as e:
                self.db.rollback()
                if attempt == MAX_CHANGE_ATTEMPTS:
                    self._fail(operation, collection, e)
                logger.info(f"Document '{identifier}' of '{collection}' changed concurrently, retrying the {operation}")
            except SQLAlchemyError as e:
                self._fail(operation, collection, e)
        return False
