"""
Generic document repository functions.

Implements the paginated search (count, then a bounded fetch) and the
single-document primitives shared by every record kind. Each function takes
the :class:`~task_manager.db.storage.DocumentStore` first.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from task_manager.db.query import Equals, Predicate, Sort
from task_manager.db.storage import ID_KEY, DocumentStore, JsonDocument
from task_manager.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def search_page_object(
    store: DocumentStore,
    collection: str,
    query: Predicate,
    sort: Optional[Sort],
    offset: int,
    limit: int,
    items_key: str,
    *,
    projection: Optional[Sequence[str]] = None,
    unwind: Sequence[str] = (),
    map_item: Optional[Callable[[JsonDocument], Any]] = None,
) -> Dict[str, Any]:
    """Return ``{offset, total, <items_key>: [...]}``.

    The fetch is skipped when nothing matches or ``offset`` is past the last
    match. Storage failures propagate as they are; nothing is retried.
    """
    total = store.count(collection, query, unwind=unwind)
    page: Dict[str, Any] = {"offset": offset, "total": total, items_key: []}
    if total == 0 or offset >= total:
        return page

    documents = store.find_page(
        collection,
        query,
        sort=sort,
        skip=offset,
        limit=limit,
        projection=projection,
        unwind=unwind,
    )
    mapper = map_item or from_document
    page[items_key] = [mapper(document) for document in documents]
    return page


def from_document(document: JsonDocument) -> JsonDocument:
    """Expose the storage ``_id`` as ``id``."""
    result = dict(document)
    identifier = result.pop(ID_KEY, None)
    if identifier is not None:
        result["id"] = identifier
    return result


def id_query(identifier: str) -> Predicate:
    return Equals(ID_KEY, identifier)


def find_one_document(store: DocumentStore, collection: str, query: Predicate) -> JsonDocument:
    document = store.find_one(collection, query)
    if document is None:
        raise NotFoundError("not_found", f"Does not exist a document in '{collection}' that match {query}.")
    return from_document(document)


def store_one_document(
    store: DocumentStore,
    collection: str,
    document: JsonDocument,
    *,
    code: str = "bad_document",
) -> JsonDocument:
    """Save a new document and return it with its assigned ``id``.

    The storage ``_id`` never reaches the returned document.
    """
    body = dict(document)
    if body.get("id") is not None or body.get(ID_KEY) is not None:
        raise ValidationError(f"{code}.id", "You can not specify the identifier of the document to store.")
    body.pop("id", None)
    body.pop(ID_KEY, None)
    identifier = store.save(collection, body)
    logger.info(f"Stored document '{identifier}' in '{collection}'")
    return {**body, "id": identifier}


def update_one_document(store: DocumentStore, collection: str, query: Predicate, document: JsonDocument) -> None:
    patch = dict(document)
    patch.pop("id", None)
    patch.pop(ID_KEY, None)
    if store.update_one(collection, query, patch) != 1:
        raise NotFoundError("not_found", f"Not found document to update in '{collection}'.")


def delete_one_document(store: DocumentStore, collection: str, query: Predicate) -> None:
    if store.remove_one(collection, query) != 1:
        raise NotFoundError("not_found", f"Not found document to delete in '{collection}'.")


def delete_documents(store: DocumentStore, collection: str, query: Predicate) -> List[str]:
    """Remove every matching document; return the removed ids."""
    identifiers = store.remove_all(collection, query)
    logger.info(f"Removed {len(identifiers)} documents from '{collection}'")
    return identifiers


def pull_elements(store: DocumentStore, collection: str, array_path: str, element_query: Predicate) -> int:
    """Remove matching elements from the nested arrays at ``array_path``; return the modified document count."""
    modified = store.pull_all(collection, array_path, element_query)
    logger.info(f"Pulled elements of '{array_path}' from {modified} documents of '{collection}'")
    return modified
