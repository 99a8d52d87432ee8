"""
Create, retrieve, update, merge and delete flows shared by the record kinds.

Each flow receives the repository functions to call, so the same code serves
tasks and task types. Error codes are derived from the record ``name``:
``bad_<name>`` for invalid input, ``not_found_<name>`` when the record does
not exist, and ``<name>_to_update_equal_to_original`` /
``<name>_to_merge_equal_to_original`` for no-op updates.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from task_manager.db.schemas import RecordModel
from task_manager.errors import ConflictError, NotFoundError
from task_manager.validations import ValidationContext

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=RecordModel)


def create_model(
    source: M,
    name: str,
    store_fn: Callable[[M], M],
    context: Optional[ValidationContext] = None,
) -> M:
    source.validate_model(f"bad_{name}", context, creating=True)
    created = store_fn(source)
    logger.info(f"Created {name} '{created.id}'")
    return created


def retrieve_model(identifier: str, name: str, search_fn: Callable[[str], M]) -> M:
    try:
        return search_fn(identifier)
    except NotFoundError as e:
        raise NotFoundError(f"not_found_{name}", f"Does not exist a {name} associated to '{identifier}'.") from e


def update_model(
    identifier: str,
    source: M,
    name: str,
    search_fn: Callable[[str], M],
    update_fn: Callable[[M], M],
    context: Optional[ValidationContext] = None,
) -> M:
    """Replace the stored record with ``source``, keeping its identity."""
    target = retrieve_model(identifier, name, search_fn)
    source.id = target.id
    source.creation_ts = target.creation_ts
    source.last_update_ts = target.last_update_ts
    source.validate_model(f"bad_{name}", context)
    if source.equals_ignoring_update(target):
        raise ConflictError(f"{name}_to_update_equal_to_original", f"The {name} to update is equal to the original.")
    return _store_update(identifier, source, name, update_fn)


def merge_model(
    identifier: str,
    source: M,
    name: str,
    search_fn: Callable[[str], M],
    update_fn: Callable[[M], M],
    context: Optional[ValidationContext] = None,
) -> M:
    """Apply ``source`` as a partial update over the stored record."""
    target = retrieve_model(identifier, name, search_fn)
    merged = target.merge(source, f"bad_{name}", context)
    if merged.equals_ignoring_update(target):
        raise ConflictError(f"{name}_to_merge_equal_to_original", f"The {name} to merge is equal to the original.")
    return _store_update(identifier, merged, name, update_fn)


def _store_update(identifier: str, model: M, name: str, update_fn: Callable[[M], M]) -> M:
    try:
        updated = update_fn(model)
    except NotFoundError as e:
        raise NotFoundError(f"not_found_{name}", f"Does not exist a {name} associated to '{identifier}'.") from e
    logger.info(f"Updated {name} '{identifier}'")
    return updated


def delete_model(identifier: str, name: str, delete_fn: Callable[[str], None]) -> None:
    try:
        delete_fn(identifier)
    except NotFoundError as e:
        raise NotFoundError(f"not_found_{name}", f"Does not exist a {name} associated to '{identifier}'.") from e
    logger.info(f"Deleted {name} '{identifier}'")
