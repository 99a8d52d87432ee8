"""
Task type repository functions.
"""
from __future__ import annotations

from typing import List, Optional

from task_manager.db.query import Predicate, Sort
from task_manager.db.query_builder import OrderSpec, QueryBuilder, parse_order
from task_manager.db.schemas import TaskType, TaskTypesPage
from task_manager.db.storage import ID_KEY, DocumentStore
from task_manager.utils.clock import now_ts

from .documents import (
    delete_one_document,
    find_one_document,
    id_query,
    search_page_object,
    store_one_document,
    update_one_document,
)

TASK_TYPES_COLLECTION = "taskTypes"

TASK_TYPE_ORDER_FIELDS = {
    "id": ID_KEY,
    "name": "name",
    "description": "description",
    "_creationTs": "_creationTs",
    "_lastUpdateTs": "_lastUpdateTs",
}


def search_task_type(store: DocumentStore, task_type_id: str) -> TaskType:
    return TaskType.model_validate(find_one_document(store, TASK_TYPES_COLLECTION, id_query(task_type_id)))


def store_task_type(store: DocumentStore, task_type: TaskType) -> TaskType:
    now = now_ts()
    document = task_type.to_document()
    document["_creationTs"] = now
    document["_lastUpdateTs"] = now
    return TaskType.model_validate(store_one_document(store, TASK_TYPES_COLLECTION, document, code="bad_taskType"))


def update_task_type(store: DocumentStore, task_type: TaskType) -> TaskType:
    task_type.last_update_ts = now_ts()
    update_one_document(store, TASK_TYPES_COLLECTION, id_query(task_type.id), task_type.to_patch())
    return task_type


def delete_task_type(store: DocumentStore, task_type_id: str) -> None:
    delete_one_document(store, TASK_TYPES_COLLECTION, id_query(task_type_id))


def create_task_types_page_query(
    name: Optional[str] = None,
    description: Optional[str] = None,
    keywords: Optional[List[str]] = None,
) -> Predicate:
    return (
        QueryBuilder()
        .with_equal_or_regex("name", name, "name")
        .with_equal_or_regex("description", description, "description")
        .with_equal_or_regex_values("keywords", keywords, "keywords")
        .build()
    )


def create_task_types_page_sort(order: OrderSpec) -> Optional[Sort]:
    return parse_order(order, TASK_TYPE_ORDER_FIELDS)


def retrieve_task_types_page(store: DocumentStore, query: Predicate, sort: Optional[Sort], offset: int, limit: int) -> TaskTypesPage:
    page = search_page_object(store, TASK_TYPES_COLLECTION, query, sort, offset, limit, "taskTypes")
    return TaskTypesPage.model_validate(page)
