"""
Task repository functions.

Tasks live in the ``tasks`` collection with their transactions and the
messages of each transaction embedded. Transaction and message pages are
served from the same collection by unwinding those arrays.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from task_manager.db.query import Equals, Predicate, Sort
from task_manager.db.query_builder import OrderSpec, QueryBuilder, parse_order
from task_manager.db.schemas import MessagesPage, Task, TasksPage, TaskTransactionsPage
from task_manager.db.storage import ID_KEY, DocumentStore, JsonDocument
from task_manager.utils.clock import now_ts

from .documents import (
    delete_documents,
    delete_one_document,
    find_one_document,
    from_document,
    id_query,
    pull_elements,
    search_page_object,
    store_one_document,
    update_one_document,
)

logger = logging.getLogger(__name__)

TASKS_COLLECTION = "tasks"

TASK_ORDER_FIELDS = {
    "id": ID_KEY,
    "taskTypeId": "taskTypeId",
    "requesterId": "requesterId",
    "appId": "appId",
    "goal.name": "goal.name",
    "goal.description": "goal.description",
    "startTs": "startTs",
    "endTs": "endTs",
    "deadlineTs": "deadlineTs",
    "closeTs": "closeTs",
    "_creationTs": "_creationTs",
    "_lastUpdateTs": "_lastUpdateTs",
}

TRANSACTION_ORDER_FIELDS = {
    "id": "transactions.id",
    "taskId": ID_KEY,
    "label": "transactions.label",
    "actioneerId": "transactions.actioneerId",
    "_creationTs": "transactions._creationTs",
    "_lastUpdateTs": "transactions._lastUpdateTs",
}

MESSAGE_ORDER_FIELDS = {
    "appId": "transactions.messages.appId",
    "receiverId": "transactions.messages.receiverId",
    "label": "transactions.messages.label",
    "taskId": ID_KEY,
    "transactionId": "transactions.id",
    "transactionLabel": "transactions.label",
    "transactionActioneerId": "transactions.actioneerId",
}


@dataclass
class TaskFilters:
    task_id: Optional[str] = None
    app_id: Optional[str] = None
    requester_id: Optional[str] = None
    task_type_id: Optional[str] = None
    goal_name: Optional[str] = None
    goal_description: Optional[str] = None
    goal_keywords: Optional[List[str]] = None
    start_from: Optional[int] = None
    start_to: Optional[int] = None
    end_from: Optional[int] = None
    end_to: Optional[int] = None
    deadline_from: Optional[int] = None
    deadline_to: Optional[int] = None
    creation_from: Optional[int] = None
    creation_to: Optional[int] = None
    update_from: Optional[int] = None
    update_to: Optional[int] = None
    has_close_ts: Optional[bool] = None
    close_from: Optional[int] = None
    close_to: Optional[int] = None


@dataclass
class TransactionFilters:
    id: Optional[str] = None
    label: Optional[str] = None
    actioneer_id: Optional[str] = None
    creation_from: Optional[int] = None
    creation_to: Optional[int] = None
    update_from: Optional[int] = None
    update_to: Optional[int] = None


@dataclass
class MessageFilters:
    app_id: Optional[str] = None
    receiver_id: Optional[str] = None
    label: Optional[str] = None


def _with_task_filters(builder: QueryBuilder, filters: TaskFilters, app_id_name: str = "appId") -> QueryBuilder:
    return (
        builder
        .with_equal_or_regex(ID_KEY, filters.task_id, "taskId")
        .with_equal_or_regex("appId", filters.app_id, app_id_name)
        .with_equal_or_regex("requesterId", filters.requester_id, "requesterId")
        .with_equal_or_regex("taskTypeId", filters.task_type_id, "taskTypeId")
        .with_equal_or_regex("goal.name", filters.goal_name, "goalName")
        .with_equal_or_regex("goal.description", filters.goal_description, "goalDescription")
        .with_equal_or_regex_values("goal.keywords", filters.goal_keywords, "goalKeywords")
        .with_range("startTs", filters.start_from, filters.start_to)
        .with_range("endTs", filters.end_from, filters.end_to)
        .with_range("deadlineTs", filters.deadline_from, filters.deadline_to)
        .with_range("_creationTs", filters.creation_from, filters.creation_to)
        .with_range("_lastUpdateTs", filters.update_from, filters.update_to)
        .with_exists("closeTs", filters.has_close_ts)
        .with_range("closeTs", filters.close_from, filters.close_to)
    )


def _with_transaction_filters(builder: QueryBuilder, filters: TransactionFilters, name_prefix: str = "") -> QueryBuilder:
    def name(field_name: str) -> str:
        return f"{name_prefix}{field_name[0].upper()}{field_name[1:]}" if name_prefix else field_name

    return (
        builder
        .with_equal_or_regex("transactions.id", filters.id, name("id"))
        .with_equal_or_regex("transactions.label", filters.label, name("label"))
        .with_equal_or_regex("transactions.actioneerId", filters.actioneer_id, name("actioneerId"))
        .with_range("transactions._creationTs", filters.creation_from, filters.creation_to)
        .with_range("transactions._lastUpdateTs", filters.update_from, filters.update_to)
    )


def create_tasks_page_query(filters: TaskFilters) -> Predicate:
    return _with_task_filters(QueryBuilder(), filters).build()


def create_tasks_page_sort(order: OrderSpec) -> Optional[Sort]:
    return parse_order(order, TASK_ORDER_FIELDS)


def create_task_transactions_page_query(task_filters: TaskFilters, transaction_filters: TransactionFilters) -> Predicate:
    builder = _with_task_filters(QueryBuilder(), task_filters)
    return _with_transaction_filters(builder, transaction_filters).build()


def create_task_transactions_page_sort(order: OrderSpec) -> Optional[Sort]:
    return parse_order(order, TRANSACTION_ORDER_FIELDS)


def create_messages_page_query(
    task_filters: TaskFilters,
    transaction_filters: TransactionFilters,
    message_filters: MessageFilters,
) -> Predicate:
    builder = _with_task_filters(QueryBuilder(), task_filters, "taskAppId")
    builder = _with_transaction_filters(builder, transaction_filters, "transaction")
    return (
        builder
        .with_equal_or_regex("transactions.messages.appId", message_filters.app_id, "appId")
        .with_equal_or_regex("transactions.messages.receiverId", message_filters.receiver_id, "receiverId")
        .with_equal_or_regex("transactions.messages.label", message_filters.label, "label")
        .build()
    )


def create_messages_page_sort(order: OrderSpec) -> Optional[Sort]:
    return parse_order(order, MESSAGE_ORDER_FIELDS)


def _to_task(document: JsonDocument) -> Task:
    task = Task.model_validate(document)
    for transaction in task.transactions or []:
        transaction.task_id = task.id
    return task


def search_task(store: DocumentStore, task_id: str) -> Task:
    return _to_task(find_one_document(store, TASKS_COLLECTION, id_query(task_id)))


def store_task(store: DocumentStore, task: Task) -> Task:
    now = now_ts()
    document = task.to_document()
    document["_creationTs"] = now
    document["_lastUpdateTs"] = now
    stored = store_one_document(store, TASKS_COLLECTION, document, code="bad_task")
    return _to_task(stored)


def update_task(store: DocumentStore, task: Task) -> Task:
    task.last_update_ts = now_ts()
    update_one_document(store, TASKS_COLLECTION, id_query(task.id), task.to_patch())
    return task


def delete_task(store: DocumentStore, task_id: str) -> None:
    delete_one_document(store, TASKS_COLLECTION, id_query(task_id))


def retrieve_tasks_page(store: DocumentStore, query: Predicate, sort: Optional[Sort], offset: int, limit: int) -> TasksPage:
    page = search_page_object(
        store,
        TASKS_COLLECTION,
        query,
        sort,
        offset,
        limit,
        "tasks",
        map_item=lambda document: _to_task(from_document(document)),
    )
    return TasksPage.model_validate(page)


def _transaction_row(row: JsonDocument) -> JsonDocument:
    transaction = dict(row["transactions"])
    transaction["taskId"] = row[ID_KEY]
    return transaction


def retrieve_task_transactions_page(store: DocumentStore, query: Predicate, sort: Optional[Sort], offset: int, limit: int) -> TaskTransactionsPage:
    page = search_page_object(
        store,
        TASKS_COLLECTION,
        query,
        sort,
        offset,
        limit,
        "transactions",
        unwind=("transactions",),
        projection=("transactions",),
        map_item=_transaction_row,
    )
    return TaskTransactionsPage.model_validate(page)


def _message_row(row: JsonDocument) -> JsonDocument:
    return dict(row["transactions"]["messages"])


def retrieve_messages_page(store: DocumentStore, query: Predicate, sort: Optional[Sort], offset: int, limit: int) -> MessagesPage:
    page = search_page_object(
        store,
        TASKS_COLLECTION,
        query,
        sort,
        offset,
        limit,
        "messages",
        unwind=("transactions", "transactions.messages"),
        projection=("transactions.messages",),
        map_item=_message_row,
    )
    return MessagesPage.model_validate(page)


def delete_all_tasks_with_requester(store: DocumentStore, requester_id: str) -> List[str]:
    return delete_documents(store, TASKS_COLLECTION, Equals("requesterId", requester_id))


def delete_all_transactions_by_actioneer(store: DocumentStore, actioneer_id: str) -> int:
    return pull_elements(store, TASKS_COLLECTION, "transactions", Equals("actioneerId", actioneer_id))


def delete_all_messages_with_receiver(store: DocumentStore, receiver_id: str) -> int:
    return pull_elements(store, TASKS_COLLECTION, "transactions.messages", Equals("receiverId", receiver_id))
