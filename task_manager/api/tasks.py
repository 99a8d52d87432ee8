"""
Task API endpoints.

Covers the task CRUD set, the paginated task search and the endpoints that
append a transaction to a task or a message to one of its transactions.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from task_manager.api.deps import (
    PageParams,
    get_order,
    get_page_params,
    get_store,
    get_task_filters,
    get_validation_context,
)
from task_manager.db.repositories import tasks as repo_tasks
from task_manager.db.repositories.tasks import TaskFilters
from task_manager.db.schemas import Message, Task, TasksPage, TaskTransaction
from task_manager.db.storage import DocumentStore
from task_manager.services import model_resources
from task_manager.services import tasks as task_service
from task_manager.validations import ValidationContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])

TASK = "task"


@router.post("", response_model=Task, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
def create_task(
    task: Task,
    store: DocumentStore = Depends(get_store),
    context: ValidationContext = Depends(get_validation_context),
):
    return model_resources.create_model(task, TASK, lambda model: repo_tasks.store_task(store, model), context)


@router.get("", response_model=TasksPage, response_model_exclude_none=True)
def get_tasks_page(
    filters: TaskFilters = Depends(get_task_filters),
    order: Optional[List[str]] = Depends(get_order),
    page: PageParams = Depends(get_page_params),
    store: DocumentStore = Depends(get_store),
):
    query = repo_tasks.create_tasks_page_query(filters)
    sort = repo_tasks.create_tasks_page_sort(order)
    return repo_tasks.retrieve_tasks_page(store, query, sort, page.offset, page.limit)


@router.get("/{task_id}", response_model=Task, response_model_exclude_none=True)
def get_task(task_id: str, store: DocumentStore = Depends(get_store)):
    return model_resources.retrieve_model(task_id, TASK, lambda identifier: repo_tasks.search_task(store, identifier))


@router.put("/{task_id}", response_model=Task, response_model_exclude_none=True)
def update_task(
    task_id: str,
    task: Task,
    store: DocumentStore = Depends(get_store),
    context: ValidationContext = Depends(get_validation_context),
):
    return model_resources.update_model(
        task_id,
        task,
        TASK,
        lambda identifier: repo_tasks.search_task(store, identifier),
        lambda model: repo_tasks.update_task(store, model),
        context,
    )


@router.patch("/{task_id}", response_model=Task, response_model_exclude_none=True)
def merge_task(
    task_id: str,
    task: Task,
    store: DocumentStore = Depends(get_store),
    context: ValidationContext = Depends(get_validation_context),
):
    return model_resources.merge_model(
        task_id,
        task,
        TASK,
        lambda identifier: repo_tasks.search_task(store, identifier),
        lambda model: repo_tasks.update_task(store, model),
        context,
    )


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: str, store: DocumentStore = Depends(get_store)):
    model_resources.delete_model(task_id, TASK, lambda identifier: repo_tasks.delete_task(store, identifier))
    return None


@router.post(
    "/{task_id}/transactions",
    response_model=TaskTransaction,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def add_task_transaction(
    task_id: str,
    transaction: TaskTransaction,
    store: DocumentStore = Depends(get_store),
    context: ValidationContext = Depends(get_validation_context),
):
    return task_service.add_transaction(store, task_id, transaction, context)


@router.post(
    "/{task_id}/transactions/{transaction_id}/messages",
    response_model=Message,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def add_transaction_message(
    task_id: str,
    transaction_id: str,
    message: Message,
    store: DocumentStore = Depends(get_store),
    context: ValidationContext = Depends(get_validation_context),
):
    return task_service.add_message(store, task_id, transaction_id, message, context)
