"""
Task type API endpoints.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from task_manager.api.deps import PageParams, get_order, get_page_params, get_store, get_validation_context
from task_manager.db.query_builder import parse_query_values
from task_manager.db.repositories import task_types as repo_task_types
from task_manager.db.schemas import TaskType, TaskTypesPage
from task_manager.db.storage import DocumentStore
from task_manager.services import model_resources
from task_manager.validations import ValidationContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/taskTypes", tags=["task-types"])

TASK_TYPE = "taskType"


@router.post("", response_model=TaskType, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
def create_task_type(
    task_type: TaskType,
    store: DocumentStore = Depends(get_store),
    context: ValidationContext = Depends(get_validation_context),
):
    return model_resources.create_model(
        task_type, TASK_TYPE, lambda model: repo_task_types.store_task_type(store, model), context
    )


@router.get("", response_model=TaskTypesPage, response_model_exclude_none=True)
def get_task_types_page(
    name: Optional[str] = Query(None, description="Exact name or /regex/."),
    description: Optional[str] = Query(None, description="Exact description or /regex/."),
    keywords: Optional[List[str]] = Query(None, description="Comma separated keywords; each one must match."),
    order: Optional[List[str]] = Depends(get_order),
    page: PageParams = Depends(get_page_params),
    store: DocumentStore = Depends(get_store),
):
    query = repo_task_types.create_task_types_page_query(name, description, parse_query_values(keywords))
    sort = repo_task_types.create_task_types_page_sort(order)
    return repo_task_types.retrieve_task_types_page(store, query, sort, page.offset, page.limit)


@router.get("/{task_type_id}", response_model=TaskType, response_model_exclude_none=True)
def get_task_type(task_type_id: str, store: DocumentStore = Depends(get_store)):
    return model_resources.retrieve_model(
        task_type_id, TASK_TYPE, lambda identifier: repo_task_types.search_task_type(store, identifier)
    )


@router.put("/{task_type_id}", response_model=TaskType, response_model_exclude_none=True)
def update_task_type(
    task_type_id: str,
    task_type: TaskType,
    store: DocumentStore = Depends(get_store),
    context: ValidationContext = Depends(get_validation_context),
):
    return model_resources.update_model(
        task_type_id,
        task_type,
        TASK_TYPE,
        lambda identifier: repo_task_types.search_task_type(store, identifier),
        lambda model: repo_task_types.update_task_type(store, model),
        context,
    )


@router.patch("/{task_type_id}", response_model=TaskType, response_model_exclude_none=True)
def merge_task_type(
    task_type_id: str,
    task_type: TaskType,
    store: DocumentStore = Depends(get_store),
    context: ValidationContext = Depends(get_validation_context),
):
    return model_resources.merge_model(
        task_type_id,
        task_type,
        TASK_TYPE,
        lambda identifier: repo_task_types.search_task_type(store, identifier),
        lambda model: repo_task_types.update_task_type(store, model),
        context,
    )


@router.delete("/{task_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task_type(task_type_id: str, store: DocumentStore = Depends(get_store)):
    model_resources.delete_model(
        task_type_id, TASK_TYPE, lambda identifier: repo_task_types.delete_task_type(store, identifier)
    )
    return None
