"""
API dependency helpers.

Resolves the document store, the validation context and the query
parameters shared by the paginated search endpoints.
"""
from dataclasses import dataclass, replace
from functools import partial
from typing import List, Optional

from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from task_manager.db.database import get_db
from task_manager.db.query_builder import parse_query_values
from task_manager.db.repositories import task_types as repo_task_types
from task_manager.db.repositories.tasks import MessageFilters, TaskFilters, TransactionFilters
from task_manager.db.storage import DocumentStore, SqlDocumentStore
from task_manager.services.peers import PeerServices, get_peer_services
from task_manager.utils.settings import get_settings
from task_manager.validations import ValidationContext


def get_store(db: Session = Depends(get_db)) -> DocumentStore:
    return SqlDocumentStore(db)


def get_peers() -> PeerServices:
    return get_peer_services()


def get_validation_context(
    store: DocumentStore = Depends(get_store),
    peers: PeerServices = Depends(get_peers),
) -> ValidationContext:
    return ValidationContext(
        task_type_lookup=partial(repo_task_types.search_task_type, store),
        peers=peers,
    )


@dataclass
class PageParams:
    offset: int
    limit: int


def get_page_params(
    offset: int = Query(0, ge=0, description="Index of the first item to return."),
    limit: Optional[int] = Query(None, ge=0, description="Maximum number of items to return."),
) -> PageParams:
    settings = get_settings()
    if limit is None:
        limit = settings.default_limit
    if limit > settings.max_limit:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"limit cannot be greater than {settings.max_limit}",
        )
    return PageParams(offset=offset, limit=limit)


def _values(raw: Optional[List[str]]) -> Optional[List[str]]:
    return parse_query_values(raw)


def get_task_filters(
    app_id: Optional[str] = Query(None, alias="appId"),
    requester_id: Optional[str] = Query(None, alias="requesterId"),
    task_type_id: Optional[str] = Query(None, alias="taskTypeId"),
    goal_name: Optional[str] = Query(None, alias="goalName"),
    goal_description: Optional[str] = Query(None, alias="goalDescription"),
    goal_keywords: Optional[List[str]] = Query(None, alias="goalKeywords"),
    start_from: Optional[int] = Query(None, alias="startFrom"),
    start_to: Optional[int] = Query(None, alias="startTo"),
    end_from: Optional[int] = Query(None, alias="endFrom"),
    end_to: Optional[int] = Query(None, alias="endTo"),
    deadline_from: Optional[int] = Query(None, alias="deadlineFrom"),
    deadline_to: Optional[int] = Query(None, alias="deadlineTo"),
    creation_from: Optional[int] = Query(None, alias="creationFrom"),
    creation_to: Optional[int] = Query(None, alias="creationTo"),
    update_from: Optional[int] = Query(None, alias="updateFrom"),
    update_to: Optional[int] = Query(None, alias="updateTo"),
    has_close_ts: Optional[bool] = Query(None, alias="hasCloseTs"),
    close_from: Optional[int] = Query(None, alias="closeFrom"),
    close_to: Optional[int] = Query(None, alias="closeTo"),
) -> TaskFilters:
    return TaskFilters(
        app_id=app_id,
        requester_id=requester_id,
        task_type_id=task_type_id,
        goal_name=goal_name,
        goal_description=goal_description,
        goal_keywords=_values(goal_keywords),
        start_from=start_from,
        start_to=start_to,
        end_from=end_from,
        end_to=end_to,
        deadline_from=deadline_from,
        deadline_to=deadline_to,
        creation_from=creation_from,
        creation_to=creation_to,
        update_from=update_from,
        update_to=update_to,
        has_close_ts=has_close_ts,
        close_from=close_from,
        close_to=close_to,
    )


def _related_task_filters(
    task_id: Optional[str] = Query(None, alias="taskId"),
    requester_id: Optional[str] = Query(None, alias="requesterId"),
    task_type_id: Optional[str] = Query(None, alias="taskTypeId"),
    goal_name: Optional[str] = Query(None, alias="goalName"),
    goal_description: Optional[str] = Query(None, alias="goalDescription"),
    goal_keywords: Optional[List[str]] = Query(None, alias="goalKeywords"),
    task_creation_from: Optional[int] = Query(None, alias="taskCreationFrom"),
    task_creation_to: Optional[int] = Query(None, alias="taskCreationTo"),
    task_update_from: Optional[int] = Query(None, alias="taskUpdateFrom"),
    task_update_to: Optional[int] = Query(None, alias="taskUpdateTo"),
    has_close_ts: Optional[bool] = Query(None, alias="hasCloseTs"),
    close_from: Optional[int] = Query(None, alias="closeFrom"),
    close_to: Optional[int] = Query(None, alias="closeTo"),
) -> TaskFilters:
    return TaskFilters(
        task_id=task_id,
        requester_id=requester_id,
        task_type_id=task_type_id,
        goal_name=goal_name,
        goal_description=goal_description,
        goal_keywords=_values(goal_keywords),
        creation_from=task_creation_from,
        creation_to=task_creation_to,
        update_from=task_update_from,
        update_to=task_update_to,
        has_close_ts=has_close_ts,
        close_from=close_from,
        close_to=close_to,
    )


def get_transaction_task_filters(
    app_id: Optional[str] = Query(None, alias="appId"),
    filters: TaskFilters = Depends(_related_task_filters),
) -> TaskFilters:
    """Task level filters of the transaction search."""
    return replace(filters, app_id=app_id)


def get_message_task_filters(
    task_app_id: Optional[str] = Query(None, alias="taskAppId", description="Application of the task; 'appId' filters the message."),
    filters: TaskFilters = Depends(_related_task_filters),
) -> TaskFilters:
    """Task level filters of the message search."""
    return replace(filters, app_id=task_app_id)


def get_transaction_filters(
    id: Optional[str] = Query(None),
    label: Optional[str] = Query(None),
    actioneer_id: Optional[str] = Query(None, alias="actioneerId"),
    creation_from: Optional[int] = Query(None, alias="creationFrom"),
    creation_to: Optional[int] = Query(None, alias="creationTo"),
    update_from: Optional[int] = Query(None, alias="updateFrom"),
    update_to: Optional[int] = Query(None, alias="updateTo"),
) -> TransactionFilters:
    return TransactionFilters(
        id=id,
        label=label,
        actioneer_id=actioneer_id,
        creation_from=creation_from,
        creation_to=creation_to,
        update_from=update_from,
        update_to=update_to,
    )


def get_message_transaction_filters(
    transaction_id: Optional[str] = Query(None, alias="transactionId"),
    transaction_label: Optional[str] = Query(None, alias="transactionLabel"),
    transaction_actioneer_id: Optional[str] = Query(None, alias="transactionActioneerId"),
    transaction_creation_from: Optional[int] = Query(None, alias="transactionCreationFrom"),
    transaction_creation_to: Optional[int] = Query(None, alias="transactionCreationTo"),
    transaction_update_from: Optional[int] = Query(None, alias="transactionUpdateFrom"),
    transaction_update_to: Optional[int] = Query(None, alias="transactionUpdateTo"),
) -> TransactionFilters:
    return TransactionFilters(
        id=transaction_id,
        label=transaction_label,
        actioneer_id=transaction_actioneer_id,
        creation_from=transaction_creation_from,
        creation_to=transaction_creation_to,
        update_from=transaction_update_from,
        update_to=transaction_update_to,
    )


def get_message_filters(
    app_id: Optional[str] = Query(None, alias="appId"),
    receiver_id: Optional[str] = Query(None, alias="receiverId"),
    label: Optional[str] = Query(None),
) -> MessageFilters:
    return MessageFilters(app_id=app_id, receiver_id=receiver_id, label=label)


def get_order(order: Optional[List[str]] = Query(None, description="Comma separated fields; '-' sorts descending.")) -> Optional[List[str]]:
    return order
