"""
Paginated search over the messages sent while processing transactions.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends

from task_manager.api.deps import (
    PageParams,
    get_message_filters,
    get_message_task_filters,
    get_message_transaction_filters,
    get_order,
    get_page_params,
    get_store,
)
from task_manager.db.repositories import tasks as repo_tasks
from task_manager.db.repositories.tasks import MessageFilters, TaskFilters, TransactionFilters
from task_manager.db.schemas import MessagesPage
from task_manager.db.storage import DocumentStore

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("", response_model=MessagesPage, response_model_exclude_none=True)
def get_messages_page(
    task_filters: TaskFilters = Depends(get_message_task_filters),
    transaction_filters: TransactionFilters = Depends(get_message_transaction_filters),
    message_filters: MessageFilters = Depends(get_message_filters),
    order: Optional[List[str]] = Depends(get_order),
    page: PageParams = Depends(get_page_params),
    store: DocumentStore = Depends(get_store),
):
    query = repo_tasks.create_messages_page_query(task_filters, transaction_filters, message_filters)
    sort = repo_tasks.create_messages_page_sort(order)
    return repo_tasks.retrieve_messages_page(store, query, sort, page.offset, page.limit)
