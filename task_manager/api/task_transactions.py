"""
Paginated search over the transactions of every task.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends

from task_manager.api.deps import (
    PageParams,
    get_order,
    get_page_params,
    get_store,
    get_transaction_filters,
    get_transaction_task_filters,
)
from task_manager.db.repositories import tasks as repo_tasks
from task_manager.db.repositories.tasks import TaskFilters, TransactionFilters
from task_manager.db.schemas import TaskTransactionsPage
from task_manager.db.storage import DocumentStore

router = APIRouter(prefix="/taskTransactions", tags=["task-transactions"])


@router.get("", response_model=TaskTransactionsPage, response_model_exclude_none=True)
def get_task_transactions_page(
    task_filters: TaskFilters = Depends(get_transaction_task_filters),
    transaction_filters: TransactionFilters = Depends(get_transaction_filters),
    order: Optional[List[str]] = Depends(get_order),
    page: PageParams = Depends(get_page_params),
    store: DocumentStore = Depends(get_store),
):
    query = repo_tasks.create_task_transactions_page_query(task_filters, transaction_filters)
    sort = repo_tasks.create_task_transactions_page_sort(order)
    return repo_tasks.retrieve_task_transactions_page(store, query, sort, page.offset, page.limit)
