"""Flows that grow a stored task: new transactions and new messages."""
from __future__ import annotations

import logging
from typing import Optional

from task_manager.db.repositories import tasks as repo_tasks
from task_manager.db.schemas import Message, TaskTransaction
from task_manager.db.storage import DocumentStore
from task_manager.errors import NotFoundError, ValidationError
from task_manager.validations import ValidationContext, context_now

from .model_resources import retrieve_model

logger = logging.getLogger(__name__)


def add_transaction(
    store: DocumentStore,
    task_id: str,
    transaction: TaskTransaction,
    context: Optional[ValidationContext] = None,
) -> TaskTransaction:
    task = retrieve_model(task_id, "task", lambda identifier: repo_tasks.search_task(store, identifier))
    if task.close_ts is not None:
        raise ValidationError("bad_taskTransaction.taskId", f"The task '{task_id}' is already closed.")

    transaction.task_id = task.id
    transaction.validate_model("bad_taskTransaction", context, creating=True)
    if context is not None:
        task_type = context.find_task_type("bad_taskTransaction.taskId", task.task_type_id)
        if task_type is not None and not task_type.declares_transaction(transaction.label):
            raise ValidationError(
                "bad_taskTransaction.label",
                f"The transaction '{transaction.label}' is not defined by the task type.",
            )

    task.transactions = [*(task.transactions or []), transaction]
    repo_tasks.update_task(store, task)
    logger.info(f"Added transaction '{transaction.id}' to task '{task_id}'")
    return transaction


def add_message(
    store: DocumentStore,
    task_id: str,
    transaction_id: str,
    message: Message,
    context: Optional[ValidationContext] = None,
) -> Message:
    task = retrieve_model(task_id, "task", lambda identifier: repo_tasks.search_task(store, identifier))
    transaction = next((t for t in task.transactions or [] if t.id == transaction_id), None)
    if transaction is None:
        raise NotFoundError(
            "not_found_taskTransaction",
            f"Does not exist a transaction '{transaction_id}' in the task '{task_id}'.",
        )

    message.validate_model("bad_message", context, creating=True)
    transaction.messages = [*(transaction.messages or []), message]
    transaction.last_update_ts = context_now(context)
    repo_tasks.update_task(store, task)
    logger.info(f"Added message '{message.label}' to transaction '{transaction_id}' of task '{task_id}'")
    return message
