"""
Pydantic record kinds and page envelopes.
"""

# Import order: leaves first so nested kinds resolve
from .common import ErrorMessage, PageBase, RecordModel
from .norms import Norm, NormOperator
from .attributes import TaskAttribute, TaskAttributeType
from .task_types import TaskTransactionType, TaskType, TaskTypesPage
from .transactions import Message, MessagesPage, TaskTransaction, TaskTransactionsPage
from .tasks import Task, TaskGoal, TasksPage

__all__ = [
    "ErrorMessage",
    "PageBase",
    "RecordModel",
    "Norm",
    "NormOperator",
    "TaskAttribute",
    "TaskAttributeType",
    "TaskTransactionType",
    "TaskType",
    "TaskTypesPage",
    "Message",
    "MessagesPage",
    "TaskTransaction",
    "TaskTransactionsPage",
    "Task",
    "TaskGoal",
    "TasksPage",
]
