"""
Best-effort clean up once a profile has been deleted.

The tasks it requested, the transactions it actioned and the messages it
received are removed by independent steps running concurrently. Each step
opens its own session; a failing step is logged and never undoes or stops
the others.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from task_manager.db import database
from task_manager.db.repositories import tasks as repo_tasks
from task_manager.db.storage import DocumentStore, SqlDocumentStore
from task_manager.utils.settings import get_settings

from .peers import PeerServices, get_peer_services

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def _with_store(session_factory: SessionFactory, action: Callable[[DocumentStore], object]):
    db = session_factory()
    try:
        return action(SqlDocumentStore(db))
    finally:
        db.close()


def delete_tasks_with_requester(session_factory: SessionFactory, peers: PeerServices, profile_id: str) -> int:
    task_ids = _with_store(session_factory, lambda store: repo_tasks.delete_all_tasks_with_requester(store, profile_id))
    for task_id in task_ids:
        peers.notify_task_deleted(task_id)
    logger.info(f"Removed {len(task_ids)} tasks requested by the deleted profile '{profile_id}'")
    return len(task_ids)


def delete_transactions_by_actioneer(session_factory: SessionFactory, profile_id: str) -> int:
    modified = _with_store(session_factory, lambda store: repo_tasks.delete_all_transactions_by_actioneer(store, profile_id))
    logger.info(f"Removed the transactions of the deleted profile '{profile_id}' from {modified} tasks")
    return modified


def delete_messages_with_receiver(session_factory: SessionFactory, profile_id: str) -> int:
    modified = _with_store(session_factory, lambda store: repo_tasks.delete_all_messages_with_receiver(store, profile_id))
    logger.info(f"Removed the messages for the deleted profile '{profile_id}' from {modified} tasks")
    return modified


def profile_deleted(
    profile_id: str,
    *,
    session_factory: Optional[SessionFactory] = None,
    peers: Optional[PeerServices] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, bool]:
    """Run the clean up steps and report which of them succeeded."""
    session_factory = session_factory or database.new_session
    peers = peers or get_peer_services()
    workers = max_workers or get_settings().cascade_max_workers

    steps = {
        "tasks": lambda: delete_tasks_with_requester(session_factory, peers, profile_id),
        "transactions": lambda: delete_transactions_by_actioneer(session_factory, profile_id),
        "messages": lambda: delete_messages_with_receiver(session_factory, profile_id),
    }
    outcomes: Dict[str, bool] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="profile-cascade") as executor:
        futures = {executor.submit(step): name for name, step in steps.items()}
        for future in as_completed(futures):
            name = futures[future]
            try:
                future.result()
                outcomes[name] = True
            except Exception:
                logger.exception(f"Cannot remove the {name} of the deleted profile '{profile_id}'")
                outcomes[name] = False
    return outcomes
