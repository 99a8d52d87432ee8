from unittest.mock import Mock

import pytest

from task_manager.db.query import MATCH_ALL
from task_manager.db.repositories import task_types as repo_task_types
from task_manager.db.repositories import tasks as repo_tasks
from task_manager.db.repositories.tasks import MessageFilters, TaskFilters, TransactionFilters
from task_manager.db.schemas import Message, Task, TaskGoal, TaskTransaction, TaskType
from task_manager.errors import NotFoundError, ValidationError


def _store_task(store, requester_id="p1", name="Dinner", start_ts=100, transactions=None, **values) -> Task:
    task = Task(
        task_type_id="type-1",
        requester_id=requester_id,
        app_id="app-1",
        goal=TaskGoal(name=name, keywords=["food"]),
        start_ts=start_ts,
        transactions=transactions,
        **values,
    )
    return repo_tasks.store_task(store, task)


def test_task_round_trip(store):
    stored = _store_task(store, transactions=[TaskTransaction(id="x1", label="accept", actioneer_id="p2")])
    assert stored.id
    assert stored.creation_ts is not None
    assert stored.creation_ts == stored.last_update_ts

    found = repo_tasks.search_task(store, stored.id)
    assert found == stored
    assert found.transactions[0].task_id == stored.id


def test_store_task_with_id_is_rejected(store):
    with pytest.raises(ValidationError) as exc:
        repo_tasks.store_task(store, Task(id="mine", requester_id="p1"))
    assert exc.value.code == "bad_task.id"


def test_search_missing_task(store):
    with pytest.raises(NotFoundError):
        repo_tasks.search_task(store, "missing")


def test_update_task_replaces_document(store):
    stored = _store_task(store, close_ts=500)
    stored.close_ts = None
    stored.app_id = "app-2"
    repo_tasks.update_task(store, stored)

    found = repo_tasks.search_task(store, stored.id)
    assert found.app_id == "app-2"
    assert found.close_ts is None
    assert found.creation_ts == stored.creation_ts


def test_update_and_delete_missing_task(store):
    with pytest.raises(NotFoundError):
        repo_tasks.update_task(store, Task(id="missing", requester_id="p1"))
    with pytest.raises(NotFoundError):
        repo_tasks.delete_task(store, "missing")


def test_delete_task(store):
    stored = _store_task(store)
    repo_tasks.delete_task(store, stored.id)
    with pytest.raises(NotFoundError):
        repo_tasks.search_task(store, stored.id)


def test_tasks_page_filters_window(store):
    _store_task(store, name="First", start_ts=100)
    second = _store_task(store, name="Second", start_ts=200)
    third = _store_task(store, name="Third", start_ts=300)

    query = repo_tasks.create_tasks_page_query(TaskFilters(start_from=150))
    sort = repo_tasks.create_tasks_page_sort("-startTs")
    page = repo_tasks.retrieve_tasks_page(store, query, sort, 0, 10)
    assert page.total == 2
    assert [task.id for task in page.tasks] == [third.id, second.id]

    page = repo_tasks.retrieve_tasks_page(store, query, sort, 1, 10)
    assert page.offset == 1
    assert [task.id for task in page.tasks] == [second.id]

    page = repo_tasks.retrieve_tasks_page(store, query, sort, 5, 10)
    assert page.total == 2
    assert page.tasks == []


def test_tasks_page_regex_and_keywords(store):
    _store_task(store, name="Dinner at home")
    _store_task(store, name="Lunch")
    query = repo_tasks.create_tasks_page_query(TaskFilters(goal_name="/^Din/", goal_keywords=["food"]))
    page = repo_tasks.retrieve_tasks_page(store, query, None, 0, 10)
    assert [task.goal.name for task in page.tasks] == ["Dinner at home"]


def test_open_tasks_filter(store):
    _store_task(store, name="Open")
    _store_task(store, name="Closed", close_ts=1000)
    query = repo_tasks.create_tasks_page_query(TaskFilters(has_close_ts=False))
    page = repo_tasks.retrieve_tasks_page(store, query, None, 0, 10)
    assert [task.goal.name for task in page.tasks] == ["Open"]


def test_transactions_page(store):
    first = _store_task(store, transactions=[
        TaskTransaction(id="x1", label="accept", actioneer_id="p2"),
        TaskTransaction(id="x2", label="decline", actioneer_id="p3"),
    ])
    _store_task(store, requester_id="p9", transactions=[TaskTransaction(id="x3", label="accept", actioneer_id="p2")])

    query = repo_tasks.create_task_transactions_page_query(TaskFilters(requester_id="p1"), TransactionFilters(label="accept"))
    page = repo_tasks.retrieve_task_transactions_page(store, query, None, 0, 10)
    assert page.total == 1
    assert page.transactions[0].id == "x1"
    assert page.transactions[0].task_id == first.id

    query = repo_tasks.create_task_transactions_page_query(TaskFilters(), TransactionFilters())
    sort = repo_tasks.create_task_transactions_page_sort("-id")
    page = repo_tasks.retrieve_task_transactions_page(store, query, sort, 0, 2)
    assert page.total == 3
    assert [t.id for t in page.transactions] == ["x3", "x2"]


def test_messages_page(store):
    _store_task(store, transactions=[
        TaskTransaction(id="x1", label="accept", messages=[
            Message(receiver_id="p1", label="hello"),
            Message(receiver_id="p2", label="bye"),
        ]),
        TaskTransaction(id="x2", label="decline", messages=[Message(receiver_id="p1", label="again")]),
    ])

    query = repo_tasks.create_messages_page_query(TaskFilters(), TransactionFilters(), MessageFilters(receiver_id="p1"))
    sort = repo_tasks.create_messages_page_sort("label")
    page = repo_tasks.retrieve_messages_page(store, query, sort, 0, 10)
    assert page.total == 2
    assert [m.label for m in page.messages] == ["again", "hello"]

    query = repo_tasks.create_messages_page_query(TaskFilters(), TransactionFilters(label="decline"), MessageFilters())
    page = repo_tasks.retrieve_messages_page(store, query, None, 0, 10)
    assert [m.label for m in page.messages] == ["again"]


def test_nested_pages_fetch_only_the_unwound_element():
    store = Mock()
    store.count.return_value = 1
    store.find_page.return_value = [{"_id": "t1", "transactions": {"id": "x1", "label": "accept"}}]

    page = repo_tasks.retrieve_task_transactions_page(store, MATCH_ALL, None, 0, 10)

    assert page.transactions[0].task_id == "t1"
    assert store.find_page.call_args.kwargs["projection"] == ("transactions",)

    store.find_page.return_value = [{"_id": "t1", "transactions": {"messages": {"receiverId": "p1", "label": "hi"}}}]
    page = repo_tasks.retrieve_messages_page(store, MATCH_ALL, None, 0, 10)

    assert [m.label for m in page.messages] == ["hi"]
    assert store.find_page.call_args.kwargs["projection"] == ("transactions.messages",)


def test_bad_transaction_filter_code_is_prefixed():
    with pytest.raises(ValidationError) as exc:
        repo_tasks.create_messages_page_query(TaskFilters(), TransactionFilters(label="/[/"), MessageFilters())
    assert exc.value.code == "bad_transactionLabel"


def test_cascade_primitives(store):
    mine = _store_task(store, requester_id="gone")
    other = _store_task(store, requester_id="p1", transactions=[
        TaskTransaction(id="x1", label="accept", actioneer_id="gone"),
        TaskTransaction(id="x2", label="accept", actioneer_id="p2", messages=[
            Message(receiver_id="gone", label="hi"),
            Message(receiver_id="p3", label="hi"),
        ]),
    ])

    assert repo_tasks.delete_all_tasks_with_requester(store, "gone") == [mine.id]
    assert repo_tasks.delete_all_transactions_by_actioneer(store, "gone") == 1
    assert repo_tasks.delete_all_messages_with_receiver(store, "gone") == 1

    remaining = repo_tasks.search_task(store, other.id)
    assert [t.id for t in remaining.transactions] == ["x2"]
    assert [m.receiver_id for m in remaining.transactions[0].messages] == ["p3"]


def test_task_types_repository(store):
    stored = repo_task_types.store_task_type(store, TaskType(name="Dinner", keywords=["food", "social"]))
    repo_task_types.store_task_type(store, TaskType(name="Lunch", keywords=["food"]))
    assert repo_task_types.search_task_type(store, stored.id) == stored

    query = repo_task_types.create_task_types_page_query(keywords=["social"])
    page = repo_task_types.retrieve_task_types_page(store, query, None, 0, 10)
    assert [t.name for t in page.task_types] == ["Dinner"]

    sort = repo_task_types.create_task_types_page_sort("-name")
    page = repo_task_types.retrieve_task_types_page(store, repo_task_types.create_task_types_page_query(), sort, 0, 10)
    assert [t.name for t in page.task_types] == ["Lunch", "Dinner"]

    repo_task_types.delete_task_type(store, stored.id)
    with pytest.raises(NotFoundError):
        repo_task_types.search_task_type(store, stored.id)
