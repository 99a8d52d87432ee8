from unittest.mock import Mock

import pytest

from task_manager.db.query import MATCH_ALL, Equals, Sort, SortKey
from task_manager.db.repositories.documents import (
    delete_one_document,
    find_one_document,
    from_document,
    search_page_object,
    store_one_document,
    update_one_document,
)
from task_manager.errors import NotFoundError, StorageError, ValidationError


def test_page_fetches_with_offset_and_limit():
    store = Mock()
    store.count.return_value = 5
    store.find_page.return_value = [{"_id": "a", "name": "A"}, {"_id": "b", "name": "B"}]
    sort = Sort((SortKey("name"),))

    page = search_page_object(store, "taskTypes", MATCH_ALL, sort, 2, 2, "taskTypes")

    assert page == {"offset": 2, "total": 5, "taskTypes": [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}]}
    store.count.assert_called_once_with("taskTypes", MATCH_ALL, unwind=())
    store.find_page.assert_called_once_with(
        "taskTypes", MATCH_ALL, sort=sort, skip=2, limit=2, projection=None, unwind=()
    )


@pytest.mark.parametrize("total,offset", [(0, 0), (3, 3), (3, 10)])
def test_empty_or_out_of_range_page_skips_fetch(total, offset):
    store = Mock()
    store.count.return_value = total

    page = search_page_object(store, "tasks", MATCH_ALL, None, offset, 10, "tasks")

    assert page == {"offset": offset, "total": total, "tasks": []}
    store.find_page.assert_not_called()


def test_map_item_and_unwind_are_forwarded():
    store = Mock()
    store.count.return_value = 1
    store.find_page.return_value = [{"_id": "t1", "transactions": {"id": "x"}}]

    page = search_page_object(
        store,
        "tasks",
        MATCH_ALL,
        None,
        0,
        10,
        "transactions",
        unwind=("transactions",),
        map_item=lambda row: row["transactions"],
    )

    assert page["transactions"] == [{"id": "x"}]
    assert store.count.call_args.kwargs["unwind"] == ("transactions",)


def test_count_failure_propagates_without_fetch():
    store = Mock()
    store.count.side_effect = StorageError("Cannot count")

    with pytest.raises(StorageError):
        search_page_object(store, "tasks", MATCH_ALL, None, 0, 10, "tasks")
    store.find_page.assert_not_called()


def test_find_one_missing_document():
    store = Mock()
    store.find_one.return_value = None
    with pytest.raises(NotFoundError):
        find_one_document(store, "tasks", Equals("_id", "x"))


def test_store_rejects_caller_identifier():
    store = Mock()
    with pytest.raises(ValidationError) as exc:
        store_one_document(store, "tasks", {"id": "mine"}, code="bad_task")
    assert exc.value.code == "bad_task.id"
    store.save.assert_not_called()


def test_store_returns_document_with_assigned_id():
    store = Mock()
    store.save.return_value = "new-id"
    stored = store_one_document(store, "tasks", {"name": "x", "_id": None})
    assert stored == {"name": "x", "id": "new-id"}
    store.save.assert_called_once_with("tasks", {"name": "x"})


def test_update_and_delete_require_exactly_one_match():
    store = Mock()
    store.update_one.return_value = 0
    store.remove_one.return_value = 0
    with pytest.raises(NotFoundError):
        update_one_document(store, "tasks", Equals("_id", "x"), {"id": "x", "name": "n"})
    store.update_one.assert_called_once_with("tasks", Equals("_id", "x"), {"name": "n"})
    with pytest.raises(NotFoundError):
        delete_one_document(store, "tasks", Equals("_id", "x"))


def test_from_document_renames_identifier():
    assert from_document({"_id": "a", "v": 1}) == {"id": "a", "v": 1}
    assert from_document({"v": 1}) == {"v": 1}
