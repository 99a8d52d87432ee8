from unittest.mock import Mock

import pytest

from task_manager.db.schemas import TaskType
from task_manager.errors import NotFoundError, PeerServiceError, ValidationError
from task_manager.validations import (
    ValidationContext,
    check_unique_keys,
    context_now,
    validate_nullable_string_field,
    validate_nullable_string_list,
    validate_string_field,
    validate_timestamp_field,
)


def test_nullable_string_is_trimmed_and_empty_becomes_none():
    assert validate_nullable_string_field("bad_task", "appId", 10, "  app  ") == "app"
    assert validate_nullable_string_field("bad_task", "appId", 10, "   ") is None
    assert validate_nullable_string_field("bad_task", "appId", 10, None) is None


def test_string_too_large_is_rejected_with_field_code():
    with pytest.raises(ValidationError) as exc:
        validate_nullable_string_field("bad_taskType", "name", 3, "abcd")
    assert exc.value.code == "bad_taskType.name"


def test_required_string_rejects_blank():
    with pytest.raises(ValidationError) as exc:
        validate_string_field("bad_task", "requesterId", 255, " ")
    assert exc.value.code == "bad_task.requesterId"
    assert exc.value.message == "The field cannot be null or empty."


def test_string_list_drops_empty_entries():
    assert validate_nullable_string_list("bad", "keywords", 255, [" a", "", "b "]) == ["a", "b"]
    assert validate_nullable_string_list("bad", "keywords", 255, None) is None


def test_string_list_reports_element_index():
    with pytest.raises(ValidationError) as exc:
        validate_nullable_string_list("bad", "keywords", 2, ["ok", "toolong"])
    assert exc.value.code == "bad.keywords[1]"


def test_negative_timestamp_rejected():
    assert validate_timestamp_field("bad_task", "startTs", 0) == 0
    with pytest.raises(ValidationError) as exc:
        validate_timestamp_field("bad_task", "startTs", -1)
    assert exc.value.code == "bad_task.startTs"


def test_duplicate_keys_point_at_second_occurrence():
    check_unique_keys("bad_task.norms", "id", ["a", None, "b", None])
    with pytest.raises(ValidationError) as exc:
        check_unique_keys("bad_task.norms", "id", ["a", "b", "a"])
    assert exc.value.code == "bad_task.norms[2].id"


def test_context_translates_missing_task_type():
    lookup = Mock(side_effect=NotFoundError("not_found", "missing"))
    context = ValidationContext(task_type_lookup=lookup)
    with pytest.raises(ValidationError) as exc:
        context.find_task_type("bad_task.taskTypeId", "type-1")
    assert exc.value.code == "bad_task.taskTypeId"
    lookup.assert_called_once_with("type-1")


def test_context_returns_task_type():
    task_type = TaskType(id="type-1", name="Type")
    context = ValidationContext(task_type_lookup=lambda identifier: task_type)
    assert context.find_task_type("code", "type-1") is task_type
    assert context.find_task_type("code", None) is None


def test_context_without_collaborators_skips_checks():
    context = ValidationContext()
    assert context.find_task_type("code", "any") is None
    context.check_profile("code", "any")
    context.check_app("code", "any")


def test_unknown_profile_is_a_validation_error():
    peers = Mock()
    peers.profile_manager.profile_exists.return_value = False
    context = ValidationContext(peers=peers)
    with pytest.raises(ValidationError) as exc:
        context.check_profile("bad_task.requesterId", "p1")
    assert exc.value.code == "bad_task.requesterId"


def test_unreachable_service_api_is_a_validation_error():
    peers = Mock()
    peers.service_api.app_exists.side_effect = PeerServiceError("down")
    context = ValidationContext(peers=peers)
    with pytest.raises(ValidationError) as exc:
        context.check_app("bad_task.appId", "app-1")
    assert exc.value.code == "bad_task.appId"
    assert isinstance(exc.value.__cause__, PeerServiceError)


def test_context_now_uses_clock():
    assert context_now(ValidationContext(clock=lambda: 42)) == 42
    assert context_now(None) > 0
