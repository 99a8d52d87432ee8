"""
Validation capability shared by every record kind and by the merge engine.

Each helper receives the code prefix of the record being checked and raises
:class:`~task_manager.errors.ValidationError` tagged ``<prefix>.<field>`` on
failure. Helpers return the normalized value (trimmed strings, empty -> None)
so callers assign it back onto the record.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence

from task_manager.errors import NotFoundError, PeerServiceError, ValidationError
from task_manager.utils.clock import now_ts

if TYPE_CHECKING:
    from task_manager.db.schemas.task_types import TaskType
    from task_manager.services.peers import PeerServices

logger = logging.getLogger(__name__)

ID_MAX_SIZE = 255
NAME_MAX_SIZE = 80
DESCRIPTION_MAX_SIZE = 1023


def field_code(code_prefix: str, field_name: str) -> str:
    return f"{code_prefix}.{field_name}"


def element_code(code_prefix: str, index: int) -> str:
    return f"{code_prefix}[{index}]"


def validate_nullable_string_field(code_prefix: str, field_name: str, max_size: int, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    if max_size > 0 and len(trimmed) > max_size:
        raise ValidationError(
            field_code(code_prefix, field_name),
            f"The '{trimmed}' is too large. The maximum length is '{max_size}'.",
        )
    return trimmed


def validate_string_field(code_prefix: str, field_name: str, max_size: int, value: Optional[str]) -> str:
    trimmed = validate_nullable_string_field(code_prefix, field_name, max_size, value)
    if trimmed is None:
        raise ValidationError(field_code(code_prefix, field_name), "The field cannot be null or empty.")
    return trimmed


def validate_nullable_string_list(code_prefix: str, field_name: str, max_size: int, values: Optional[Sequence[str]]) -> Optional[List[str]]:
    """Trim every entry and drop the empty ones; ``None`` stays ``None``."""
    if values is None:
        return None
    result: List[str] = []
    for index, value in enumerate(values):
        trimmed = validate_nullable_string_field(code_prefix, f"{field_name}[{index}]", max_size, value)
        if trimmed is not None:
            result.append(trimmed)
    return result


def validate_timestamp_field(code_prefix: str, field_name: str, value: Optional[int]) -> Optional[int]:
    if value is not None and value < 0:
        raise ValidationError(field_code(code_prefix, field_name), f"The time stamp '{value}' cannot be negative.")
    return value


def validate_list(items, code_prefix: str, context: Optional["ValidationContext"] = None, *, creating: bool = False):
    """Validate each element of a child list under ``<prefix>[<index>]``."""
    if items is None:
        return None
    for index, item in enumerate(items):
        item.validate_model(element_code(code_prefix, index), context, creating=creating)
    return items


def check_unique_keys(code_prefix: str, key_name: str, keys: Iterable[Optional[str]]) -> None:
    """Reject a child list where two elements share the same identifying key."""
    seen = set()
    for index, key in enumerate(keys):
        if key is None:
            continue
        if key in seen:
            raise ValidationError(
                field_code(element_code(code_prefix, index), key_name),
                f"The '{key}' is duplicated.",
            )
        seen.add(key)


@dataclass
class ValidationContext:
    """Collaborators consulted by referential checks.

    Any collaborator left as ``None`` disables the checks that need it.
    """
    task_type_lookup: Optional[Callable[[str], "TaskType"]] = None
    peers: Optional["PeerServices"] = None
    clock: Callable[[], int] = now_ts

    def find_task_type(self, code: str, task_type_id: Optional[str]) -> Optional["TaskType"]:
        if self.task_type_lookup is None or task_type_id is None:
            return None
        try:
            return self.task_type_lookup(task_type_id)
        except NotFoundError as e:
            raise ValidationError(code, f"The task type '{task_type_id}' is not defined.") from e

    def check_profile(self, code: str, profile_id: Optional[str]) -> None:
        if self.peers is None or profile_id is None:
            return
        self._check_exists(code, "profile", profile_id, self.peers.profile_manager.profile_exists)

    def check_app(self, code: str, app_id: Optional[str]) -> None:
        if self.peers is None or app_id is None:
            return
        self._check_exists(code, "application", app_id, self.peers.service_api.app_exists)

    @staticmethod
    def _check_exists(code: str, kind: str, identifier: str, exists: Callable[[str], bool]) -> None:
        try:
            found = exists(identifier)
        except PeerServiceError as e:
            logger.warning(f"Cannot verify {kind} '{identifier}': {e.message}")
            raise ValidationError(code, f"Cannot verify the {kind} '{identifier}'.") from e
        if not found:
            raise ValidationError(code, f"The {kind} '{identifier}' is not defined.")


def context_now(context: Optional[ValidationContext]) -> int:
    return context.clock() if context is not None else now_ts()
