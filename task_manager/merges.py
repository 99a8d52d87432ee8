"""
Merge engine used by PATCH style partial updates.

A merge applies a user supplied *source* record onto a stored *target* of
the same kind. Unset (``None``) source fields keep the target value. Child
lists are matched by identity through :func:`merge_list`.

Record kinds taking part in a merge implement:

* ``validate_model(code_prefix, context, *, creating=False)``
* ``merge(source, code_prefix, context)`` returning a new validated record
* ``has_identifier()`` and ``same_identity(other)``
"""
from __future__ import annotations

from typing import List, Optional, TypeVar

from task_manager.errors import ValidationError
from task_manager.validations import ValidationContext, element_code

T = TypeVar("T")
R = TypeVar("R")


def merge_field(target_value: Optional[T], source_value: Optional[T]) -> Optional[T]:
    """Return the source value when it is set, otherwise keep the target value."""
    return source_value if source_value is not None else target_value


def merge_nested(target: Optional[R], source: Optional[R], code_prefix: str, context: Optional[ValidationContext] = None) -> Optional[R]:
    """Merge a single nested record.

    When only the source is present it must validate on its own.
    """
    if source is None:
        return target
    if target is None:
        created = source.model_copy(deep=True)
        created.validate_model(code_prefix, context, creating=True)
        return created
    return target.merge(source, code_prefix, context)


def merge_list(
    target: Optional[List[R]],
    source: Optional[List[R]],
    code_prefix: str,
    context: Optional[ValidationContext] = None,
) -> Optional[List[R]]:
    """Merge two child lists whose elements may carry an identity.

    Source elements are processed in order. One carrying an identifier
    consumes the first unconsumed target element with the same identity and
    is merged into it. Anything else is validated as a brand new element.
    The result follows source order; target elements not selected by any
    source element are dropped.
    """
    if source is None:
        return target

    originals = list(target or [])
    merged: List[R] = []
    for index, element in enumerate(source):
        code = element_code(code_prefix, index)
        original = _consume_original(originals, element)
        if original is not None:
            if not isinstance(element, type(original)):
                raise ValidationError(code, f"Expected a {type(original).__name__} to merge.")
            merged.append(original.merge(element, code, context))
        else:
            created = element.model_copy(deep=True)
            created.validate_model(code, context, creating=True)
            merged.append(created)
    return merged


def _consume_original(originals: List[R], element: R) -> Optional[R]:
    if not element.has_identifier():
        return None
    for position, original in enumerate(originals):
        if original.same_identity(element):
            return originals.pop(position)
    return None
