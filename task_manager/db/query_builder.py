"""
Compiles optional, loosely typed filter parameters into query descriptors.

A textual value wrapped in slashes (``/^Task .*/``) becomes a regular
expression predicate, anything else an exact match. Absent or empty
parameters contribute nothing, and every present predicate is AND-combined.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional, Sequence, Union

from task_manager.errors import ValidationError

from .query import MATCH_ALL, And, ElemMatch, Equals, Exists, Predicate, Range, Regex, Sort, SortKey

OrderSpec = Union[str, Sequence[str], None]


def parse_query_values(raw: Union[str, Sequence[str], None]) -> Optional[List[str]]:
    """Split a comma separated parameter; trimmed, empties dropped, ``None`` when nothing is left."""
    if raw is None:
        return None
    chunks = [raw] if isinstance(raw, str) else list(raw)
    values = []
    for chunk in chunks:
        for value in chunk.split(","):
            value = value.strip()
            if value:
                values.append(value)
    return values or None


def is_regex(value: str) -> bool:
    return len(value) >= 2 and value.startswith("/") and value.endswith("/")


class QueryBuilder:
    """Accumulates predicates; ``build()`` returns their conjunction."""

    def __init__(self, code_prefix: str = "bad"):
        self.code_prefix = code_prefix
        self._predicates: List[Predicate] = []

    def _code(self, name: str) -> str:
        return f"{self.code_prefix}_{name}"

    def _matcher(self, path: str, value: str, name: str) -> Predicate:
        if is_regex(value):
            try:
                pattern = re.compile(value[1:-1])
            except re.error as e:
                raise ValidationError(self._code(name), f"The pattern '{value}' is not a valid regular expression: {e}") from e
            return Regex(path, pattern)
        return Equals(path, value)

    def with_equal_or_regex(self, path: str, value: Optional[str], name: Optional[str] = None) -> "QueryBuilder":
        if value is not None and value.strip():
            self._predicates.append(self._matcher(path, value.strip(), name or path))
        return self

    def with_equal(self, path: str, value) -> "QueryBuilder":
        if value is not None:
            self._predicates.append(Equals(path, value))
        return self

    def with_equal_or_regex_values(self, path: str, values: Optional[Iterable[str]], name: Optional[str] = None) -> "QueryBuilder":
        """Every value must match at least one element of the array at ``path``."""
        if values:
            for value in values:
                self._predicates.append(ElemMatch(path, self._matcher("", value, name or path)))
        return self

    def with_range(self, path: str, lower: Optional[float], upper: Optional[float]) -> "QueryBuilder":
        # lower > upper is accepted and simply matches nothing
        if lower is not None or upper is not None:
            self._predicates.append(Range(path, lower, upper))
        return self

    def with_exists(self, path: str, present: Optional[bool]) -> "QueryBuilder":
        if present is not None:
            self._predicates.append(Exists(path, present))
        return self

    def build(self) -> Predicate:
        if not self._predicates:
            return MATCH_ALL
        if len(self._predicates) == 1:
            return self._predicates[0]
        return And(tuple(self._predicates))


def parse_order(order: OrderSpec, fields: Mapping[str, str], code_prefix: str = "bad_order") -> Optional[Sort]:
    """Parse ``name,-other,+third`` into a sort descriptor.

    ``fields`` maps each caller-facing name to the document path it sorts.
    An unknown or repeated name fails with ``<code_prefix>[<index>]``.
    """
    values = parse_query_values(order)
    if values is None:
        return None
    keys = []
    seen = set()
    for index, value in enumerate(values):
        descending = value.startswith("-")
        name = value[1:].strip() if value[0] in "+-" else value
        path = fields.get(name)
        if path is None:
            raise ValidationError(f"{code_prefix}[{index}]", f"The field '{name}' can not be used to order.")
        if path in seen:
            raise ValidationError(f"{code_prefix}[{index}]", f"The field '{name}' is already used to order.")
        seen.add(path)
        keys.append(SortKey(path, descending))
    return Sort(tuple(keys))
