"""
Abstract query and sort descriptors evaluated by the document store.

A query is a tree of predicates over dotted field paths. Paths traverse
nested objects and arrays the way a document database does: ``goal.keywords``
on a task yields every keyword, ``transactions.label`` yields the label of
every transaction. A leaf predicate matches when *any* value reached by its
path satisfies it.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Pattern, Sequence, Tuple

_MISSING = object()


def iter_path_values(document: Any, path: str) -> Iterator[Any]:
    """Yield every value reachable from ``document`` following ``path``.

    Arrays met along the way (and at the end) are flattened. An empty path
    yields the document itself.
    """
    if not path:
        yield from _flatten(document)
        return
    yield from _walk(document, path.split("."))


def _walk(value: Any, keys: Sequence[str]) -> Iterator[Any]:
    if not keys:
        yield from _flatten(value)
        return
    if isinstance(value, list):
        for item in value:
            yield from _walk(item, keys)
        return
    if isinstance(value, dict):
        child = value.get(keys[0], _MISSING)
        if child is not _MISSING:
            yield from _walk(child, keys[1:])


def _flatten(value: Any) -> Iterator[Any]:
    if isinstance(value, list):
        yield value
        for item in value:
            if not isinstance(item, list):
                yield item
    else:
        yield value


def first_path_value(document: Any, path: str) -> Any:
    """Value at ``path`` without array flattening; ``None`` when absent."""
    value = document
    for key in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
        if value is None:
            return None
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Predicate:
    """Base class of the query tree nodes."""

    def matches(self, document: Any) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError


@dataclass(frozen=True)
class Equals(Predicate):
    path: str
    value: Any

    def matches(self, document: Any) -> bool:
        return any(candidate == self.value for candidate in iter_path_values(document, self.path))


@dataclass(frozen=True)
class Regex(Predicate):
    path: str
    pattern: Pattern[str]

    def matches(self, document: Any) -> bool:
        return any(
            isinstance(candidate, str) and self.pattern.search(candidate) is not None
            for candidate in iter_path_values(document, self.path)
        )


@dataclass(frozen=True)
class Range(Predicate):
    """Inclusive bounds; a ``None`` bound is open."""
    path: str
    lower: Optional[float] = None
    upper: Optional[float] = None

    def matches(self, document: Any) -> bool:
        for candidate in iter_path_values(document, self.path):
            if not _is_number(candidate):
                continue
            if self.lower is not None and candidate < self.lower:
                continue
            if self.upper is not None and candidate > self.upper:
                continue
            return True
        return False


@dataclass(frozen=True)
class Exists(Predicate):
    """Field present and non-null (``present=True``) or absent/null."""
    path: str
    present: bool = True

    def matches(self, document: Any) -> bool:
        found = any(candidate is not None for candidate in iter_path_values(document, self.path))
        return found if self.present else not found


@dataclass(frozen=True)
class ElemMatch(Predicate):
    """Some element of the array at ``path`` satisfies ``predicate``."""
    path: str
    predicate: Predicate

    def matches(self, document: Any) -> bool:
        elements = first_path_value(document, self.path)
        if not isinstance(elements, list):
            return False
        return any(self.predicate.matches(element) for element in elements)


@dataclass(frozen=True)
class And(Predicate):
    predicates: Tuple[Predicate, ...] = ()

    def matches(self, document: Any) -> bool:
        return all(predicate.matches(document) for predicate in self.predicates)


@dataclass(frozen=True)
class Or(Predicate):
    predicates: Tuple[Predicate, ...] = ()

    def matches(self, document: Any) -> bool:
        return any(predicate.matches(document) for predicate in self.predicates)


MATCH_ALL = And()


@dataclass(frozen=True)
class SortKey:
    path: str
    descending: bool = False


@dataclass(frozen=True)
class Sort:
    keys: Tuple[SortKey, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.keys)

    def paths(self) -> List[str]:
        return [key.path for key in self.keys]

    def apply(self, documents: List[Any]) -> List[Any]:
        """Return the documents ordered by the keys; the sort is stable."""
        ordered = list(documents)
        for key in reversed(self.keys):
            ordered.sort(key=lambda document: _sort_value(first_path_value(document, key.path)), reverse=key.descending)
        return ordered


def _sort_value(value: Any) -> Tuple[int, Any]:
    # Absent < numbers < strings < objects < arrays < booleans
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (5, value)
    if _is_number(value):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, dict):
        return (3, json.dumps(value, sort_keys=True))
    if isinstance(value, list):
        return (4, json.dumps(value, sort_keys=True))
    return (6, str(value))
