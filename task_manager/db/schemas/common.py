"""
Shared base for the record kinds and the API envelopes.
"""
from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Keys that only change as a side effect of persisting a record.
UPDATE_ONLY_KEYS = ("_lastUpdateTs",)


class RecordModel(BaseModel):
    """Base for every stored record kind; camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def has_identifier(self) -> bool:
        return False

    def same_identity(self, other: "RecordModel") -> bool:
        return False

    def validate_model(self, code_prefix: str, context=None, *, creating: bool = False) -> None:
        """Check and normalize the fields in place; raise ValidationError on failure."""

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_patch(self) -> Dict[str, Any]:
        """Every field keyed by alias; unset fields map to ``None`` so the store drops them."""
        patch: Dict[str, Any] = {key: None for key in self.model_dump(by_alias=True)}
        patch.update(self.to_document())
        return patch

    def equals_ignoring_update(self, other: "RecordModel") -> bool:
        mine = self.to_document()
        theirs = other.to_document()
        for key in UPDATE_ONLY_KEYS:
            mine.pop(key, None)
            theirs.pop(key, None)
        return mine == theirs


class ErrorMessage(BaseModel):
    code: str
    message: str


class PageBase(BaseModel):
    offset: int = 0
    total: int = 0
    model_config = ConfigDict(populate_by_name=True)
