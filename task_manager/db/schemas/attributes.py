from typing import Any, List, Optional

from task_manager.merges import merge_field
from task_manager.validations import (
    DESCRIPTION_MAX_SIZE,
    ID_MAX_SIZE,
    check_unique_keys,
    validate_list,
    validate_nullable_string_field,
    validate_string_field,
)
from .common import RecordModel


class TaskAttribute(RecordModel):
    """A named value attached to a task or a transaction; identified by ``name``."""
    name: Optional[str] = None
    value: Optional[Any] = None

    def has_identifier(self) -> bool:
        return self.name is not None

    def same_identity(self, other: RecordModel) -> bool:
        return isinstance(other, TaskAttribute) and self.name == other.name

    def validate_model(self, code_prefix, context=None, *, creating=False):
        self.name = validate_string_field(code_prefix, "name", ID_MAX_SIZE, self.name)

    def merge(self, source: "TaskAttribute", code_prefix, context=None) -> "TaskAttribute":
        merged = self.model_copy(deep=True)
        merged.value = merge_field(self.value, source.value)
        merged.validate_model(code_prefix, context)
        return merged


class TaskAttributeType(RecordModel):
    """Declaration of an attribute a task type accepts; identified by ``name``."""
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None

    def has_identifier(self) -> bool:
        return self.name is not None

    def same_identity(self, other: RecordModel) -> bool:
        return isinstance(other, TaskAttributeType) and self.name == other.name

    def validate_model(self, code_prefix, context=None, *, creating=False):
        self.name = validate_string_field(code_prefix, "name", ID_MAX_SIZE, self.name)
        self.description = validate_nullable_string_field(code_prefix, "description", DESCRIPTION_MAX_SIZE, self.description)
        self.type = validate_nullable_string_field(code_prefix, "type", ID_MAX_SIZE, self.type)

    def merge(self, source: "TaskAttributeType", code_prefix, context=None) -> "TaskAttributeType":
        merged = self.model_copy(deep=True)
        merged.description = merge_field(self.description, source.description)
        merged.type = merge_field(self.type, source.type)
        merged.validate_model(code_prefix, context)
        return merged


def validate_attributes(attributes: Optional[List[RecordModel]], code_prefix: str, context=None, *, creating: bool = False):
    """Validate a list of attributes (or attribute types) whose names must be unique."""
    validate_list(attributes, code_prefix, context, creating=creating)
    if attributes:
        check_unique_keys(code_prefix, "name", (attribute.name for attribute in attributes))
    return attributes
