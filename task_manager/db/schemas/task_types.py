from typing import List, Optional

from pydantic import Field

from task_manager.errors import ValidationError
from task_manager.merges import merge_field, merge_list
from task_manager.validations import (
    DESCRIPTION_MAX_SIZE,
    ID_MAX_SIZE,
    NAME_MAX_SIZE,
    check_unique_keys,
    field_code,
    validate_list,
    validate_nullable_string_field,
    validate_nullable_string_list,
    validate_string_field,
)
from .attributes import TaskAttributeType, validate_attributes
from .common import PageBase, RecordModel
from .norms import Norm


class TaskTransactionType(RecordModel):
    """A transaction a task of this type accepts; identified by ``label``."""
    label: Optional[str] = None
    description: Optional[str] = None
    attributes: Optional[List[TaskAttributeType]] = None

    def has_identifier(self) -> bool:
        return self.label is not None

    def same_identity(self, other: RecordModel) -> bool:
        return isinstance(other, TaskTransactionType) and self.label == other.label

    def validate_model(self, code_prefix, context=None, *, creating=False):
        self.label = validate_string_field(code_prefix, "label", ID_MAX_SIZE, self.label)
        self.description = validate_nullable_string_field(code_prefix, "description", DESCRIPTION_MAX_SIZE, self.description)
        validate_attributes(self.attributes, field_code(code_prefix, "attributes"), context, creating=creating)

    def merge(self, source: "TaskTransactionType", code_prefix, context=None) -> "TaskTransactionType":
        merged = self.model_copy(deep=True)
        merged.description = merge_field(self.description, source.description)
        merged.attributes = merge_list(merged.attributes, source.attributes, field_code(code_prefix, "attributes"), context)
        merged.validate_model(code_prefix, context)
        return merged


class TaskType(RecordModel):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[List[str]] = None
    norms: Optional[List[Norm]] = None
    attributes: Optional[List[TaskAttributeType]] = None
    transactions: Optional[List[TaskTransactionType]] = None
    creation_ts: Optional[int] = Field(default=None, alias="_creationTs")
    last_update_ts: Optional[int] = Field(default=None, alias="_lastUpdateTs")

    def validate_model(self, code_prefix, context=None, *, creating=False):
        if creating and self.id is not None:
            raise ValidationError(field_code(code_prefix, "id"), "You can not specify the identifier of the task type to create.")
        self.name = validate_string_field(code_prefix, "name", NAME_MAX_SIZE, self.name)
        self.description = validate_nullable_string_field(code_prefix, "description", DESCRIPTION_MAX_SIZE, self.description)
        self.keywords = validate_nullable_string_list(code_prefix, "keywords", ID_MAX_SIZE, self.keywords)
        validate_list(self.norms, field_code(code_prefix, "norms"), context, creating=creating)
        if self.norms:
            check_unique_keys(field_code(code_prefix, "norms"), "id", (norm.id for norm in self.norms))
        validate_attributes(self.attributes, field_code(code_prefix, "attributes"), context, creating=creating)
        validate_list(self.transactions, field_code(code_prefix, "transactions"), context, creating=creating)
        if self.transactions:
            check_unique_keys(field_code(code_prefix, "transactions"), "label", (t.label for t in self.transactions))

    def merge(self, source: "TaskType", code_prefix, context=None) -> "TaskType":
        merged = self.model_copy(deep=True)
        merged.name = merge_field(self.name, source.name)
        merged.description = merge_field(self.description, source.description)
        merged.keywords = merge_field(self.keywords, source.keywords)
        merged.norms = merge_list(merged.norms, source.norms, field_code(code_prefix, "norms"), context)
        merged.attributes = merge_list(merged.attributes, source.attributes, field_code(code_prefix, "attributes"), context)
        merged.transactions = merge_list(merged.transactions, source.transactions, field_code(code_prefix, "transactions"), context)
        merged.validate_model(code_prefix, context)
        merged.id = self.id
        merged.creation_ts = self.creation_ts
        merged.last_update_ts = self.last_update_ts
        return merged

    def declares_attribute(self, name: str) -> bool:
        """True when the type declares no attributes or declares ``name``."""
        if not self.attributes:
            return True
        return any(attribute.name == name for attribute in self.attributes)

    def declares_transaction(self, label: str) -> bool:
        """True when the type declares no transactions or declares ``label``."""
        if not self.transactions:
            return True
        return any(transaction.label == label for transaction in self.transactions)


class TaskTypesPage(PageBase):
    task_types: List[TaskType] = Field(default_factory=list, alias="taskTypes")
