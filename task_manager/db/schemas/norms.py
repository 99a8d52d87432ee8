import uuid
from enum import Enum
from typing import Any, Optional

from task_manager.merges import merge_field
from task_manager.validations import ID_MAX_SIZE, field_code, validate_nullable_string_field
from task_manager.errors import ValidationError
from .common import RecordModel


class NormOperator(str, Enum):
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    LESS_THAN = "LESS_THAN"
    LESS_THAN_OR_EQUALS = "LESS_THAN_OR_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    GREATER_THAN_OR_EQUALS = "GREATER_THAN_OR_EQUALS"
    CONTAINS = "CONTAINS"


class Norm(RecordModel):
    """A rule over an attribute; identified by a server assigned ``id``."""
    id: Optional[str] = None
    attribute: Optional[str] = None
    operator: Optional[NormOperator] = None
    comparison: Optional[Any] = None
    negation: Optional[bool] = None

    def has_identifier(self) -> bool:
        return self.id is not None

    def same_identity(self, other: RecordModel) -> bool:
        return isinstance(other, Norm) and self.id == other.id

    def validate_model(self, code_prefix, context=None, *, creating=False):
        if creating and self.id is not None:
            raise ValidationError(field_code(code_prefix, "id"), "You can not specify the identifier of the norm to create.")
        if self.id is None:
            self.id = str(uuid.uuid4())
        self.attribute = validate_nullable_string_field(code_prefix, "attribute", ID_MAX_SIZE, self.attribute)

    def merge(self, source: "Norm", code_prefix, context=None) -> "Norm":
        merged = self.model_copy(deep=True)
        merged.attribute = merge_field(self.attribute, source.attribute)
        merged.operator = merge_field(self.operator, source.operator)
        merged.comparison = merge_field(self.comparison, source.comparison)
        merged.negation = merge_field(self.negation, source.negation)
        merged.validate_model(code_prefix, context)
        merged.id = self.id
        return merged
