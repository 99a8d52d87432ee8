import uuid
from typing import Any, Dict, List, Optional

from pydantic import Field

from task_manager.errors import ValidationError
from task_manager.merges import merge_field, merge_list
from task_manager.validations import (
    ID_MAX_SIZE,
    context_now,
    field_code,
    validate_list,
    validate_nullable_string_field,
    validate_string_field,
)
from .attributes import TaskAttribute, validate_attributes
from .common import PageBase, RecordModel


class Message(RecordModel):
    """A message sent to a user while a transaction is processed.

    Messages carry no identity, so a merged message list is always the
    source list.
    """
    app_id: Optional[str] = None
    receiver_id: Optional[str] = None
    label: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None

    def validate_model(self, code_prefix, context=None, *, creating=False):
        self.app_id = validate_nullable_string_field(code_prefix, "appId", ID_MAX_SIZE, self.app_id)
        self.receiver_id = validate_string_field(code_prefix, "receiverId", ID_MAX_SIZE, self.receiver_id)
        self.label = validate_string_field(code_prefix, "label", ID_MAX_SIZE, self.label)
        if context is not None:
            context.check_app(field_code(code_prefix, "appId"), self.app_id)
            context.check_profile(field_code(code_prefix, "receiverId"), self.receiver_id)


class TaskTransaction(RecordModel):
    id: Optional[str] = None
    task_id: Optional[str] = None
    label: Optional[str] = None
    actioneer_id: Optional[str] = None
    attributes: Optional[List[TaskAttribute]] = None
    messages: Optional[List[Message]] = None
    creation_ts: Optional[int] = Field(default=None, alias="_creationTs")
    last_update_ts: Optional[int] = Field(default=None, alias="_lastUpdateTs")

    def has_identifier(self) -> bool:
        return self.id is not None

    def same_identity(self, other: RecordModel) -> bool:
        return isinstance(other, TaskTransaction) and self.id == other.id

    def validate_model(self, code_prefix, context=None, *, creating=False):
        if creating and self.id is not None:
            raise ValidationError(field_code(code_prefix, "id"), "You can not specify the identifier of the transaction to create.")
        if self.id is None:
            self.id = str(uuid.uuid4())
            now = context_now(context)
            self.creation_ts = now
            self.last_update_ts = now
        self.task_id = validate_nullable_string_field(code_prefix, "taskId", ID_MAX_SIZE, self.task_id)
        self.label = validate_string_field(code_prefix, "label", ID_MAX_SIZE, self.label)
        self.actioneer_id = validate_nullable_string_field(code_prefix, "actioneerId", ID_MAX_SIZE, self.actioneer_id)
        if context is not None:
            context.check_profile(field_code(code_prefix, "actioneerId"), self.actioneer_id)
        validate_attributes(self.attributes, field_code(code_prefix, "attributes"), context, creating=creating)
        validate_list(self.messages, field_code(code_prefix, "messages"), context, creating=creating)

    def merge(self, source: "TaskTransaction", code_prefix, context=None) -> "TaskTransaction":
        merged = self.model_copy(deep=True)
        merged.label = merge_field(self.label, source.label)
        merged.actioneer_id = merge_field(self.actioneer_id, source.actioneer_id)
        merged.attributes = merge_list(merged.attributes, source.attributes, field_code(code_prefix, "attributes"), context)
        merged.messages = merge_list(merged.messages, source.messages, field_code(code_prefix, "messages"), context)
        merged.validate_model(code_prefix, context)
        merged.id = self.id
        merged.task_id = self.task_id
        merged.creation_ts = self.creation_ts
        merged.last_update_ts = self.last_update_ts
        return merged


class TaskTransactionsPage(PageBase):
    transactions: List[TaskTransaction] = Field(default_factory=list)


class MessagesPage(PageBase):
    messages: List[Message] = Field(default_factory=list)
