from typing import List, Optional

from pydantic import Field

from task_manager.errors import ValidationError
from task_manager.merges import merge_field, merge_list, merge_nested
from task_manager.validations import (
    DESCRIPTION_MAX_SIZE,
    ID_MAX_SIZE,
    NAME_MAX_SIZE,
    check_unique_keys,
    element_code,
    field_code,
    validate_list,
    validate_nullable_string_field,
    validate_nullable_string_list,
    validate_string_field,
    validate_timestamp_field,
)
from .attributes import TaskAttribute, validate_attributes
from .common import PageBase, RecordModel
from .norms import Norm
from .transactions import TaskTransaction


class TaskGoal(RecordModel):
    name: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[List[str]] = None

    def validate_model(self, code_prefix, context=None, *, creating=False):
        self.name = validate_string_field(code_prefix, "name", NAME_MAX_SIZE, self.name)
        self.description = validate_nullable_string_field(code_prefix, "description", DESCRIPTION_MAX_SIZE, self.description)
        self.keywords = validate_nullable_string_list(code_prefix, "keywords", ID_MAX_SIZE, self.keywords)

    def merge(self, source: "TaskGoal", code_prefix, context=None) -> "TaskGoal":
        merged = self.model_copy(deep=True)
        merged.name = merge_field(self.name, source.name)
        merged.description = merge_field(self.description, source.description)
        merged.keywords = merge_field(self.keywords, source.keywords)
        merged.validate_model(code_prefix, context)
        return merged


class Task(RecordModel):
    id: Optional[str] = None
    task_type_id: Optional[str] = None
    requester_id: Optional[str] = None
    app_id: Optional[str] = None
    goal: Optional[TaskGoal] = None
    start_ts: Optional[int] = None
    end_ts: Optional[int] = None
    deadline_ts: Optional[int] = None
    close_ts: Optional[int] = None
    norms: Optional[List[Norm]] = None
    attributes: Optional[List[TaskAttribute]] = None
    transactions: Optional[List[TaskTransaction]] = None
    creation_ts: Optional[int] = Field(default=None, alias="_creationTs")
    last_update_ts: Optional[int] = Field(default=None, alias="_lastUpdateTs")

    def validate_model(self, code_prefix, context=None, *, creating=False):
        if creating and self.id is not None:
            raise ValidationError(field_code(code_prefix, "id"), "You can not specify the identifier of the task to create.")

        self.task_type_id = validate_string_field(code_prefix, "taskTypeId", ID_MAX_SIZE, self.task_type_id)
        self.requester_id = validate_string_field(code_prefix, "requesterId", ID_MAX_SIZE, self.requester_id)
        self.app_id = validate_string_field(code_prefix, "appId", ID_MAX_SIZE, self.app_id)
        task_type = None
        if context is not None:
            task_type = context.find_task_type(field_code(code_prefix, "taskTypeId"), self.task_type_id)
            context.check_profile(field_code(code_prefix, "requesterId"), self.requester_id)
            context.check_app(field_code(code_prefix, "appId"), self.app_id)

        if self.goal is None:
            raise ValidationError(field_code(code_prefix, "goal"), "The task must define a goal.")
        self.goal.validate_model(field_code(code_prefix, "goal"), context, creating=creating)

        self.start_ts = validate_timestamp_field(code_prefix, "startTs", self.start_ts)
        self.end_ts = validate_timestamp_field(code_prefix, "endTs", self.end_ts)
        self.deadline_ts = validate_timestamp_field(code_prefix, "deadlineTs", self.deadline_ts)
        self.close_ts = validate_timestamp_field(code_prefix, "closeTs", self.close_ts)
        self._validate_time_window(code_prefix)

        validate_list(self.norms, field_code(code_prefix, "norms"), context, creating=creating)
        validate_attributes(self.attributes, field_code(code_prefix, "attributes"), context, creating=creating)
        validate_list(self.transactions, field_code(code_prefix, "transactions"), context, creating=creating)
        if self.norms:
            check_unique_keys(field_code(code_prefix, "norms"), "id", (norm.id for norm in self.norms))
        if self.transactions:
            check_unique_keys(field_code(code_prefix, "transactions"), "id", (t.id for t in self.transactions))
            for transaction in self.transactions:
                transaction.task_id = self.id

        if task_type is not None:
            self._validate_against_type(code_prefix, task_type)

    def _validate_time_window(self, code_prefix):
        if self.start_ts is not None and self.end_ts is not None and self.end_ts <= self.start_ts:
            raise ValidationError(field_code(code_prefix, "endTs"), "The end time must be after the start time.")
        if self.deadline_ts is not None:
            if self.start_ts is not None and self.deadline_ts <= self.start_ts:
                raise ValidationError(field_code(code_prefix, "deadlineTs"), "The deadline must be after the start time.")
            if self.end_ts is not None and self.deadline_ts >= self.end_ts:
                raise ValidationError(field_code(code_prefix, "deadlineTs"), "The deadline must be before the end time.")

    def _validate_against_type(self, code_prefix, task_type):
        for index, attribute in enumerate(self.attributes or []):
            if not task_type.declares_attribute(attribute.name):
                raise ValidationError(
                    field_code(element_code(field_code(code_prefix, "attributes"), index), "name"),
                    f"The attribute '{attribute.name}' is not defined by the task type.",
                )
        for index, transaction in enumerate(self.transactions or []):
            if not task_type.declares_transaction(transaction.label):
                raise ValidationError(
                    field_code(element_code(field_code(code_prefix, "transactions"), index), "label"),
                    f"The transaction '{transaction.label}' is not defined by the task type.",
                )

    def merge(self, source: "Task", code_prefix, context=None) -> "Task":
        merged = self.model_copy(deep=True)
        merged.task_type_id = merge_field(self.task_type_id, source.task_type_id)
        merged.requester_id = merge_field(self.requester_id, source.requester_id)
        merged.app_id = merge_field(self.app_id, source.app_id)
        merged.goal = merge_nested(merged.goal, source.goal, field_code(code_prefix, "goal"), context)
        merged.start_ts = merge_field(self.start_ts, source.start_ts)
        merged.end_ts = merge_field(self.end_ts, source.end_ts)
        merged.deadline_ts = merge_field(self.deadline_ts, source.deadline_ts)
        merged.close_ts = merge_field(self.close_ts, source.close_ts)
        merged.norms = merge_list(merged.norms, source.norms, field_code(code_prefix, "norms"), context)
        merged.attributes = merge_list(merged.attributes, source.attributes, field_code(code_prefix, "attributes"), context)
        merged.transactions = merge_list(merged.transactions, source.transactions, field_code(code_prefix, "transactions"), context)
        merged.id = self.id
        merged.creation_ts = self.creation_ts
        merged.last_update_ts = self.last_update_ts
        merged.validate_model(code_prefix, context)
        return merged


class TasksPage(PageBase):
    tasks: List[Task] = Field(default_factory=list)
