"""
Outbound event models.

The host understands two shapes: task updates (a task name plus a two-word
target-state token) and data replies (a type tag plus a payload).
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TaskTargetState(str, Enum):
    """
    Host-side task transitions.

    The first word is the state the host task is expected to be in, the second
    the state it should move to.
    """

    SET_NOT_ACTIVE_TO_ACTIVE = "SetNotActiveToActive"
    SET_NOT_ACTIVE_TO_COMPLETED = "SetNotActiveToCompleted"
    SET_ACTIVE_TO_ACTIVE = "SetActiveToActive"
    SET_ACTIVE_TO_COMPLETED = "SetActiveToCompleted"
    SET_ACTIVE_TO_NOT_ACTIVE = "SetActiveToNotActive"


class TaskNotification(BaseModel):
    """A task state update for the host."""

    task_name: str = Field(..., min_length=1)
    task_target_state: TaskTargetState

    def to_wire(self) -> dict[str, Any]:
        return {"TaskName": self.task_name, "TaskTargetState": self.task_target_state.value}


class DataReply(BaseModel):
    """A typed data payload for the host (query results, import counts)."""

    reply_type: str = Field(..., min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.reply_type, "payload": self.payload}


OutboundEvent = TaskNotification | DataReply
