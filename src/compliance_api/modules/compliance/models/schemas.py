from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from compliance_api.modules.compliance.models.deadline import DeadlineStatus


class DeadlineCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    deadline: datetime
    type: str = Field(min_length=1)
    status: DeadlineStatus = DeadlineStatus.NOT_STARTED
    document_id: Optional[int] = None
    assignee_id: Optional[int] = None


class DeadlineUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    type: Optional[str] = None
    status: Optional[DeadlineStatus] = None
    document_id: Optional[int] = None
    assignee_id: Optional[int] = None


class DeadlineResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    deadline: datetime
    type: str
    status: DeadlineStatus
    document_id: Optional[int] = None
    assignee_id: Optional[int] = None
    created_by_id: Optional[int] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    is_overdue: bool

    @classmethod
    def from_deadline(cls, deadline, now: Optional[datetime] = None) -> "DeadlineResponse":
        return cls(
            id=deadline.id,
            title=deadline.title,
            description=deadline.description,
            deadline=deadline.deadline,
            type=deadline.type,
            status=deadline.status,
            document_id=deadline.document_id,
            assignee_id=deadline.assignee_id,
            created_by_id=deadline.created_by_id,
            completed_at=deadline.completed_at,
            created_at=deadline.created_at,
            is_overdue=deadline.is_overdue(now),
        )
