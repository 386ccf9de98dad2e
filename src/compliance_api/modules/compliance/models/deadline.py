from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from compliance_api.database import Base

class DeadlineStatus(str, PyEnum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"

class ComplianceDeadline(Base):
    __tablename__ = "compliance_deadlines"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    deadline = Column(DateTime, nullable=False)
    type = Column(String, nullable=False)
    status = Column(Enum(DeadlineStatus), nullable=False, default=DeadlineStatus.NOT_STARTED)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    document = relationship("Document")
    assignee = relationship("User", foreign_keys=[assignee_id])

    def is_overdue(self, now: datetime = None) -> bool:
        """Read-time check against the clock; ignores the stored status."""
        now = now or datetime.utcnow()
        return self.status != DeadlineStatus.COMPLETED and self.deadline < now
