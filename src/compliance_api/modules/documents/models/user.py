from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from datetime import datetime
from compliance_api.database import Base

class UserRole(str, PyEnum):
    ADMIN = "admin"
    COMPLIANCE_OFFICER = "compliance_officer"
    EMPLOYEE = "employee"

class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.EMPLOYEE)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Documents authored by the user
    documents = relationship("Document", back_populates="created_by")

    notifications = relationship(
        "Notification",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    @property
    def is_reviewer(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.COMPLIANCE_OFFICER)
