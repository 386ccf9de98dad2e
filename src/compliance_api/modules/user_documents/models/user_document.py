from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import validates

from compliance_api.database import Base
from compliance_api.modules.user_documents.models.user_folder import DEFAULT_FOLDER

class UserDocumentStatus(str, PyEnum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    ARCHIVED = "archived"

class UserDocument(Base):
    __tablename__ = "user_documents"
    __table_args__ = (
        CheckConstraint("file_url NOT LIKE '/api/%'", name="check_fileurl_not_api_endpoint"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(100), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_url = Column(Text, nullable=False)  # object storage key
    tags = Column(JSON, default=list)
    category = Column(String(100), default=DEFAULT_FOLDER)
    starred = Column(Boolean, default=False)
    status = Column(Enum(UserDocumentStatus), default=UserDocumentStatus.DRAFT)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @validates("file_url")
    def validate_file_url(self, key, value):
        if not value or value.startswith("/api/"):
            raise ValueError("file_url must be an object storage key, not an API path")
        return value
