from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from compliance_api.database import Base

class DocumentStatus(str, PyEnum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"
    EXPIRED = "expired"
    ARCHIVED = "archived"

class Document(Base):
    __tablename__ = 'documents'

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    status = Column(Enum(DocumentStatus), nullable=False, default=DocumentStatus.DRAFT)
    version = Column(Integer, nullable=False, default=1)
    category = Column(String(100), default="Compliance")
    template_id = Column(Integer, ForeignKey('templates.id'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=True)

    created_by_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    created_by = relationship("User", back_populates="documents")

    template = relationship("Template")

    versions = relationship("DocumentVersion", back_populates="document", order_by="DocumentVersion.version")
    signatures = relationship("Signature", back_populates="document", order_by="Signature.id")
