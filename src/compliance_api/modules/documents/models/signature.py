from sqlalchemy import Column, Integer, ForeignKey, DateTime, String, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from compliance_api.database import Base

class Signature(Base):
    __tablename__ = "signatures"
    __table_args__ = (
        UniqueConstraint("document_id", "user_id", name="uq_signature_document_user"),
    )

    id = Column(Integer, primary_key=True)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=False)
    user_id     = Column(Integer, ForeignKey("users.id"),     nullable=False)
    signature   = Column(Text, nullable=False)  # data:image/png;base64,... or typed name
    ip_address  = Column(String, nullable=True)
    # "metadata" is reserved on declarative classes
    signature_metadata = Column("metadata", JSON, nullable=True)
    document_version = Column(Integer, nullable=False)
    content_hash = Column(String(64), nullable=False)
    created_at  = Column(DateTime, default=datetime.utcnow, nullable=False)

    document = relationship("Document", back_populates="signatures")
    user     = relationship("User")
