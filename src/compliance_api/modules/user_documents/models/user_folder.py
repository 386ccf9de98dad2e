from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from compliance_api.database import Base

DEFAULT_FOLDER = "General"

class UserFolder(Base):
    """A named folder; documents belong to it through their ``category``."""
    __tablename__ = "user_folders"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_folder_name"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_default(self) -> bool:
        return self.name == DEFAULT_FOLDER
