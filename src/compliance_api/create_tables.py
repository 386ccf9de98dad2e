import logging

from compliance_api.database import engine, Base
# Import every model so they register with Base before create_all
from compliance_api.modules.documents.models import (  # noqa: F401
    AuditTrail, Document, DocumentVersion, Signature, User,
)
from compliance_api.modules.notifications.models.notification import Notification  # noqa: F401
from compliance_api.modules.compliance.models.deadline import ComplianceDeadline  # noqa: F401
from compliance_api.modules.templates.models.template import Template  # noqa: F401
from compliance_api.modules.user_documents.models.user_document import UserDocument  # noqa: F401
from compliance_api.modules.user_documents.models.user_folder import UserFolder  # noqa: F401

logger = logging.getLogger(__name__)

def create_tables():
    """Creates every table that does not exist yet."""
    logger.info("Creating tables: %s", list(Base.metadata.tables.keys()))
    Base.metadata.create_all(bind=engine)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()
