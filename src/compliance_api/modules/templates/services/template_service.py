import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from compliance_api.database import atomic
from compliance_api.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from compliance_api.modules.documents.models.document import Document
from compliance_api.modules.documents.models.user import User, UserRole
from compliance_api.modules.documents.services.document_service import DocumentService
from compliance_api.modules.templates.models.template import Template
from compliance_api.modules.templates.services.default_templates import DEFAULT_TEMPLATES

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
REQUIRED_FIELDS = ("name", "content", "tags", "variables", "is_active", "is_default")

def render_template(template: Template, values: Dict[str, str]) -> str:
    """
    Replaces ``{{name}}`` placeholders with the given values, falling back to
    each variable's default. Placeholders with neither are left as written.
    Raises ValidationFailedError listing every required variable left empty.
    """
    resolved: Dict[str, str] = {}
    missing = []
    for variable in template.variables or []:
        name = variable["name"]
        value = values.get(name)
        if value in (None, ""):
            value = variable.get("default_value")
        if value in (None, ""):
            if variable.get("required"):
                missing.append(name)
            continue
        resolved[name] = value
    if missing:
        raise ValidationFailedError(f"Missing required template variables: {', '.join(missing)}")

    for name, value in values.items():
        resolved.setdefault(name, value)

    return PLACEHOLDER.sub(lambda m: resolved.get(m.group(1), m.group(0)), template.content)

class TemplateService:

    @staticmethod
    def _can_manage(user: User, template: Template) -> bool:
        return user.role == UserRole.ADMIN or template.created_by_id == user.id

    @staticmethod
    def list_templates(
        session: Session,
        category: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[Template]:
        query = session.query(Template)
        if not include_inactive:
            query = query.filter(Template.is_active.is_(True))
        if category:
            query = query.filter(Template.category == category)
        return query.order_by(Template.is_default.desc(), Template.name.asc()).all()

    @staticmethod
    def get_template(session: Session, template_id: int) -> Template:
        template = session.get(Template, template_id)
        if not template:
            raise NotFoundError("Template not found")
        return template

    @staticmethod
    def create_template(session: Session, data: Dict[str, Any], actor: User) -> Template:
        template = Template(
            name=data["name"],
            description=data.get("description"),
            content=data["content"],
            category=data.get("category"),
            tags=data.get("tags") or [],
            variables=data.get("variables") or [],
            is_active=data.get("is_active", True),
            is_default=False,
            created_by_id=actor.id,
        )
        with atomic(session):
            session.add(template)
        session.refresh(template)
        logger.info("Template %s created by user %s", template.id, actor.id)
        return template

    @staticmethod
    def update_template(session: Session, template_id: int, changes: Dict[str, Any], actor: User) -> Template:
        template = TemplateService.get_template(session, template_id)
        if not TemplateService._can_manage(actor, template):
            raise ForbiddenError("Forbidden")

        # only admins flip the default flag; others have it ignored
        if actor.role != UserRole.ADMIN:
            changes.pop("is_default", None)

        with atomic(session):
            for field, value in changes.items():
                if value is None and field in REQUIRED_FIELDS:
                    continue
                setattr(template, field, value)
            template.updated_at = datetime.utcnow()
        session.refresh(template)
        return template

    @staticmethod
    def delete_template(session: Session, template_id: int, actor: User) -> None:
        template = TemplateService.get_template(session, template_id)
        if not TemplateService._can_manage(actor, template):
            raise ForbiddenError("Forbidden")
        if template.is_default:
            raise ForbiddenError("Cannot delete default templates")

        with atomic(session):
            session.query(Document).filter(Document.template_id == template_id).update(
                {Document.template_id: None}, synchronize_session=False
            )
            session.delete(template)
        logger.info("Template %s deleted by user %s", template_id, actor.id)

    @staticmethod
    def create_document_from_template(
        session: Session,
        template_id: int,
        title: str,
        values: Dict[str, str],
        actor: User,
        category: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Document:
        template = TemplateService.get_template(session, template_id)
        if not template.is_active:
            raise ValidationFailedError("Template is not active")
        content = render_template(template, values)
        return DocumentService.create_document(
            session,
            title=title,
            content=content,
            created_by_id=actor.id,
            template_id=template.id,
            category=category or template.category,
            ip_address=ip_address,
        )

    @staticmethod
    def seed_default_templates(session: Session) -> int:
        """Inserts any bundled default template missing by name."""
        existing = {name for (name,) in session.query(Template.name).all()}
        added = 0
        with atomic(session):
            for data in DEFAULT_TEMPLATES:
                if data["name"] in existing:
                    continue
                session.add(Template(is_default=True, is_active=True, **data))
                added += 1
        if added:
            logger.info("Seeded %d default template(s)", added)
        return added
