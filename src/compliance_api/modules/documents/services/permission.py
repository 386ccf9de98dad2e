from compliance_api.modules.documents.models.user import UserRole

ROLE_PERMISSIONS = {
    UserRole.EMPLOYEE: ["create_document", "sign", "upload"],
    UserRole.COMPLIANCE_OFFICER: [
        "create_document", "sign", "upload", "approve", "view_all_documents",
        "manage_deadlines", "manage_templates",
    ],
    UserRole.ADMIN: [
        "create_document", "sign", "upload", "approve", "view_all_documents",
        "manage_deadlines", "manage_templates", "manage_users",
    ],
}

def can_perform_action(user_role: UserRole, action: str) -> bool:
    return action in ROLE_PERMISSIONS.get(user_role, [])
