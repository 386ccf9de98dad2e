DEFAULT_TEMPLATES = [
    {
        "name": "Privacy Policy",
        "category": "Privacy",
        "description": "Baseline privacy policy covering collection, use and retention of personal data",
        "tags": ["GDPR", "Privacy", "Data Protection"],
        "variables": [
            {"name": "company_name", "required": True, "default_value": None, "description": "Legal entity name"},
            {"name": "dpo_email", "required": True, "default_value": None, "description": "Data protection contact"},
            {"name": "retention_period", "required": False, "default_value": "24 months", "description": None},
        ],
        "content": (
            "# PRIVACY POLICY\n\n"
            "{{company_name}} is committed to protecting the personal data it processes.\n\n"
            "## Data we collect\n"
            "We collect only the data needed to provide our services and meet legal obligations.\n\n"
            "## Retention\n"
            "Personal data is kept for {{retention_period}} unless the law requires otherwise.\n\n"
            "## Contact\n"
            "Questions about this policy can be sent to {{dpo_email}}.\n"
        ),
    },
    {
        "name": "Information Security Policy",
        "category": "Security",
        "description": "ISO 27001 style information security policy",
        "tags": ["ISO 27001", "Security"],
        "variables": [
            {"name": "company_name", "required": True, "default_value": None, "description": "Legal entity name"},
            {"name": "security_owner", "required": True, "default_value": None, "description": "Accountable role"},
            {"name": "review_cycle", "required": False, "default_value": "annually", "description": None},
        ],
        "content": (
            "# INFORMATION SECURITY POLICY\n\n"
            "## Scope\n"
            "This policy applies to all information assets owned or managed by {{company_name}}.\n\n"
            "## Responsibilities\n"
            "The {{security_owner}} owns this policy and the associated risk register.\n\n"
            "## Review\n"
            "The policy is reviewed {{review_cycle}} or after any significant incident.\n"
        ),
    },
    {
        "name": "Non-Disclosure Agreement",
        "category": "Legal",
        "description": "Mutual confidentiality agreement between two parties",
        "tags": ["NDA", "Legal", "Confidentiality"],
        "variables": [
            {"name": "disclosing_party", "required": True, "default_value": None, "description": None},
            {"name": "receiving_party", "required": True, "default_value": None, "description": None},
            {"name": "term_years", "required": False, "default_value": "2", "description": "Duration in years"},
        ],
        "content": (
            "# NON-DISCLOSURE AGREEMENT\n\n"
            "This agreement is made between {{disclosing_party}} and {{receiving_party}}.\n\n"
            "## Confidential information\n"
            "The receiving party shall not disclose confidential information to any third party.\n\n"
            "## Term\n"
            "Obligations under this agreement last {{term_years}} years from the date of signature.\n"
        ),
    },
    {
        "name": "Incident Response Plan",
        "category": "Security",
        "description": "Steps to detect, contain and report security incidents",
        "tags": ["Incident", "Security", "Breach"],
        "variables": [
            {"name": "company_name", "required": True, "default_value": None, "description": None},
            {"name": "notification_hours", "required": False, "default_value": "72", "description": None},
        ],
        "content": (
            "# INCIDENT RESPONSE PLAN\n\n"
            "## Purpose\n"
            "Defines how {{company_name}} responds to information security incidents.\n\n"
            "## Reporting\n"
            "Personal data breaches are reported to the supervisory authority within "
            "{{notification_hours}} hours of discovery.\n"
        ),
    },
]
