from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TemplateVariable(BaseModel):
    name: str = Field(pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    required: bool = False
    default_value: Optional[str] = None
    description: Optional[str] = None


class TemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    content: str
    category: Optional[str] = None
    tags: List[str] = []
    variables: List[TemplateVariable] = []
    is_active: bool = True


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    variables: Optional[List[TemplateVariable]] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None


class TemplateResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    content: str
    category: Optional[str] = None
    tags: List[str] = []
    variables: List[TemplateVariable] = []
    is_default: bool = False
    is_active: bool = True
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TemplateDocumentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    values: Dict[str, str] = {}
    category: Optional[str] = None
