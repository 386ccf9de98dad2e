from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from compliance_api.database import get_db
from compliance_api.modules.auth.dependencies import get_client_ip, get_current_user, require_permission
from compliance_api.modules.compliance.models.deadline import DeadlineStatus
from compliance_api.modules.compliance.models.schemas import DeadlineCreate, DeadlineResponse, DeadlineUpdate
from compliance_api.modules.compliance.services.deadline_service import DeadlineService
from compliance_api.modules.documents.models.user import User

router = APIRouter(prefix="/compliance-deadlines", tags=["compliance"])

@router.get("", response_model=List[DeadlineResponse])
def list_deadlines(
    upcoming: bool = Query(False),
    status_filter: Optional[DeadlineStatus] = Query(None, alias="status"),
    assignee_id: Optional[int] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    now = datetime.utcnow()
    deadlines = DeadlineService.list_deadlines(
        db, current_user, upcoming, status_filter, assignee_id, limit, offset, now=now,
    )
    return [DeadlineResponse.from_deadline(d, now) for d in deadlines]

@router.post("", response_model=DeadlineResponse, status_code=status.HTTP_201_CREATED)
def create_deadline(
    payload: DeadlineCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("manage_deadlines")),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    deadline = DeadlineService.create_deadline(db, payload.model_dump(), current_user, ip_address=ip_address)
    return DeadlineResponse.from_deadline(deadline)

@router.get("/{deadline_id}", response_model=DeadlineResponse)
def get_deadline(
    deadline_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return DeadlineResponse.from_deadline(DeadlineService.get_deadline(db, deadline_id, current_user))

@router.put("/{deadline_id}", response_model=DeadlineResponse)
def update_deadline(
    deadline_id: int,
    payload: DeadlineUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("manage_deadlines")),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    deadline = DeadlineService.update_deadline(
        db, deadline_id, payload.model_dump(exclude_unset=True), current_user, ip_address=ip_address,
    )
    return DeadlineResponse.from_deadline(deadline)

@router.post("/{deadline_id}/complete", response_model=DeadlineResponse)
def complete_deadline(
    deadline_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    deadline = DeadlineService.complete_deadline(db, deadline_id, current_user, ip_address=ip_address)
    return DeadlineResponse.from_deadline(deadline)
