from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import get_current_user, require_roles
from ..constants import ROLE_ADMIN
from ..models.models import Project, ProjectContribution, User
from ..schemas.schemas import (
    ContributionIntentPayload,
    ContributionRead,
    ContributionStatusPayload,
    ContributionSubmission,
    ManualContributionPayload,
    ProjectPayload,
    ProjectRead,
    ProjectUpdatePayload,
    SuccessRead,
)
from ..services import projects as project_service

router = APIRouter()

require_admin = require_roles(ROLE_ADMIN)


@router.get("/", response_model=List[ProjectRead])
def list_projects(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> List[Project]:
    return project_service.list_projects(db, user)


@router.post("/", response_model=ProjectRead, status_code=201)
def create_project(
    payload: ProjectPayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> Project:
    return project_service.create_project(db, actor, payload.model_dump())


@router.patch("/", response_model=ProjectRead)
def update_project(
    payload: ProjectUpdatePayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> Project:
    updates = payload.model_dump(exclude_unset=True, exclude={"projectId"})
    return project_service.update_project(db, actor, payload.projectId, updates)


@router.delete("/{project_id}", response_model=SuccessRead)
def delete_project(
    project_id: str,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> SuccessRead:
    project_service.delete_project(db, actor, project_id)
    return SuccessRead()


@router.get("/contributions", response_model=List[ContributionRead])
def list_contributions(db: Session = Depends(get_db), actor: User = Depends(require_admin)) -> List[ContributionRead]:
    return project_service.list_contributions(db, actor)


@router.post("/contributions", response_model=ContributionRead, status_code=201)
def submit_contribution(
    payload: ContributionSubmission,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ContributionRead:
    contribution = project_service.submit_contribution(
        db, user, payload.projectId, payload.amount, payload.method, payload.proofUrl
    )
    return project_service.contribution_read(contribution)


@router.post("/contributions/cash-intent", response_model=ContributionRead, status_code=201)
def record_contribution_intent(
    payload: ContributionIntentPayload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ContributionRead:
    contribution = project_service.record_contribution_intent(db, user, payload.projectId, payload.amount)
    return project_service.contribution_read(contribution)


@router.post("/contributions/manual", response_model=ContributionRead, status_code=201)
def create_manual_contribution(
    payload: ManualContributionPayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> ContributionRead:
    contribution = project_service.create_manual_contribution(
        db, actor, payload.projectId, payload.userId, payload.amount
    )
    return project_service.contribution_read(contribution)


@router.post("/contributions/{contribution_id}/status", response_model=ContributionRead)
def update_contribution_status(
    contribution_id: str,
    payload: ContributionStatusPayload,
    db: Session = Depends(get_db),
    actor: User = Depends(require_admin),
) -> ContributionRead:
    contribution: ProjectContribution = project_service.update_contribution_status(
        db,
        actor,
        contribution_id,
        payload.status,
        notes=payload.notes,
        expected_version=payload.version,
    )
    return project_service.contribution_read(contribution)
