import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from ..constants import ELECTRONIC_METHODS, METHOD_CASH
from ..core.errors import NotFoundError, ValidationFailed
from ..domain.dues import to_money
from ..models.models import Project, ProjectContribution, User
from ..schemas.schemas import ContributionRead
from .access import require_actor, require_admin
from .audit import audit_log
from .verification import accept_proof, review

logger = logging.getLogger(__name__)

ELECTRONIC_CONTRIBUTION_NOTE = "Project contribution via {method}"
CASH_CONTRIBUTION_NOTE = "Pending cash contribution for project."
MANUAL_CONTRIBUTION_NOTE = "Manual contribution recorded by Admin"

PROJECT_FIELDS = (
    "name",
    "description",
    "status",
    "start_date",
    "end_date",
    "budget",
    "funds_allocated",
    "funds_spent",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _snapshot(project: Project) -> Dict[str, Any]:
    return {name: getattr(project, name) for name in PROJECT_FIELDS}


def get_project(session: Session, project_id: str) -> Project:
    project = session.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")
    return project


def get_contribution(session: Session, contribution_id: str) -> ProjectContribution:
    contribution = session.get(ProjectContribution, contribution_id)
    if not contribution:
        raise NotFoundError("Contribution not found.")
    return contribution


def list_projects(session: Session, actor: Optional[User]) -> List[Project]:
    require_actor(actor)
    return session.query(Project).order_by(Project.created_at.desc()).all()


def create_project(session: Session, actor: Optional[User], fields: Dict[str, Any]) -> Project:
    actor = require_admin(actor)
    project = Project(**{name: value for name, value in fields.items() if name in PROJECT_FIELDS})
    session.add(project)
    session.commit()
    logger.info("Project %s created by %s", project.project_id, actor.user_id)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="project.create",
        target_entity_type="Project",
        target_entity_id=project.project_id,
        after=_snapshot(project),
    )
    return project


def update_project(
    session: Session,
    actor: Optional[User],
    project_id: str,
    updates: Dict[str, Any],
) -> Project:
    actor = require_admin(actor)
    project = get_project(session, project_id)
    before = _snapshot(project)
    for name, value in updates.items():
        if name in PROJECT_FIELDS and value is not None:
            setattr(project, name, value)
    if project.start_date and project.end_date and project.end_date < project.start_date:
        session.rollback()
        raise ValidationFailed("End date cannot be before start date.")
    session.commit()
    logger.info("Project %s updated by %s", project.project_id, actor.user_id)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="project.update",
        target_entity_type="Project",
        target_entity_id=project.project_id,
        before=before,
        after=_snapshot(project),
    )
    return project


def delete_project(session: Session, actor: Optional[User], project_id: str) -> None:
    actor = require_admin(actor)
    project = get_project(session, project_id)
    before = _snapshot(project)
    session.delete(project)
    session.commit()
    logger.info("Project %s deleted by %s", project_id, actor.user_id)
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action="project.delete",
        target_entity_type="Project",
        target_entity_id=project_id,
        before=before,
    )


# --- Contributions ---


def contribution_read(contribution: ProjectContribution) -> ContributionRead:
    project = contribution.project
    homeowner = contribution.user
    return ContributionRead(
        contribution_id=contribution.contribution_id,
        project_id=contribution.project_id,
        user_id=contribution.user_id,
        amount=contribution.amount,
        method=contribution.method,
        proof_url=contribution.proof_url,
        status=contribution.status,
        date_paid=contribution.date_paid,
        notes=contribution.notes,
        version=contribution.version,
        project_name=project.name if project else "Unknown Project",
        homeowner_name=homeowner.full_name if homeowner else "Unknown",
        homeowner_unit=homeowner.unit if homeowner else "",
    )


def list_contributions(session: Session, actor: Optional[User]) -> List[ContributionRead]:
    require_admin(actor)
    contributions = (
        session.query(ProjectContribution)
        .options(selectinload(ProjectContribution.project), selectinload(ProjectContribution.user))
        .order_by(ProjectContribution.date_paid.desc())
        .all()
    )
    return [contribution_read(contribution) for contribution in contributions]


def _allocate(project: Project, amount: Decimal) -> None:
    project.funds_allocated = to_money(project.funds_allocated) + to_money(amount)


def _record(
    session: Session,
    actor: User,
    contribution: ProjectContribution,
    action: str,
) -> ProjectContribution:
    session.add(contribution)
    session.commit()
    logger.info(
        "Contribution %s (%s, %s) recorded for project %s",
        contribution.contribution_id,
        contribution.method,
        contribution.status,
        contribution.project_id,
    )
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action=action,
        target_entity_type="ProjectContribution",
        target_entity_id=contribution.contribution_id,
        after={
            "project_id": contribution.project_id,
            "user_id": contribution.user_id,
            "amount": contribution.amount,
            "status": contribution.status,
        },
    )
    return contribution


def submit_contribution(
    session: Session,
    actor: Optional[User],
    project_id: str,
    amount: Decimal,
    method: str,
    proof_url: Optional[str],
    user_id: Optional[str] = None,
) -> ProjectContribution:
    actor = require_actor(actor)
    project = get_project(session, project_id)
    contributor_id = user_id or actor.user_id
    if contributor_id != actor.user_id:
        require_admin(actor)
    if method not in ELECTRONIC_METHODS:
        raise ValidationFailed("Choose GCash, Maya, bank transfer or card for an online payment.")
    if to_money(amount) <= 0:
        raise ValidationFailed("Please enter a valid amount.")
    proof_path = accept_proof(proof_url, folder=f"proofs/projects/{project.project_id}")
    contribution = ProjectContribution(
        project_id=project.project_id,
        user_id=contributor_id,
        amount=to_money(amount),
        method=method,
        proof_url=proof_path,
        status="pending",
        date_paid=_now(),
        notes=ELECTRONIC_CONTRIBUTION_NOTE.format(method=method),
    )
    return _record(session, actor, contribution, "contribution.submit")


def record_contribution_intent(
    session: Session,
    actor: Optional[User],
    project_id: str,
    amount: Decimal,
    user_id: Optional[str] = None,
) -> ProjectContribution:
    actor = require_actor(actor)
    project = get_project(session, project_id)
    if amount is None or to_money(amount) <= 0:
        raise ValidationFailed("Amount is required for project contributions.")
    contributor_id = user_id or actor.user_id
    if contributor_id != actor.user_id:
        require_admin(actor)
    contribution = ProjectContribution(
        project_id=project.project_id,
        user_id=contributor_id,
        amount=to_money(amount),
        method=METHOD_CASH,
        proof_url="",
        status="pending",
        date_paid=_now(),
        notes=CASH_CONTRIBUTION_NOTE,
    )
    return _record(session, actor, contribution, "contribution.cash_intent")


def create_manual_contribution(
    session: Session,
    actor: Optional[User],
    project_id: str,
    user_id: str,
    amount: Decimal,
) -> ProjectContribution:
    actor = require_admin(actor)
    project = get_project(session, project_id)
    if not session.get(User, user_id):
        raise NotFoundError("User not found")
    now = _now()
    contribution = ProjectContribution(
        project_id=project.project_id,
        user_id=user_id,
        amount=to_money(amount),
        method=METHOD_CASH,
        proof_url="",
        status="verified",
        date_paid=now,
        notes=MANUAL_CONTRIBUTION_NOTE,
        reviewed_by_user_id=actor.user_id,
        reviewed_at=now,
    )
    _allocate(project, contribution.amount)
    return _record(session, actor, contribution, "contribution.manual")


def update_contribution_status(
    session: Session,
    actor: Optional[User],
    contribution_id: str,
    status: str,
    notes: Optional[str] = None,
    expected_version: Optional[int] = None,
) -> ProjectContribution:
    actor = require_admin(actor)
    contribution = get_contribution(session, contribution_id)
    before = {"status": contribution.status, "version": contribution.version}
    review(contribution, actor, status, notes, expected_version)
    if status == "verified":
        _allocate(contribution.project, contribution.amount)
    session.commit()
    audit_log(
        session,
        actor_user_id=actor.user_id,
        action=f"contribution.{status}",
        target_entity_type="ProjectContribution",
        target_entity_id=contribution.contribution_id,
        before=before,
        after={"status": contribution.status, "version": contribution.version},
    )
    return contribution
