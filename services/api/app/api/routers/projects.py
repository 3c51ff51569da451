from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...core.errors import Conflict
from ...models.projects import Project
from ...schemas.projects import ProjectCreate, ProjectOut
from ..deps import RequestContext, get_db_session, require_auth

router = APIRouter(prefix="/api/projects", tags=["projects"])

ALREADY_LINKED = "repository already linked to a project"


def _linked_project(session: Session, github_repo_id: int) -> Project | None:
    return session.execute(
        select(Project).where(Project.github_repo_id == github_repo_id)
    ).scalar_one_or_none()


@router.post("", response_model=ProjectOut, status_code=201)
def create_project(
    payload: ProjectCreate,
    ctx: RequestContext = Depends(require_auth),
    session: Session = Depends(get_db_session),
) -> ProjectOut:
    if _linked_project(session, payload.github_repo_id) is not None:
        raise Conflict(ALREADY_LINKED)
    project = Project(
        user_id=ctx.user_id,
        github_repo_id=payload.github_repo_id,
        name=payload.name,
        description=payload.description,
    )
    session.add(project)
    try:
        session.commit()
    except IntegrityError as exc:
        # A concurrent request linked the same repository after our check
        session.rollback()
        raise Conflict(ALREADY_LINKED) from exc
    session.refresh(project)
    return ProjectOut.model_validate(project)


@router.get("", response_model=list[ProjectOut])
def list_projects(
    ctx: RequestContext = Depends(require_auth),
    session: Session = Depends(get_db_session),
) -> list[ProjectOut]:
    rows = (
        session.execute(
            select(Project)
            .where(Project.user_id == ctx.user_id)
            .order_by(Project.created_at.desc())
        )
        .scalars()
        .all()
    )
    return [ProjectOut.model_validate(p) for p in rows]
