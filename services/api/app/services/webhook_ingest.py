from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import NotFound
from ..core.logging import get_logger
from ..db import upsert_insert
from ..models.issues import Issue
from ..models.mixins import new_id
from ..models.projects import Project
from ..schemas.webhooks import IssuesEvent

logger = get_logger(__name__)

ISSUES_EVENT = "issues"


class ProjectNotFound(NotFound):
    default_message = "Project not found for this repository"


@dataclass(frozen=True)
class IngestResult:
    issue_id: str
    created: bool

    @property
    def action(self) -> str:
        return "created" if self.created else "updated"


def apply_issue_event(session: Session, event: IssuesEvent) -> IngestResult:
    """
    Upsert the issue named by a verified ``issues`` event.

    Replays converge on the same row: the insert resolves conflicts on
    (project_id, github_issue_number) in the database.
    """
    project = session.execute(
        select(Project).where(Project.github_repo_id == event.repository.id)
    ).scalar_one_or_none()
    if project is None:
        logger.warning("webhook.project_not_found", repo_id=event.repository.id)
        raise ProjectNotFound()

    existing_id = session.execute(
        select(Issue.id).where(
            Issue.project_id == project.id,
            Issue.github_issue_number == event.issue.number,
        )
    ).scalar_one_or_none()

    now = datetime.now(UTC)
    stmt = upsert_insert(session, Issue).values(
        id=new_id(),
        project_id=project.id,
        github_issue_number=event.issue.number,
        title=event.issue.title,
        state=event.issue.state,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Issue.project_id, Issue.github_issue_number],
        set_={
            "title": stmt.excluded.title,
            "state": stmt.excluded.state,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    session.execute(stmt)
    session.commit()

    issue_id = session.execute(
        select(Issue.id).where(
            Issue.project_id == project.id,
            Issue.github_issue_number == event.issue.number,
        )
    ).scalar_one()

    result = IngestResult(issue_id=issue_id, created=existing_id is None)
    logger.info(
        "webhook.issue_applied",
        project_id=project.id,
        issue_number=event.issue.number,
        issue_state=event.issue.state,
        result=result.action,
    )
    return result
