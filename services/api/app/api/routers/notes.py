from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from ...core.errors import Forbidden, NotFound, ValidationError
from ...core.logging import get_logger
from ...models.issues import Issue
from ...models.notes import DEFAULT_NOTE_COLOR, Note
from ...models.projects import Project
from ...schemas.notes import NoteCreate, NoteList, NoteOut, NoteUpdate
from ..deps import RequestContext, get_db_session, require_auth

router = APIRouter(prefix="/api/notes", tags=["notes"])
logger = get_logger(__name__)


def _owned_note(session: Session, note_id: str, ctx: RequestContext) -> Note:
    note = session.get(Note, note_id)
    if note is None:
        raise NotFound("Note not found")
    if note.user_id != ctx.user_id:
        logger.warning("notes.forbidden", note_id=note_id, sub=ctx.user_id)
        raise Forbidden()
    return note


def _check_issue_visible(session: Session, issue_id: str, ctx: RequestContext) -> None:
    owner = session.execute(
        select(Project.user_id)
        .join(Issue, Issue.project_id == Project.id)
        .where(Issue.id == issue_id)
    ).scalar_one_or_none()
    if owner != ctx.user_id:
        raise ValidationError("Issue not found")


@router.get("", response_model=NoteList)
def list_notes(
    category: Optional[str] = Query(None),
    issue_id: Optional[str] = Query(None, alias="issueId"),
    ctx: RequestContext = Depends(require_auth),
    session: Session = Depends(get_db_session),
) -> NoteList:
    stmt = select(Note).where(Note.user_id == ctx.user_id)
    if category:
        stmt = stmt.where(Note.category == category)
    if issue_id:
        stmt = stmt.where(Note.issue_id == issue_id)
    rows = (
        session.execute(stmt.order_by(Note.is_pinned.desc(), Note.created_at.desc()))
        .scalars()
        .all()
    )
    return NoteList(notes=[NoteOut.model_validate(n) for n in rows])


@router.post("", response_model=NoteOut, status_code=201)
def create_note(
    payload: NoteCreate,
    ctx: RequestContext = Depends(require_auth),
    session: Session = Depends(get_db_session),
) -> NoteOut:
    if payload.issue_id is not None:
        _check_issue_visible(session, payload.issue_id, ctx)

    note = Note(
        user_id=ctx.user_id,
        issue_id=payload.issue_id,
        type=payload.type,
        title=payload.title,
        content=payload.content,
        category=payload.category,
        color=payload.color or DEFAULT_NOTE_COLOR,
        is_pinned=False,
    )
    session.add(note)
    session.commit()
    session.refresh(note)
    logger.info("notes.created", note_id=note.id, sub=ctx.user_id)
    return NoteOut.model_validate(note)


@router.patch("/{note_id}", response_model=NoteOut)
def update_note(
    note_id: str,
    payload: NoteUpdate,
    ctx: RequestContext = Depends(require_auth),
    session: Session = Depends(get_db_session),
) -> NoteOut:
    note = _owned_note(session, note_id, ctx)

    changes = payload.changes()
    if not changes:
        raise ValidationError("No fields to update")

    for field, value in changes.items():
        setattr(note, field, value)
    session.commit()
    session.refresh(note)
    return NoteOut.model_validate(note)


@router.delete("/{note_id}", status_code=204)
def delete_note(
    note_id: str,
    ctx: RequestContext = Depends(require_auth),
    session: Session = Depends(get_db_session),
) -> Response:
    note = _owned_note(session, note_id, ctx)
    session.delete(note)
    session.commit()
    logger.info("notes.deleted", note_id=note_id, sub=ctx.user_id)
    return Response(status_code=204)
