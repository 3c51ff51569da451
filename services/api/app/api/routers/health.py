from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.responses import JSONResponse

from ...core.config import get_settings
from ...core.logging import get_logger
from ...db import check_database_health
from ..deps import get_db_session

router = APIRouter(tags=["ops"])
logger = get_logger(__name__)


def _orm_check(session: Session) -> dict:
    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return {"ok": False, "details": str(exc)}
    return {"ok": True, "details": "ok"}


@router.get("/health")
def health(session: Session = Depends(get_db_session)) -> JSONResponse:
    """Liveness plus database reachability; 503 when any check fails."""
    settings = get_settings()
    db = check_database_health()
    orm = _orm_check(session)

    # The database-backed OAuth store is only as healthy as the database
    backend = settings.session_store_backend
    store_ok = db["ok"] if backend == "database" else True

    overall_ok = db["ok"] and orm["ok"] and store_ok
    if not overall_ok:
        logger.warning("health.degraded", db=db["details"], orm=orm["details"])
    return JSONResponse(
        {
            "status": "ok" if overall_ok else "degraded",
            "version": settings.app_version,
            "db": db,
            "orm": orm,
            "session_store": {"backend": backend, "ok": store_ok},
        },
        status_code=200 if overall_ok else 503,
    )
