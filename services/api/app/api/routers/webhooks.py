import json

from fastapi import APIRouter, Depends, Header, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ...core.config import get_settings
from ...core.errors import InvalidSignature, ValidationError
from ...core.logging import get_logger
from ...core.observability import WEBHOOK_DELIVERIES
from ...core.signatures import verify_signature
from ...schemas.webhooks import IssuesEvent
from ...services.webhook_ingest import ISSUES_EVENT, apply_issue_event
from ..deps import get_db_session

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])
logger = get_logger(__name__)


@router.post("/github")
async def github_webhook(
    request: Request,
    session: Session = Depends(get_db_session),
    x_github_event: str | None = Header(None, alias="X-GitHub-Event"),
    x_hub_signature_256: str | None = Header(None, alias="X-Hub-Signature-256"),
    x_github_delivery: str | None = Header(None, alias="X-GitHub-Delivery"),
) -> dict:
    """
    GitHub webhook receiver.

    Only ``issues`` events change state; every other event type is
    acknowledged and skipped. The signature is checked against the raw body
    before anything is parsed or written.
    """
    if not x_hub_signature_256:
        WEBHOOK_DELIVERIES.labels(event=x_github_event or "unknown", result="unsigned").inc()
        raise InvalidSignature("Missing signature header")

    body = await request.body()
    secret = get_settings().github_webhook_secret
    if not secret:
        logger.error("webhook.secret_not_configured")
    if not verify_signature(body, x_hub_signature_256, secret):
        logger.warning("webhook.invalid_signature", delivery=x_github_delivery)
        WEBHOOK_DELIVERIES.labels(event=x_github_event or "unknown", result="rejected").inc()
        raise InvalidSignature("Invalid signature")

    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON payload")

    if x_github_event != ISSUES_EVENT:
        WEBHOOK_DELIVERIES.labels(event=x_github_event or "unknown", result="skipped").inc()
        return {
            "message": (
                f"Event type '{x_github_event}' skipped "
                f"(only '{ISSUES_EVENT}' events are processed)"
            ),
            "skipped": True,
        }

    try:
        event = IssuesEvent.model_validate(payload)
    except PydanticValidationError:
        raise ValidationError("Invalid issues event payload")

    result = apply_issue_event(session, event)
    WEBHOOK_DELIVERIES.labels(event=ISSUES_EVENT, result=result.action).inc()
    return {
        "message": f"Issue {result.action} successfully",
        "issueId": result.issue_id,
        "action": result.action,
    }
