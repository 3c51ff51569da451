from pydantic import BaseModel


class WebhookIssue(BaseModel):
    number: int
    title: str
    state: str


class WebhookRepository(BaseModel):
    id: int
    name: str | None = None


class IssuesEvent(BaseModel):
    """Subset of GitHub's ``issues`` event payload that we persist."""

    action: str | None = None
    issue: WebhookIssue
    repository: WebhookRepository
