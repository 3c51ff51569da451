from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ProjectCreate(BaseModel):
    github_repo_id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ProjectOut(BaseModel):
    id: str
    user_id: str
    github_repo_id: int
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
