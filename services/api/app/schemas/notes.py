from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

NoteType = Literal["text", "checklist", "acceptance"]


class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class NoteCreate(_CamelModel):
    type: NoteType
    title: str = Field(..., min_length=1)
    content: Optional[str] = None
    issue_id: Optional[str] = None
    category: Optional[str] = None
    color: Optional[str] = None


class NoteUpdate(_CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None
    type: Optional[NoteType] = None
    color: Optional[str] = None
    is_pinned: Optional[bool] = None
    category: Optional[str] = None

    def changes(self) -> dict:
        """Fields the client actually supplied with a non-null value."""
        return {
            k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None
        }


class NoteOut(_CamelModel):
    id: str
    user_id: str
    issue_id: Optional[str] = None
    type: str
    title: str
    content: Optional[str] = None
    color: str
    is_pinned: bool
    sort_order: Optional[int] = None
    category: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class NoteList(BaseModel):
    notes: list[NoteOut]
