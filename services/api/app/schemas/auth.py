"""Pydantic schemas for authentication endpoints."""
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class UserInfo(BaseModel):
    """Response schema for the current user."""

    id: str = Field(..., description="Internal user id")
    login: str = Field(..., description="GitHub login")
    avatar_url: Optional[str] = Field(None, description="GitHub avatar URL")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": "0b6f3c1e-2f7e-4d8a-9c0d-5b1f2a3e4d5c",
                "login": "octocat",
                "avatarUrl": "https://avatars.githubusercontent.com/u/583231",
            }
        }


class LogoutResponse(BaseModel):
    success: bool = True
