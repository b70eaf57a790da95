"""Pydantic schemas for profiles and the dashboard."""
from pydantic import BaseModel, Field, field_validator

from app.schemas.level import ProgressOutSchema
from app.services.grading import MAX_GRADE, MIN_GRADE

AVATAR_OPTIONS = [
    "🐶", "🐱", "🐭", "🐰", "🦊", "🐸", "🐼", "🐨", "🦁", "🐯",
    "🦄", "🐹", "🐷", "🐮", "🐧", "🐤", "🦋", "🐙", "🦖", "🌟",
]


class ProfileCreateSchema(BaseModel):
    name: str = Field(min_length=1, max_length=20)
    grade: int = Field(ge=MIN_GRADE, le=MAX_GRADE)
    avatar: str = Field(min_length=1, max_length=16)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class UserOutSchema(BaseModel):
    id: int
    name: str
    grade: int
    avatar: str

    class Config:
        from_attributes = True


class UserProgressOutSchema(BaseModel):
    user: UserOutSchema
    progress: list[ProgressOutSchema]
    completed_levels: int
    total_levels: int
