"""Pydantic schemas for levels, problems, answers and completion."""
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ProblemOutSchema(BaseModel):
    id: int
    question: str
    answer: int
    options: list[int]
    type: str

    class Config:
        from_attributes = True


class LevelOutSchema(BaseModel):
    id: int
    grade: int
    level_number: int
    name: str
    description: str
    problem_count: int
    problems: list[ProblemOutSchema] = []

    class Config:
        from_attributes = True


class ProgressOutSchema(BaseModel):
    level_id: int
    score: int
    total_attempts: int
    correct_answers: int
    accuracy: int
    is_completed: bool
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


class SubmitAnswerSchema(BaseModel):
    user_id: int = Field(validation_alias=AliasChoices("user_id", "userId"))
    problem_id: int = Field(validation_alias=AliasChoices("problem_id", "problemId"))
    user_answer: int = Field(validation_alias=AliasChoices("user_answer", "userAnswer"))
    is_second_attempt: bool = Field(
        default=False, validation_alias=AliasChoices("is_second_attempt", "isSecondAttempt")
    )


class CompleteLevelSchema(BaseModel):
    user_id: int = Field(validation_alias=AliasChoices("user_id", "userId"))


class AnswerResultSchema(BaseModel):
    is_correct: bool = Field(alias="isCorrect")
    correct_answer: int = Field(alias="correctAnswer")
    problem_id: int = Field(alias="problemId")
    is_first_wrong_for_1st_2nd: bool = Field(alias="isFirstWrongFor1st2nd")

    class Config:
        populate_by_name = True


class CompletionOutSchema(BaseModel):
    completed: bool = False
    need_more_practice: bool | None = Field(default=None, alias="needMorePractice")
    redirect_url: str | None = Field(default=None, alias="redirectUrl")

    class Config:
        populate_by_name = True


class LevelFormSchema(BaseModel):
    """Fields posted by the level page form; which ones are needed depends on ``action``."""

    action: str | None = None
    user_id: int | None = None
    problem_id: int | None = None
    user_answer: int | None = None
    is_second_attempt: bool = False

    @field_validator("user_id", "problem_id", "user_answer", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v
