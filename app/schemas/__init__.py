from app.schemas.level import (
    AnswerResultSchema,
    CompleteLevelSchema,
    CompletionOutSchema,
    LevelFormSchema,
    LevelOutSchema,
    ProblemOutSchema,
    ProgressOutSchema,
    SubmitAnswerSchema,
)
from app.schemas.user import ProfileCreateSchema, UserOutSchema, UserProgressOutSchema

__all__ = [
    "AnswerResultSchema",
    "CompleteLevelSchema",
    "CompletionOutSchema",
    "LevelFormSchema",
    "LevelOutSchema",
    "ProblemOutSchema",
    "ProgressOutSchema",
    "SubmitAnswerSchema",
    "ProfileCreateSchema",
    "UserOutSchema",
    "UserProgressOutSchema",
]
