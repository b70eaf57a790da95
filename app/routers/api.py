"""API routes: JSON for levels, answers, completion and progress."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import NotFoundError
from app.db.session import get_db
from app.schemas.level import (
    AnswerResultSchema,
    CompleteLevelSchema,
    CompletionOutSchema,
    LevelOutSchema,
    ProgressOutSchema,
    SubmitAnswerSchema,
)
from app.schemas.user import UserOutSchema, UserProgressOutSchema
from app.services import progress as progress_service
from app.services.profiles import build_dashboard

router = APIRouter(prefix="/api", tags=["api"])
settings = get_settings()


@router.get("/levels/{level_id}")
async def get_level(
    level_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: int | None = None,
):
    """Level with its problems, the user, and the user's progress (null if none yet)."""
    if user_id is None:
        raise HTTPException(status_code=400, detail="Missing required parameters")
    try:
        level, user, progress = await progress_service.load_level_context(db, level_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {
        "level": LevelOutSchema.model_validate(level),
        "user": UserOutSchema.model_validate(user),
        "progress": ProgressOutSchema.model_validate(progress) if progress else None,
    }


@router.post("/levels/{level_id}/answers", response_model=AnswerResultSchema)
async def submit_answer(
    level_id: int,
    body: SubmitAnswerSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Grade one answer; progress is only updated for final attempts."""
    try:
        return await progress_service.submit_answer(
            db,
            user_id=body.user_id,
            level_id=level_id,
            problem_id=body.problem_id,
            user_answer=body.user_answer,
            is_second_attempt=body.is_second_attempt,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/levels/{level_id}/complete",
    response_model=CompletionOutSchema,
    response_model_exclude_none=True,
)
async def complete_level(
    level_id: int,
    body: CompleteLevelSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Mark the level completed, or report that more practice is needed."""
    result = await progress_service.complete_level(
        db, body.user_id, level_id, threshold=settings.completion_threshold
    )
    if not result.completed:
        return CompletionOutSchema(completed=False, need_more_practice=True)

    return CompletionOutSchema(
        completed=True,
        redirect_url=f"/dashboard/{body.user_id}?completed={level_id}",
    )


@router.get("/users/{user_id}/progress", response_model=UserProgressOutSchema)
async def get_user_progress(
    user_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Progress for every level the user has played."""
    try:
        dashboard = await build_dashboard(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return UserProgressOutSchema(
        user=UserOutSchema.model_validate(dashboard.user),
        progress=[ProgressOutSchema.model_validate(p) for p in dashboard.progress],
        completed_levels=dashboard.completed_levels,
        total_levels=dashboard.total_levels,
    )
