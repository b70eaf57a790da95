"""Progress recording: attempts, final-attempt progress updates, level completion."""
from datetime import datetime, timezone
from typing import NamedTuple

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import LevelNotFound, ProblemNotFound, UserNotFound
from app.models.attempt import Attempt
from app.models.level import Level
from app.models.problem import Problem
from app.models.progress import Progress
from app.models.user import User
from app.schemas.level import AnswerResultSchema
from app.services.grading import (
    COMPLETION_THRESHOLD,
    apply_final_attempt,
    can_complete_level,
    grade_answer,
    is_final_attempt,
)

logger = structlog.get_logger(__name__)


class CompletionResult(NamedTuple):
    completed: bool
    progress: Progress | None


# ---------- lookups ----------

async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


async def get_level(db: AsyncSession, level_id: int, with_problems: bool = False) -> Level:
    stmt = select(Level).where(Level.id == level_id)
    if with_problems:
        stmt = stmt.options(selectinload(Level.problems))
    level = (await db.execute(stmt)).scalar_one_or_none()
    if level is None:
        raise LevelNotFound(level_id)
    return level


async def get_problem(db: AsyncSession, problem_id: int, level_id: int | None = None) -> Problem:
    problem = await db.get(Problem, problem_id)
    if problem is None or (level_id is not None and problem.level_id != level_id):
        raise ProblemNotFound(problem_id)
    return problem


async def get_progress(db: AsyncSession, user_id: int, level_id: int) -> Progress | None:
    result = await db.execute(
        select(Progress).where(Progress.user_id == user_id, Progress.level_id == level_id)
    )
    return result.scalar_one_or_none()


async def get_user_progress(db: AsyncSession, user_id: int) -> list[Progress]:
    """All progress rows for a user, in level order."""
    result = await db.execute(
        select(Progress)
        .join(Level, Progress.level_id == Level.id)
        .where(Progress.user_id == user_id)
        .options(selectinload(Progress.level))
        .order_by(Level.level_number.asc(), Level.id.asc())
    )
    return list(result.scalars().all())


async def load_level_context(
    db: AsyncSession, level_id: int, user_id: int
) -> tuple[Level, User, Progress | None]:
    """Level with problems, the user and their progress on it (may be None)."""
    level = await get_level(db, level_id, with_problems=True)
    user = await get_user(db, user_id)
    progress = await get_progress(db, user_id, level_id)
    return level, user, progress


# ---------- answers ----------

async def record_final_attempt(
    db: AsyncSession, user_id: int, level_id: int, is_correct: bool
) -> Progress:
    """Create the (user, level) progress row on first use, otherwise add to it."""
    progress = await get_progress(db, user_id, level_id)
    if progress is None:
        correct = 1 if is_correct else 0
        progress = Progress(
            user_id=user_id,
            level_id=level_id,
            correct_answers=correct,
            total_attempts=1,
            score=correct,
            is_completed=False,
        )
        db.add(progress)
    else:
        apply_final_attempt(progress, is_correct)
    return progress


async def submit_answer(
    db: AsyncSession,
    *,
    user_id: int,
    level_id: int,
    problem_id: int,
    user_answer: int,
    is_second_attempt: bool = False,
) -> AnswerResultSchema:
    """Grade a submission, log it, and update progress when the attempt is final."""
    problem = await get_problem(db, problem_id, level_id)
    user = await get_user(db, user_id)

    result = grade_answer(user_answer, problem.answer, user.grade, is_second_attempt)

    db.add(
        Attempt(
            user_id=user.id,
            problem_id=problem.id,
            user_answer=user_answer,
            is_correct=result.is_correct,
        )
    )

    final = is_final_attempt(result.is_correct, user.grade, is_second_attempt)
    if final:
        progress = await record_final_attempt(db, user.id, level_id, result.is_correct)
        logger.info(
            "progress_updated",
            user_id=user.id,
            level_id=level_id,
            correct_answers=progress.correct_answers,
            total_attempts=progress.total_attempts,
        )

    await db.commit()
    logger.info(
        "attempt_recorded",
        user_id=user.id,
        problem_id=problem.id,
        is_correct=result.is_correct,
        final=final,
    )

    return AnswerResultSchema(
        is_correct=result.is_correct,
        correct_answer=problem.answer,
        problem_id=problem.id,
        is_first_wrong_for_1st_2nd=result.is_first_wrong_for_1st_2nd,
    )


# ---------- completion ----------

async def complete_level(
    db: AsyncSession,
    user_id: int,
    level_id: int,
    threshold: float = COMPLETION_THRESHOLD,
) -> CompletionResult:
    """Mark the level completed if enough problems were answered correctly.

    A missing progress row or level is reported as "needs more practice",
    not as an error. Completing again keeps the first ``completed_at``.
    """
    progress = await get_progress(db, user_id, level_id)
    level = await db.get(Level, level_id)

    if progress is None or level is None:
        return CompletionResult(completed=False, progress=progress)

    if not can_complete_level(
        progress.correct_answers, progress.total_attempts, level.problem_count, threshold
    ):
        logger.info(
            "level_needs_practice",
            user_id=user_id,
            level_id=level_id,
            correct_answers=progress.correct_answers,
            problem_count=level.problem_count,
        )
        return CompletionResult(completed=False, progress=progress)

    if not progress.is_completed:
        progress.is_completed = True
        progress.completed_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(progress)
        logger.info("level_completed", user_id=user_id, level_id=level_id)
    return CompletionResult(completed=True, progress=progress)
