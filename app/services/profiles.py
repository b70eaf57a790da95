"""Profiles and dashboard data."""
from typing import NamedTuple

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.level import Level
from app.models.progress import Progress
from app.models.user import User
from app.schemas.user import ProfileCreateSchema
from app.services.progress import get_user, get_user_progress

logger = structlog.get_logger(__name__)


class LevelCard(NamedTuple):
    level: Level
    progress: Progress | None

    @property
    def is_completed(self) -> bool:
        return bool(self.progress and self.progress.is_completed)


class Dashboard(NamedTuple):
    user: User
    cards: list[LevelCard]
    next_level: Level | None
    completed_levels: int
    total_levels: int
    progress: list[Progress]

    @property
    def overall_progress(self) -> int:
        if not self.total_levels:
            return 0
        return round(self.completed_levels / self.total_levels * 100)


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def create_user(db: AsyncSession, data: ProfileCreateSchema) -> User:
    user = User(name=data.name, grade=data.grade, avatar=data.avatar)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("profile_created", user_id=user.id, grade=user.grade)
    return user


async def levels_for_grade(db: AsyncSession, grade: int) -> list[Level]:
    result = await db.execute(
        select(Level).where(Level.grade == grade).order_by(Level.level_number.asc(), Level.id.asc())
    )
    return list(result.scalars().all())


async def build_dashboard(db: AsyncSession, user_id: int) -> Dashboard:
    """Levels for the user's grade, their progress, and the first level not yet completed."""
    user = await get_user(db, user_id)
    levels = await levels_for_grade(db, user.grade)
    rows = await get_user_progress(db, user.id)
    by_level = {p.level_id: p for p in rows}

    cards = [LevelCard(level, by_level.get(level.id)) for level in levels]
    next_level = next((c.level for c in cards if not c.is_completed), None)
    # counts every completed level, including other grades
    completed = sum(1 for p in by_level.values() if p.is_completed)
    return Dashboard(
        user=user,
        cards=cards,
        next_level=next_level,
        completed_levels=completed,
        total_levels=len(levels),
        progress=rows,
    )
