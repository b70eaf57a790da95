"""Shared fixtures: a throwaway SQLite database per test and a TestClient bound to it."""
import asyncio
from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models import Attempt, Level, Problem, Progress, User


def run_async(coro):
    """Run setup coroutines on a private loop, leaving the current event loop alone."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@dataclass
class Seeded:
    """Ids of the rows every test starts with."""

    level_id: int
    problem_ids: list[int]
    answers: list[int]
    users: dict[int, int] = field(default_factory=dict)  # grade -> user id


def make_level(grade: int = 1, problem_count: int = 5) -> Level:
    level = Level(
        grade=grade,
        level_number=1,
        name="Test Level",
        description="Addition for tests",
        problem_count=problem_count,
    )
    level.problems = [
        Problem(
            question=f"{i + 1} + 2 = ?",
            answer=i + 3,
            options_json=f"[{i + 1}, {i + 3}, {i + 4}, {i + 5}]",
            type="addition",
        )
        for i in range(problem_count)
    ]
    return level


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    run_async(create_schema())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    run_async(engine.dispose())


@pytest.fixture
def seeded(session_factory) -> Seeded:
    """One grade-1 level with five problems and one user per grade 0-5."""

    async def seed():
        async with session_factory() as db:
            level = make_level()
            db.add(level)
            users = {grade: User(name=f"Kid{grade}", grade=grade, avatar="🐶") for grade in range(6)}
            db.add_all(users.values())
            await db.commit()
            return Seeded(
                level_id=level.id,
                problem_ids=[p.id for p in level.problems],
                answers=[p.answer for p in level.problems],
                users={grade: u.id for grade, u in users.items()},
            )

    return run_async(seed())


@pytest.fixture
def client(session_factory, seeded):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fetch_progress(session_factory):
    """Read the progress row for (user, level) straight from the database."""

    def _fetch(user_id: int, level_id: int) -> Progress | None:
        async def run():
            async with session_factory() as db:
                result = await db.execute(
                    select(Progress).where(Progress.user_id == user_id, Progress.level_id == level_id)
                )
                return result.scalar_one_or_none()

        return run_async(run())

    return _fetch


@pytest.fixture
def count_attempts(session_factory):
    def _count(user_id: int) -> int:
        async def run():
            async with session_factory() as db:
                return await db.scalar(select(func.count(Attempt.id)).where(Attempt.user_id == user_id))

        return run_async(run())

    return _count
