"""Seed one level per grade with generated addition/subtraction problems."""
import json
import random

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.level import Level
from app.models.problem import Problem
from app.services.grading import KINDERGARTEN, get_grade_name

logger = structlog.get_logger(__name__)

# grade -> (problem count, largest operand)
GRADE_LEVELS = {
    0: (5, 5),
    1: (10, 10),
    2: (15, 20),
    3: (20, 50),
    4: (25, 100),
    5: (30, 200),
}


def pick_distractors(answer: int, offsets: list[int]) -> list[int]:
    """Wrong options near the answer: distinct, never negative, never the answer."""
    wrong = []
    for offset in offsets:
        value = answer + offset
        while value < 0 or value == answer or value in wrong:
            value += 1
        wrong.append(value)
    return wrong


def _shuffled_options(answer: int, wrong: list[int], rng: random.Random) -> str:
    options = [answer, *wrong]
    rng.shuffle(options)
    return json.dumps(options)


def generate_kindergarten_problems(count: int, rng: random.Random) -> list[dict]:
    """Addition only, operands 1-5."""
    problems = []
    for _ in range(count):
        a = rng.randint(1, 5)
        b = rng.randint(1, 5)
        answer = a + b
        wrong = pick_distractors(
            answer, [rng.randint(1, 3), -rng.randint(1, 3), rng.randint(3, 7)]
        )
        problems.append({
            "question": f"{a} + {b} = ?",
            "answer": answer,
            "options_json": _shuffled_options(answer, wrong, rng),
            "type": "addition",
        })
    return problems


def generate_mixed_problems(grade: int, count: int, rng: random.Random) -> list[dict]:
    """Half addition, half subtraction; subtraction never goes below zero."""
    _, top = GRADE_LEVELS.get(grade, GRADE_LEVELS[5])
    problems = []
    for _ in range(count):
        a = rng.randint(1, top)
        b = rng.randint(1, top)
        is_addition = rng.random() > 0.5
        if not is_addition and b > a:
            a, b = b, a
        if is_addition:
            answer, op, kind = a + b, "+", "addition"
        else:
            answer, op, kind = a - b, "-", "subtraction"
        wrong = pick_distractors(
            answer, [rng.randint(1, 5), -rng.randint(1, 5), rng.randint(5, 14)]
        )
        problems.append({
            "question": f"{a} {op} {b} = ?",
            "answer": answer,
            "options_json": _shuffled_options(answer, wrong, rng),
            "type": kind,
        })
    return problems


def build_level(grade: int, rng: random.Random) -> Level:
    count, _ = GRADE_LEVELS[grade]
    grade_name = get_grade_name(grade)
    if grade == KINDERGARTEN:
        level = Level(
            grade=grade,
            level_number=1,
            name=f"{grade_name} - Addition",
            description=f"Simple addition problems for {grade_name}",
            problem_count=count,
        )
        specs = generate_kindergarten_problems(count, rng)
    else:
        level = Level(
            grade=grade,
            level_number=1,
            name=f"{grade_name} - Mixed Math",
            description=f"Addition and subtraction problems for {grade_name}",
            problem_count=count,
        )
        specs = generate_mixed_problems(grade, count, rng)
    level.problems = [Problem(**fields) for fields in specs]
    return level


async def seed_levels(db: AsyncSession, seed: int | None = None) -> int:
    """Create levels and problems if the table is empty. Returns levels created."""
    existing = await db.scalar(select(func.count(Level.id)))
    if existing:
        logger.debug("seed_skipped", levels=existing)
        return 0

    rng = random.Random(seed)
    for grade in sorted(GRADE_LEVELS):
        db.add(build_level(grade, rng))
    await db.commit()
    logger.info("seeded_levels", levels=len(GRADE_LEVELS))
    return len(GRADE_LEVELS)
