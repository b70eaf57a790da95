"""Play state for one user working one level.

The state is an immutable value: every transition returns a new
``LevelSession``. The web layer carries it between requests in query
parameters and hidden form fields; nothing here is persisted.
"""
import re
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, Field

from app.core.errors import InvalidActionError
from app.services.grading import (
    COMPLETION_THRESHOLD,
    KINDERGARTEN,
    SECOND_CHANCE_GRADES,
    GradeResult,
)

ADDITION_RE = re.compile(r"(\d+)\s*\+\s*(\d+)")
SUBTRACTION_RE = re.compile(r"(\d+)\s*-\s*(\d+)")


class ProblemState(str, Enum):
    UNANSWERED = "unanswered"
    FIRST_WRONG = "first-wrong"
    ANSWERED = "answered"


class VisualHint(NamedTuple):
    operation: str  # addition | subtraction
    first: int
    second: int
    result: int


class LevelSession(BaseModel):
    index: int = Field(default=0, ge=0)
    state: ProblemState = ProblemState.UNANSWERED
    showing_second_chance: bool = False
    # running totals, seeded from stored progress when play starts
    score: int = Field(default=0, ge=0)
    answered: int = Field(default=0, ge=0)
    # last submission, for feedback
    last_answer: int | None = None
    last_correct: bool | None = None

    class Config:
        frozen = True

    @classmethod
    def start(cls, progress=None) -> "LevelSession":
        if progress is None:
            return cls()
        return cls(score=progress.correct_answers, answered=progress.total_attempts)

    def can_make_selection(self, grade: int) -> bool:
        if grade == KINDERGARTEN:
            return self.state != ProblemState.ANSWERED
        return self.state == ProblemState.UNANSWERED or self.showing_second_chance

    def shows_visual_hints(self, grade: int) -> bool:
        if grade == KINDERGARTEN:
            return True
        if grade in SECOND_CHANCE_GRADES:
            return self.showing_second_chance
        return False

    def apply_result(self, result: GradeResult, answer: int, grade: int) -> "LevelSession":
        """Move to first-wrong or answered after the server graded a submission."""
        if not self.can_make_selection(grade):
            raise InvalidActionError("submit-answer")
        update = {"last_answer": answer, "last_correct": result.is_correct}
        if result.is_correct:
            update.update(
                state=ProblemState.ANSWERED,
                showing_second_chance=False,
                score=self.score + 1,
                answered=self.answered + 1,
            )
        elif result.is_first_wrong_for_1st_2nd:
            # not counted yet
            update.update(state=ProblemState.FIRST_WRONG)
        else:
            update.update(
                state=ProblemState.ANSWERED,
                showing_second_chance=False,
                answered=self.answered + 1,
            )
        return self.model_copy(update=update)

    def retry(self) -> "LevelSession":
        """Second chance with hints after a first wrong answer."""
        if self.state != ProblemState.FIRST_WRONG:
            raise InvalidActionError("try-again")
        return self.model_copy(
            update={
                "state": ProblemState.UNANSWERED,
                "showing_second_chance": True,
                "last_answer": None,
                "last_correct": None,
            }
        )

    def next_problem(self, problem_total: int) -> "LevelSession":
        if self.state != ProblemState.ANSWERED:
            raise InvalidActionError("next-problem")
        if self.index >= problem_total - 1:
            return self
        return self.model_copy(
            update={
                "index": self.index + 1,
                "state": ProblemState.UNANSWERED,
                "showing_second_chance": False,
                "last_answer": None,
                "last_correct": None,
            }
        )

    def restart(self) -> "LevelSession":
        return self.model_copy(
            update={
                "index": 0,
                "state": ProblemState.UNANSWERED,
                "showing_second_chance": False,
                "last_answer": None,
                "last_correct": None,
            }
        )

    @property
    def accuracy(self) -> int:
        """Percent correct over answered problems, as shown while playing."""
        if self.answered <= 0:
            return 0
        return round(self.score / self.answered * 100)

    def can_complete(self, problem_count: int, threshold: float = COMPLETION_THRESHOLD) -> bool:
        return self.answered >= problem_count and self.accuracy >= round(threshold * 100)

    def progress_percentage(self, problem_total: int) -> int:
        if problem_total <= 0:
            return 0
        done = self.index + (1 if self.state == ProblemState.ANSWERED else 0)
        return round(done / problem_total * 100)

    def is_last_problem(self, problem_total: int) -> bool:
        return self.index >= problem_total - 1

    def to_params(self) -> dict:
        """Query parameters that rebuild this state on the next request."""
        params = {
            "index": self.index,
            "state": self.state.value,
            "second_chance": int(self.showing_second_chance),
            "score": self.score,
            "answered": self.answered,
        }
        if self.last_answer is not None:
            params["answer"] = self.last_answer
        if self.last_correct is not None:
            params["correct"] = int(self.last_correct)
        return params


def visual_hint(question: str) -> VisualHint | None:
    """Pull the two operands out of a question like ``"3 + 4 = ?"``."""
    match = ADDITION_RE.search(question)
    if match:
        a, b = int(match.group(1)), int(match.group(2))
        return VisualHint("addition", a, b, a + b)
    match = SUBTRACTION_RE.search(question)
    if match:
        a, b = int(match.group(1)), int(match.group(2))
        return VisualHint("subtraction", a, b, a - b)
    return None
