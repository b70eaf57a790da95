"""Answer grading, attempt finality and level completion rules per grade."""
from typing import NamedTuple

KINDERGARTEN = 0
MIN_GRADE = 0
MAX_GRADE = 5
# Grades that get one penalty-free retry after a first wrong answer
SECOND_CHANCE_GRADES = (1, 2)
# Grades from here on type the answer instead of picking a choice
KEYBOARD_INPUT_FROM_GRADE = 2

COMPLETION_THRESHOLD = 0.8

GRADE_NAMES = {
    0: "Kindergarten",
    1: "1st Grade",
    2: "2nd Grade",
    3: "3rd Grade",
    4: "4th Grade",
    5: "5th Grade",
}


class GradeResult(NamedTuple):
    is_correct: bool
    is_first_wrong_for_1st_2nd: bool


def get_grade_name(grade: int) -> str:
    return GRADE_NAMES.get(grade, f"Grade {grade}")


def grade_answer(user_answer: int, correct_answer: int, grade: int, is_second_attempt: bool) -> GradeResult:
    """Check one submission.

    A wrong first answer from a 1st or 2nd grader is flagged so the caller can
    offer a second chance instead of counting it.
    """
    is_correct = user_answer == correct_answer
    first_wrong = not is_correct and grade in SECOND_CHANCE_GRADES and not is_second_attempt
    return GradeResult(is_correct=is_correct, is_first_wrong_for_1st_2nd=first_wrong)


def is_final_attempt(is_correct: bool, grade: int, is_second_attempt: bool) -> bool:
    """Return True if the submission counts toward persisted progress."""
    return is_correct or grade == KINDERGARTEN or grade >= 3 or is_second_attempt


def apply_final_attempt(progress, is_correct: bool) -> None:
    """Add one final attempt to an existing progress row; score mirrors correct answers."""
    progress.correct_answers = (progress.correct_answers or 0) + (1 if is_correct else 0)
    progress.total_attempts = (progress.total_attempts or 0) + 1
    progress.score = progress.correct_answers


def completion_accuracy(correct_answers: int, total_attempts: int, problem_count: int) -> float:
    """Accuracy used to gate completion: correct answers over the level's problem count.

    Note this differs from the accuracy shown while playing (correct / attempts).
    """
    if total_attempts <= 0 or problem_count <= 0:
        return 0.0
    return correct_answers / problem_count


def can_complete_level(
    correct_answers: int,
    total_attempts: int,
    problem_count: int,
    threshold: float = COMPLETION_THRESHOLD,
) -> bool:
    return completion_accuracy(correct_answers, total_attempts, problem_count) >= threshold


def uses_keyboard_input(grade: int) -> bool:
    return grade >= KEYBOARD_INPUT_FROM_GRADE
