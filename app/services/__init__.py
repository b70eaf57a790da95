from app.services.grading import can_complete_level, grade_answer, is_final_attempt
from app.services.seeding import seed_levels

__all__ = ["can_complete_level", "grade_answer", "is_final_attempt", "seed_levels"]
