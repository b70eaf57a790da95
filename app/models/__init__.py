from app.models.user import User
from app.models.level import Level
from app.models.problem import Problem
from app.models.progress import Progress
from app.models.attempt import Attempt

__all__ = ["User", "Level", "Problem", "Progress", "Attempt"]
