"""SQLAlchemy declarative base and model imports for Alembic."""
from app.db.session import Base

# Import all models so Alembic can see them
from app.models.attempt import Attempt  # noqa: F401
from app.models.level import Level  # noqa: F401
from app.models.problem import Problem  # noqa: F401
from app.models.progress import Progress  # noqa: F401
from app.models.user import User  # noqa: F401

__all__ = ["Base", "User", "Level", "Problem", "Progress", "Attempt"]
