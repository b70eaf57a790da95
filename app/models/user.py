"""User model: a learner profile (name, grade, avatar). No login."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(20), nullable=False)
    grade = Column(Integer, nullable=False)  # 0 = kindergarten .. 5
    avatar = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    progress = relationship("Progress", back_populates="user", uselist=True)
    attempts = relationship("Attempt", back_populates="user")
