"""Problem model: one arithmetic question with its answer and choices (JSON)."""
import json

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from app.db.session import Base


class Problem(Base):
    __tablename__ = "problems"

    id = Column(Integer, primary_key=True, autoincrement=True)
    level_id = Column(Integer, ForeignKey("levels.id"), nullable=False, index=True)
    question = Column(String(64), nullable=False)  # "3 + 4 = ?"
    answer = Column(Integer, nullable=False)
    # options: JSON array of ints, always contains the answer
    options_json = Column(String(255), nullable=False)
    type = Column(String(16), nullable=False)  # addition | subtraction

    level = relationship("Level", back_populates="problems")
    attempts = relationship("Attempt", back_populates="problem")

    @property
    def options(self) -> list[int]:
        return [int(o) for o in json.loads(self.options_json)]
