"""Exercise catalog: the built-in React pool or a JSON file of the same shape."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List

from pydantic import TypeAdapter

from .schemas import Exercise

logger = logging.getLogger(__name__)


class ExerciseNotFoundError(LookupError):
    def __init__(self, exercise_id: str):
        super().__init__(f"Exercise not found: {exercise_id}")
        self.exercise_id = exercise_id


BUILTIN_EXERCISES: List[Exercise] = [
    Exercise(
        id="todo-list",
        title="Todo List",
        tier=1,
        time_limit_minutes=10,
        topics=["state_basics", "event_handling", "list_rendering"],
    ),
    Exercise(
        id="data-dashboard",
        title="Data Dashboard",
        tier=2,
        time_limit_minutes=12,
        topics=["data_fetching", "async", "loading_states"],
    ),
    Exercise(
        id="form-validation",
        title="Form Validation",
        tier=3,
        time_limit_minutes=15,
        topics=["forms", "custom_hooks", "validation"],
    ),
    Exercise(
        id="infinite-scroll",
        title="Infinite Scroll",
        tier=4,
        time_limit_minutes=18,
        topics=["performance", "intersection_observer", "pagination"],
    ),
    Exercise(
        id="collaborative-counter",
        title="Collaborative Counter",
        tier=5,
        time_limit_minutes=20,
        topics=["state_advanced", "context", "optimistic_updates"],
    ),
]

_EXERCISE_LIST = TypeAdapter(List[Exercise])


class ExerciseCatalog:
    def __init__(self, exercises: Iterable[Exercise]):
        self._by_id: Dict[str, Exercise] = {}
        for exercise in exercises:
            if exercise.id in self._by_id:
                raise ValueError(f"Duplicate exercise id: {exercise.id}")
            self._by_id[exercise.id] = exercise

    @classmethod
    def builtin(cls) -> "ExerciseCatalog":
        return cls(BUILTIN_EXERCISES)

    @classmethod
    def from_file(cls, path: str | Path) -> "ExerciseCatalog":
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            raw = raw.get("exercises", [])
        exercises = _EXERCISE_LIST.validate_python(raw)
        logger.info("Loaded %d exercises from %s", len(exercises), path)
        return cls(exercises)

    def get(self, exercise_id: str) -> Exercise:
        try:
            return self._by_id[exercise_id]
        except KeyError:
            raise ExerciseNotFoundError(exercise_id) from None

    def pool(self) -> List[Exercise]:
        """All exercises ordered by tier (stable for equal tiers)."""
        return sorted(self._by_id.values(), key=lambda e: e.tier)

    def __len__(self) -> int:
        return len(self._by_id)


def load_catalog(path: str | None = None) -> ExerciseCatalog:
    if path:
        return ExerciseCatalog.from_file(path)
    return ExerciseCatalog.builtin()
