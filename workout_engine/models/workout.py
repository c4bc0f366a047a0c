"""Workout definition models.

A WorkoutDefinition is authored elsewhere and handed to the engine
read-only. The engine never mutates it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from workout_engine.errors import ValidationError


class ExercisePlan(BaseModel):
    """One exercise slot within a workout."""

    model_config = ConfigDict(frozen=True)

    exercise_id: str
    order: int
    target_sets: int
    target_reps: int
    rest_seconds: int = 60
    name: str | None = None
    target_weight_kg: float | None = None


class WorkoutDefinition(BaseModel):
    """Ordered list of exercises making up a workout."""

    model_config = ConfigDict(frozen=True)

    workout_id: str
    name: str = ""
    exercises: tuple[ExercisePlan, ...] = Field(default_factory=tuple)

    @property
    def exercise_count(self) -> int:
        return len(self.exercises)

    def exercise_at(self, index: int) -> ExercisePlan:
        return self.exercises[index]


def validate_workout(workout: WorkoutDefinition) -> None:
    """Check that a workout is playable.

    Raises:
        ValidationError: empty exercise list, non-increasing ``order``,
            non-positive set target or negative rest
    """
    if not workout.exercises:
        raise ValidationError("workout has no exercises", workout_id=workout.workout_id)

    previous_order: int | None = None
    for exercise in workout.exercises:
        if previous_order is not None and exercise.order <= previous_order:
            raise ValidationError(
                "exercise order must be strictly increasing",
                workout_id=workout.workout_id,
                exercise_id=exercise.exercise_id,
                order=exercise.order,
            )
        if exercise.target_sets < 1:
            raise ValidationError(
                "exercise must have at least one set",
                workout_id=workout.workout_id,
                exercise_id=exercise.exercise_id,
            )
        if exercise.rest_seconds < 0:
            raise ValidationError(
                "rest_seconds cannot be negative",
                workout_id=workout.workout_id,
                exercise_id=exercise.exercise_id,
            )
        previous_order = exercise.order
