"""
Argument schemas for the coaching tools.

Each tool takes exactly one pydantic model. Field aliases are the camelCase
names the model sees in the function declarations; validated values are read
back through the snake_case attributes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models import ExperienceLevel, PrescribedExercise, SplitType


class ToolName(str, Enum):
    GET_WORKOUT_HISTORY = "getWorkoutHistory"
    GET_VOLUME_THIS_WEEK = "getVolumeThisWeek"
    GET_PROGRESSION_TREND = "getProgressionTrend"
    GET_USER_PROFILE = "getUserProfile"
    GET_EXERCISE_LIBRARY = "getExerciseLibrary"
    PRESCRIBE_WORKOUT = "prescribeWorkout"
    LOG_WORKOUT_SET = "logWorkoutSet"
    COMPLETE_WORKOUT_SESSION = "completeWorkoutSession"
    UPDATE_USER_PROFILE = "updateUserProfile"
    GET_WEEKLY_SUMMARY = "getWeeklySummary"
    CREATE_PROGRAM = "createProgram"
    ADVANCE_WEEK = "advanceWeek"
    GET_PLANNED_SESSIONS = "getPlannedSessions"
    START_PLANNED_SESSION = "startPlannedSession"


class ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class WorkoutHistoryArgs(ToolArgs):
    muscle_group: Optional[str] = Field(
        None, alias="muscleGroup", description="Filter by muscle group, e.g. 'chest'."
    )
    exercise_name: Optional[str] = Field(
        None, alias="exerciseName", description="Filter by exercise name (partial match)."
    )
    last_n_sessions: int = Field(
        3, alias="lastNSessions", ge=1, le=20, description="How many recent sessions to return."
    )

    @field_validator("muscle_group", "exercise_name", mode="before")
    @classmethod
    def blank_filters_to_none(cls, value):
        return _blank_to_none(value)


class VolumeArgs(ToolArgs):
    muscle_group: Optional[str] = Field(
        None, alias="muscleGroup", description="Limit to one muscle group."
    )

    @field_validator("muscle_group", mode="before")
    @classmethod
    def blank_filters_to_none(cls, value):
        return _blank_to_none(value)


class ProgressionArgs(ToolArgs):
    exercise_name: str = Field(
        ..., alias="exerciseName", min_length=1, description="Exercise name (partial match)."
    )
    last_n_sessions: int = Field(
        4, alias="lastNSessions", ge=1, le=20, description="How many sessions of trend to return."
    )


class ProfileArgs(ToolArgs):
    pass


class LibraryArgs(ToolArgs):
    muscle_group: Optional[str] = Field(
        None, alias="muscleGroup", description="Primary muscle group, e.g. 'back'."
    )
    search_term: Optional[str] = Field(
        None, alias="searchTerm", description="Substring of the exercise name."
    )
    equipment: Optional[str] = Field(
        None, description="Equipment type, e.g. 'barbell', 'dumbbell', 'cable'."
    )

    @field_validator("muscle_group", "search_term", "equipment", mode="before")
    @classmethod
    def blank_filters_to_none(cls, value):
        return _blank_to_none(value)


class PrescribedExerciseArgs(ToolArgs):
    exercise_id: str = Field(
        ..., alias="exerciseId", min_length=1, description="Exercise id from getExerciseLibrary."
    )
    exercise_name: str = Field(..., alias="exerciseName", min_length=1)
    target_sets: int = Field(..., alias="targetSets", ge=1, le=10, description="2-5 recommended.")
    rep_range_min: int = Field(..., alias="repRangeMin", ge=1, le=50)
    rep_range_max: int = Field(..., alias="repRangeMax", ge=1, le=50)
    rir_target: int = Field(..., alias="rirTarget", ge=0, le=5, description="0-4 recommended.")
    rest_seconds: int = Field(..., alias="restSeconds", ge=0, le=600)

    @field_validator("exercise_id", mode="before")
    @classmethod
    def numeric_id_to_str(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value

    @model_validator(mode="after")
    def check_rep_range(self):
        if self.rep_range_min > self.rep_range_max:
            raise ValueError("repRangeMin must not exceed repRangeMax")
        return self

    def to_model(self) -> PrescribedExercise:
        return PrescribedExercise(
            exercise_id=self.exercise_id,
            exercise_name=self.exercise_name,
            target_sets=self.target_sets,
            rep_range_min=self.rep_range_min,
            rep_range_max=self.rep_range_max,
            rir_target=self.rir_target,
            rest_seconds=self.rest_seconds,
        )


class PrescribeArgs(ToolArgs):
    session_name: str = Field(
        ..., alias="sessionName", min_length=1, description="e.g. 'Upper A', 'Push Day'."
    )
    exercises: List[PrescribedExerciseArgs] = Field(..., min_length=1)


class LogSetArgs(ToolArgs):
    exercise_name: str = Field(
        ..., alias="exerciseName", min_length=1, description="Exercise name (fuzzy matched)."
    )
    weight: float = Field(
        ..., gt=0,
        description=(
            "Load used, in the user's unit. Bodyweight movements log "
            "bodyweight plus any added load."
        ),
    )
    reps: int = Field(..., ge=1, le=100)
    rir: Optional[float] = Field(
        None, ge=0, le=10, description="Reps in reserve. 0 means failure."
    )


class CompleteSessionArgs(ToolArgs):
    abandoned: bool = Field(False, description="True when the user stops early.")
    post_notes: Optional[str] = Field(None, alias="postNotes")


class UpdateProfileArgs(ToolArgs):
    experience_level: Optional[ExperienceLevel] = Field(None, alias="experienceLevel")
    training_age_months: Optional[int] = Field(None, alias="trainingAgeMonths", ge=0, le=1200)
    available_training_days: Optional[int] = Field(
        None, alias="availableTrainingDays", ge=1, le=7
    )
    preferred_split: Optional[str] = Field(None, alias="preferredSplit")
    equipment_access: Optional[List[str]] = Field(None, alias="equipmentAccess")

    def changes(self) -> Dict[str, Any]:
        """Fields the caller actually supplied, keyed by attribute name."""
        return self.model_dump(exclude_none=True)


class WeeklySummaryArgs(ToolArgs):
    pass


class CreateProgramArgs(ToolArgs):
    split_type: Optional[SplitType] = Field(
        None, alias="splitType", description="Defaults to the profile's preferred split."
    )
    training_days: Optional[int] = Field(
        None, alias="trainingDays", ge=2, le=6,
        description="Sessions per week. Defaults to the profile's available days.",
    )
    focus_areas: Optional[List[str]] = Field(
        None, alias="focusAreas", description="Muscle groups to prioritise, e.g. ['chest']."
    )
    total_weeks: Optional[int] = Field(
        None, alias="totalWeeks", ge=3, le=8, description="Length including the deload week."
    )


class AdvanceWeekArgs(ToolArgs):
    skip_to_week: Optional[int] = Field(
        None, alias="skipToWeek", ge=1,
        description="Jump straight to this week, e.g. the deload week.",
    )


class PlannedSessionsArgs(ToolArgs):
    pass


class StartPlannedSessionArgs(ToolArgs):
    session_id: str = Field(
        ..., alias="sessionId", min_length=1, description="Id from getPlannedSessions."
    )

    @field_validator("session_id", mode="before")
    @classmethod
    def numeric_id_to_str(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value


def _inline_refs(node: Any, defs: Dict[str, Any]) -> Any:
    if isinstance(node, dict):
        if "$ref" in node:
            name = node["$ref"].rsplit("/", 1)[-1]
            return _inline_refs(defs[name], defs)
        return {
            key: _inline_refs(value, defs)
            for key, value in node.items()
            if key not in ("$defs", "title")
        }
    if isinstance(node, list):
        return [_inline_refs(item, defs) for item in node]
    return node


def parameters_schema(args_model: type) -> Dict[str, Any]:
    """Self-contained JSON schema (no $ref, no titles) for a tool's arguments."""
    schema = args_model.model_json_schema(by_alias=True)
    return _inline_refs(schema, schema.get("$defs", {}))
