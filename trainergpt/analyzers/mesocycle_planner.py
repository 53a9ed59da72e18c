"""
Mesocycle planner - asks the model for a complete multi-week program.

The model answers in JSON mode; the answer is validated against MesocycleDraft
before anything is saved, so a malformed plan fails the createProgram call
instead of writing half a program.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import date
from typing import Callable, List, Optional

from google.genai import types
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..config import CoachConfig
from ..models import (
    Exercise,
    Mesocycle,
    MesocycleStatus,
    PlanExercise,
    PlanSession,
    PlanWeek,
    SplitType,
    UserProfile,
)
from ..shell.model_client import call_with_backoff, get_genai_client
from ..skills.program import PlanRequest, build_volume_plan

logger = logging.getLogger(__name__)

MIN_WEEKS = 3
MAX_WEEKS = 8

# Completion function: prompt in, raw JSON text out.
Completion = Callable[[str], str]


class PlanGenerationError(ValueError):
    """The planner's answer could not be turned into a mesocycle."""


class _DraftModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DraftExercise(_DraftModel):
    exercise_name: str = Field(..., alias="exerciseName", min_length=1)
    muscle_group: str = Field(..., alias="muscleGroup", min_length=1)
    sets: int = Field(..., ge=1, le=10)
    rep_range_min: int = Field(..., alias="repRangeMin", ge=1, le=50)
    rep_range_max: int = Field(..., alias="repRangeMax", ge=1, le=50)
    rir_target: int = Field(..., alias="rirTarget", ge=0, le=5)
    rest_seconds: int = Field(..., alias="restSeconds", ge=0, le=600)

    @model_validator(mode="after")
    def check_rep_range(self):
        if self.rep_range_min > self.rep_range_max:
            raise ValueError("repRangeMin must not exceed repRangeMax")
        return self


class DraftSession(_DraftModel):
    day_number: int = Field(..., alias="dayNumber", ge=1, le=7)
    session_name: str = Field(..., alias="sessionName", min_length=1)
    exercises: List[DraftExercise] = Field(..., min_length=1)


class DraftWeek(_DraftModel):
    week_number: int = Field(..., alias="weekNumber", ge=1)
    is_deload: bool = Field(False, alias="isDeload")
    sessions: List[DraftSession] = Field(..., min_length=1)


class MesocycleDraft(_DraftModel):
    name: str = Field(..., min_length=1)
    split_type: SplitType = Field(..., alias="splitType")
    total_weeks: int = Field(..., alias="totalWeeks", ge=MIN_WEEKS, le=MAX_WEEKS)
    weeks: List[DraftWeek]

    @model_validator(mode="after")
    def check_weeks(self):
        numbers = [w.week_number for w in self.weeks]
        if numbers != list(range(1, self.total_weeks + 1)):
            raise ValueError(
                f"weeks must be numbered 1..{self.total_weeks} in order, got {numbers}"
            )
        if not self.weeks[-1].is_deload:
            raise ValueError("the final week must be a deload")
        return self

    def to_mesocycle(self, mesocycle_id: str, start_date: date) -> Mesocycle:
        weeks = [
            PlanWeek(
                week_number=w.week_number,
                is_deload=w.is_deload,
                sessions=[
                    PlanSession(
                        day_number=s.day_number,
                        session_name=s.session_name,
                        exercises=[
                            PlanExercise(
                                exercise_name=e.exercise_name,
                                muscle_group=e.muscle_group,
                                sets=e.sets,
                                rep_range_min=e.rep_range_min,
                                rep_range_max=e.rep_range_max,
                                rir_target=e.rir_target,
                                rest_seconds=e.rest_seconds,
                            )
                            for e in s.exercises
                        ],
                    )
                    for s in w.sessions
                ],
            )
            for w in self.weeks
        ]
        return Mesocycle(
            id=mesocycle_id,
            name=self.name,
            current_week=1,
            total_weeks=self.total_weeks,
            split_type=self.split_type.value,
            status=MesocycleStatus.ACTIVE,
            start_date=start_date,
            weeks=weeks,
            volume_plan=build_volume_plan(weeks),
        )


PLAN_PROMPT_TEMPLATE = """You are an evidence-based hypertrophy coach designing a complete mesocycle.

USER PROFILE:
{profile}

VOLUME LANDMARKS (weekly hard sets per muscle group):
{landmarks}

PROGRAM REQUEST:
- Split: {split_type}
- Training days per week: {training_days}
- Focus areas: {focus_areas}
- Length: {length}

EXERCISE LIBRARY (use these names exactly):
{exercises}

RULES:
1. The mesocycle runs {min_weeks}-{max_weeks} weeks (4-6 is typical) and the final week is a deload.
2. Week 1 starts each muscle group near its MEV.
3. Add 1-2 sets per muscle group per week, approaching MAV by the last accumulation week.
4. The deload week uses about half of peak volume at RIR 3-4.
5. Mix compound and isolation work; put stretch-focused exercises first in a session.
6. Keep each session to roughly 45-75 minutes.
7. RIR starts at 3 in week 1 and progresses to 1-2 by the last accumulation week.
8. Only use exercises from the library above.
9. Balance volume across muscle groups, with extra volume for the focus areas.
10. Every week has exactly {training_days} sessions, numbered by dayNumber from 1.

Respond with a JSON object of this shape:
{{
  "name": "short program name",
  "splitType": "full_body | upper_lower | push_pull_legs | custom",
  "totalWeeks": 5,
  "weeks": [
    {{
      "weekNumber": 1,
      "isDeload": false,
      "sessions": [
        {{
          "dayNumber": 1,
          "sessionName": "Upper A",
          "exercises": [
            {{
              "exerciseName": "Barbell Bench Press",
              "muscleGroup": "chest",
              "sets": 3,
              "repRangeMin": 6,
              "repRangeMax": 10,
              "rirTarget": 3,
              "restSeconds": 180
            }}
          ]
        }}
      ]
    }}
  ]
}}"""


def build_plan_prompt(
    profile: UserProfile,
    exercises: List[Exercise],
    request: PlanRequest,
) -> str:
    profile_data = {
        "experienceLevel": profile.experience_level.value,
        "trainingAgeMonths": profile.training_age_months,
        "availableTrainingDays": profile.available_training_days,
        "preferredSplit": profile.preferred_split,
        "equipmentAccess": list(profile.equipment_access),
    }
    landmarks = {group: lm.to_dict() for group, lm in profile.volume_landmarks.items()}
    library = "\n".join(
        f"- {e.name} (primary: {', '.join(e.muscle_groups.primary)}; "
        f"pattern: {e.movement_pattern or 'n/a'}; equipment: {e.equipment})"
        for e in exercises
    )
    length = (
        f"exactly {request.total_weeks} weeks including the deload"
        if request.total_weeks else "your choice"
    )
    return PLAN_PROMPT_TEMPLATE.format(
        profile=json.dumps(profile_data, indent=2),
        landmarks=json.dumps(landmarks, indent=2),
        split_type=request.split_type,
        training_days=request.training_days,
        focus_areas=", ".join(request.focus_areas) or "none",
        length=length,
        exercises=library or "(empty)",
        min_weeks=MIN_WEEKS,
        max_weeks=MAX_WEEKS,
    )


def parse_plan(text: Optional[str]) -> MesocycleDraft:
    raw = (text or "").strip()
    if not raw:
        raise PlanGenerationError("Planner returned an empty response")
    try:
        return MesocycleDraft.model_validate_json(raw)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(part) for part in first.get("loc", ()))
        raise PlanGenerationError(
            f"Planner returned an invalid mesocycle ({e.error_count()} errors, "
            f"first at {where or 'top level'}: {first.get('msg', '')})"
        ) from e


class MesocyclePlanner:
    def __init__(self, complete: Completion):
        self.complete = complete

    def plan(
        self,
        profile: UserProfile,
        exercises: List[Exercise],
        request: PlanRequest,
        start_date: date,
    ) -> Mesocycle:
        prompt = build_plan_prompt(profile, exercises, request)
        draft = parse_plan(self.complete(prompt))
        if request.total_weeks and draft.total_weeks != request.total_weeks:
            raise PlanGenerationError(
                f"Planner returned {draft.total_weeks} weeks, {request.total_weeks} requested"
            )
        mesocycle = draft.to_mesocycle(uuid.uuid4().hex[:12], start_date)
        logger.info(
            "Planned mesocycle %r: %d weeks, %s split",
            mesocycle.name, mesocycle.total_weeks, mesocycle.split_type,
        )
        return mesocycle


def gemini_plan_completion(config: CoachConfig) -> Completion:
    """Planner completion backed by google-genai in JSON mode."""
    request_config = types.GenerateContentConfig(
        temperature=0.4,
        response_mime_type="application/json",
    )

    def complete(prompt: str) -> str:
        client = get_genai_client(config.project, config.location)
        response = call_with_backoff(
            lambda: client.models.generate_content(
                model=config.model, contents=prompt, config=request_config,
            ),
            description=f"plan({config.model})",
        )
        return response.text or ""

    return complete
