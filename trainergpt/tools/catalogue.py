"""
Tool catalogue - the closed set of operations the coach can call.

execute() is the single dispatch point: it validates arguments against the
tool's schema, runs the handler, records the invocation and turns every
failure into a structured result. Nothing raised by a tool escapes it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from pydantic import ValidationError

from . import coach_tools, program_tools
from .backend import CoachBackend
from .schemas import (
    AdvanceWeekArgs,
    CompleteSessionArgs,
    CreateProgramArgs,
    LibraryArgs,
    LogSetArgs,
    PlannedSessionsArgs,
    PrescribeArgs,
    ProfileArgs,
    ProgressionArgs,
    StartPlannedSessionArgs,
    ToolArgs,
    ToolName,
    UpdateProfileArgs,
    VolumeArgs,
    WeeklySummaryArgs,
    WorkoutHistoryArgs,
    parameters_schema,
)

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 5


@dataclass(frozen=True)
class ToolSpec:
    name: ToolName
    description: str
    args_model: Type[ToolArgs]
    handler: Callable[[CoachBackend, Any], Dict[str, Any]]

    def declaration(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "description": self.description,
            "parameters": parameters_schema(self.args_model),
        }


@dataclass
class ToolInvocation:
    """One recorded call: tool name and the arguments as the model sent them."""
    tool_name: str
    args: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"toolName": self.tool_name, "args": self.args}


class CallRecorder:
    """Ordered, thread-safe log of tool invocations."""

    def __init__(self):
        self._calls: List[ToolInvocation] = []
        self._lock = threading.Lock()

    def record(self, tool_name: str, args: Dict[str, Any]) -> None:
        with self._lock:
            self._calls.append(ToolInvocation(tool_name=tool_name, args=dict(args)))

    @property
    def calls(self) -> List[ToolInvocation]:
        with self._lock:
            return list(self._calls)

    def names(self) -> List[str]:
        return [c.tool_name for c in self.calls]


CORE_TOOLS: List[ToolSpec] = [
    ToolSpec(
        name=ToolName.GET_WORKOUT_HISTORY,
        description=(
            "Get the user's recent workout sessions with per-exercise set counts, average "
            "weight, reps and RIR. Filter by muscle group or exercise name. Call before "
            "prescribing so the next session builds on what was actually done."
        ),
        args_model=WorkoutHistoryArgs,
        handler=coach_tools.get_workout_history,
    ),
    ToolSpec(
        name=ToolName.GET_VOLUME_THIS_WEEK,
        description=(
            "Get this week's hard sets per muscle group compared against the user's MEV, "
            "MAV and MRV, with a status and sets remaining before MRV. Call before adding "
            "volume for any muscle group."
        ),
        args_model=VolumeArgs,
        handler=coach_tools.get_volume_this_week,
    ),
    ToolSpec(
        name=ToolName.GET_PROGRESSION_TREND,
        description=(
            "Get the session-by-session trend for one exercise (sets, average weight, reps, "
            "RIR) and a progression recommendation based on the latest session."
        ),
        args_model=ProgressionArgs,
        handler=coach_tools.get_progression_trend,
    ),
    ToolSpec(
        name=ToolName.GET_USER_PROFILE,
        description=(
            "Get the user's training profile, volume landmarks, active mesocycle and deload "
            "recommendation. Call first before prescribing anything."
        ),
        args_model=ProfileArgs,
        handler=coach_tools.get_user_profile,
    ),
    ToolSpec(
        name=ToolName.GET_EXERCISE_LIBRARY,
        description=(
            "Search the exercise library by primary muscle group, name substring or "
            "equipment. Returns exercise ids required by prescribeWorkout. Call with no "
            "filters for the full library."
        ),
        args_model=LibraryArgs,
        handler=coach_tools.get_exercise_library,
    ),
    ToolSpec(
        name=ToolName.PRESCRIBE_WORKOUT,
        description=(
            "Create today's workout session. Only use exercise ids returned by "
            "getExerciseLibrary, and only after getUserProfile, getWorkoutHistory and "
            "getExerciseLibrary in this conversation."
        ),
        args_model=PrescribeArgs,
        handler=coach_tools.prescribe_workout,
    ),
    ToolSpec(
        name=ToolName.LOG_WORKOUT_SET,
        description=(
            "Log one completed set to the active session. Call once per set; three "
            "reported sets means three calls. Fails if no session is active."
        ),
        args_model=LogSetArgs,
        handler=coach_tools.log_workout_set,
    ),
]

SESSION_TOOLS: List[ToolSpec] = [
    ToolSpec(
        name=ToolName.COMPLETE_WORKOUT_SESSION,
        description=(
            "Mark the active workout completed, or abandoned when the user stops early. "
            "Returns a session summary."
        ),
        args_model=CompleteSessionArgs,
        handler=coach_tools.complete_workout_session,
    ),
    ToolSpec(
        name=ToolName.UPDATE_USER_PROFILE,
        description=(
            "Update the user's training profile. Only call when the user explicitly asks "
            "for a change. Changing experience level re-seeds volume landmarks."
        ),
        args_model=UpdateProfileArgs,
        handler=coach_tools.update_user_profile,
    ),
]

PROGRAM_TOOLS: List[ToolSpec] = [
    ToolSpec(
        name=ToolName.GET_WEEKLY_SUMMARY,
        description=(
            "Get this week's volume summary against the user's landmarks, including the "
            "muscle groups below MEV and above MRV. Use for weekly check-ins."
        ),
        args_model=WeeklySummaryArgs,
        handler=program_tools.get_weekly_summary,
    ),
    ToolSpec(
        name=ToolName.CREATE_PROGRAM,
        description=(
            "Generate a complete mesocycle (3-8 weeks ending in a deload) from the user's "
            "profile, make it the active mesocycle and create week 1's planned sessions. "
            "Fails if a mesocycle is already active."
        ),
        args_model=CreateProgramArgs,
        handler=program_tools.create_program,
    ),
    ToolSpec(
        name=ToolName.ADVANCE_WEEK,
        description=(
            "Move the active mesocycle to the next week (or skipToWeek) and create that "
            "week's planned sessions. After the final week the mesocycle is completed and "
            "a summary returned. Fails while the current week has unfinished sessions."
        ),
        args_model=AdvanceWeekArgs,
        handler=program_tools.advance_week,
    ),
    ToolSpec(
        name=ToolName.GET_PLANNED_SESSIONS,
        description=(
            "List the user's planned sessions with their week, day and prescribed exercises."
        ),
        args_model=PlannedSessionsArgs,
        handler=program_tools.get_planned_sessions,
    ),
    ToolSpec(
        name=ToolName.START_PLANNED_SESSION,
        description=(
            "Start a planned session as today's workout. Fails if another session is "
            "already active."
        ),
        args_model=StartPlannedSessionArgs,
        handler=program_tools.start_planned_session,
    ),
]

PRODUCTION_TOOLS: List[ToolSpec] = CORE_TOOLS + SESSION_TOOLS + PROGRAM_TOOLS


def _validation_failure(name: str, exc: ValidationError) -> Dict[str, Any]:
    errors = [
        {
            "path": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()[:MAX_REPORTED_ERRORS]
    ]
    return coach_tools.tool_error(
        f"Invalid arguments for {name}.", retryable=True, errors=errors
    )


class ToolCatalogue:
    """Tool specs bound to one backend."""

    def __init__(
        self,
        backend: CoachBackend,
        specs: Iterable[ToolSpec] = PRODUCTION_TOOLS,
        recorder: Optional[CallRecorder] = None,
    ):
        self.backend = backend
        self.recorder = recorder
        self._specs: Dict[str, ToolSpec] = {spec.name.value: spec for spec in specs}

    @property
    def names(self) -> List[str]:
        return list(self._specs)

    def declarations(self) -> List[Dict[str, Any]]:
        return [spec.declaration() for spec in self._specs.values()]

    def record(self, name: str, args: Optional[Dict[str, Any]]) -> None:
        if self.recorder is not None:
            self.recorder.record(name, args or {})

    def execute(self, name: str, args: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Validate, dispatch and run one tool call. Never raises."""
        spec = self._specs.get(name)
        if spec is None:
            logger.warning("Unknown tool requested: %s", name)
            return coach_tools.tool_error(
                f"Unknown tool {name!r}. Available tools: {', '.join(self.names)}."
            )

        try:
            parsed = spec.args_model.model_validate(args or {})
        except ValidationError as e:
            logger.info("Rejected %s arguments: %s", name, e.error_count())
            return _validation_failure(name, e)

        logger.info("Tool call %s for user %s", name, self.backend.user_id)
        try:
            return spec.handler(self.backend, parsed)
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return coach_tools.tool_error(f"{name} failed: {e}")
