"""
Program tools - mesocycle creation, week advancement and planned sessions.

A program is generated once, stored on the user's active mesocycle and turned
into planned sessions one week at a time. Planned sessions become workouts only
through startPlannedSession, which keeps the one-active-session rule.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List

from ..models import MesocycleStatus, SessionStatus, WorkoutSession
from ..skills.program import MaterializedWeek, PlanRequest, volume_plan_key
from ..store.base import ActiveSessionError, NotFoundError
from .backend import CoachBackend
from .coach_tools import tool_error
from .schemas import (
    AdvanceWeekArgs,
    CreateProgramArgs,
    PlannedSessionsArgs,
    StartPlannedSessionArgs,
    WeeklySummaryArgs,
)

logger = logging.getLogger(__name__)

NO_PROFILE_ERROR = (
    "No training profile exists yet. Gather experience, goals and equipment first."
)
NO_MESOCYCLE_ERROR = "No active mesocycle. Use createProgram to start one."
PLANNED_NOT_FOUND_ERROR = "Session not found or not in planned state."
STARTED_MESSAGE = "Session started! Head to the Today tab to start logging sets."


def _session_summary(session: WorkoutSession) -> Dict[str, Any]:
    return {
        "sessionId": session.id,
        "sessionName": session.session_name,
        "dayNumber": session.day_number,
    }


def _planned_detail(session: WorkoutSession) -> Dict[str, Any]:
    detail = _session_summary(session)
    detail.update({
        "mesocycleWeek": session.mesocycle_week,
        "isDeload": session.is_deload,
        "exercises": [
            {
                "exerciseName": p.exercise_name,
                "targetSets": p.target_sets,
                "repRange": f"{p.rep_range_min}-{p.rep_range_max}",
                "rirTarget": p.rir_target,
            }
            for p in session.planned_exercises
        ],
    })
    return detail


def _week_result(week: MaterializedWeek) -> Dict[str, Any]:
    result = {
        "isDeload": week.is_deload,
        "sessions": [_session_summary(s) for s in week.sessions],
    }
    if week.unmatched_exercises:
        result["unmatchedExercises"] = sorted(set(week.unmatched_exercises))
    return result


def get_weekly_summary(backend: CoachBackend, args: WeeklySummaryArgs) -> Dict[str, Any]:
    """This week's volume summary, as last written by the scheduler."""
    return backend.weekly_summary()


def create_program(backend: CoachBackend, args: CreateProgramArgs) -> Dict[str, Any]:
    """Generate a mesocycle, make it active and plan its first week."""
    current = backend.profile()
    if current is None:
        return tool_error(NO_PROFILE_ERROR)

    active = current.active_mesocycle
    if active is not None and active.status == MesocycleStatus.ACTIVE:
        return tool_error(
            f'You already have an active mesocycle: "{active.name}" '
            f"(week {active.current_week} of {active.total_weeks}). "
            "Complete it before starting a new program.",
            activeMesocycleId=active.id,
        )

    request = PlanRequest(
        split_type=(
            args.split_type.value if args.split_type else current.preferred_split or "custom"
        ),
        training_days=args.training_days or current.available_training_days,
        focus_areas=list(args.focus_areas or []),
        total_weeks=args.total_weeks,
    )
    mesocycle = backend.plan_mesocycle(current, request)

    profile = copy.deepcopy(current)
    profile.active_mesocycle = mesocycle
    backend.save_profile(profile)
    week = backend.materialize_week(mesocycle, 1)

    logger.info(
        "Created program %s for %s: %d weeks, %d sessions in week 1",
        mesocycle.name, backend.user_id, mesocycle.total_weeks, len(week.sessions),
    )
    result = {
        "success": True,
        "mesocycleId": mesocycle.id,
        "name": mesocycle.name,
        "splitType": mesocycle.split_type,
        "totalWeeks": mesocycle.total_weeks,
        "currentWeek": mesocycle.current_week,
        "weekVolume": mesocycle.volume_plan.get(volume_plan_key(1), {}),
    }
    result.update(_week_result(week))
    return result


def _unfinished_sessions(
    backend: CoachBackend, mesocycle_id: str, week: int
) -> List[WorkoutSession]:
    unfinished = [
        s for s in backend.planned_sessions(mesocycle_id) if s.mesocycle_week == week
    ]
    active = backend.active_session()
    if active is not None and active.mesocycle_id == mesocycle_id:
        unfinished.append(active)
    return unfinished


def advance_week(backend: CoachBackend, args: AdvanceWeekArgs) -> Dict[str, Any]:
    """Move the active mesocycle on a week, or complete it after the last one."""
    current = backend.profile()
    meso = current.active_mesocycle if current else None
    if meso is None or meso.status != MesocycleStatus.ACTIVE:
        return tool_error(NO_MESOCYCLE_ERROR)

    unfinished = _unfinished_sessions(backend, meso.id, meso.current_week)
    if unfinished:
        return tool_error(
            f"Week {meso.current_week} still has {len(unfinished)} unfinished session(s). "
            "Complete or abandon them before advancing.",
            unfinishedSessions=[_session_summary(s) for s in unfinished],
        )

    target = args.skip_to_week or meso.current_week + 1
    if target <= meso.current_week:
        return tool_error(f"skipToWeek must be after the current week ({meso.current_week}).")
    if args.skip_to_week and target > meso.total_weeks:
        return tool_error(f"{meso.name} only has {meso.total_weeks} weeks.")

    profile = copy.deepcopy(current)
    if target > meso.total_weeks:
        profile.active_mesocycle = None
        backend.save_profile(profile)
        own = [s for s in backend.sessions() if s.mesocycle_id == meso.id]
        completed = [s for s in own if s.status == SessionStatus.COMPLETED]
        logger.info("Completed mesocycle %s for %s", meso.name, backend.user_id)
        return {
            "success": True,
            "mesocycleCompleted": True,
            "summary": {
                "name": meso.name,
                "totalWeeks": meso.total_weeks,
                "sessionsCompleted": len(completed),
                "sessionsAbandoned": sum(
                    1 for s in own if s.status == SessionStatus.ABANDONED
                ),
                "totalSets": sum(len(s.sets) for s in completed),
            },
        }

    advanced = profile.active_mesocycle
    advanced.current_week = target
    backend.save_profile(profile)
    if advanced.week(target) is None:
        # Mesocycles entered without a generated plan have nothing to materialize.
        week = MaterializedWeek(week_number=target, is_deload=False)
    else:
        week = backend.materialize_week(advanced, target)
    result = {
        "success": True,
        "mesocycleCompleted": False,
        "currentWeek": target,
        "totalWeeks": meso.total_weeks,
        "weekVolume": meso.volume_plan.get(volume_plan_key(target), {}),
    }
    result.update(_week_result(week))
    return result


def get_planned_sessions(backend: CoachBackend, args: PlannedSessionsArgs) -> Dict[str, Any]:
    planned = backend.planned_sessions()
    return {
        "sessions": [_planned_detail(s) for s in planned],
        "count": len(planned),
    }


def start_planned_session(
    backend: CoachBackend, args: StartPlannedSessionArgs
) -> Dict[str, Any]:
    """Make a planned session the active workout."""
    try:
        session = backend.start_planned_session(args.session_id)
    except ActiveSessionError as e:
        return tool_error(str(e))
    except NotFoundError:
        return tool_error(PLANNED_NOT_FOUND_ERROR)

    return {
        "success": True,
        "sessionId": session.id,
        "sessionName": session.session_name,
        "exerciseCount": len(session.planned_exercises),
        "totalSets": sum(p.target_sets for p in session.planned_exercises),
        "message": STARTED_MESSAGE,
    }
