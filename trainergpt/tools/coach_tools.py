"""
Coaching tools - one function per tool, each taking a CoachBackend and its
validated argument model and returning a JSON-serializable dict.

Precondition failures (no active session, unknown exercise) come back as
``{"success": False, "error": ...}`` so the agent can explain them to the user.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict

from ..landmarks import landmarks_for_level
from ..models import DEFAULT_REP_RANGE, SessionStatus
from ..skills.analytics import (
    filter_library,
    progression_trend,
    summarize_history,
    volume_report,
)
from .backend import CoachBackend
from .schemas import (
    CompleteSessionArgs,
    LibraryArgs,
    LogSetArgs,
    PrescribeArgs,
    ProfileArgs,
    ProgressionArgs,
    UpdateProfileArgs,
    VolumeArgs,
    WorkoutHistoryArgs,
)

logger = logging.getLogger(__name__)

# Sessions scanned when building a progression trend.
PROGRESSION_LOOKBACK_SESSIONS = 50

NO_ACTIVE_SESSION_ERROR = (
    "No active workout session. Ask me to prescribe a workout first."
)
PRESCRIBED_MESSAGE = "Workout created! Head to the Today tab to start logging sets."


def tool_error(message: str, **details: Any) -> Dict[str, Any]:
    result = {"success": False, "error": message}
    result.update(details)
    return result


def get_workout_history(backend: CoachBackend, args: WorkoutHistoryArgs) -> Dict[str, Any]:
    """Recent sessions summarised per exercise, optionally filtered."""
    return summarize_history(
        backend.sessions(limit=args.last_n_sessions),
        muscle_group=args.muscle_group,
        exercise_name=args.exercise_name,
        last_n_sessions=args.last_n_sessions,
    )


def get_volume_this_week(backend: CoachBackend, args: VolumeArgs) -> Dict[str, Any]:
    """This week's hard sets per muscle group compared against MEV/MAV/MRV."""
    profile = backend.profile()
    landmarks = profile.volume_landmarks if profile else {}
    return volume_report(backend.volume(), landmarks, args.muscle_group)


def get_progression_trend(backend: CoachBackend, args: ProgressionArgs) -> Dict[str, Any]:
    """Per-session trend for one exercise plus a next-session recommendation."""
    exercise = backend.resolve_exercise(args.exercise_name)
    rep_range = exercise.rep_range_optimal if exercise else DEFAULT_REP_RANGE
    return progression_trend(
        backend.sessions(limit=PROGRESSION_LOOKBACK_SESSIONS),
        args.exercise_name,
        last_n_sessions=args.last_n_sessions,
        rep_range=rep_range,
    )


def get_user_profile(backend: CoachBackend, args: ProfileArgs) -> Dict[str, Any]:
    profile = backend.profile()
    if profile is None:
        return {
            "profile": None,
            "volumeLandmarks": {},
            "activeMesocycle": None,
            "deloadRecommendation": None,
        }

    meso = profile.active_mesocycle
    deload = backend.deload()
    return {
        "profile": {
            "name": profile.name,
            "experienceLevel": profile.experience_level.value,
            "trainingAgeMonths": profile.training_age_months,
            "availableTrainingDays": profile.available_training_days,
            "preferredSplit": profile.preferred_split,
            "equipmentAccess": list(profile.equipment_access),
        },
        "volumeLandmarks": {
            group: lm.to_dict() for group, lm in profile.volume_landmarks.items()
        },
        "activeMesocycle": {
            "id": meso.id,
            "name": meso.name,
            "currentWeek": meso.current_week,
            "totalWeeks": meso.total_weeks,
            "splitType": meso.split_type,
            "status": meso.status.value,
        } if meso else None,
        "deloadRecommendation": deload.to_dict() if deload else None,
    }


def get_exercise_library(backend: CoachBackend, args: LibraryArgs) -> Dict[str, Any]:
    return filter_library(
        backend.exercises(),
        muscle_group=args.muscle_group,
        search_term=args.search_term,
        equipment=args.equipment,
    )


def prescribe_workout(backend: CoachBackend, args: PrescribeArgs) -> Dict[str, Any]:
    """Create today's session from the prescribed exercises."""
    planned = [e.to_model() for e in args.exercises]
    session = backend.create_session(args.session_name, planned)
    total_sets = sum(p.target_sets for p in planned)
    logger.info(
        "Prescribed %s for %s: %d exercises, %d sets",
        session.session_name, backend.user_id, len(planned), total_sets,
    )
    return {
        "success": True,
        "sessionId": session.id,
        "sessionName": session.session_name,
        "exerciseCount": len(planned),
        "totalSets": total_sets,
        "message": PRESCRIBED_MESSAGE,
    }


def log_workout_set(backend: CoachBackend, args: LogSetArgs) -> Dict[str, Any]:
    """Append a set to the active session."""
    session = backend.active_session()
    if session is None:
        return tool_error(NO_ACTIVE_SESSION_ERROR)

    exercise = backend.resolve_exercise(args.exercise_name)
    if exercise is None:
        return tool_error(
            f'Exercise "{args.exercise_name}" not found in the library. '
            "Use getExerciseLibrary to find the exact name."
        )

    logged = backend.append_set(session, exercise, args.weight, args.reps, args.rir)
    return {
        "success": True,
        "exercise": logged.exercise,
        "setNumber": logged.set_number,
        "weight": logged.weight,
        "reps": logged.reps,
        "rir": logged.rir,
    }


def complete_workout_session(
    backend: CoachBackend, args: CompleteSessionArgs
) -> Dict[str, Any]:
    session = backend.active_session()
    if session is None:
        return tool_error("No active workout session to complete.")

    status = SessionStatus.ABANDONED if args.abandoned else SessionStatus.COMPLETED
    finished = backend.finish_session(session, status, args.post_notes)
    return {
        "success": True,
        "sessionId": finished.id,
        "sessionName": finished.session_name,
        "status": finished.status.value,
        "exerciseCount": len({s.exercise for s in finished.sets}),
        "totalSets": len(finished.sets),
        "durationMinutes": finished.duration_minutes,
    }


def update_user_profile(backend: CoachBackend, args: UpdateProfileArgs) -> Dict[str, Any]:
    """Apply explicit profile changes; a new experience level re-seeds landmarks."""
    current = backend.profile()
    if current is None:
        return tool_error(
            "No training profile exists yet. Gather experience, goals and equipment first."
        )

    changes = args.changes()
    if not changes:
        return tool_error("No profile fields were provided to update.")

    profile = copy.deepcopy(current)
    reseeded = False
    level = changes.get("experience_level")
    if level is not None and level != profile.experience_level:
        profile.volume_landmarks = landmarks_for_level(level)
        reseeded = True
    for field_name, value in changes.items():
        setattr(profile, field_name, value)

    backend.save_profile(profile)
    logger.info("Updated profile for %s: %s", backend.user_id, sorted(changes))
    return {
        "success": True,
        "updatedFields": [
            UpdateProfileArgs.model_fields[name].alias for name in sorted(changes)
        ],
        "landmarksReseeded": reseeded,
    }
