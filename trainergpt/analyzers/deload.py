"""
Deload check - threshold rules over the active mesocycle and recent sessions.

Rules are evaluated in order and the first match wins:
1. Late in the mesocycle (week 5 or later).
2. Performance decline: latest session average RIR below 1 after a drop of
   more than 1 RIR from the session before.
3. Recovery deficit: latest readiness average at or below 3 with soreness 8+.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..models import DeloadRecommendation, Mesocycle, SessionStatus, WorkoutSession

logger = logging.getLogger(__name__)

LATE_MESOCYCLE_WEEK = 5
FATIGUE_RIR_CEILING = 1.0
FATIGUE_RIR_DROP = 1.0
LOW_READINESS_AVG = 3.0
HIGH_SORENESS = 8


def _average_rir(session: WorkoutSession) -> Optional[float]:
    rirs = [s.rir for s in session.sets if s.rir is not None]
    if not rirs:
        return None
    return sum(rirs) / len(rirs)


def _recent_completed(sessions: Sequence[WorkoutSession]) -> List[WorkoutSession]:
    completed = [s for s in sessions if s.status == SessionStatus.COMPLETED]
    return sorted(completed, key=lambda s: s.date, reverse=True)


def _performance_reason(sessions: Sequence[WorkoutSession]) -> Optional[str]:
    scored = [(s, _average_rir(s)) for s in _recent_completed(sessions)]
    scored = [(s, rir) for s, rir in scored if rir is not None][:2]
    if len(scored) < 2:
        return None
    latest, previous = scored[0][1], scored[1][1]
    if latest < FATIGUE_RIR_CEILING and previous - latest > FATIGUE_RIR_DROP:
        return (
            f"Performance declining: average RIR dropped from {previous:.1f} to "
            f"{latest:.1f}. High fatigue detected."
        )
    return None


def _readiness_reason(sessions: Sequence[WorkoutSession]) -> Optional[str]:
    for session in sorted(sessions, key=lambda s: s.date, reverse=True):
        readiness = session.pre_readiness
        if readiness is None:
            continue
        avg = readiness.average()
        if avg <= LOW_READINESS_AVG and readiness.soreness >= HIGH_SORENESS:
            return (
                f"Low readiness scores (average {avg:.1f}/10, soreness "
                f"{readiness.soreness}/10). Recovery deficit detected."
            )
        return None
    return None


def evaluate_deload(
    mesocycle: Optional[Mesocycle],
    recent_sessions: Sequence[WorkoutSession],
) -> Optional[DeloadRecommendation]:
    """Deload recommendation for the active mesocycle, or None without one."""
    if mesocycle is None:
        return None

    if mesocycle.current_week >= LATE_MESOCYCLE_WEEK:
        reason = (
            f"Week {mesocycle.current_week} of {mesocycle.total_weeks} - approaching "
            "end of mesocycle. Recommend scheduling deload."
        )
    else:
        reason = _performance_reason(recent_sessions) or _readiness_reason(recent_sessions)

    if reason:
        logger.info("Deload recommended for %s: %s", mesocycle.name, reason)

    return DeloadRecommendation(
        should_deload=reason is not None,
        reason=reason,
        current_week=mesocycle.current_week,
        total_weeks=mesocycle.total_weeks,
        mesocycle_name=mesocycle.name,
    )
