"""
Domain models for TrainerGPT.

Storage layout (Firestore):
- users/{uid}: UserProfile (landmarks and active mesocycle embedded)
- users/{uid}/sessions/{sessionId}: WorkoutSession with embedded sets
- exercises/{exerciseId}: Exercise reference data (shared, read-only)

All models round-trip through plain dicts via to_dict()/from_dict().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_REP_RANGE: Tuple[int, int] = (8, 12)


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class SessionStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class SplitType(str, Enum):
    FULL_BODY = "full_body"
    UPPER_LOWER = "upper_lower"
    PUSH_PULL_LEGS = "push_pull_legs"
    CUSTOM = "custom"


class MesocycleStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


class VolumeStatus(str, Enum):
    """Weekly volume position relative to a muscle group's landmarks."""
    BELOW_MEV = "below_mev"
    AT_MEV = "at_mev"
    IN_RANGE = "in_range"
    ABOVE_MRV = "above_mrv"
    NO_LANDMARKS = "no_landmarks"


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass
class Readiness:
    """Pre-session readiness check-in, each score 1-10."""
    energy: int
    motivation: int
    soreness: int
    sleep_quality: Optional[int] = None

    def average(self) -> float:
        """Mean of the positive scores (soreness excluded)."""
        scores = [self.energy, self.motivation]
        if self.sleep_quality is not None:
            scores.append(self.sleep_quality)
        return sum(scores) / len(scores)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "energy": self.energy,
            "motivation": self.motivation,
            "soreness": self.soreness,
        }
        if self.sleep_quality is not None:
            data["sleep_quality"] = self.sleep_quality
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Readiness":
        return cls(
            energy=data["energy"],
            motivation=data["motivation"],
            soreness=data["soreness"],
            sleep_quality=data.get("sleep_quality"),
        )


@dataclass
class VolumeLandmark:
    """Weekly hard-set thresholds for one muscle group."""
    mev: int
    mav: int
    mrv: int

    def __post_init__(self):
        if self.mev < 0:
            raise ValueError(f"mev must be non-negative, got {self.mev}")
        if not (self.mev <= self.mav <= self.mrv):
            raise ValueError(
                f"landmarks must satisfy mev <= mav <= mrv, got {self.mev}/{self.mav}/{self.mrv}"
            )

    def to_dict(self) -> Dict[str, int]:
        return {"mev": self.mev, "mav": self.mav, "mrv": self.mrv}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VolumeLandmark":
        return cls(mev=int(data["mev"]), mav=int(data["mav"]), mrv=int(data["mrv"]))


@dataclass
class PlanExercise:
    """One exercise slot in a generated mesocycle, named but not yet resolved."""
    exercise_name: str
    muscle_group: str
    sets: int
    rep_range_min: int
    rep_range_max: int
    rir_target: int
    rest_seconds: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exercise_name": self.exercise_name,
            "muscle_group": self.muscle_group,
            "sets": self.sets,
            "rep_range_min": self.rep_range_min,
            "rep_range_max": self.rep_range_max,
            "rir_target": self.rir_target,
            "rest_seconds": self.rest_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanExercise":
        return cls(
            exercise_name=data["exercise_name"],
            muscle_group=data["muscle_group"],
            sets=data["sets"],
            rep_range_min=data["rep_range_min"],
            rep_range_max=data["rep_range_max"],
            rir_target=data["rir_target"],
            rest_seconds=data["rest_seconds"],
        )


@dataclass
class PlanSession:
    day_number: int
    session_name: str
    exercises: List[PlanExercise] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day_number": self.day_number,
            "session_name": self.session_name,
            "exercises": [e.to_dict() for e in self.exercises],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanSession":
        return cls(
            day_number=data["day_number"],
            session_name=data["session_name"],
            exercises=[PlanExercise.from_dict(e) for e in data.get("exercises", [])],
        )


@dataclass
class PlanWeek:
    week_number: int
    is_deload: bool = False
    sessions: List[PlanSession] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_number": self.week_number,
            "is_deload": self.is_deload,
            "sessions": [s.to_dict() for s in self.sessions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanWeek":
        return cls(
            week_number=data["week_number"],
            is_deload=bool(data.get("is_deload", False)),
            sessions=[PlanSession.from_dict(s) for s in data.get("sessions", [])],
        )


@dataclass
class Mesocycle:
    id: str
    name: str
    current_week: int
    total_weeks: int
    split_type: str
    status: MesocycleStatus = MesocycleStatus.ACTIVE
    start_date: Optional[date] = None
    # Generated programs carry their week-by-week plan; hand-entered ones may not.
    weeks: List[PlanWeek] = field(default_factory=list)
    volume_plan: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def __post_init__(self):
        if self.current_week > self.total_weeks:
            raise ValueError(
                f"current_week {self.current_week} exceeds total_weeks {self.total_weeks}"
            )

    def week(self, week_number: int) -> Optional[PlanWeek]:
        for planned in self.weeks:
            if planned.week_number == week_number:
                return planned
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "current_week": self.current_week,
            "total_weeks": self.total_weeks,
            "split_type": self.split_type,
            "status": self.status.value,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "weeks": [w.to_dict() for w in self.weeks],
            "volume_plan": {week: dict(groups) for week, groups in self.volume_plan.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Mesocycle":
        start = data.get("start_date")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            current_week=data["current_week"],
            total_weeks=data["total_weeks"],
            split_type=data.get("split_type", ""),
            status=MesocycleStatus(data.get("status", "active")),
            start_date=_parse_date(start) if start else None,
            weeks=[PlanWeek.from_dict(w) for w in data.get("weeks") or []],
            volume_plan={
                week: dict(groups) for week, groups in (data.get("volume_plan") or {}).items()
            },
        )


@dataclass
class UserProfile:
    name: str
    experience_level: ExperienceLevel
    training_age_months: int
    available_training_days: int
    preferred_split: str
    equipment_access: List[str] = field(default_factory=list)
    volume_landmarks: Dict[str, VolumeLandmark] = field(default_factory=dict)
    active_mesocycle: Optional[Mesocycle] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "experience_level": self.experience_level.value,
            "training_age_months": self.training_age_months,
            "available_training_days": self.available_training_days,
            "preferred_split": self.preferred_split,
            "equipment_access": list(self.equipment_access),
            "volume_landmarks": {
                group: lm.to_dict() for group, lm in self.volume_landmarks.items()
            },
            "active_mesocycle": (
                self.active_mesocycle.to_dict() if self.active_mesocycle else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        meso = data.get("active_mesocycle")
        return cls(
            name=data.get("name", ""),
            experience_level=ExperienceLevel(data.get("experience_level", "intermediate")),
            training_age_months=data.get("training_age_months", 0),
            available_training_days=data.get("available_training_days", 0),
            preferred_split=data.get("preferred_split", ""),
            equipment_access=list(data.get("equipment_access", [])),
            volume_landmarks={
                group: VolumeLandmark.from_dict(lm)
                for group, lm in (data.get("volume_landmarks") or {}).items()
            },
            active_mesocycle=Mesocycle.from_dict(meso) if meso else None,
        )


@dataclass
class MuscleGroups:
    primary: List[str] = field(default_factory=list)
    secondary: List[str] = field(default_factory=list)

    def includes(self, group: str) -> bool:
        target = group.lower()
        return any(g.lower() == target for g in self.primary + self.secondary)

    def to_dict(self) -> Dict[str, List[str]]:
        return {"primary": list(self.primary), "secondary": list(self.secondary)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MuscleGroups":
        return cls(
            primary=list(data.get("primary", [])),
            secondary=list(data.get("secondary", [])),
        )


@dataclass
class Exercise:
    """Shared reference exercise."""
    id: str
    name: str
    muscle_groups: MuscleGroups
    equipment: str
    movement_pattern: str = ""
    rep_range_optimal: Tuple[int, int] = DEFAULT_REP_RANGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "muscle_groups": self.muscle_groups.to_dict(),
            "equipment": self.equipment,
            "movement_pattern": self.movement_pattern,
            "rep_range_optimal": list(self.rep_range_optimal),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Exercise":
        rep_range = data.get("rep_range_optimal") or DEFAULT_REP_RANGE
        return cls(
            id=str(data["id"]),
            name=data["name"],
            muscle_groups=MuscleGroups.from_dict(data.get("muscle_groups") or {}),
            equipment=data.get("equipment", ""),
            movement_pattern=data.get("movement_pattern", ""),
            rep_range_optimal=(int(rep_range[0]), int(rep_range[1])),
        )


@dataclass
class ExerciseSet:
    """One logged set. muscle_groups is None when the exercise is unresolved."""
    exercise: str
    set_number: int
    weight: float
    reps: int
    rir: Optional[float] = None
    exercise_id: Optional[str] = None
    muscle_groups: Optional[MuscleGroups] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exercise": self.exercise,
            "set_number": self.set_number,
            "weight": self.weight,
            "reps": self.reps,
            "rir": self.rir,
            "exercise_id": self.exercise_id,
            "muscle_groups": self.muscle_groups.to_dict() if self.muscle_groups else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExerciseSet":
        groups = data.get("muscle_groups")
        return cls(
            exercise=data["exercise"],
            set_number=data["set_number"],
            weight=data["weight"],
            reps=data["reps"],
            rir=data.get("rir"),
            exercise_id=data.get("exercise_id"),
            muscle_groups=MuscleGroups.from_dict(groups) if groups else None,
        )


@dataclass
class PrescribedExercise:
    exercise_id: str
    exercise_name: str
    target_sets: int
    rep_range_min: int
    rep_range_max: int
    rir_target: int
    rest_seconds: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exercise_id": self.exercise_id,
            "exercise_name": self.exercise_name,
            "target_sets": self.target_sets,
            "rep_range_min": self.rep_range_min,
            "rep_range_max": self.rep_range_max,
            "rir_target": self.rir_target,
            "rest_seconds": self.rest_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrescribedExercise":
        return cls(
            exercise_id=str(data["exercise_id"]),
            exercise_name=data["exercise_name"],
            target_sets=data["target_sets"],
            rep_range_min=data["rep_range_min"],
            rep_range_max=data["rep_range_max"],
            rir_target=data["rir_target"],
            rest_seconds=data["rest_seconds"],
        )


@dataclass
class ActiveSessionHandle:
    id: str
    date: date
    session_name: str
    duration_minutes: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "sessionName": self.session_name,
            "durationMinutes": self.duration_minutes,
        }


@dataclass
class WorkoutSession:
    id: str
    date: date
    session_name: str
    status: SessionStatus = SessionStatus.ACTIVE
    pre_readiness: Optional[Readiness] = None
    sets: List[ExerciseSet] = field(default_factory=list)
    planned_exercises: List[PrescribedExercise] = field(default_factory=list)
    started_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    post_notes: Optional[str] = None
    mesocycle_id: Optional[str] = None
    mesocycle_week: Optional[int] = None
    day_number: Optional[int] = None
    is_deload: bool = False

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE and self.duration_minutes is None

    def sets_for(self, exercise_name: str) -> List[ExerciseSet]:
        target = exercise_name.lower()
        return [s for s in self.sets if s.exercise.lower() == target]

    def next_set_number(self, exercise_name: str) -> int:
        return len(self.sets_for(exercise_name)) + 1

    def handle(self) -> ActiveSessionHandle:
        return ActiveSessionHandle(
            id=self.id,
            date=self.date,
            session_name=self.session_name,
            duration_minutes=self.duration_minutes,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "session_name": self.session_name,
            "status": self.status.value,
            "pre_readiness": self.pre_readiness.to_dict() if self.pre_readiness else None,
            "sets": [s.to_dict() for s in self.sets],
            "planned_exercises": [p.to_dict() for p in self.planned_exercises],
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "duration_minutes": self.duration_minutes,
            "post_notes": self.post_notes,
            "mesocycle_id": self.mesocycle_id,
            "mesocycle_week": self.mesocycle_week,
            "day_number": self.day_number,
            "is_deload": self.is_deload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutSession":
        readiness = data.get("pre_readiness")
        return cls(
            id=str(data["id"]),
            date=_parse_date(data["date"]),
            session_name=data.get("session_name", ""),
            status=SessionStatus(data.get("status", "active")),
            pre_readiness=Readiness.from_dict(readiness) if readiness else None,
            sets=[ExerciseSet.from_dict(s) for s in data.get("sets", [])],
            planned_exercises=[
                PrescribedExercise.from_dict(p) for p in data.get("planned_exercises", [])
            ],
            started_at=_parse_datetime(data.get("started_at")),
            duration_minutes=data.get("duration_minutes"),
            post_notes=data.get("post_notes"),
            mesocycle_id=data.get("mesocycle_id"),
            mesocycle_week=data.get("mesocycle_week"),
            day_number=data.get("day_number"),
            is_deload=bool(data.get("is_deload", False)),
        )


@dataclass
class VolumeSnapshot:
    """Hard sets per muscle group for the week starting week_start."""
    volume_by_group: Dict[str, int]
    total_sets: int
    target_sets: int
    week_start: date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "volume_by_group": dict(self.volume_by_group),
            "total_sets": self.total_sets,
            "target_sets": self.target_sets,
            "week_start": self.week_start.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VolumeSnapshot":
        return cls(
            volume_by_group=dict(data.get("volume_by_group", {})),
            total_sets=data.get("total_sets", 0),
            target_sets=data.get("target_sets", 0),
            week_start=_parse_date(data["week_start"]),
        )


@dataclass
class DeloadRecommendation:
    should_deload: bool
    reason: Optional[str]
    current_week: int
    total_weeks: int
    mesocycle_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shouldDeload": self.should_deload,
            "reason": self.reason,
            "currentWeek": self.current_week,
            "totalWeeks": self.total_weeks,
            "mesocycleName": self.mesocycle_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeloadRecommendation":
        return cls(
            should_deload=bool(data["shouldDeload"]),
            reason=data.get("reason"),
            current_week=data["currentWeek"],
            total_weeks=data["totalWeeks"],
            mesocycle_name=data["mesocycleName"],
        )
