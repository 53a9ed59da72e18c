"""
Eval scenarios - scripted conversations with structural and policy expectations.

Categories: policy, tool-usage, edge-case, communication.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .fixtures import (
    ALL_EXERCISES,
    AT_MRV_CHEST,
    AT_MRV_SCENARIO,
    BRAND_NEW_USER,
    CHEST_TODAY_SESSION,
    DELOAD_DUE,
    INTERMEDIATE_USER,
    MID_WORKOUT,
    MODERATE_VOLUME,
    NO_ACTIVE_SESSION,
    NO_DELOAD,
    RECENT_UPPER_SESSIONS,
    STANDARD_INTERMEDIATE,
    FixtureBundle,
)

CATEGORIES = ("policy", "tool-usage", "edge-case", "communication")

PRESCRIPTION_CHAIN = [
    "getUserProfile",
    "getWorkoutHistory",
    "getExerciseLibrary",
    "prescribeWorkout",
]


@dataclass
class Expectations:
    """
    tools_called: required tool names; duplicates require duplicate calls.
    tools_not_called: tools that must not appear in the call log at all.
    ordered_calls: when set, these calls must appear in this relative order.
    """
    tools_called: List[str] = field(default_factory=list)
    tools_not_called: List[str] = field(default_factory=list)
    ordered_calls: List[str] = field(default_factory=list)
    response_contains: List[str] = field(default_factory=list)
    response_does_not_contain: List[str] = field(default_factory=list)
    policy_assertions: List[str] = field(default_factory=list)


@dataclass
class Scenario:
    id: str
    name: str
    description: str
    category: str
    fixtures: FixtureBundle
    messages: List[str]
    expectations: Expectations

    def __post_init__(self):
        if self.category not in CATEGORIES:
            raise ValueError(f"Unknown category {self.category!r} for {self.id}")


SCENARIOS: List[Scenario] = [
    # =========================================================================
    # POLICY COMPLIANCE
    # =========================================================================
    Scenario(
        id="policy-001",
        name="Prescription follows tool chain",
        description=(
            "Asked to prescribe, the coach calls getUserProfile, getWorkoutHistory, "
            "getExerciseLibrary, then prescribeWorkout, in that order."
        ),
        category="policy",
        fixtures=STANDARD_INTERMEDIATE,
        messages=["What should I train today?"],
        expectations=Expectations(
            tools_called=list(PRESCRIPTION_CHAIN),
            ordered_calls=list(PRESCRIPTION_CHAIN),
            policy_assertions=[
                "The coach called getUserProfile before prescribing",
                "The coach called getWorkoutHistory to check recent training before prescribing",
                "The coach called getExerciseLibrary to get valid exercise IDs before prescribing",
                "The coach called prescribeWorkout after calling getExerciseLibrary "
                "(the full tool chain was completed)",
            ],
        ),
    ),
    Scenario(
        id="policy-002",
        name="Never use RPE in response",
        description="Effort is always expressed as RIR, never RPE.",
        category="policy",
        fixtures=MID_WORKOUT,
        messages=["I just did bench 185x8. That felt like RPE 9. What do you think?"],
        expectations=Expectations(
            tools_called=["logWorkoutSet"],
            response_contains=["RIR"],
            response_does_not_contain=["RPE 9", "RPE 8", "RPE 7", "RPE 10"],
            policy_assertions=[
                "The coach's response uses RIR terminology (e.g. '1 RIR') instead of "
                "echoing the user's RPE value",
                "The coach's response does NOT contain the strings 'RPE 9', 'RPE 8', "
                "'RPE 7', or 'RPE 10'",
                "The coach provided actionable feedback using RIR, not RPE",
            ],
        ),
    ),
    Scenario(
        id="policy-003",
        name="Volume above MRV - refuse to add more",
        description="Chest is already at MRV (22 sets); the coach refuses more chest volume.",
        category="policy",
        fixtures=AT_MRV_SCENARIO,
        messages=["I want to do more chest work today. Add 4 more sets of bench."],
        expectations=Expectations(
            tools_called=["getVolumeThisWeek"],
            tools_not_called=["prescribeWorkout"],
            policy_assertions=[
                "The coach checked current volume before responding",
                "The coach refused to add more chest volume because it would exceed MRV",
                "The coach explained why exceeding MRV is counterproductive",
                "The coach suggested alternatives (other muscle groups, or waiting for next week)",
            ],
        ),
    ),
    Scenario(
        id="policy-004",
        name="Deload recommended - coach advocates for it",
        description="With shouldDeload=true the coach recommends a deload over a heavy session.",
        category="policy",
        fixtures=DELOAD_DUE,
        messages=["I want to keep pushing hard this week. Give me a heavy workout."],
        expectations=Expectations(
            tools_called=["getUserProfile"],
            policy_assertions=[
                "The coach strongly recommended a deload instead of complying with the "
                "request for a heavy workout",
                "The coach referenced specific data (performance decline, week 5 of 5, or "
                "similar concrete reasons)",
                "The coach did NOT simply give the user a heavy workout as requested",
                "The coach explained benefits of deloading (fatigue dissipation, "
                "sensitization, recovery, or similar)",
            ],
        ),
    ),
    Scenario(
        id="policy-005",
        name="Progressive overload - recommend weight increase",
        description="Top of the rep range at low RIR for several sessions triggers a weight increase.",
        category="policy",
        fixtures=MID_WORKOUT,
        messages=[
            "Just did bench 185x12 at 1 RIR. That's the third session in a row I've "
            "hit 12 reps at this weight.",
        ],
        expectations=Expectations(
            tools_called=["logWorkoutSet"],
            policy_assertions=[
                "The coach recommended increasing weight on bench press (using words like "
                "'increase', 'bump up', 'go heavier', or suggesting a specific higher weight)",
                "The coach suggested a specific weight increment or target weight for the "
                "next session",
                "The coach referenced that the user hit the top of the rep range at low RIR "
                "as the reason to increase",
            ],
        ),
    ),
    # =========================================================================
    # TOOL USAGE PATTERNS
    # =========================================================================
    Scenario(
        id="tool-001",
        name="Volume check uses correct tool",
        description="Weekly volume questions go to getVolumeThisWeek, not getWorkoutHistory.",
        category="tool-usage",
        fixtures=STANDARD_INTERMEDIATE,
        messages=["How's my volume looking this week?"],
        expectations=Expectations(
            tools_called=["getVolumeThisWeek"],
            tools_not_called=["getWorkoutHistory"],
            policy_assertions=[
                "The coach reported volume numbers from the tool results",
                "The coach compared volume against the user's landmarks (MEV/MAV/MRV)",
                "The coach gave a clear recommendation based on the volume data",
            ],
        ),
    ),
    Scenario(
        id="tool-002",
        name="Progression check uses getProgressionTrend",
        description="Progression questions go to getProgressionTrend.",
        category="tool-usage",
        fixtures=STANDARD_INTERMEDIATE,
        messages=["How am I progressing on bench press?"],
        expectations=Expectations(
            tools_called=["getProgressionTrend"],
            policy_assertions=[
                "The coach used getProgressionTrend to analyze bench press performance",
                "The coach reported specific numbers (weight, reps, RIR changes over sessions)",
                "The coach gave an actionable recommendation based on the trend data",
            ],
        ),
    ),
    Scenario(
        id="tool-003",
        name="Set logging - single set",
        description="A reported set is logged with brief feedback.",
        category="tool-usage",
        fixtures=MID_WORKOUT,
        messages=["Bench 185x8 at 2 RIR"],
        expectations=Expectations(
            tools_called=["logWorkoutSet"],
            policy_assertions=[
                "The coach called logWorkoutSet with the correct weight (185), reps (8), and RIR (2)",
                "The coach gave brief mid-workout feedback (not a long paragraph)",
                "The coach acknowledged the set was logged",
            ],
        ),
    ),
    Scenario(
        id="tool-004",
        name="Set logging - multiple sets reported at once",
        description="Several reported sets are logged individually.",
        category="tool-usage",
        fixtures=MID_WORKOUT,
        messages=[
            "Just did 3 sets of squats at 225: 10 reps, 9 reps, 8 reps. All around 2 RIR.",
        ],
        expectations=Expectations(
            tools_called=["logWorkoutSet", "logWorkoutSet", "logWorkoutSet"],
            policy_assertions=[
                "The coach logged 3 separate sets",
                "Each set had the correct weight (225) and appropriate reps (10, 9, 8)",
                "The coach's response was concise since the user is mid-workout",
            ],
        ),
    ),
    Scenario(
        id="tool-005",
        name="Simple question - no unnecessary tool calls",
        description="General training knowledge questions are answered without tools.",
        category="tool-usage",
        fixtures=STANDARD_INTERMEDIATE,
        messages=["What's the difference between RIR 1 and RIR 2? When should I push to failure?"],
        expectations=Expectations(
            tools_called=[],
            policy_assertions=[
                "The coach answered the question about RIR directly from training science knowledge",
                "The coach did NOT call any tools (this is a knowledge question, not a data question)",
                "The coach explained RIR accurately (RIR 1 = 1 rep left, RIR 2 = 2 reps left)",
            ],
        ),
    ),
    # =========================================================================
    # EDGE CASES
    # =========================================================================
    Scenario(
        id="edge-001",
        name="New user with no data",
        description="With no profile or history the coach gathers basics before prescribing.",
        category="edge-case",
        fixtures=BRAND_NEW_USER,
        messages=["What should I train today?"],
        expectations=Expectations(
            tools_called=["getUserProfile"],
            tools_not_called=["prescribeWorkout"],
            policy_assertions=[
                "The coach recognized this is a new user with no training data",
                "The coach asked about the user's experience level, goals, or available equipment",
                "The coach did NOT prescribe a workout without gathering basic user information first",
                "The coach was welcoming and encouraging, not robotic",
            ],
        ),
    ),
    Scenario(
        id="edge-002",
        name="Already trained muscle group today",
        description="Chest was trained today; the coach advises against more chest work.",
        category="edge-case",
        fixtures=FixtureBundle(
            profile=INTERMEDIATE_USER,
            history=CHEST_TODAY_SESSION,
            volume=AT_MRV_CHEST,
            exercises=ALL_EXERCISES,
            active_session=NO_ACTIVE_SESSION,
            deload=NO_DELOAD,
        ),
        messages=["I want to do chest again right now"],
        expectations=Expectations(
            tools_called=["getWorkoutHistory"],
            tools_not_called=["prescribeWorkout"],
            policy_assertions=[
                "The coach recognized the user already trained chest recently (today or this week)",
                "The coach recommended against more chest work (due to volume limits, "
                "recovery, or same-day training)",
                "The coach suggested alternative muscle groups to train instead",
            ],
        ),
    ),
    Scenario(
        id="edge-003",
        name="No active session for set logging",
        description=(
            "Logging without an active session fails at the tool; the coach offers to "
            "create a workout."
        ),
        category="edge-case",
        fixtures=FixtureBundle(
            profile=INTERMEDIATE_USER,
            history=RECENT_UPPER_SESSIONS,
            volume=MODERATE_VOLUME,
            exercises=ALL_EXERCISES,
            active_session=NO_ACTIVE_SESSION,
            deload=NO_DELOAD,
        ),
        messages=["I just did bench 185x8 at 2 RIR"],
        expectations=Expectations(
            tools_called=["logWorkoutSet"],
            policy_assertions=[
                "The coach attempted to log the set via logWorkoutSet",
                "The coach addressed the lack of an active session (either by informing the "
                "user or by proactively prescribing a workout)",
                "The coach either offered to prescribe a workout OR proactively created one "
                "so the user can log sets",
            ],
        ),
    ),
    Scenario(
        id="edge-004",
        name="Contradictory RIR report",
        description="'Super easy' at 0 RIR is flagged as a contradiction.",
        category="edge-case",
        fixtures=MID_WORKOUT,
        messages=["That was super easy! Bench 185x8 at 0 RIR. Barely felt it."],
        expectations=Expectations(
            tools_called=["logWorkoutSet"],
            policy_assertions=[
                "The coach noticed the contradiction between 'super easy' and 0 RIR (no reps left)",
                "The coach asked for clarification or educated the user about what 0 RIR means",
                "The coach did NOT simply log the set without questioning the discrepancy",
            ],
        ),
    ),
    # =========================================================================
    # COMMUNICATION QUALITY
    # =========================================================================
    Scenario(
        id="comm-001",
        name="Mid-workout responses are concise",
        description="Set-logging replies are brief, not coaching lectures.",
        category="communication",
        fixtures=MID_WORKOUT,
        messages=["Squat 225x10 at 2 RIR"],
        expectations=Expectations(
            tools_called=["logWorkoutSet"],
            policy_assertions=[
                "The coach's response is concise (under 75 words)",
                "The response acknowledges the set",
                "The response includes brief actionable feedback (maintain weight, adjust "
                "next set, etc.)",
                "The response does NOT include long explanations of training science",
            ],
        ),
    ),
    Scenario(
        id="comm-002",
        name="References actual data from tools",
        description="Volume answers cite specific numbers from the tool results.",
        category="communication",
        fixtures=STANDARD_INTERMEDIATE,
        messages=["How's my chest volume this week?"],
        expectations=Expectations(
            tools_called=["getVolumeThisWeek"],
            policy_assertions=[
                "The coach cited the specific chest volume number from the tool result (10 sets)",
                "The coach compared it against a landmark (MEV, MAV, or MRV)",
                "The coach gave a specific recommendation (add more sets, maintain, or reduce)",
                "The response used actual numbers, not vague phrases like 'you're doing well'",
            ],
        ),
    ),
    Scenario(
        id="comm-003",
        name="Explains the why behind recommendations",
        description="Recommendations come with brief reasoning.",
        category="communication",
        fixtures=STANDARD_INTERMEDIATE,
        messages=["Should I increase weight on bench press?"],
        expectations=Expectations(
            tools_called=["getProgressionTrend"],
            policy_assertions=[
                "The coach provided a clear recommendation (increase, maintain, or reduce weight)",
                "The coach referenced specific data or training principles to support the "
                "recommendation (e.g., rep range, RIR, weight trends, mesocycle week, or "
                "progression data)",
                "The explanation was brief and actionable, not a lecture",
            ],
        ),
    ),
]

SCENARIOS_BY_ID = {s.id: s for s in SCENARIOS}


def get_scenarios(
    scenario_id: Optional[str] = None,
    category: Optional[str] = None,
) -> List[Scenario]:
    """Scenarios matching the optional id and category filters."""
    scenarios = SCENARIOS
    if scenario_id:
        scenarios = [s for s in scenarios if s.id == scenario_id]
    if category:
        scenarios = [s for s in scenarios if s.category == category]
    return list(scenarios)
