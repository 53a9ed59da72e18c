"""
Scheduler - deload checks and weekly volume summaries for every user.

Run on a schedule (hourly is enough given the cache TTLs). Results are written
to the shared redis cache, where getUserProfile and getWeeklySummary in any chat
process read them without recomputing. A failure for one user is logged and the
run continues.
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from typing import Any, Dict, Iterable, Optional

from ..analyzers.deload import evaluate_deload
from ..cache import CacheKind, RedisCache, build_cache
from ..config import CoachConfig
from ..store import build_store
from ..store.base import WorkoutStore
from ..tools.store_backend import DELOAD_LOOKBACK_SESSIONS, StoreBackend

logger = logging.getLogger(__name__)


def run_deload_checks(
    store: WorkoutStore,
    cache: RedisCache,
    user_ids: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    """Evaluate the deload rules for each user with an active mesocycle."""
    checked = recommended = failed = 0
    for user_id in user_ids if user_ids is not None else store.list_user_ids():
        try:
            profile = store.get_profile(user_id)
            if profile is None or profile.active_mesocycle is None:
                continue
            recent = store.list_sessions(user_id, limit=DELOAD_LOOKBACK_SESSIONS)
            recommendation = evaluate_deload(profile.active_mesocycle, recent)
            cache.put(CacheKind.DELOAD, recommendation, user_id)
            checked += 1
            if recommendation.should_deload:
                recommended += 1
                logger.info("Deload recommended for user %s: %s", user_id, recommendation.reason)
        except Exception as e:
            failed += 1
            logger.error("Deload check failed for user %s: %s", user_id, e)

    logger.info("Deload checks: %d checked, %d recommended, %d failed", checked, recommended, failed)
    return {"deload_checked": checked, "deload_recommended": recommended, "deload_failed": failed}


def run_weekly_summaries(
    store: WorkoutStore,
    cache: RedisCache,
    user_ids: Optional[Iterable[str]] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Summarise this week's volume against landmarks for each user."""
    today = today or date.today()
    built = failed = 0
    for user_id in user_ids if user_ids is not None else store.list_user_ids():
        try:
            backend = StoreBackend(store, user_id, cache=cache, today=lambda: today)
            summary = backend.compute_weekly_summary()
            cache.put(CacheKind.WEEKLY_SUMMARY, summary, user_id)
            built += 1
            if summary["aboveMrv"]:
                logger.info("User %s above MRV for: %s", user_id, ", ".join(summary["aboveMrv"]))
        except Exception as e:
            failed += 1
            logger.error("Weekly summary failed for user %s: %s", user_id, e)

    logger.info("Weekly summaries: %d built, %d failed", built, failed)
    return {"weekly_summaries_built": built, "weekly_summaries_failed": failed}


def run_scheduler(
    store: WorkoutStore,
    cache: RedisCache,
    job: str = "all",
    user_ids: Optional[Iterable[str]] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    user_ids = list(user_ids) if user_ids is not None else None
    results: Dict[str, Any] = {}
    if job in ("deload", "all"):
        results.update(run_deload_checks(store, cache, user_ids))
    if job in ("weekly-summary", "all"):
        results.update(run_weekly_summaries(store, cache, user_ids, today))
    return results


def main() -> None:
    parser = argparse.ArgumentParser(description="Run TrainerGPT background jobs")
    parser.add_argument(
        "job", nargs="?", default="all", choices=["deload", "weekly-summary", "all"],
    )
    parser.add_argument("--user", action="append", dest="users", help="Limit to user id(s)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    logger.info("Starting scheduler (%s)", args.job)

    config = CoachConfig.from_env()
    results = run_scheduler(build_store(config), build_cache(config), args.job, args.users)

    logger.info("Scheduler completed: %s", json.dumps(results))


if __name__ == "__main__":
    main()
