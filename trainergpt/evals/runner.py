#!/usr/bin/env python3
"""
Coach eval runner - executes scenarios against the real model with fixture-backed tools.

Each scenario goes Setup -> Run -> Judge -> Report:
  Setup: a HarnessContext over a private copy of the scenario's fixtures.
  Run:   the bounded agent loop with the eval step cap and a wall-clock budget.
  Judge: deterministic tool-call and substring checks, then one judge call per
         policy assertion.
  Report: rich console output plus a timestamped JSON artifact.

Usage:
    trainergpt-eval                      # run all scenarios
    trainergpt-eval policy-001           # run one scenario
    trainergpt-eval --category policy    # run a category
    trainergpt-eval --parallel 4         # run scenarios concurrently

Exit status is 0 only when every selected scenario passes.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from rich.console import Console

from ..config import CoachConfig
from ..shell.agent_loop import AgentLoop, AgentRunResult
from ..shell.instruction import build_instruction
from ..shell.model_client import GeminiModelClient, ModelClient
from ..tools.catalogue import ToolInvocation
from .checks import (
    TermResult,
    ToolCallCheck,
    check_tool_calls,
    contains_passed,
    does_not_contain_passed,
    find_terms,
)
from .context import HarnessContext
from .judge import PolicyJudge, PolicyResult, gemini_completion
from .scenarios import CATEGORIES, Scenario, get_scenarios

logger = logging.getLogger(__name__)

console = Console()

ModelFactory = Callable[[], ModelClient]


@dataclass
class EvalResult:
    eval_id: str
    eval_name: str
    category: str
    passed: bool
    tool_call_results: ToolCallCheck
    response_contains_results: List[TermResult] = field(default_factory=list)
    response_does_not_contain_results: List[TermResult] = field(default_factory=list)
    policy_results: List[PolicyResult] = field(default_factory=list)
    full_response: str = ""
    tool_call_log: List[ToolInvocation] = field(default_factory=list)
    steps: int = 0
    finish_reason: Optional[str] = None
    duration_ms: int = 0
    error: Optional[str] = None

    def failed_checks(self) -> List[str]:
        """Names of the check groups that failed, deterministic ones first."""
        failed = []
        if self.error:
            failed.append("error")
        if not self.tool_call_results.passed:
            failed.append("tool_calls")
        if not contains_passed(self.response_contains_results):
            failed.append("response_contains")
        if not does_not_contain_passed(self.response_does_not_contain_results):
            failed.append("response_does_not_contain")
        if any(not p.passed for p in self.policy_results):
            failed.append("policy_assertions")
        return failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eval_id": self.eval_id,
            "eval_name": self.eval_name,
            "category": self.category,
            "passed": self.passed,
            "failed_checks": self.failed_checks(),
            "tool_call_results": self.tool_call_results.to_dict(),
            "response_contains_results": [r.to_dict() for r in self.response_contains_results],
            "response_does_not_contain_results": [
                r.to_dict() for r in self.response_does_not_contain_results
            ],
            "policy_results": [p.to_dict() for p in self.policy_results],
            "full_response": self.full_response,
            "tool_call_log": [c.to_dict() for c in self.tool_call_log],
            "steps": self.steps,
            "finish_reason": self.finish_reason,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }


# ---------------------------------------------------------------------------
# Single scenario
# ---------------------------------------------------------------------------

def _run_with_budget(loop: AgentLoop, messages: Sequence[str], timeout: float) -> AgentRunResult:
    """
    Run the agent loop on a worker thread and give up after timeout seconds.

    A timed-out run keeps its thread until the in-flight model call returns;
    its results are discarded.
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(loop.run, list(messages))
    try:
        return future.result(timeout=timeout)
    except FuturesTimeout:
        raise TimeoutError(f"Scenario exceeded its {timeout:.0f}s budget") from None
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def run_scenario(
    scenario: Scenario,
    config: CoachConfig,
    model_factory: ModelFactory,
    judge: PolicyJudge,
    timeout: Optional[float] = None,
) -> EvalResult:
    """Run one scenario end to end. Never raises; failures become failed results."""
    start = time.monotonic()
    expectations = scenario.expectations
    ctx = HarnessContext(scenario.fixtures)

    try:
        catalogue = ctx.catalogue()
        loop = AgentLoop(
            model=model_factory(),
            catalogue=catalogue,
            instruction=build_instruction(config, catalogue.names),
            max_steps=config.max_steps,
        )
        run = _run_with_budget(
            loop, scenario.messages, timeout or config.scenario_timeout_secs
        )

        calls = ctx.recorder.calls
        tool_check = check_tool_calls(
            expectations.tools_called,
            [c.tool_name for c in calls],
            must_not_call=expectations.tools_not_called,
            ordered=expectations.ordered_calls,
        )
        contains = find_terms(run.text, expectations.response_contains)
        not_contains = find_terms(run.text, expectations.response_does_not_contain)
        policy = judge.judge_all(expectations.policy_assertions, run.text, calls)

        passed = (
            tool_check.passed
            and contains_passed(contains)
            and does_not_contain_passed(not_contains)
            and all(p.passed for p in policy)
        )
        return EvalResult(
            eval_id=scenario.id,
            eval_name=scenario.name,
            category=scenario.category,
            passed=passed,
            tool_call_results=tool_check,
            response_contains_results=contains,
            response_does_not_contain_results=not_contains,
            policy_results=policy,
            full_response=run.text,
            tool_call_log=calls,
            steps=run.steps,
            finish_reason=run.finish_reason,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    except Exception as e:
        logger.error("Scenario %s failed: %s", scenario.id, e)
        calls = ctx.recorder.calls
        return EvalResult(
            eval_id=scenario.id,
            eval_name=scenario.name,
            category=scenario.category,
            passed=False,
            tool_call_results=check_tool_calls(
                expectations.tools_called,
                [c.tool_name for c in calls],
                must_not_call=expectations.tools_not_called,
                ordered=expectations.ordered_calls,
            ),
            tool_call_log=calls,
            duration_ms=int((time.monotonic() - start) * 1000),
            error=str(e) or e.__class__.__name__,
        )


def run_scenarios(
    scenarios: Sequence[Scenario],
    config: CoachConfig,
    model_factory: ModelFactory,
    judge: PolicyJudge,
    parallel: int = 1,
) -> List[EvalResult]:
    """Run scenarios sequentially or concurrently; results keep input order."""

    def run_one(scenario: Scenario) -> EvalResult:
        logger.info("Running %s: %s", scenario.id, scenario.name)
        return run_scenario(scenario, config, model_factory, judge)

    if parallel <= 1 or len(scenarios) <= 1:
        return [run_one(s) for s in scenarios]

    with ThreadPoolExecutor(max_workers=min(parallel, len(scenarios))) as executor:
        return list(executor.map(run_one, scenarios))


# ---------------------------------------------------------------------------
# Summary and output
# ---------------------------------------------------------------------------

def summarize(results: Sequence[EvalResult]) -> Dict[str, Any]:
    total = len(results)
    passed = len([r for r in results if r.passed])

    by_category: Dict[str, Dict[str, int]] = {}
    for category in CATEGORIES:
        in_category = [r for r in results if r.category == category]
        if in_category:
            by_category[category] = {
                "passed": len([r for r in in_category if r.passed]),
                "total": len(in_category),
            }

    policy = [p for r in results for p in r.policy_results]
    policy_passed = len([p for p in policy if p.passed])

    return {
        "total": total,
        "passed": passed,
        "failed": total - passed,
        "errored": len([r for r in results if r.error]),
        "avg_duration_ms": round(sum(r.duration_ms for r in results) / total) if total else 0,
        "by_category": by_category,
        "policy_assertions": {
            "passed": policy_passed,
            "total": len(policy),
            "pass_rate": round(policy_passed / len(policy) * 100, 1) if policy else None,
        },
    }


def save_results(
    results: Sequence[EvalResult],
    results_dir: str,
    timestamp: Optional[str] = None,
) -> Path:
    """Write the summary and every per-scenario result to eval_<timestamp>.json."""
    timestamp = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S")
    out_dir = Path(results_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    path = out_dir / f"eval_{timestamp}.json"
    payload = {
        "timestamp": timestamp,
        "summary": summarize(results),
        "results": [r.to_dict() for r in results],
    }
    with open(path, "w") as f:
        json.dump(payload, f, indent=2, default=str)
    return path


def print_result(result: EvalResult) -> None:
    status = "[bold green] PASS [/bold green]" if result.passed else "[bold red] FAIL [/bold red]"
    console.print(
        f"\n{status} [{result.eval_id}] {result.eval_name} ({result.duration_ms}ms)",
        highlight=False,
    )

    if result.error:
        console.print(f"  [red]ERROR:[/red] {result.error}")

    tools = result.tool_call_results
    if tools.missing_calls:
        console.print(f"  Missing tool calls: {', '.join(tools.missing_calls)}")
    if tools.unexpected_calls:
        console.print(f"  Unexpected tool calls: {', '.join(tools.unexpected_calls)}")
    if not tools.order_respected:
        console.print(f"  Tool calls out of order, expected: {' -> '.join(tools.ordered)}")
    console.print(f"  [dim]Tools called: {' -> '.join(tools.actual) or '(none)'}[/dim]")

    for r in result.response_contains_results:
        if not r.found:
            console.print(f'  Missing in response: "{r.term}"')
    for r in result.response_does_not_contain_results:
        if r.found:
            console.print(f'  Should NOT be in response: "{r.term}"')

    for p in result.policy_results:
        mark = "[green]+[/green]" if p.passed else "[red]-[/red]"
        console.print(f"  {mark} {p.assertion}", highlight=False)
        if not p.passed:
            console.print(f"    [dim]Reason: {p.reasoning}[/dim]", highlight=False)


def print_summary(summary: Dict[str, Any]) -> None:
    console.print("\n" + "=" * 60)
    console.print(
        f"[bold]RESULTS: {summary['passed']}/{summary['total']} passed, "
        f"{summary['failed']} failed[/bold]"
    )
    console.print(f"Average duration: {summary['avg_duration_ms']}ms per eval")
    for category, counts in summary["by_category"].items():
        console.print(f"  {category}: {counts['passed']}/{counts['total']}")

    policy = summary["policy_assertions"]
    if policy["total"]:
        console.print(
            f"\nPolicy assertion pass rate: {policy['passed']}/{policy['total']} "
            f"({policy['pass_rate']}%)"
        )
    console.print("=" * 60)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="TrainerGPT coach eval runner")
    parser.add_argument("scenario_id", nargs="?", help="Run a single scenario by id")
    parser.add_argument(
        "--category",
        help=f"Run one category ({', '.join(CATEGORIES)})",
    )
    parser.add_argument(
        "--parallel",
        type=int,
        default=1,
        help="Number of scenarios to run concurrently (default: 1)",
    )
    parser.add_argument("--results-dir", help="Directory for the JSON results artifact")
    parser.add_argument("--verbose", action="store_true", help="Log agent steps")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    scenarios = get_scenarios(scenario_id=args.scenario_id, category=args.category)
    if not scenarios:
        if args.scenario_id:
            console.print(f'[red]No scenario found with id "{args.scenario_id}"[/red]')
        if args.category:
            console.print(f'[red]No scenarios found for category "{args.category}"[/red]')
        return 1

    config = CoachConfig.from_env().for_eval()
    judge = PolicyJudge(gemini_completion(config))

    console.print(
        f"Running {len(scenarios)} eval(s) with {config.model} "
        f"(judge: {config.judge_model}, max steps: {config.max_steps})"
    )
    with console.status("[dim]Running scenarios...[/dim]", spinner="dots"):
        results = run_scenarios(
            scenarios,
            config,
            lambda: GeminiModelClient.from_config(config),
            judge,
            parallel=args.parallel,
        )

    for result in results:
        print_result(result)
    print_summary(summarize(results))

    path = save_results(results, args.results_dir or config.results_dir)
    console.print(f"\nResults saved to {path}")

    return 0 if all(r.passed for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
