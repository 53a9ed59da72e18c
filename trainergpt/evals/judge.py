"""
Policy-assertion judge.

Each natural-language assertion is graded by its own judge call that sees the
assertion, the coach's full response and the ordered tool-call log. The judge
must answer with a ``VERDICT: TRUE|FALSE`` line; anything else fails closed.
"""

from __future__ import annotations

import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from google.genai import types

from ..config import CoachConfig
from ..shell.model_client import call_with_backoff, get_genai_client
from ..tools.catalogue import ToolInvocation

logger = logging.getLogger(__name__)

MAX_PARALLEL_JUDGES = 4

JUDGE_PROMPT_TEMPLATE = """You are a strict evaluator for an AI fitness coaching agent. Evaluate whether the following assertion is TRUE or FALSE based on the agent's actual behavior.

ASSERTION: "{assertion}"

AGENT'S TEXT RESPONSE:
\"\"\"
{response}
\"\"\"

TOOL CALLS MADE (in order):
{tool_calls}

Respond with EXACTLY this format (no other text):
VERDICT: TRUE or FALSE
REASONING: one sentence explaining why"""

_VERDICT_RE = re.compile(
    r"^[^\w\n]*VERDICT[^\w\n]*(TRUE|FALSE)[^\w\n]*$", re.IGNORECASE | re.MULTILINE
)
_REASONING_RE = re.compile(r"REASONING:\s*(.+)", re.IGNORECASE | re.DOTALL)

# Completion function: prompt in, raw judge text out.
Completion = Callable[[str], str]


@dataclass
class PolicyResult:
    assertion: str
    passed: bool
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {"assertion": self.assertion, "passed": self.passed, "reasoning": self.reasoning}


def format_tool_calls(calls: Sequence[ToolInvocation]) -> str:
    if not calls:
        return "(none)"
    return "\n".join(
        f"{i}. {c.tool_name}({json.dumps(c.args, default=str)})"
        for i, c in enumerate(calls, start=1)
    )


def build_judge_prompt(
    assertion: str, response: str, calls: Sequence[ToolInvocation]
) -> str:
    return JUDGE_PROMPT_TEMPLATE.format(
        assertion=assertion,
        response=response,
        tool_calls=format_tool_calls(calls),
    )


def parse_verdict(text: Optional[str]) -> Tuple[bool, str]:
    """
    (passed, reasoning) from raw judge output.

    Passes only on a single unambiguous TRUE verdict line. A missing verdict,
    a FALSE, both TRUE and FALSE, or a line such as "VERDICT: TRUE or FALSE"
    all fail. Without a REASONING line the raw text is kept as the reasoning.
    """
    raw = (text or "").strip()
    verdicts = {m.upper() for m in _VERDICT_RE.findall(raw)}
    passed = verdicts == {"TRUE"}

    match = _REASONING_RE.search(raw)
    reasoning = match.group(1).strip() if match else ""
    if not reasoning:
        reasoning = raw or "Judge returned no output."
    return passed, reasoning


class PolicyJudge:
    def __init__(self, complete: Completion, max_parallel: int = MAX_PARALLEL_JUDGES):
        self.complete = complete
        self.max_parallel = max_parallel

    def judge(
        self, assertion: str, response: str, calls: Sequence[ToolInvocation]
    ) -> PolicyResult:
        prompt = build_judge_prompt(assertion, response, calls)
        try:
            text = self.complete(prompt)
        except Exception as e:
            logger.error("Judge call failed for %r: %s", assertion[:60], e)
            return PolicyResult(assertion=assertion, passed=False, reasoning=f"Judge error: {e}")

        passed, reasoning = parse_verdict(text)
        if not _VERDICT_RE.search(text or ""):
            logger.warning("Judge returned no verdict for %r", assertion[:60])
        return PolicyResult(assertion=assertion, passed=passed, reasoning=reasoning)

    def judge_all(
        self,
        assertions: Sequence[str],
        response: str,
        calls: Sequence[ToolInvocation],
    ) -> List[PolicyResult]:
        """Judge each assertion independently; results keep assertion order."""
        if not assertions:
            return []
        if len(assertions) == 1 or self.max_parallel <= 1:
            return [self.judge(a, response, calls) for a in assertions]

        workers = min(len(assertions), self.max_parallel)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(lambda a: self.judge(a, response, calls), assertions))


def gemini_completion(config: CoachConfig) -> Completion:
    """Judge completion backed by google-genai on Vertex AI."""
    client = get_genai_client(config.project, config.location)
    request_config = types.GenerateContentConfig(temperature=0.0)

    def complete(prompt: str) -> str:
        response = call_with_backoff(
            lambda: client.models.generate_content(
                model=config.judge_model, contents=prompt, config=request_config,
            ),
            description=f"judge({config.judge_model})",
        )
        return (response.text or "").strip()

    return complete
