"""
Deterministic scenario checks: tool-call counts, call order and substrings.

These never consult a model. Policy assertions are judged separately in
judge.py so a report always shows which kind of check failed.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence


@dataclass
class ToolCallCheck:
    expected: List[str]
    actual: List[str]
    missing_calls: List[str] = field(default_factory=list)
    unexpected_calls: List[str] = field(default_factory=list)
    ordered: List[str] = field(default_factory=list)
    order_respected: bool = True

    @property
    def passed(self) -> bool:
        return not self.missing_calls and not self.unexpected_calls and self.order_respected

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expected": list(self.expected),
            "actual": list(self.actual),
            "missing_calls": list(self.missing_calls),
            "unexpected_calls": list(self.unexpected_calls),
            "ordered": list(self.ordered),
            "order_respected": self.order_respected,
            "passed": self.passed,
        }


@dataclass
class TermResult:
    term: str
    found: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"term": self.term, "found": self.found}


def is_subsequence(expected: Sequence[str], actual: Sequence[str]) -> bool:
    """True when expected appears in actual in order, gaps allowed."""
    remaining = iter(actual)
    return all(name in remaining for name in expected)


def check_call_order(expected: Sequence[str], actual: Sequence[str]) -> bool:
    """
    Order check over the calls restricted to the expected names.

    Extra calls of other tools are ignored; repeated calls of an expected tool
    are fine as long as some occurrence of each keeps the order.
    """
    if not expected:
        return True
    relevant = set(expected)
    return is_subsequence(expected, [name for name in actual if name in relevant])


def check_tool_calls(
    expected: Sequence[str],
    actual: Sequence[str],
    must_not_call: Sequence[str] = (),
    ordered: Sequence[str] = (),
) -> ToolCallCheck:
    """
    Per-name count comparison: every expected name must be observed at least
    as many times as it is listed. Any call of a forbidden tool is reported,
    once per call.
    """
    expected_counts = Counter(expected)
    actual_counts = Counter(actual)
    missing = [
        name for name in expected
        if actual_counts[name] < expected_counts[name]
    ]
    forbidden = set(must_not_call)
    unexpected = [name for name in actual if name in forbidden]
    return ToolCallCheck(
        expected=list(expected),
        actual=list(actual),
        missing_calls=missing,
        unexpected_calls=unexpected,
        ordered=list(ordered),
        order_respected=check_call_order(ordered, actual),
    )


def find_terms(response: str, terms: Sequence[str]) -> List[TermResult]:
    """Case-insensitive substring lookup for each term."""
    haystack = response.lower()
    return [TermResult(term=term, found=term.lower() in haystack) for term in terms]


def contains_passed(results: Sequence[TermResult]) -> bool:
    return all(r.found for r in results)


def does_not_contain_passed(results: Sequence[TermResult]) -> bool:
    return not any(r.found for r in results)
