"""Tests for the policy-assertion judge."""
from __future__ import annotations

import pytest

from trainergpt.evals.judge import PolicyJudge, build_judge_prompt, parse_verdict
from trainergpt.tools.catalogue import ToolInvocation


class TestParseVerdict:

    def test_true_with_reasoning(self):
        assert parse_verdict("VERDICT: TRUE\nREASONING: It called the tool.") == (
            True, "It called the tool.",
        )

    def test_false(self):
        passed, reasoning = parse_verdict("VERDICT: FALSE\nREASONING: No RIR mentioned.")
        assert passed is False
        assert reasoning == "No RIR mentioned."

    def test_case_insensitive(self):
        assert parse_verdict("verdict: true\nreasoning: fine")[0] is True

    @pytest.mark.parametrize("text", [
        "Looks good to me.",
        "VERDICT: TRUE or FALSE\nREASONING: one sentence explaining why",
        "VERDICT: TRUE\nVERDICT: FALSE",
        "VERDICT: TRUEISH",
        "VERDICT:\nREASONING: unsure",
        "",
    ])
    def test_fails_closed(self, text):
        assert parse_verdict(text)[0] is False

    def test_raw_text_kept_without_reasoning(self):
        assert parse_verdict("Looks good to me.") == (False, "Looks good to me.")

    def test_none(self):
        assert parse_verdict(None) == (False, "Judge returned no output.")


class TestPrompt:

    def test_embeds_assertion_response_and_calls(self):
        prompt = build_judge_prompt(
            "The coach used RIR",
            "Solid set, about 1 RIR.",
            [ToolInvocation("logWorkoutSet", {"weight": 185, "reps": 8})],
        )
        assert 'ASSERTION: "The coach used RIR"' in prompt
        assert "Solid set, about 1 RIR." in prompt
        assert '1. logWorkoutSet({"weight": 185, "reps": 8})' in prompt
        assert "VERDICT: TRUE or FALSE" in prompt

    def test_no_calls(self):
        assert "(none)" in build_judge_prompt("a", "b", [])


class TestPolicyJudge:

    def test_each_assertion_judged_in_order(self):
        prompts = []

        def complete(prompt):
            prompts.append(prompt)
            if '"second"' in prompt:
                return "VERDICT: FALSE\nREASONING: nope"
            return "VERDICT: TRUE\nREASONING: yes"

        results = PolicyJudge(complete, max_parallel=3).judge_all(
            ["first", "second", "third"], "response", []
        )
        assert [r.assertion for r in results] == ["first", "second", "third"]
        assert [r.passed for r in results] == [True, False, True]
        assert len(prompts) == 3

    def test_completion_error_fails_assertion(self):
        def complete(prompt):
            raise RuntimeError("judge offline")

        result = PolicyJudge(complete).judge("anything", "response", [])
        assert result.passed is False
        assert "judge offline" in result.reasoning

    def test_no_assertions(self):
        assert PolicyJudge(lambda p: "VERDICT: TRUE").judge_all([], "response", []) == []
