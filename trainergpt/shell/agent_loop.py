"""
Bounded agent loop.

Each step asks the model for its next move. Tool calls from a step are recorded
in call order, executed (concurrently when there are several) and joined before
the next step. The loop ends when the model answers without tool calls or when
max_steps model steps have run.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from ..tools.catalogue import ToolCatalogue, ToolInvocation
from .messages import Message, ModelTurn, ToolCall, ToolResult, ToolResults, UserMessage
from .model_client import ModelClient

logger = logging.getLogger(__name__)

FINISH_STOP = "stop"
FINISH_MAX_STEPS = "max_steps"

MAX_PARALLEL_TOOLS = 4


@dataclass
class AgentRunResult:
    text: str
    steps: int
    finish_reason: str
    tool_calls: List[ToolInvocation] = field(default_factory=list)
    history: List[Message] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "steps": self.steps,
            "finish_reason": self.finish_reason,
            "tool_calls": [c.to_dict() for c in self.tool_calls],
        }


class AgentLoop:
    def __init__(
        self,
        model: ModelClient,
        catalogue: ToolCatalogue,
        instruction: str,
        max_steps: int,
        max_parallel_tools: int = MAX_PARALLEL_TOOLS,
    ):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.model = model
        self.catalogue = catalogue
        self.instruction = instruction
        self.max_steps = max_steps
        self.max_parallel_tools = max_parallel_tools

    def _execute(self, calls: List[ToolCall]) -> List[ToolResult]:
        for call in calls:
            self.catalogue.record(call.name, call.args)

        if len(calls) == 1:
            call = calls[0]
            return [ToolResult(call=call, result=self.catalogue.execute(call.name, call.args))]

        workers = min(len(calls), self.max_parallel_tools)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(
                lambda c: self.catalogue.execute(c.name, c.args), calls
            ))
        return [ToolResult(call=c, result=r) for c, r in zip(calls, results)]

    def run(
        self,
        messages: Sequence[Union[str, Message]],
        history: Optional[Sequence[Message]] = None,
    ) -> AgentRunResult:
        """Run one user turn (one or more messages) on top of prior history."""
        conversation: List[Message] = list(history or [])
        conversation.extend(UserMessage(m) if isinstance(m, str) else m for m in messages)

        declarations = self.catalogue.declarations()
        invocations: List[ToolInvocation] = []
        texts: List[str] = []

        for step in range(1, self.max_steps + 1):
            turn: ModelTurn = self.model.generate(self.instruction, conversation, declarations)
            conversation.append(turn)
            if turn.text:
                texts.append(turn.text)

            if not turn.tool_calls:
                return AgentRunResult(
                    text="\n\n".join(texts),
                    steps=step,
                    finish_reason=FINISH_STOP,
                    tool_calls=invocations,
                    history=conversation,
                )

            logger.info(
                "Step %d: %s", step, ", ".join(c.name for c in turn.tool_calls)
            )
            invocations.extend(
                ToolInvocation(tool_name=c.name, args=dict(c.args)) for c in turn.tool_calls
            )
            conversation.append(ToolResults(results=self._execute(turn.tool_calls)))

        logger.warning("Agent stopped at the %d-step cap", self.max_steps)
        return AgentRunResult(
            text="\n\n".join(texts),
            steps=self.max_steps,
            finish_reason=FINISH_MAX_STEPS,
            tool_calls=invocations,
            history=conversation,
        )
