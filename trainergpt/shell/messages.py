"""Provider-neutral conversation messages exchanged with the model client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class UserMessage:
    text: str


@dataclass
class ToolCall:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None


@dataclass
class ModelTurn:
    """One model step: optional text plus zero or more tool calls.

    ``raw`` keeps the provider's own content object so it can be replayed
    verbatim on the next request.
    """
    text: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    raw: Any = None


@dataclass
class ToolResult:
    call: ToolCall
    result: Dict[str, Any]


@dataclass
class ToolResults:
    """Results for every call of one model step, in call order."""
    results: List[ToolResult] = field(default_factory=list)


Message = Union[UserMessage, ModelTurn, ToolResults]
