"""
Model clients for the agent loop.

GeminiModelClient uses the google-genai SDK against Vertex AI. Tool calling is
driven by AgentLoop, so automatic function calling is disabled and tools are
sent as plain function declarations.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from google import genai
from google.genai import types

from ..config import CoachConfig
from .messages import Message, ModelTurn, ToolCall, ToolResults, UserMessage

logger = logging.getLogger(__name__)

MAX_RETRIES = 5
BASE_DELAY_SECS = 2.0

_clients: Dict[Tuple[Optional[str], str], genai.Client] = {}
_clients_lock = threading.Lock()


def get_genai_client(project: Optional[str], location: str) -> genai.Client:
    """Get or create the Vertex AI GenAI client for a project/location."""
    key = (project, location)
    with _clients_lock:
        if key not in _clients:
            _clients[key] = genai.Client(vertexai=True, project=project, location=location)
        return _clients[key]


def is_rate_limit_error(error: Exception) -> bool:
    text = str(error)
    return "429" in text or "RESOURCE_EXHAUSTED" in text


def call_with_backoff(fn, description: str, max_retries: int = MAX_RETRIES,
                      base_delay: float = BASE_DELAY_SECS, sleep=time.sleep):
    """Run fn(), retrying rate-limit errors with exponential backoff."""
    for attempt in range(max_retries + 1):
        try:
            return fn()
        except Exception as e:
            if is_rate_limit_error(e) and attempt < max_retries:
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    "%s rate limited (attempt %d/%d), retrying in %.0fs: %s",
                    description, attempt + 1, max_retries, delay, e,
                )
                sleep(delay)
                continue
            raise


class ModelClient(ABC):
    """Decides the next step given the instruction, history and tool declarations."""

    @abstractmethod
    def generate(
        self,
        instruction: str,
        history: Sequence[Message],
        tools: List[Dict[str, Any]],
    ) -> ModelTurn:
        ...


def _to_contents(history: Sequence[Message]) -> List[types.Content]:
    contents: List[types.Content] = []
    for message in history:
        if isinstance(message, UserMessage):
            contents.append(types.Content(role="user", parts=[types.Part(text=message.text)]))
        elif isinstance(message, ModelTurn):
            if isinstance(message.raw, types.Content):
                contents.append(message.raw)
                continue
            parts = [types.Part(text=message.text)] if message.text else []
            parts.extend(
                types.Part(function_call=types.FunctionCall(id=c.id, name=c.name, args=c.args))
                for c in message.tool_calls
            )
            contents.append(types.Content(role="model", parts=parts))
        elif isinstance(message, ToolResults):
            contents.append(types.Content(role="user", parts=[
                types.Part(function_response=types.FunctionResponse(
                    id=r.call.id, name=r.call.name, response=r.result,
                ))
                for r in message.results
            ]))
        else:
            raise TypeError(f"Unsupported message type: {type(message).__name__}")
    return contents


def _to_tools(declarations: List[Dict[str, Any]]) -> Optional[List[types.Tool]]:
    if not declarations:
        return None
    return [types.Tool(function_declarations=[
        types.FunctionDeclaration(
            name=d["name"],
            description=d["description"],
            parameters_json_schema=d["parameters"],
        )
        for d in declarations
    ])]


def _parse_response(response: Any) -> ModelTurn:
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return ModelTurn()

    content = candidates[0].content
    texts: List[str] = []
    calls: List[ToolCall] = []
    for part in content.parts or []:
        if part.function_call is not None:
            calls.append(ToolCall(
                name=part.function_call.name,
                args=dict(part.function_call.args or {}),
                id=part.function_call.id,
            ))
        elif part.text and not part.thought:
            texts.append(part.text)
    return ModelTurn(text="".join(texts).strip(), tool_calls=calls, raw=content)


class GeminiModelClient(ModelClient):
    def __init__(
        self,
        model: str,
        client: Optional[genai.Client] = None,
        project: Optional[str] = None,
        location: str = "us-central1",
        temperature: float = 0.3,
    ):
        self.model = model
        self.temperature = temperature
        self._client = client or get_genai_client(project, location)

    @classmethod
    def from_config(cls, config: CoachConfig, model: Optional[str] = None) -> "GeminiModelClient":
        return cls(
            model=model or config.model,
            project=config.project,
            location=config.location,
        )

    def generate(
        self,
        instruction: str,
        history: Sequence[Message],
        tools: List[Dict[str, Any]],
    ) -> ModelTurn:
        request_config = types.GenerateContentConfig(
            system_instruction=instruction,
            temperature=self.temperature,
            tools=_to_tools(tools),
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )
        contents = _to_contents(history)

        response = call_with_backoff(
            lambda: self._client.models.generate_content(
                model=self.model, contents=contents, config=request_config,
            ),
            description=f"generate_content({self.model})",
        )
        turn = _parse_response(response)
        logger.debug(
            "Model %s returned %d chars and %d tool calls",
            self.model, len(turn.text), len(turn.tool_calls),
        )
        return turn
