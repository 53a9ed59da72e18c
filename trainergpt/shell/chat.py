"""Production chat session: one user, store-backed tools, history across turns."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..cache import RedisCache, build_cache
from ..analyzers.mesocycle_planner import MesocyclePlanner, gemini_plan_completion
from ..config import CoachConfig
from ..store.base import WorkoutStore
from ..tools.catalogue import PRODUCTION_TOOLS, ToolCatalogue
from ..tools.store_backend import StoreBackend
from .agent_loop import AgentLoop, AgentRunResult
from .instruction import build_instruction
from .messages import Message
from .model_client import GeminiModelClient, ModelClient

logger = logging.getLogger(__name__)


def build_coach_loop(
    config: CoachConfig,
    store: WorkoutStore,
    user_id: str,
    model: Optional[ModelClient] = None,
    cache: Optional[RedisCache] = None,
    planner: Optional[MesocyclePlanner] = None,
) -> AgentLoop:
    """Agent loop wired to the production tool catalogue for one user."""
    backend = StoreBackend(
        store,
        user_id,
        cache=cache or build_cache(config),
        planner=planner or MesocyclePlanner(gemini_plan_completion(config)),
    )
    catalogue = ToolCatalogue(backend, PRODUCTION_TOOLS)
    return AgentLoop(
        model=model or GeminiModelClient.from_config(config),
        catalogue=catalogue,
        instruction=build_instruction(config, catalogue.names),
        max_steps=config.max_steps,
    )


class CoachChat:
    """Multi-turn conversation; each send() is one bounded agent run."""

    def __init__(self, loop: AgentLoop):
        self.loop = loop
        self.history: List[Message] = []

    def send(self, text: str) -> AgentRunResult:
        result = self.loop.run([text], history=self.history)
        self.history = result.history
        return result

    def reset(self) -> None:
        self.history = []
