"""Coaching tool catalogue and its backends."""

from .catalogue import (
    CORE_TOOLS,
    PRODUCTION_TOOLS,
    PROGRAM_TOOLS,
    SESSION_TOOLS,
    CallRecorder,
    ToolCatalogue,
    ToolInvocation,
    ToolSpec,
)
from .schemas import ToolName

__all__ = [
    "CORE_TOOLS",
    "PRODUCTION_TOOLS",
    "PROGRAM_TOOLS",
    "SESSION_TOOLS",
    "CallRecorder",
    "ToolCatalogue",
    "ToolInvocation",
    "ToolName",
    "ToolSpec",
]
