"""
ActivityAgent Type Definitions

Transcript turns and model replies are small tagged variants so the tool loop
can `match` on them instead of probing provider objects for fields.
All of this is transient: nothing here is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from weekend_backend.schemas.recommendations import RecommendationsPayload


class AgentState(str, Enum):
    """States of one agent run."""
    IDLE = "idle"
    REQUESTING = "requesting"
    TOOL_REQUESTED = "tool_requested"
    TOOL_EXECUTING = "tool_executing"
    FINALIZING = "finalizing"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model."""
    name: str
    args: Dict[str, Any]
    id: Optional[str] = None


@dataclass(frozen=True)
class ToolResult:
    """Text result of one tool invocation, error text included."""
    name: str
    content: str
    call_id: Optional[str] = None
    is_error: bool = False


# ---------------------------------------------------------------------------
# Transcript turns
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UserTurn:
    """Plain user instruction."""
    text: str


@dataclass(frozen=True)
class ToolCallTurn:
    """Model turn that requested tools. `raw` is the provider-native content."""
    calls: Tuple[ToolCall, ...]
    raw: Any = None


@dataclass(frozen=True)
class ToolResultTurn:
    """Results sent back for every call of the preceding ToolCallTurn."""
    results: Tuple[ToolResult, ...]


Turn = Union[UserTurn, ToolCallTurn, ToolResultTurn]


# ---------------------------------------------------------------------------
# Model replies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Usage:
    """Token counters reported with a single model reply."""
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class ToolCallReply:
    calls: Tuple[ToolCall, ...]
    usage: Usage = Usage()
    raw: Any = None


@dataclass(frozen=True)
class TextReply:
    text: str
    usage: Usage = Usage()


@dataclass(frozen=True)
class EmptyReply:
    """Neither text nor tool calls (blocked, truncated, or empty candidate)."""
    usage: Usage = Usage()
    reason: Optional[str] = None


ModelReply = Union[ToolCallReply, TextReply, EmptyReply]


# ---------------------------------------------------------------------------
# Run state and results
# ---------------------------------------------------------------------------

@dataclass
class AgentUsage:
    """Usage accumulated over a whole run."""
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    search_calls: int = 0
    iterations: int = 0


@dataclass
class AgentToolLoopState:
    """In-flight conversation and counters of one run."""
    usage: AgentUsage
    transcript: List[Turn] = field(default_factory=list)
    state: AgentState = AgentState.IDLE


@dataclass(frozen=True)
class AgentResult:
    """Outcome of a run that reached DONE."""
    recommendations: RecommendationsPayload
    usage: AgentUsage


@dataclass(frozen=True)
class AgentEvent:
    """Progress event: start, tool_use, tool_result, finalizing, done, error."""
    type: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, **self.data}
