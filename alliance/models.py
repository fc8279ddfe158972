"""Pure dataclasses for the consensus pipeline. No logic beyond validation, no deps."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CollaborationMode(str, Enum):
    DEMOCRATIC_CONSENSUS = "democratic_consensus"
    EXPERTISE_WEIGHTED = "expertise_weighted"
    HIERARCHICAL = "hierarchical"
    DEBATE_SYNTHESIS = "debate_synthesis"


@dataclass(frozen=True)
class Query:
    """One caller request. ``None`` overrides fall back to the Council defaults."""

    prompt: str
    context: str | None = None
    require_consensus: bool = False
    show_debate: bool = False
    max_debate_rounds: int | None = None
    voting_threshold: float | None = None
    timeout_ms: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise ValueError("Query prompt must not be empty")
        if self.max_debate_rounds is not None and self.max_debate_rounds < 0:
            raise ValueError(f"max_debate_rounds must be >= 0, got {self.max_debate_rounds}")
        if self.voting_threshold is not None and not 0.0 <= self.voting_threshold <= 1.0:
            raise ValueError(f"voting_threshold must be within [0, 1], got {self.voting_threshold}")
        if self.timeout_ms is not None and self.timeout_ms < 0:
            raise ValueError(f"timeout_ms must be >= 0, got {self.timeout_ms}")


@dataclass(frozen=True)
class TokenUsage:
    input: int = 0
    output: int = 0
    total: int = 0


@dataclass(frozen=True)
class ModelResponse:
    provider: str          # configured provider name, e.g. "openai", "claude"
    model: str             # actual model string used
    round_number: int      # 0 for the initial answers
    content: str
    confidence: float
    reasoning: str
    tokens: TokenUsage = field(default_factory=TokenUsage)
    cost: float = 0.0
    latency_ms: float = 0.0


@dataclass(frozen=True)
class DebateRound:
    number: int
    participants: list[str]
    responses: list[ModelResponse]
    synthesis: str
    agreement: float


@dataclass
class ResultMetadata:
    total_tokens: int
    total_cost: float
    processing_time_ms: float
    rounds: int
    cumulative_tokens: int = 0
    cumulative_cost: float = 0.0
    cancelled: bool = False


@dataclass
class ConsensusResult:
    decision: str
    confidence: float
    agreement: float
    participants: list[str]
    reasoning: str
    dissenting: list[ModelResponse]
    methodology: str
    metadata: ResultMetadata
    debate: list[DebateRound] | None = None
