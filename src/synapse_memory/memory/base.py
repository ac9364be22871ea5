"""Domain types for the neuro-symbolic thought memory.

Thoughts are the atomic units of agent reasoning. Relations are typed,
directed edges between thoughts (the symbolic layer). Results record the
outcome a thought produced. All three are immutable once written;
corrections are new records.

Type tags are closed ``str`` enums. Values outside the known vocabulary are
kept verbatim as plain strings so that callers can introduce new thought
types without this engine rejecting them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from synapse_memory.exceptions import InvalidInputError


class ThoughtType(str, Enum):
    """Known kinds of thought.

    Anything else the agent emits is stored as a raw string.
    """

    OBSERVATION = "Observation"
    ANALYTICAL = "Analytical"
    DECISION = "Decision"
    EMOTIONAL = "Emotional"
    SELF_REFLECTION = "SelfReflection"
    MEMORY_RECALL = "MemoryRecall"
    STRATEGIC = "Strategic"
    SYNTHESIS = "Synthesis"
    CREATIVE = "Creative"


class ThoughtOrigin(str, Enum):
    """How a thought came about."""

    REACTIVE = "Reactive"      # Response to external input
    AUTONOMOUS = "Autonomous"  # Self-initiated
    CHAINED = "Chained"        # Follow-up of another thought


class RelationType(str, Enum):
    """Closed vocabulary of relations between thoughts."""

    CAUSED_BY = "caused_by"
    LEADS_TO = "leads_to"
    CONTRADICTS = "contradicts"
    SUPPORTS = "supports"
    REFINES = "refines"
    ABSTRACTS = "abstracts"
    ELABORATES = "elaborates"
    SIMILAR_TO = "similar_to"
    INSTANCE_OF = "instance_of"
    PART_OF = "part_of"
    TRIGGERS = "triggers"
    RESOLVES = "resolves"


class ResultType(str, Enum):
    """Kinds of outcome a thought can produce."""

    ACTION = "action"
    RESPONSE = "response"
    INSIGHT = "insight"
    DECISION = "decision"
    SKILL_LEARNED = "skill_learned"
    FACT_DISCOVERED = "fact_discovered"
    ERROR = "error"
    DEFERRED = "deferred"


def coerce_tag(enum_cls: type[Enum], value: Any) -> Any:
    """Map a raw tag onto a known enum member, or keep it as a string.

    Args:
        enum_cls: ThoughtType or ThoughtOrigin
        value: Enum member or raw string

    Returns:
        The enum member when the value is known, otherwise the string
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return str(value)


def tag_value(value: Any) -> str:
    """Wire representation of an enum member or raw tag."""
    return value.value if isinstance(value, Enum) else str(value)


def parse_uuid(value: UUID | str, what: str = "id") -> UUID:
    """Parse a caller-supplied identifier.

    Raises:
        InvalidInputError: If the value is not a UUID.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, AttributeError, TypeError) as e:
        raise InvalidInputError(f"Invalid {what}: {value!r}", cause=e) from e


def utc(dt: datetime) -> datetime:
    """Normalize a datetime to an aware UTC value. Naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise InvalidInputError(f"{name} must be within [0, 1], got {value}")


@dataclass(frozen=True)
class Thought:
    """A persisted unit of agent reasoning.

    The id is assigned by the caller, so saving the same thought twice
    replaces the earlier copy instead of duplicating it.

    Example:
        observation = Thought(
            type=ThoughtType.OBSERVATION,
            content="user asked for weather",
        )
        analysis = Thought(
            type=ThoughtType.ANALYTICAL,
            content="user wants forecast",
            parent_thought_id=observation.id,
        )
    """

    type: ThoughtType | str
    content: str
    id: UUID = field(default_factory=uuid4)
    origin: ThoughtOrigin | str = ThoughtOrigin.REACTIVE
    confidence: float = 1.0
    relevance: float = 1.0
    timestamp: datetime = field(default_factory=utc_now)
    parent_thought_id: UUID | None = None
    topic: str | None = None
    tags: list[str] = field(default_factory=list)
    metadata: dict[str, Any] | None = None

    def __post_init__(self):
        _check_unit("confidence", self.confidence)
        _check_unit("relevance", self.relevance)
        object.__setattr__(self, "id", parse_uuid(self.id, "thought id"))
        object.__setattr__(self, "type", coerce_tag(ThoughtType, self.type))
        object.__setattr__(self, "origin", coerce_tag(ThoughtOrigin, self.origin))
        object.__setattr__(self, "timestamp", utc(self.timestamp))
        if self.parent_thought_id is not None:
            object.__setattr__(
                self,
                "parent_thought_id",
                parse_uuid(self.parent_thought_id, "parent thought id"),
            )

    @property
    def type_name(self) -> str:
        return tag_value(self.type)

    @property
    def origin_name(self) -> str:
        return tag_value(self.origin)


@dataclass(frozen=True)
class Relation:
    """A typed, directed edge between two thoughts.

    The target may also be a Result id: saving a result links its thought
    to it.
    """

    source_thought_id: UUID
    target_thought_id: UUID
    relation_type: RelationType
    strength: float = 1.0
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    metadata: dict[str, Any] | None = None

    def __post_init__(self):
        _check_unit("strength", self.strength)
        object.__setattr__(self, "id", parse_uuid(self.id, "relation id"))
        object.__setattr__(
            self, "source_thought_id", parse_uuid(self.source_thought_id, "source thought id")
        )
        object.__setattr__(
            self, "target_thought_id", parse_uuid(self.target_thought_id, "target thought id")
        )
        object.__setattr__(self, "relation_type", RelationType(self.relation_type))
        object.__setattr__(self, "created_at", utc(self.created_at))


@dataclass(frozen=True)
class Result:
    """The outcome of acting on a thought."""

    thought_id: UUID
    result_type: ResultType
    content: str
    success: bool = True
    confidence: float = 1.0
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    execution_time: timedelta | None = None
    metadata: dict[str, Any] | None = None

    def __post_init__(self):
        _check_unit("confidence", self.confidence)
        object.__setattr__(self, "id", parse_uuid(self.id, "result id"))
        object.__setattr__(self, "thought_id", parse_uuid(self.thought_id, "thought id"))
        object.__setattr__(self, "result_type", ResultType(self.result_type))
        object.__setattr__(self, "created_at", utc(self.created_at))


@dataclass
class ThoughtStatistics:
    """Aggregate view over one session's thoughts."""

    total_count: int = 0
    count_by_type: dict[str, int] = field(default_factory=dict)
    count_by_origin: dict[str, int] = field(default_factory=dict)
    average_confidence: float = 0.0
    average_relevance: float = 0.0
    earliest_thought: datetime | None = None
    latest_thought: datetime | None = None
    chain_count: int = 0  # Thoughts with a parent


@dataclass
class NeuroSymbolicStats:
    """Statistics across thoughts, relations and results of a session."""

    total_thoughts: int
    total_relations: int
    total_results: int
    thoughts_by_type: dict[str, int]
    relations_by_type: dict[str, int]
    results_by_type: dict[str, int]
    causal_chain_count: int
    average_chain_length: float
    oldest_thought: datetime | None = None
    newest_thought: datetime | None = None
