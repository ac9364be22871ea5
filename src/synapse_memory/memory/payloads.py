"""Point payload codec for thoughts, relations and results.

Field names and value formats are the storage contract shared with every
other reader of these collections:

- Thought point: id, session_id, type, origin, content, confidence,
  relevance, timestamp, topic, tags, parent_thought_id?, metadata_json?
- Relation point: id, session_id, source_thought_id, target_thought_id,
  relation_type, strength, created_at, metadata_json?
- Result point: id, session_id, thought_id, result_type, content, success,
  confidence, created_at, execution_time_ms?, metadata_json?

Timestamps are ISO-8601 in UTC. Metadata is stored as a JSON string so
that arbitrary nesting survives backends with flat payload indexes.
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import Any, TypeVar
from uuid import UUID
import json
import logging

from synapse_memory.exceptions import PayloadDecodeError
from synapse_memory.memory.backend import StoredPoint
from synapse_memory.memory.base import (
    Relation,
    Result,
    Thought,
    tag_value,
    utc,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _iso(dt: datetime) -> str:
    return utc(dt).isoformat()


def _parse_time(value: str) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"expected an ISO-8601 string, got {type(value).__name__}")
    # fromisoformat() before 3.11 rejects the "Z" suffix
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return utc(datetime.fromisoformat(value))


def _dump_metadata(payload: dict[str, Any], metadata: dict[str, Any] | None) -> None:
    if metadata is not None:
        payload["metadata_json"] = json.dumps(metadata, default=str)


def _load_metadata(payload: dict[str, Any]) -> dict[str, Any] | None:
    raw = payload.get("metadata_json")
    if not raw:
        return None
    return json.loads(raw)


# =============================================================================
# Encoding
# =============================================================================


def thought_to_payload(session_id: str, thought: Thought) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(thought.id),
        "session_id": session_id,
        "type": thought.type_name,
        "origin": thought.origin_name,
        "content": thought.content,
        "confidence": thought.confidence,
        "relevance": thought.relevance,
        "timestamp": _iso(thought.timestamp),
        "topic": thought.topic,
        "tags": list(thought.tags),
    }
    if thought.parent_thought_id is not None:
        payload["parent_thought_id"] = str(thought.parent_thought_id)
    _dump_metadata(payload, thought.metadata)
    return payload


def relation_to_payload(session_id: str, relation: Relation) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(relation.id),
        "session_id": session_id,
        "source_thought_id": str(relation.source_thought_id),
        "target_thought_id": str(relation.target_thought_id),
        "relation_type": relation.relation_type.value,
        "strength": relation.strength,
        "created_at": _iso(relation.created_at),
    }
    _dump_metadata(payload, relation.metadata)
    return payload


def result_to_payload(session_id: str, result: Result) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(result.id),
        "session_id": session_id,
        "thought_id": str(result.thought_id),
        "result_type": result.result_type.value,
        "content": result.content,
        "success": result.success,
        "confidence": result.confidence,
        "created_at": _iso(result.created_at),
    }
    if result.execution_time is not None:
        payload["execution_time_ms"] = result.execution_time.total_seconds() * 1000.0
    _dump_metadata(payload, result.metadata)
    return payload


def relation_text(relation: Relation) -> str:
    """Text embedded as a relation point's vector."""
    return (
        f"{relation.relation_type.value}: "
        f"{relation.source_thought_id} -> {relation.target_thought_id}"
    )


# =============================================================================
# Decoding
# =============================================================================


def thought_from_payload(point: StoredPoint) -> Thought:
    """Rebuild a Thought from a stored point.

    Raises:
        PayloadDecodeError: If required fields are missing or malformed.
    """
    p = point.payload
    try:
        parent = p.get("parent_thought_id")
        return Thought(
            id=UUID(p.get("id") or point.id),
            type=p["type"],
            origin=p.get("origin") or "Reactive",
            content=p["content"],
            confidence=float(p.get("confidence", 1.0)),
            relevance=float(p.get("relevance", 1.0)),
            timestamp=_parse_time(p["timestamp"]),
            parent_thought_id=UUID(parent) if parent else None,
            topic=p.get("topic") or None,
            tags=list(p.get("tags") or []),
            metadata=_load_metadata(p),
        )
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise PayloadDecodeError(point.id, f"invalid thought payload: {e}", e) from e


def relation_from_payload(point: StoredPoint) -> Relation:
    """Rebuild a Relation from a stored point.

    Raises:
        PayloadDecodeError: If required fields are missing or malformed.
    """
    p = point.payload
    try:
        return Relation(
            id=UUID(p.get("id") or point.id),
            source_thought_id=UUID(p["source_thought_id"]),
            target_thought_id=UUID(p["target_thought_id"]),
            relation_type=p["relation_type"],
            strength=float(p.get("strength", 1.0)),
            created_at=_parse_time(p["created_at"]),
            metadata=_load_metadata(p),
        )
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise PayloadDecodeError(point.id, f"invalid relation payload: {e}", e) from e


def result_from_payload(point: StoredPoint) -> Result:
    """Rebuild a Result from a stored point.

    Raises:
        PayloadDecodeError: If required fields are missing or malformed.
    """
    p = point.payload
    try:
        elapsed_ms = p.get("execution_time_ms")
        return Result(
            id=UUID(p.get("id") or point.id),
            thought_id=UUID(p["thought_id"]),
            result_type=p["result_type"],
            content=p["content"],
            success=bool(p.get("success", True)),
            confidence=float(p.get("confidence", 1.0)),
            created_at=_parse_time(p["created_at"]),
            execution_time=(
                timedelta(milliseconds=float(elapsed_ms)) if elapsed_ms is not None else None
            ),
            metadata=_load_metadata(p),
        )
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise PayloadDecodeError(point.id, f"invalid result payload: {e}", e) from e


class DecodeCounter:
    """Decodes points leniently and counts the ones it had to skip."""

    def __init__(self):
        self.failures = 0

    def decode(
        self,
        points: Iterable[StoredPoint],
        decoder: Callable[[StoredPoint], T],
    ) -> list[T]:
        """Decode every point, skipping (and counting) malformed ones."""
        decoded: list[T] = []
        for point in points:
            try:
                decoded.append(decoder(point))
            except PayloadDecodeError as e:
                self.failures += 1
                logger.warning(f"Skipping undecodable point: {e}")
        return decoded

    def decode_one(
        self,
        point: StoredPoint,
        decoder: Callable[[StoredPoint], T],
    ) -> T | None:
        items = self.decode([point], decoder)
        return items[0] if items else None


__all__ = [
    "DecodeCounter",
    "relation_from_payload",
    "relation_text",
    "relation_to_payload",
    "result_from_payload",
    "result_to_payload",
    "thought_from_payload",
    "thought_to_payload",
]
