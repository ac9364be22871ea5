"""Tests for the thought, relation and result types."""

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest

from synapse_memory.exceptions import InvalidInputError
from synapse_memory.memory.base import (
    Relation,
    RelationType,
    Result,
    ResultType,
    Thought,
    ThoughtOrigin,
    ThoughtType,
    coerce_tag,
    parse_uuid,
    tag_value,
)


class TestThought:
    def test_defaults(self):
        thought = Thought(type=ThoughtType.OBSERVATION, content="user asked for weather")

        assert isinstance(thought.id, UUID)
        assert thought.origin == ThoughtOrigin.REACTIVE
        assert thought.confidence == 1.0
        assert thought.timestamp.tzinfo is not None
        assert thought.parent_thought_id is None
        assert thought.tags == []

    def test_known_type_string_is_coerced(self):
        thought = Thought(type="Analytical", content="x", origin="Chained")
        assert thought.type is ThoughtType.ANALYTICAL
        assert thought.origin is ThoughtOrigin.CHAINED

    def test_unknown_type_is_kept_verbatim(self):
        thought = Thought(type="Daydream", content="x")
        assert thought.type == "Daydream"
        assert thought.type_name == "Daydream"

    def test_confidence_out_of_range(self):
        with pytest.raises(InvalidInputError):
            Thought(type=ThoughtType.DECISION, content="x", confidence=1.5)
        with pytest.raises(InvalidInputError):
            Thought(type=ThoughtType.DECISION, content="x", relevance=-0.1)

    def test_naive_timestamp_is_utc(self):
        thought = Thought(type="Observation", content="x", timestamp=datetime(2024, 1, 1, 12))
        assert thought.timestamp == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_string_ids_are_parsed(self):
        parent = uuid4()
        thought = Thought(type="Observation", content="x", id=str(uuid4()), parent_thought_id=str(parent))
        assert thought.parent_thought_id == parent

    def test_malformed_parent_id(self):
        with pytest.raises(InvalidInputError):
            Thought(type="Observation", content="x", parent_thought_id="not-a-uuid")

    def test_immutable(self):
        thought = Thought(type="Observation", content="x")
        with pytest.raises(AttributeError):
            thought.content = "y"


class TestRelationAndResult:
    def test_relation_type_coerced(self):
        relation = Relation(uuid4(), uuid4(), "leads_to", strength=0.5)
        assert relation.relation_type is RelationType.LEADS_TO

    def test_relation_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            Relation(uuid4(), uuid4(), "befriends")

    def test_relation_strength_range(self):
        with pytest.raises(InvalidInputError):
            Relation(uuid4(), uuid4(), RelationType.SUPPORTS, strength=2.0)

    def test_result(self):
        result = Result(
            thought_id=uuid4(),
            result_type="insight",
            content="forecast fetched",
            execution_time=timedelta(milliseconds=250),
        )
        assert result.result_type is ResultType.INSIGHT
        assert result.success is True


class TestHelpers:
    def test_coerce_tag(self):
        assert coerce_tag(ThoughtType, "Synthesis") is ThoughtType.SYNTHESIS
        assert coerce_tag(ThoughtType, ThoughtType.CREATIVE) is ThoughtType.CREATIVE
        assert coerce_tag(ThoughtType, "Other") == "Other"

    def test_tag_value(self):
        assert tag_value(ThoughtType.SELF_REFLECTION) == "SelfReflection"
        assert tag_value("Other") == "Other"

    def test_parse_uuid(self):
        value = uuid4()
        assert parse_uuid(value) is value
        assert parse_uuid(str(value)) == value
        with pytest.raises(InvalidInputError, match="thought id"):
            parse_uuid("nope", "thought id")
