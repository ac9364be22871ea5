"""Tests for RelationGraph and ResultStore."""

from datetime import timedelta
from uuid import uuid4

import pytest

from synapse_memory.exceptions import InvalidInputError
from synapse_memory.memory.base import (
    Relation,
    RelationType,
    Result,
    ResultType,
    Thought,
    ThoughtType,
)


@pytest.fixture
async def pair(plain_store):
    question = Thought(type=ThoughtType.OBSERVATION, content="user asked for a timer")
    plan = Thought(type=ThoughtType.DECISION, content="set a five minute timer")
    await plain_store.save_thought("s1", question)
    await plain_store.save_thought("s1", plan)
    return question, plan


class TestRelationGraph:
    @pytest.mark.asyncio
    async def test_incoming_and_outgoing(self, plain_store, pair):
        question, plan = pair
        follow_up = Thought(type=ThoughtType.ANALYTICAL, content="timer is short")
        await plain_store.save_thought("s1", follow_up)

        outgoing = Relation(question.id, plan.id, RelationType.LEADS_TO)
        incoming = Relation(follow_up.id, question.id, RelationType.ELABORATES)
        await plain_store.save_relation("s1", outgoing)
        await plain_store.save_relation("s1", incoming)

        relations = await plain_store.get_relations_for_thought(question.id)
        assert {r.id for r in relations} == {outgoing.id, incoming.id}
        assert await plain_store.get_relations_for_thought(plan.id) == [outgoing]

    @pytest.mark.asyncio
    async def test_session_relations_by_type(self, plain_store, pair):
        question, plan = pair
        leads = Relation(question.id, plan.id, RelationType.LEADS_TO)
        similar = Relation(plan.id, question.id, RelationType.SIMILAR_TO)
        await plain_store.relations.save_relations("s1", [leads, similar])

        graph = plain_store.relations
        assert len(await graph.get_session_relations("s1")) == 2
        assert await graph.get_session_relations("s1", "similar_to") == [similar]
        assert await graph.get_session_relations("s2") == []

    @pytest.mark.asyncio
    async def test_outgoing_adjacency(self, plain_store, pair):
        question, plan = pair
        relation = Relation(question.id, plan.id, RelationType.LEADS_TO)
        await plain_store.save_relation("s1", relation)

        adjacency = await plain_store.relations.get_outgoing("s1")
        assert adjacency == {question.id: [relation]}

    @pytest.mark.asyncio
    async def test_invalid_thought_id(self, plain_store):
        with pytest.raises(InvalidInputError):
            await plain_store.get_relations_for_thought("nope")

    @pytest.mark.asyncio
    async def test_no_relations_yet(self, plain_store):
        assert await plain_store.get_relations_for_thought(uuid4()) == []


class TestResultStore:
    @pytest.mark.asyncio
    async def test_success_links_with_leads_to(self, plain_store, pair):
        _, plan = pair
        result = Result(
            thought_id=plan.id,
            result_type=ResultType.ACTION,
            content="timer started",
            confidence=0.9,
            execution_time=timedelta(milliseconds=40),
        )

        relation = await plain_store.save_result("s1", result)

        assert relation.relation_type == RelationType.LEADS_TO
        assert relation.source_thought_id == plan.id
        assert relation.target_thought_id == result.id
        assert relation.strength == 0.9
        assert await plain_store.get_results_for_thought(plan.id) == [result]
        assert relation in await plain_store.get_relations_for_thought(plan.id)

    @pytest.mark.asyncio
    async def test_failure_links_with_triggers(self, plain_store, pair):
        _, plan = pair
        result = Result(
            thought_id=plan.id,
            result_type=ResultType.ERROR,
            content="timer service down",
            success=False,
        )

        relation = await plain_store.save_result("s1", result)

        assert relation.relation_type == RelationType.TRIGGERS

    @pytest.mark.asyncio
    async def test_session_results(self, plain_store, pair):
        question, plan = pair
        first = Result(thought_id=question.id, result_type=ResultType.INSIGHT, content="needs timer")
        second = Result(
            thought_id=plan.id,
            result_type=ResultType.RESPONSE,
            content="done",
            created_at=first.created_at + timedelta(seconds=1),
        )
        await plain_store.save_result("s1", second)
        await plain_store.save_result("s1", first)

        assert await plain_store.results.get_session_results("s1") == [first, second]
