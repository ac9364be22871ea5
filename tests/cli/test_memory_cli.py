"""Tests for the synapse-memory command line."""

import asyncio
import json
from unittest.mock import patch

import pytest

from synapse_memory.cli import memory as memory_module
from synapse_memory.cli.memory import build_parser, memory_cli
from synapse_memory.config import SynapseConfig
from synapse_memory.memory.admin import CollectionAdmin
from synapse_memory.memory.backend import VectorPoint
from synapse_memory.memory.layers import MemoryLayerManager
from synapse_memory.memory.providers.in_memory import InMemoryVectorBackend

IN_MEMORY_ENV = {
    "SYNAPSE_VECTOR_PROVIDER": "in_memory",
    "SYNAPSE_VECTOR_SIZE": "768",
    "SYNAPSE_EMBEDDING_PROVIDER": "none",
}


@pytest.fixture
def backend():
    return InMemoryVectorBackend()


@pytest.fixture
def use_backend(backend):
    """Route the CLI's memory manager to a prepared in-memory backend."""

    def _manager(config: SynapseConfig):
        return MemoryLayerManager(CollectionAdmin(backend))

    with patch.dict("os.environ", IN_MEMORY_ENV), patch.object(
        memory_module, "create_memory_manager", _manager
    ):
        yield backend


def run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        memory_cli(argv)
    return excinfo.value.code


class TestParser:
    def test_health_options(self):
        args = build_parser().parse_args(["--url", "http://q:6333", "health", "--dimension", "384", "--heal"])

        assert args.url == "http://q:6333"
        assert args.command == "health"
        assert args.dimension == 384
        assert args.heal
        assert not args.yes

    def test_stats_requires_session(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["stats"])

    def test_no_command_prints_help(self, capsys):
        assert run([]) == 1
        assert "synapse-memory" in capsys.readouterr().out


class TestHealthCommand:
    def test_heal_needs_confirmation(self, use_backend, capsys):
        assert run(["health", "--heal"]) == 1
        assert "--yes" in capsys.readouterr().out

    def test_reports_mismatch(self, use_backend, capsys):
        backend = use_backend
        asyncio.run(backend.create_collection("synapse_skills", 1536))

        assert run(["health", "--dimension", "768"]) == 2
        out = capsys.readouterr().out
        assert "⚠ synapse_skills" in out
        assert "expected 768, got 1536" in out

    def test_heal(self, use_backend, capsys):
        backend = use_backend
        asyncio.run(backend.create_collection("synapse_skills", 1536))

        assert run(["health", "--dimension", "768", "--heal", "--yes"]) == 0
        assert "Healed: synapse_skills" in capsys.readouterr().out
        info = asyncio.run(backend.get_collection_info("synapse_skills"))
        assert info.vector_size == 768


class TestReportCommands:
    def test_map(self, use_backend, capsys):
        assert run(["map"]) == 0
        out = capsys.readouterr().out
        assert "SYNAPSE MEMORY ARCHITECTURE" in out
        assert "COLLECTION LINKS" in out

    def test_snapshot_to_file(self, use_backend, tmp_path, capsys):
        asyncio.run(use_backend.create_collection("core", 4))
        asyncio.run(use_backend.upsert("core", [VectorPoint(id="p", vector=[1.0] * 4)]))
        output = tmp_path / "snapshot.json"

        assert run(["snapshot", "-o", str(output)]) == 0

        data = json.loads(output.read_text())
        assert data["layer_vector_counts"]["semantic"] == 1
        assert "Saved snapshot" in capsys.readouterr().out

    def test_stats(self, capsys):
        with patch.dict("os.environ", IN_MEMORY_ENV):
            assert run(["stats", "session-42"]) == 0
        out = capsys.readouterr().out
        assert "Session: session-42" in out
        assert "Thoughts:  0" in out

    def test_configuration_error_exits_1(self, capsys):
        env = dict(IN_MEMORY_ENV, SYNAPSE_VECTOR_SIZE="many")
        with patch.dict("os.environ", env):
            assert run(["map"]) == 1
        assert "Error:" in capsys.readouterr().out
