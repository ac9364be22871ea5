"""CLI for administering the agent's vector memory.

Usage:
    # Check every collection against the embedding dimension
    python -m synapse_memory.cli.memory health --dimension 768

    # Recreate mismatched collections (deletes their points)
    python -m synapse_memory.cli.memory health --dimension 768 --heal --yes

    # Print the memory map
    python -m synapse_memory.cli.memory map

    # Save a snapshot of the whole memory
    python -m synapse_memory.cli.memory snapshot -o snapshot.json

    # Thought/relation/result statistics of one session
    python -m synapse_memory.cli.memory stats session-42
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from synapse_memory.config import SynapseConfig
from synapse_memory.exceptions import SynapseError
from synapse_memory.factory import create_memory_manager, create_thought_store


def load_config(args: argparse.Namespace) -> SynapseConfig:
    """Environment configuration with command-line overrides applied."""
    config = SynapseConfig.from_env()
    if args.url:
        config.vector_store = replace(config.vector_store, url=args.url)
    return config


async def health_command(args: argparse.Namespace) -> int:
    """Report dimensional health, optionally healing mismatches."""
    if args.heal and not args.yes:
        print("Error: --heal deletes every point of mismatched collections; add --yes to confirm")
        return 1

    config = load_config(args)
    dimension = args.dimension or config.embedding.dimensions
    manager = create_memory_manager(config)
    try:
        await manager.admin.initialize()
        reports = await manager.admin.health_check(dimension)
        print(f"\nCollection health (expected {dimension}d):\n")
        for report in reports:
            mark = "✓" if report.is_healthy else "⚠"
            print(f"   {mark} {report.collection_name:<36} {report.actual_dimension:>5}d")
            if report.issue:
                print(f"      {report.issue}")

        if args.heal:
            result = await manager.perform_health_check(dimension, auto_heal=True)
            for name in result.healed_collections:
                print(f"\n   Healed: {name} (now {dimension}d, empty)")
    finally:
        await manager.close()

    return 0 if all(r.is_healthy for r in reports) or args.heal else 2


async def map_command(args: argparse.Namespace) -> int:
    manager = create_memory_manager(load_config(args))
    try:
        await manager.admin.initialize()
        print(await manager.get_memory_map())
    finally:
        await manager.close()
    return 0


async def snapshot_command(args: argparse.Namespace) -> int:
    """Write (or print) a JSON snapshot of collections, links and layers."""
    manager = create_memory_manager(load_config(args))
    try:
        await manager.admin.initialize()
        snapshot = await manager.create_snapshot()
    finally:
        await manager.close()

    text = json.dumps(snapshot.to_dict(), indent=2)
    if args.output:
        Path(args.output).write_text(text)
        print(f"Saved snapshot to: {args.output}")
    else:
        print(text)
    return 0


async def stats_command(args: argparse.Namespace) -> int:
    store = create_thought_store(load_config(args))
    try:
        stats = await store.get_neuro_symbolic_stats(args.session)
    finally:
        await store.close()

    print(f"\nSession: {args.session}\n")
    print(f"   Thoughts:  {stats.total_thoughts}")
    print(f"   Relations: {stats.total_relations}")
    print(f"   Results:   {stats.total_results}")
    print(f"   Chain starts: {stats.causal_chain_count}")
    print(f"   Average chain length: {stats.average_chain_length:.2f}")
    if stats.thoughts_by_type:
        print("\n   Thoughts by type:")
        for name, count in sorted(stats.thoughts_by_type.items()):
            print(f"   - {name}: {count}")
    if stats.relations_by_type:
        print("\n   Relations by type:")
        for name, count in sorted(stats.relations_by_type.items()):
            print(f"   - {name}: {count}")
    if stats.oldest_thought:
        print(f"\n   Span: {stats.oldest_thought.isoformat()} .. {stats.newest_thought.isoformat()}")
    return 0


COMMANDS = {
    "health": health_command,
    "map": map_command,
    "snapshot": snapshot_command,
    "stats": stats_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synapse-memory",
        description="Administer the agent's vector memory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  synapse-memory health --dimension 768
  synapse-memory health --dimension 768 --heal --yes
  synapse-memory map
  synapse-memory snapshot -o snapshot.json
  synapse-memory stats session-42
        """,
    )
    parser.add_argument("--url", help="Qdrant URL (overrides SYNAPSE_QDRANT_URL)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    health_parser = subparsers.add_parser("health", help="Check collection dimensions")
    health_parser.add_argument("--dimension", type=int, help="Expected vector size")
    health_parser.add_argument("--heal", action="store_true", help="Recreate mismatched collections")
    health_parser.add_argument("--yes", action="store_true", help="Confirm destructive healing")

    subparsers.add_parser("map", help="Print the memory map")

    snapshot_parser = subparsers.add_parser("snapshot", help="Snapshot the memory inventory")
    snapshot_parser.add_argument("-o", "--output", help="Output file (JSON)")

    stats_parser = subparsers.add_parser("stats", help="Statistics of one session")
    stats_parser.add_argument("session", help="Session id")

    return parser


def memory_cli(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        code = asyncio.run(COMMANDS[args.command](args))
    except SynapseError as e:
        print(f"Error: {e}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    memory_cli()
