#!/usr/bin/env python3
"""Demo queries against the Cayley 30k movie dataset.

Prerequisites:
- Cayley loaded with data/30kmoviedata.nq.gz, serving HTTP at localhost:64210

    ./cayley http --dbpath=30kmoviedata.nq.gz

Usage:
    python scripts/demo_movie_queries.py
    python scripts/demo_movie_queries.py --host 10.0.0.5 --port 64210
    python scripts/demo_movie_queries.py --dry-run   # print Gremlin only
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.config import Settings
from src.core.logging import setup_structured_logging
from src.graph import CayleyGraph, GraphError
from src.path import AnyNode, Morphism, Node, PathError, Predicate, Query, Vertex


def build_queries() -> list[tuple[str, Query]]:
    """The example queries, in the order they are run."""
    return [
        ("Any five nodes", Vertex(AnyNode).get_limit(5)),
        ("Humphrey Bogart", Vertex(Node("Humphrey Bogart")).all()),
        ("Named Humphrey Bogart", Vertex(Node("Humphrey Bogart")).in_(Predicate("name")).all()),
        ("Named Casablanca", Vertex(Node("Casablanca")).in_(Predicate("name")).all()),
        ("Has name Casablanca", Vertex().has(Predicate("name"), Node("Casablanca")).all()),
        (
            "Casablanca actors",
            Vertex()
            .has(Predicate("name"), Node("Casablanca"))
            .out(Predicate("/film/film/starring"))
            .out(Predicate("/film/performance/actor"))
            .out(Predicate("name"))
            .all(),
        ),
        (
            "Casablanca actors via morphism",
            Vertex()
            .has(Predicate("name"), Node("Casablanca"))
            .follow("filmToActor")
            .out(Predicate("name"))
            .all(),
        ),
    ]


async def run(settings: Settings, dry_run: bool) -> int:
    """Run every demo query; returns a process exit code."""
    async with CayleyGraph(settings) as graph:
        graph.save(
            Morphism("filmToActor")
            .out(Predicate("/film/film/starring"))
            .out(Predicate("/film/performance/actor"))
        )

        for title, query in build_queries():
            print(f"\n--- {title} ---")
            print(graph.to_gremlin(query))
            if dry_run:
                continue
            try:
                nodes = await graph.find(query)
            except (PathError, GraphError) as e:
                print(f"FAILED: {e}", file=sys.stderr)
                return 1
            print(f"{len(nodes)} node(s): {nodes.ids()[:10]}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run example path queries against a Cayley server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default=None, help="Cayley host (default: from settings)")
    parser.add_argument("--port", type=int, default=None, help="Cayley port (default: from settings)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the compiled Gremlin programs",
    )
    args = parser.parse_args()

    overrides = {}
    if args.host:
        overrides["cayley_host"] = args.host
    if args.port:
        overrides["cayley_port"] = args.port
    settings = Settings(**overrides)

    setup_structured_logging()
    sys.exit(asyncio.run(run(settings, args.dry_run)))


if __name__ == "__main__":
    main()
