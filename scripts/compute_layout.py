"""Compute layout positions and clusters for a board export.

This script:
1. Loads cards and relationships from a JSON board export
   ({"board_id": ..., "cards": [...], "relationships": [...]})
2. Builds the analysis graph and detects clusters
3. Runs the organic or cluster-anchored (auto) layout
4. Prints positions and clusters, or writes them as JSON

Usage:
    uv run python scripts/compute_layout.py board.json --auto --seed 42
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

# Add src to path
sys.path.insert(0, str(project_root / "src"))

from cardnet.engine import AnalysisEngine
from cardnet.models import Card, Relationship
from cardnet.storage import InMemoryCardStore


def load_export(path: Path) -> tuple[str, list[Card], list[Relationship]]:
    """Read a board export file."""
    data = json.loads(path.read_text(encoding="utf-8"))
    board_id = str(data.get("board_id") or data.get("boardId") or path.stem)
    cards = [Card.from_dict(item) for item in data.get("cards", [])]
    relationships = [Relationship.from_dict(item) for item in data.get("relationships", [])]
    return board_id, cards, relationships


async def compute(args: argparse.Namespace) -> dict:
    board_id, cards, relationships = load_export(args.export)
    print(f"Loaded {len(cards)} cards and {len(relationships)} relationships from {args.export}")

    store = InMemoryCardStore()
    store.add_cards(board_id, cards)
    store.add_relationships(board_id, relationships)

    # Layout only: no analysis providers needed
    engine = AnalysisEngine(store, providers={}, seed=args.seed)
    await engine.load(board_id)
    engine.set_cluster_threshold(args.threshold)

    if args.auto:
        print("Computing cluster-anchored layout...")
        engine.auto_layout()
    else:
        print("Computing organic layout...")
        engine.reset_layout()

    clusters = engine.clusters
    print(f"Found {len(clusters.clusters)} clusters, {len(clusters.isolated)} isolated nodes")
    for summary in engine.cluster_summaries():
        print(
            f"  Cluster {summary['index']}: {summary['size']} cards, "
            f"anchor={summary['anchor_id']}, tags={', '.join(summary['dominant_tags'])}"
        )

    return engine.snapshot()


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute layout and clusters for a board export")
    parser.add_argument("export", type=Path, help="Board export JSON file")
    parser.add_argument("--auto", action="store_true", help="Use cluster-anchored layout")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for organic placement")
    parser.add_argument("--threshold", type=float, default=0.3, help="Cluster strength threshold")
    parser.add_argument("--output", type=Path, default=None, help="Write the snapshot as JSON")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    snapshot = asyncio.run(compute(args))

    if args.output:
        args.output.write_text(json.dumps(snapshot, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"Snapshot written to {args.output}")
    else:
        for node in snapshot["graph"]["nodes"]:
            pos = node["position"]
            print(f"  {node['id']}: ({pos['x']:.1f}, {pos['y']:.1f}) size={node['size']}")

    print("Done!")


if __name__ == "__main__":
    main()
