"""Organic (randomized, non-overlapping) node placement.

Each node is tried at random polar positions around the canvas center. The
placement area grows every `band_every` attempts; a node that still collides
after `max_attempts` is put on a canvas edge slot.
"""

import logging
import math
import random

from cardnet.graph.config import LayoutConfig
from cardnet.models.graph import Graph, Node, Position

logger = logging.getLogger(__name__)

PositionMap = dict[str, Position]

# Fallback edge order: top, right, bottom, left
EDGE_SIDES = ("top", "right", "bottom", "left")


def _candidate(node: Node, attempt: int, rng: random.Random, config: LayoutConfig) -> Position:
    cx, cy = config.center
    band = attempt // config.band_every
    multiplier = 1 + band * config.band_growth

    max_distance = config.short_side * config.band_radius_ratio * multiplier
    distance = config.min_center_distance + (rng.random() ** config.distance_exponent) * (
        max_distance - config.min_center_distance
    )
    angle = rng.random() * 2 * math.pi

    jitter = config.jitter_base + band * config.jitter_per_band
    x = cx + distance * math.cos(angle) + (rng.random() - 0.5) * jitter
    y = cy + distance * math.sin(angle) + (rng.random() - 0.5) * jitter

    if node.importance_score > config.importance_cutoff:
        pull = config.importance_pull
        x = x * (1 - pull) + cx * pull
        y = y * (1 - pull) + cy * pull

    margin = node.size / 2 + config.placement_margin
    x = max(margin, min(config.width - margin, x))
    y = max(margin, min(config.height - margin, y))
    return Position(x, y)


def _fits(
    candidate: Position,
    size: float,
    placed: list[tuple[Position, float]],
    config: LayoutConfig,
) -> bool:
    own_spacing = size * config.own_size_spacing
    for position, other_size in placed:
        required = max((size + other_size) / 2 + config.placement_padding, own_spacing)
        if candidate.distance_to(position) < required:
            return False
    return True


def edge_slot(size: float, fallback_index: int, rng: random.Random, config: LayoutConfig) -> Position:
    """Deterministic canvas-edge position used when random placement fails.

    The side rotates top/right/bottom/left with each fallback; the offset
    along the side is drawn from the seeded random source.
    """
    margin = size + config.fallback_margin
    side = EDGE_SIDES[fallback_index % len(EDGE_SIDES)]
    fraction = rng.random()
    along_x = margin + fraction * max(0.0, config.width - 2 * margin)
    along_y = margin + fraction * max(0.0, config.height - 2 * margin)

    if side == "top":
        return Position(along_x, margin)
    if side == "right":
        return Position(config.width - margin, along_y)
    if side == "bottom":
        return Position(along_x, config.height - margin)
    return Position(margin, along_y)


def organic_layout(
    graph: Graph,
    rng: random.Random,
    config: LayoutConfig | None = None,
    existing: PositionMap | None = None,
) -> PositionMap:
    """Place every node of the graph without overlaps where possible.

    Args:
        graph: Graph snapshot
        rng: Random source (seed it for reproducible layouts)
        config: Layout constants
        existing: Positions to keep; these nodes count as already placed

    Returns:
        Position map covering every node of the graph
    """
    config = config or LayoutConfig()
    existing = existing or {}

    positions: PositionMap = {}
    placed: list[tuple[Position, float]] = []
    for node in graph.nodes:
        if node.id in existing:
            positions[node.id] = existing[node.id]
            placed.append((existing[node.id], node.size))

    fallbacks = 0
    for node in graph.nodes:
        if node.id in positions:
            continue

        position = None
        for attempt in range(config.max_attempts):
            candidate = _candidate(node, attempt, rng, config)
            if _fits(candidate, node.size, placed, config):
                position = candidate
                break

        if position is None:
            position = edge_slot(node.size, fallbacks, rng, config)
            fallbacks += 1
            logger.warning(f"Node placement collision for {node.id}, using edge fallback")

        positions[node.id] = position
        placed.append((position, node.size))

    if fallbacks:
        logger.info(f"Organic layout: {fallbacks}/{len(graph.nodes)} nodes placed on canvas edge")
    return positions
