"""Pairwise collision resolution and canvas clamping."""

import logging
import math

from cardnet.graph.config import LayoutConfig
from cardnet.models.graph import Position

logger = logging.getLogger(__name__)

PositionMap = dict[str, Position]

GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))


def clamp_position(position: Position, size: float, margin: float, config: LayoutConfig) -> Position:
    """Clamp a node's position to [size/2 + margin, dim - size/2 - margin].

    On a canvas too small for the margin the node is centred on that axis.
    """
    edge = size / 2 + margin
    cx, cy = config.center
    x = cx if 2 * edge > config.width else min(config.width - edge, max(edge, position.x))
    y = cy if 2 * edge > config.height else min(config.height - edge, max(edge, position.y))
    return Position(x, y)


def clamp_to_canvas(
    positions: PositionMap,
    sizes: dict[str, float],
    config: LayoutConfig,
    margin: float = 0.0,
) -> PositionMap:
    """Clamp every position inside the canvas."""
    return {
        node_id: clamp_position(pos, sizes.get(node_id, 0.0), margin, config)
        for node_id, pos in positions.items()
    }


def _push_angle(a: Position, b: Position, i: int, j: int) -> float:
    if a.x == b.x and a.y == b.y:
        # Coincident nodes: fixed direction per pair of slots
        return (i + j) * GOLDEN_ANGLE
    return math.atan2(b.y - a.y, b.x - a.x)


def resolve_collisions(
    positions: PositionMap,
    sizes: dict[str, float],
    config: LayoutConfig | None = None,
) -> PositionMap:
    """Push overlapping nodes apart.

    Every pair closer than (sizeA + sizeB)/2 + padding is moved apart along
    its connecting line by half the deficit plus a small constant, then
    clamped inside the canvas. Stops after the first iteration without
    collisions, so a resolved layout is returned unchanged.

    Args:
        positions: Current position map
        sizes: Pixel size per node id
        config: Layout constants

    Returns:
        New position map (input is not modified)
    """
    config = config or LayoutConfig()
    ids = list(positions)
    current = [positions[node_id] for node_id in ids]
    node_sizes = [sizes.get(node_id, 0.0) for node_id in ids]

    iteration = 0
    has_collisions = True
    while has_collisions and iteration < config.max_iterations:
        has_collisions = False
        for i in range(len(ids)):
            for j in range(i + 1, len(ids)):
                a, b = current[i], current[j]
                distance = a.distance_to(b)
                min_distance = (node_sizes[i] + node_sizes[j]) / 2 + config.collision_padding
                if distance >= min_distance:
                    continue

                has_collisions = True
                angle = _push_angle(a, b, i, j)
                move = (min_distance - distance) / 2 + config.push_extra
                dx, dy = math.cos(angle) * move, math.sin(angle) * move

                current[i] = clamp_position(
                    Position(a.x - dx, a.y - dy), node_sizes[i], config.collision_margin, config
                )
                current[j] = clamp_position(
                    Position(b.x + dx, b.y + dy), node_sizes[j], config.collision_margin, config
                )
        iteration += 1

    if has_collisions:
        logger.debug(f"Collisions remain after {iteration} iterations ({len(ids)} nodes)")

    return dict(zip(ids, current))
