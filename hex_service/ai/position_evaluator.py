"""Heuristic position evaluation for Hex.

The score for a side is a weighted sum of four features, each roughly in
[0, 1]:

- resistance: ``1 / (1 + r)`` where ``r`` is the fewest empty cells the side
  still needs to link its two edges (own stones cost nothing, opponent
  stones block);
- centre control: own minus half of opponent stones in a window around the
  centre, normalised by the window area;
- edge connection: share of the side's two edges it already occupies;
- bridges: number of own two-bridges with both intermediate cells empty,
  normalised by the board area.

Leaf scoring goes through :func:`evaluate_cells`; move ordering and
playout sampling use :func:`placement_scores`, which returns the same
values for every candidate placement in one pass, so the features and
weights stay the same everywhere.
"""

from __future__ import annotations

from collections import deque
from functools import lru_cache
from typing import Sequence

from ..hex_geometry import HexGeometry
from ..models import EMPTY, Side

WEIGHT_RESISTANCE = 0.5
WEIGHT_CENTER = 0.2
WEIGHT_EDGE = 0.2
WEIGHT_BRIDGES = 0.1

RESISTANCE_INF = 1_000_000

# Opponent stones inside the centre window count against the side at
# half weight.
CENTER_OPPONENT_PENALTY = 0.5


@lru_cache(maxsize=32)
def _center_window(size: int) -> tuple[tuple[int, ...], float]:
    center = size // 2
    radius = max(1, size // 4)
    geo = HexGeometry.for_size(size)
    cells = tuple(
        geo.index(r, c)
        for r in range(center - radius, center + radius + 1)
        for c in range(center - radius, center + radius + 1)
        if geo.in_bounds(r, c)
    )
    return cells, float(radius * radius * 4)


@lru_cache(maxsize=64)
def _edge_cells(size: int, side: int) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """(start edge, target edge) flat indices for a side."""
    if side == Side.RED:
        start = tuple(range(size))
        target = tuple((size - 1) * size + c for c in range(size))
    else:
        start = tuple(r * size for r in range(size))
        target = tuple(r * size + size - 1 for r in range(size))
    return start, target


def _edge_distances(
    cells: Sequence[int], geo: HexGeometry, side: int, sources: Sequence[int]
) -> list[int]:
    """Cheapest fill cost from ``sources`` to every cell, endpoints included.

    Label-correcting relaxation: own stones cost 0, empty cells 1, opponent
    stones are impassable. Since costs are 0 or 1 a double-ended queue
    settles every cell in a single pass.
    """
    neighbors = geo.neighbors
    opponent = 3 - side
    dist = [RESISTANCE_INF] * geo.cell_count
    queue: deque[int] = deque()
    for idx in sources:
        value = cells[idx]
        if value == opponent:
            continue
        cost = 0 if value == side else 1
        if cost < dist[idx]:
            dist[idx] = cost
            if cost == 0:
                queue.appendleft(idx)
            else:
                queue.append(idx)

    while queue:
        idx = queue.popleft()
        d = dist[idx]
        for n in neighbors[idx]:
            value = cells[n]
            if value == opponent:
                continue
            nd = d if value == side else d + 1
            if nd < dist[n]:
                dist[n] = nd
                if nd == d:
                    queue.appendleft(n)
                else:
                    queue.append(n)
    return dist


def calculate_resistance(cells: Sequence[int], size: int, side: int) -> int:
    """Minimum number of empty cells ``side`` must fill to connect its edges.

    Returns ``RESISTANCE_INF`` when the opponent has already cut every path.
    """
    start, target = _edge_cells(size, side)
    dist = _edge_distances(cells, HexGeometry.for_size(size), side, start)
    return min(dist[idx] for idx in target)


def center_control(cells: Sequence[int], size: int, side: int) -> float:
    window, area = _center_window(size)
    control = 0.0
    for idx in window:
        value = cells[idx]
        if value == side:
            control += 1.0
        elif value != EMPTY:
            control -= CENTER_OPPONENT_PENALTY
    return control / area


def edge_connection(cells: Sequence[int], size: int, side: int) -> float:
    start, target = _edge_cells(size, side)
    owned = sum(1 for idx in start if cells[idx] == side)
    owned += sum(1 for idx in target if cells[idx] == side)
    return owned / (2 * size)


def count_bridges(cells: Sequence[int], size: int, side: int) -> int:
    """Number of own stone pairs held by a bridge with both carriers empty."""
    bridges = HexGeometry.for_size(size).bridges
    count = 0
    for idx, value in enumerate(cells):
        if value != side:
            continue
        for partner, via1, via2 in bridges[idx]:
            if (
                partner > idx
                and cells[partner] == side
                and cells[via1] == EMPTY
                and cells[via2] == EMPTY
            ):
                count += 1
    return count


def is_virtually_connected(
    cells: Sequence[int], size: int, a: int, b: int, side: int
) -> bool:
    """Whether stones ``a`` and ``b`` of ``side`` form an intact bridge."""
    if cells[a] != side or cells[b] != side:
        return False
    for partner, via1, via2 in HexGeometry.for_size(size).bridges[a]:
        if partner == b:
            return cells[via1] == EMPTY and cells[via2] == EMPTY
    return False


def evaluation_breakdown(
    cells: Sequence[int], size: int, side: int
) -> dict[str, float]:
    resistance = calculate_resistance(cells, size, side)
    features = {
        "resistance": 1.0 / (1.0 + resistance),
        "center": center_control(cells, size, side),
        "edge": edge_connection(cells, size, side),
        "bridges": count_bridges(cells, size, side) / (size * size),
    }
    features["total"] = (
        WEIGHT_RESISTANCE * features["resistance"]
        + WEIGHT_CENTER * features["center"]
        + WEIGHT_EDGE * features["edge"]
        + WEIGHT_BRIDGES * features["bridges"]
    )
    return features


def evaluate_cells(cells: Sequence[int], size: int, side: int) -> float:
    resistance = calculate_resistance(cells, size, side)
    return (
        WEIGHT_RESISTANCE / (1.0 + resistance)
        + WEIGHT_CENTER * center_control(cells, size, side)
        + WEIGHT_EDGE * edge_connection(cells, size, side)
        + WEIGHT_BRIDGES * count_bridges(cells, size, side) / (size * size)
    )


def evaluate_position(game, side: int) -> float:
    """Score a ``HexGame`` for ``side``."""
    return evaluate_cells(game.cells(), game.size, side)


def side_differential(cells: Sequence[int], size: int, side: int) -> float:
    """``side``'s score minus its opponent's."""
    return evaluate_cells(cells, size, side) - evaluate_cells(cells, size, 3 - side)


@lru_cache(maxsize=64)
def _bonus_sets(size: int, side: int) -> tuple[frozenset[int], frozenset[int]]:
    """(centre window, both edges of ``side``) as sets for membership tests."""
    start, target = _edge_cells(size, side)
    return frozenset(_center_window(size)[0]), frozenset(start + target)


def placement_scores(
    cells: Sequence[int], size: int, side: int, candidates: Sequence[int]
) -> list[float]:
    """``evaluate_cells`` after ``side`` plays each empty candidate cell.

    Equivalent to placing each stone and re-running the evaluator, but the
    resistance term comes from one sweep from each edge (a new stone on
    cell x brings the best path through x down to ``from_start[x] +
    from_target[x] - 2``) and the other terms are updated locally.
    """
    geo = HexGeometry.for_size(size)
    start, target = _edge_cells(size, side)
    from_start = _edge_distances(cells, geo, side, start)
    from_target = _edge_distances(cells, geo, side, target)
    resistance = min(from_start[idx] for idx in target)

    window, edges = _bonus_sets(size, side)
    _, area = _center_window(size)
    center = center_control(cells, size, side)
    edge = edge_connection(cells, size, side)
    bridges = count_bridges(cells, size, side)
    cell_count = size * size
    bridge_table = geo.bridges
    vias = geo.bridge_vias

    scores = []
    for idx in candidates:
        r = resistance
        ds = from_start[idx]
        dt = from_target[idx]
        if ds < RESISTANCE_INF and dt < RESISTANCE_INF and ds + dt - 2 < r:
            r = ds + dt - 2

        delta = 0
        for partner, via1, via2 in bridge_table[idx]:
            if (
                cells[partner] == side
                and cells[via1] == EMPTY
                and cells[via2] == EMPTY
            ):
                delta += 1
        for a, b, other in vias[idx]:
            if cells[a] == side and cells[b] == side and cells[other] == EMPTY:
                delta -= 1

        scores.append(
            WEIGHT_RESISTANCE / (1.0 + r)
            + WEIGHT_CENTER * (center + (1.0 / area if idx in window else 0.0))
            + WEIGHT_EDGE * (edge + (1.0 / (2 * size) if idx in edges else 0.0))
            + WEIGHT_BRIDGES * (bridges + delta) / cell_count
        )
    return scores
