"""Precomputed hex-board geometry tables.

Board cells are addressed by flat index ``row * size + col`` inside the
search code, so that neighbour lookups, edge tests and bridge patterns are
plain tuple indexing instead of coordinate arithmetic in hot loops.

Usage:
    from hex_service.hex_geometry import HexGeometry

    geo = HexGeometry.for_size(7)
    for n in geo.neighbors[geo.index(3, 4)]:
        ...
"""

from __future__ import annotations

from functools import lru_cache

from .models import Side

# Neighbour offsets (dr, dc) of the rhombic hex grid
HEX_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
)

# Boundary bits carried by connectivity groups
EDGE_TOP = 1
EDGE_BOTTOM = 2
EDGE_LEFT = 4
EDGE_RIGHT = 8

# Mask a group must reach for each side to have connected its edges
WIN_MASKS: dict[int, int] = {
    Side.RED: EDGE_TOP | EDGE_BOTTOM,
    Side.BLUE: EDGE_LEFT | EDGE_RIGHT,
}

# Board size on which the exact centre is not a legal first move
CENTER_RULE_SIZE = 7

# Bridge patterns as (offset, intermediate, intermediate), all relative to
# the first stone. Only one of each mirrored pair is listed here; the
# mirror is derived below so that (A, B) and (B, A) always name the same
# two intermediate cells.
_BRIDGE_HALF: tuple[tuple[tuple[int, int], tuple[int, int], tuple[int, int]], ...] = (
    ((1, 1), (0, 1), (1, 0)),
    ((1, -2), (0, -1), (1, -1)),
    ((2, -1), (1, -1), (1, 0)),
    ((0, 2), (-1, 1), (0, 1)),
    ((2, 0), (1, -1), (1, 0)),
)


def _mirror(pattern):
    (dr, dc), (ar, ac), (br, bc) = pattern
    return ((-dr, -dc), (ar - dr, ac - dc), (br - dr, bc - dc))


BRIDGE_PATTERNS = _BRIDGE_HALF + tuple(_mirror(p) for p in _BRIDGE_HALF)


class HexGeometry:
    """Per-size lookup tables.

    Attributes:
        size: Board edge length.
        cell_count: ``size * size``.
        neighbors: For each cell, the flat indices of its in-bounds neighbours.
        edge_bits: For each cell, the OR of the EDGE_* bits it touches.
        bridges: For each cell, ``(partner, via1, via2)`` for every bridge
            pattern whose partner and intermediates are all in bounds.
        bridge_vias: For each cell V, ``(a, b, other)`` for every bridge
            pattern pair ``a < b`` that has V as one intermediate and
            ``other`` as the second.
        carriers: For each cell X, ``(a, b, other)`` for every pair of cells
            joined by a two-carrier bridge through X, where ``other`` is the
            second common neighbour of ``a`` and ``b``.
        banned_first_move: Flat index of the cell that may not open the
            game, or None when every cell is a legal opening.
        center: ``(row, col)`` of the (lower-right) centre cell.
    """

    def __init__(self, size: int):
        self.size = size
        self.cell_count = size * size
        self.center = (size // 2, size // 2)
        self.banned_first_move = (
            self.index(*self.center) if size == CENTER_RULE_SIZE else None
        )

        neighbors = []
        edge_bits = []
        for idx in range(self.cell_count):
            r, c = divmod(idx, size)
            neighbors.append(
                tuple(
                    (r + dr) * size + (c + dc)
                    for dr, dc in HEX_DIRECTIONS
                    if self.in_bounds(r + dr, c + dc)
                )
            )
            bits = 0
            if r == 0:
                bits |= EDGE_TOP
            if r == size - 1:
                bits |= EDGE_BOTTOM
            if c == 0:
                bits |= EDGE_LEFT
            if c == size - 1:
                bits |= EDGE_RIGHT
            edge_bits.append(bits)
        self.neighbors: tuple[tuple[int, ...], ...] = tuple(neighbors)
        self.edge_bits: tuple[int, ...] = tuple(edge_bits)
        self.neighbor_sets = tuple(frozenset(n) for n in neighbors)

        bridges = []
        for idx in range(self.cell_count):
            r, c = divmod(idx, size)
            entries = []
            for (dr, dc), (ar, ac), (br, bc) in BRIDGE_PATTERNS:
                if (
                    self.in_bounds(r + dr, c + dc)
                    and self.in_bounds(r + ar, c + ac)
                    and self.in_bounds(r + br, c + bc)
                ):
                    entries.append(
                        (
                            self.index(r + dr, c + dc),
                            self.index(r + ar, c + ac),
                            self.index(r + br, c + bc),
                        )
                    )
            bridges.append(tuple(entries))
        self.bridges: tuple[tuple[tuple[int, int, int], ...], ...] = tuple(bridges)

        vias: list[list[tuple[int, int, int]]] = [
            [] for _ in range(self.cell_count)
        ]
        for a, entries in enumerate(self.bridges):
            for partner, via1, via2 in entries:
                if partner > a:
                    vias[via1].append((a, partner, via2))
                    vias[via2].append((a, partner, via1))
        self.bridge_vias: tuple[tuple[tuple[int, int, int], ...], ...] = tuple(
            tuple(entries) for entries in vias
        )

        self.carriers = self._build_carriers()

    def _build_carriers(self) -> tuple[tuple[tuple[int, int, int], ...], ...]:
        carriers: list[list[tuple[int, int, int]]] = [
            [] for _ in range(self.cell_count)
        ]
        for a in range(self.cell_count):
            candidates: set[int] = set()
            for n in self.neighbors[a]:
                candidates |= self.neighbor_sets[n]
            candidates -= self.neighbor_sets[a]
            for b in sorted(candidates):
                if b <= a:
                    continue
                common = self.neighbor_sets[a] & self.neighbor_sets[b]
                if len(common) != 2:
                    continue
                x, y = sorted(common)
                carriers[x].append((a, b, y))
                carriers[y].append((a, b, x))
        return tuple(tuple(entries) for entries in carriers)

    @staticmethod
    @lru_cache(maxsize=32)
    def for_size(size: int) -> "HexGeometry":
        """Return the shared (cached) tables for a board size."""
        return HexGeometry(size)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def index(self, row: int, col: int) -> int:
        return row * self.size + col

    def coords(self, idx: int) -> tuple[int, int]:
        return divmod(idx, self.size)

    def touches_start_edge(self, idx: int, side: int) -> bool:
        bit = EDGE_TOP if side == Side.RED else EDGE_LEFT
        return bool(self.edge_bits[idx] & bit)

    def touches_target_edge(self, idx: int, side: int) -> bool:
        bit = EDGE_BOTTOM if side == Side.RED else EDGE_RIGHT
        return bool(self.edge_bits[idx] & bit)

    def side_edge_bits(self, idx: int, side: int) -> int:
        """Boundary bits of a cell that matter to ``side``."""
        return self.edge_bits[idx] & WIN_MASKS[side]
