"""Incremental union-find connectivity for Hex win detection.

Each occupied cell belongs to a group of same-side stones. Group roots
carry the OR of the EDGE_* bits of their members, so a side has won as
soon as one of its group roots carries both of that side's target bits.
Groups only ever merge; there is no undo, callers copy the tracker when
they need to branch.
"""

from __future__ import annotations

from typing import Sequence

from .hex_geometry import HexGeometry, WIN_MASKS
from .models import EMPTY, Side


class UnionFind:
    """Disjoint sets over flat cell indices with path compression."""

    __slots__ = ("parent",)

    def __init__(self, n: int):
        self.parent = list(range(n))

    def find(self, x: int) -> int:
        parent = self.parent
        root = x
        while parent[root] != root:
            root = parent[root]
        while parent[x] != root:
            parent[x], x = root, parent[x]
        return root

    def union(self, a: int, b: int) -> int:
        """Attach the root of ``b`` under the root of ``a``; return the root."""
        ra = self.find(a)
        rb = self.find(b)
        if ra != rb:
            self.parent[rb] = ra
        return ra

    def copy(self) -> "UnionFind":
        clone = UnionFind.__new__(UnionFind)
        clone.parent = list(self.parent)
        return clone


class ConnectivityTracker:
    """Union-find over board cells with per-group boundary masks.

    Built once per position by replaying the stones already on the board,
    then advanced with :meth:`record_move` (or :meth:`record_index` in hot
    loops). Win status is kept per side and is monotonic.
    """

    __slots__ = ("geometry", "cells", "status", "uf", "_won")

    def __init__(self, size: int):
        self.geometry = HexGeometry.for_size(size)
        n = self.geometry.cell_count
        self.cells = [EMPTY] * n
        self.status = [0] * n
        self.uf = UnionFind(n)
        self._won = [False, False, False]

    @classmethod
    def from_cells(cls, cells: Sequence[int], size: int) -> "ConnectivityTracker":
        """Build a tracker for a flat row-major list of cell values."""
        tracker = cls(size)
        for idx, value in enumerate(cells):
            if value != EMPTY:
                tracker.record_index(idx, value)
        return tracker

    @classmethod
    def from_grid(cls, grid) -> "ConnectivityTracker":
        """Build a tracker from an N x N grid (nested lists or ndarray)."""
        size = len(grid)
        return cls.from_cells([int(v) for row in grid for v in row], size)

    def record_move(self, row: int, col: int, side: int) -> None:
        self.record_index(row * self.geometry.size + col, side)

    def record_index(self, idx: int, side: int) -> None:
        geo = self.geometry
        cells = self.cells
        status = self.status
        uf = self.uf

        cells[idx] = side
        mask = geo.edge_bits[idx] & WIN_MASKS[side]
        root = idx
        for n in geo.neighbors[idx]:
            if cells[n] == side:
                nroot = uf.find(n)
                if nroot != root:
                    mask |= status[nroot]
                    uf.parent[nroot] = root
        status[root] = mask
        if mask == WIN_MASKS[side]:
            self._won[side] = True

    def has_won(self, side: int) -> bool:
        return self._won[side]

    def winner(self) -> Side | None:
        if self._won[Side.RED]:
            return Side.RED
        if self._won[Side.BLUE]:
            return Side.BLUE
        return None

    def would_win(self, idx: int, side: int) -> bool:
        """Whether placing ``side`` on empty cell ``idx`` completes a connection.

        Only looks at the cell's neighbours, the tracker is not modified.
        """
        geo = self.geometry
        cells = self.cells
        target = WIN_MASKS[side]
        mask = geo.edge_bits[idx] & target
        for n in geo.neighbors[idx]:
            if cells[n] == side:
                mask |= self.status[self.uf.find(n)]
                if mask == target:
                    return True
        return mask == target

    def same_group(self, a: int, b: int) -> bool:
        return self.uf.find(a) == self.uf.find(b)

    def copy(self) -> "ConnectivityTracker":
        clone = ConnectivityTracker.__new__(ConnectivityTracker)
        clone.geometry = self.geometry
        clone.cells = list(self.cells)
        clone.status = list(self.status)
        clone.uf = self.uf.copy()
        clone._won = list(self._won)
        return clone
