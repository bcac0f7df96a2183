"""Arena-allocated search tree for the MCTS strategies.

Nodes live in a flat list and refer to each other by index (parent index,
child index list), so a tree is a single list that is dropped wholesale
once the move is chosen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any, Optional

NO_PARENT = -1

# RAVE estimate used before a move has any all-moves-as-first statistics
DEFAULT_RAVE_VALUE = 0.5


@dataclass(slots=True)
class TreeNode:
    """One position in the tree.

    ``mover`` is the side that played ``move`` to reach this node; wins are
    counted from that side's point of view. ``untried`` holds the moves not
    yet expanded, best last so that ``pop()`` takes the best one; it stays
    None until the node is first expanded.
    """

    parent: int
    move: Optional[int]
    mover: int
    children: list[int] = field(default_factory=list)
    visits: int = 0
    wins: int = 0
    rave_visits: int = 0
    rave_wins: int = 0
    prior: float = 0.0
    untried: Optional[list[int]] = None
    terminal: bool = False
    state: Any = None

    @property
    def win_rate(self) -> float:
        return self.wins / self.visits if self.visits else 0.0

    @property
    def rave_value(self) -> float:
        if self.rave_visits:
            return self.rave_wins / self.rave_visits
        return DEFAULT_RAVE_VALUE

    def is_fully_expanded(self) -> bool:
        return self.untried is not None and not self.untried


class SearchTree:
    """Flat node arena with index-based links."""

    __slots__ = ("nodes",)

    def __init__(self) -> None:
        self.nodes: list[TreeNode] = []

    def add_root(self, mover: int, state: Any = None) -> int:
        self.nodes = [TreeNode(parent=NO_PARENT, move=None, mover=mover, state=state)]
        return 0

    def add_child(
        self,
        parent: int,
        move: int,
        mover: int,
        prior: float = 0.0,
        state: Any = None,
        terminal: bool = False,
    ) -> int:
        idx = len(self.nodes)
        self.nodes.append(
            TreeNode(
                parent=parent,
                move=move,
                mover=mover,
                prior=prior,
                state=state,
                terminal=terminal,
            )
        )
        self.nodes[parent].children.append(idx)
        return idx

    def __getitem__(self, idx: int) -> TreeNode:
        return self.nodes[idx]

    def __len__(self) -> int:
        return len(self.nodes)

    def path_from_root(self, idx: int) -> list[int]:
        """Node indices from the root down to ``idx`` inclusive."""
        path = []
        while idx != NO_PARENT:
            path.append(idx)
            idx = self.nodes[idx].parent
        path.reverse()
        return path

    def backpropagate(self, leaf: int, winner: int, played: dict[int, set[int]]) -> None:
        """Update direct and RAVE statistics from ``leaf`` up to the root.

        Args:
            leaf: Node the playout started from.
            winner: Side that won the playout.
            played: Cells each side occupied anywhere in the episode (tree
                path plus playout), keyed by side.
        """
        nodes = self.nodes
        idx = leaf
        while idx != NO_PARENT:
            node = nodes[idx]
            node.visits += 1
            if node.mover == winner:
                node.wins += 1
            for child_idx in node.children:
                child = nodes[child_idx]
                if child.move in played[child.mover]:
                    child.rave_visits += 1
                    if child.mover == winner:
                        child.rave_wins += 1
            idx = node.parent

    def robust_child(self, idx: int, tolerance: float) -> Optional[TreeNode]:
        """Most visited child of ``idx``.

        A runner-up with a better win rate wins instead when its visit count
        is within ``tolerance`` (a fraction) of the leader's.
        """
        children = [self.nodes[c] for c in self.nodes[idx].children]
        if not children:
            return None
        ranked = sorted(children, key=lambda n: n.visits, reverse=True)
        best = ranked[0]
        if len(ranked) > 1:
            runner_up = ranked[1]
            if (
                runner_up.visits >= math.ceil(best.visits * (1.0 - tolerance))
                and runner_up.win_rate > best.win_rate
            ):
                return runner_up
        return best
