from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from kdtree_point import KdPoint


def node_height(node: KdTreeNode | None) -> int:
    # Absent child counts as -1, so a leaf has height 0.
    if node is None:
        return -1
    return node.height


@dataclass
class KdTreeNode:
    axis: int = 0
    depth: int = 0
    points: list[KdPoint] = field(default_factory=list)
    height: int = 0
    left_child: KdTreeNode | None = None
    right_child: KdTreeNode | None = None
    # Number of points stored in this subtree, duplicates included.
    size: int = 0
    # Subtree size from which rebuilding is worth trying again.
    next_rebuild_size: int = 0

    def __post_init__(self):
        if self.size == 0:
            self.update_size()

    @property
    def split_value(self) -> float:
        return self.points[0].value(self.axis)

    def is_leaf(self) -> bool:
        return self.left_child is None and self.right_child is None

    def update_height(self):
        self.height = 1 + max(node_height(self.left_child), node_height(self.right_child))

    def update_size(self):
        self.size = len(self.points)
        if self.left_child is not None:
            self.size += self.left_child.size
        if self.right_child is not None:
            self.size += self.right_child.size

    def balance_factor(self) -> int:
        """Right subtree height minus left subtree height."""
        return node_height(self.right_child) - node_height(self.left_child)

    def iter_points(self) -> Iterator[KdPoint]:
        """Yields every point in this subtree, keeping duplicate groups together."""
        stack: list[KdTreeNode] = [self]
        while stack:
            node = stack.pop()
            yield from node.points
            if node.right_child is not None:
                stack.append(node.right_child)
            if node.left_child is not None:
                stack.append(node.left_child)

    def __str__(self) -> str:
        # e.g. ([[7 2] [7 2]], (none, ([[9 6]], (none, none))))
        points = "[" + " ".join(str(p) for p in self.points) + "]"
        left = str(self.left_child) if self.left_child is not None else "none"
        right = str(self.right_child) if self.right_child is not None else "none"
        return f"({points}, ({left}, {right}))"
