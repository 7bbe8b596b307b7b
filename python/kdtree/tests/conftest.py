from __future__ import annotations

import pytest
from kdtree_node import KdTreeNode, node_height
from kdtree_point import EuclideanPoint, points_from_array


@pytest.fixture
def make_points():
    """Returns a factory turning coordinate lists into points."""

    def make(*coords) -> list[EuclideanPoint]:
        return points_from_array(coords)

    return make


@pytest.fixture
def wikipedia_points(make_points):
    return make_points([2, 3], [4, 7], [5, 4], [7, 2], [7, 2], [8, 1], [9, 6])


def _check_split(node: KdTreeNode | None):
    if node is None:
        return

    assert len(node.points) >= 1
    first = node.points[0]
    assert all(p.equal_to(first) for p in node.points[1:])

    if node.left_child is not None:
        for p in node.left_child.iter_points():
            assert p.value(node.axis) <= node.split_value
    if node.right_child is not None:
        for p in node.right_child.iter_points():
            assert p.value(node.axis) > node.split_value

    _check_split(node.left_child)
    _check_split(node.right_child)


def _check_heights(node: KdTreeNode | None, balanced: bool):
    if node is None:
        return

    _check_heights(node.left_child, balanced)
    _check_heights(node.right_child, balanced)
    assert node.height == 1 + max(node_height(node.left_child), node_height(node.right_child))
    assert node.size == len(node.points) + sum(
        child.size for child in [node.left_child, node.right_child] if child is not None
    )
    if balanced:
        assert abs(node.balance_factor()) < 2


@pytest.fixture
def check_tree():
    """Returns a checker for split order, heights and (optionally) balance at every node."""

    def check(root: KdTreeNode | None, balanced: bool = True):
        _check_split(root)
        _check_heights(root, balanced)

    return check


@pytest.fixture
def brute_force_distance():
    """Smallest distance from query to any of points, found by scanning them all."""

    def nearest(points, query) -> float:
        return min(p.distance_to(query) for p in points)

    return nearest


def count_nodes(node: KdTreeNode | None) -> int:
    if node is None:
        return 0
    return 1 + count_nodes(node.left_child) + count_nodes(node.right_child)


@pytest.fixture
def node_counter():
    return count_nodes
