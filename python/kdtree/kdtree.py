from __future__ import annotations

import logging
from typing import Sequence

from kdtree_errors import DimensionMismatchError, EmptyTreeError
from kdtree_node import KdTreeNode, node_height
from kdtree_point import KdPoint

logger = logging.getLogger(__name__)


class KdTree:
    @staticmethod
    def build(points: Sequence[KdPoint], depth: int = 0) -> KdTreeNode | None:
        """Build a balanced tree from a batch of points.

        Args:
            points: Points to store. The sequence itself is not modified.
            depth: Depth of the returned node, which decides the first splitting axis.

        Returns:
            Root of the tree, or None if no points are given.

        Raises:
            DimensionMismatchError: If the points don't share one dimension count.
        """
        points_list = list(points)
        if len(points_list) == 0:
            return None

        dim = points_list[0].dimension_count()
        for point in points_list:
            KdTree._check_dimension(dim, point)

        root = KdTree._build(points_list, depth)
        logger.debug(f"Built k-d tree from {len(points_list)} points, height={root.height}")
        return root

    @staticmethod
    def _build(points: list[KdPoint], depth: int) -> KdTreeNode | None:
        if len(points) == 0:
            return None

        # Decide which axis for splitting.
        axis = depth % points[0].dimension_count()

        if len(points) == 1:
            return KdTreeNode(axis=axis, depth=depth, points=points, height=0)

        median_points, before_points, after_points = KdTree._partition(points, axis)

        node = KdTreeNode(
            axis=axis,
            depth=depth,
            points=median_points,
            left_child=KdTree._build(before_points, depth + 1),
            right_child=KdTree._build(after_points, depth + 1),
        )
        node.update_height()
        return node

    @staticmethod
    def _partition(
        points: list[KdPoint], axis: int
    ) -> tuple[list[KdPoint], list[KdPoint], list[KdPoint]]:
        """Split points around their median on axis into (median group, before, after)."""
        # Sort with the specified axis value.
        points = sorted(points, key=lambda p: p.value(axis))

        median = points[len(points) // 2]
        split_value = median.value(axis)

        # Duplicates of the median may sit on both sides of it after sorting,
        # so partition into three groups before recursing.
        median_points = []
        before_points = []
        after_points = []
        for point in points:
            if point is median or point.equal_to(median):
                median_points.append(point)
            elif point.value(axis) <= split_value:
                before_points.append(point)
            else:
                after_points.append(point)
        return median_points, before_points, after_points

    @staticmethod
    def _rebuild(points: list[KdPoint], depth: int) -> KdTreeNode | None:
        """Like _build, but each node splits on the axis dividing its points most evenly.

        The depth's own axis is tried first and kept unless another axis
        divides strictly better. Points sharing one value on the depth's axis
        all fall on the same side of it, which _build can't balance.
        """
        if len(points) == 0:
            return None

        dim = points[0].dimension_count()
        if len(points) == 1:
            return KdTreeNode(axis=depth % dim, depth=depth, points=points, height=0)

        best_axis = None
        best_partition = None
        best_gap = None
        for offset in range(dim):
            axis = (depth + offset) % dim
            partition = KdTree._partition(points, axis)
            gap = abs(len(partition[1]) - len(partition[2]))
            if best_gap is None or gap < best_gap:
                best_axis, best_partition, best_gap = axis, partition, gap
            if best_gap <= 1:
                break

        median_points, before_points, after_points = best_partition
        node = KdTreeNode(
            axis=best_axis,
            depth=depth,
            points=median_points,
            left_child=KdTree._rebuild(before_points, depth + 1),
            right_child=KdTree._rebuild(after_points, depth + 1),
        )
        node.update_height()
        return node

    @staticmethod
    def insert(root: KdTreeNode | None, *points: KdPoint) -> KdTreeNode:
        """Insert points one by one, rebalancing along the way.

        The returned node is the root from now on. The node passed in may have
        been moved below another node by a rotation.

        Raises:
            EmptyTreeError: If root is None.
            DimensionMismatchError: If a point doesn't match the tree's dimension count.
        """
        if root is None:
            raise EmptyTreeError("Cannot insert into an empty tree, build it from a point first")

        dim = root.points[0].dimension_count()
        for point in points:
            KdTree._check_dimension(dim, point)
            root = KdTree._insert(root, point)
        return root

    @staticmethod
    def _insert(node: KdTreeNode, point: KdPoint) -> KdTreeNode:
        if point.equal_to(node.points[0]):
            node.points.append(point)
            node.size += 1
            return node

        if point.value(node.axis) <= node.split_value:
            if node.left_child is None:
                node.left_child = KdTree._build([point], node.depth + 1)
            else:
                node.left_child = KdTree._insert(node.left_child, point)
        else:
            if node.right_child is None:
                node.right_child = KdTree._build([point], node.depth + 1)
            else:
                node.right_child = KdTree._insert(node.right_child, point)

        node.update_height()
        node.update_size()
        return KdTree._rebalance(node)

    @staticmethod
    def _rebalance(node: KdTreeNode) -> KdTreeNode:
        if abs(node.balance_factor()) < 2:
            return node

        # Neither a rotation nor a rebuild helped here last time. Wait until
        # the subtree has grown before paying for another try.
        if node.size < node.next_rebuild_size:
            return node

        if KdTree._can_rotate(node):
            return KdTree._rotate(node)

        # Zig-zag shape, or the rotation would put points on the wrong side of
        # the promoted node's plane. Rebuilding keeps the subtree a k-d tree.
        logger.debug(
            f"Rebuilding subtree at depth {node.depth} with height {node.height}"
            f" and {node.size} points"
        )
        rebuilt = KdTree._rebuild(list(node.iter_points()), node.depth)
        if rebuilt.height < node.height or abs(rebuilt.balance_factor()) < 2:
            return rebuilt

        # Too many equal coordinates to split evenly, keep the current shape.
        logger.debug(
            f"Rebuilt subtree at depth {node.depth} is no better, keeping it as is"
        )
        node.next_rebuild_size = 2 * node.size
        return node

    @staticmethod
    def _can_rotate(node: KdTreeNode) -> bool:
        """Whether promoting the taller child keeps the split invariant and fixes the balance."""
        if node.balance_factor() > 0:
            promoted = node.right_child
            inner = promoted.left_child
            kept = node.left_child
            outer = promoted.right_child
            demoted_on_left = True
        else:
            promoted = node.left_child
            inner = promoted.right_child
            kept = node.right_child
            outer = promoted.left_child
            demoted_on_left = False

        demoted_height = 1 + max(node_height(inner), node_height(kept))
        if abs(demoted_height - node_height(outer)) >= 2:
            return False

        # The demoted node keeps one of its subtrees. Each node keeps its own
        # axis, so both have to fall on the correct side of the promoted plane.
        def on_demoted_side(point: KdPoint) -> bool:
            if demoted_on_left:
                return point.value(promoted.axis) <= promoted.split_value
            return point.value(promoted.axis) > promoted.split_value

        if not on_demoted_side(node.points[0]):
            return False
        if kept is None:
            return True
        return all(on_demoted_side(p) for p in kept.iter_points())

    @staticmethod
    def _rotate(node: KdTreeNode) -> KdTreeNode:
        if node.balance_factor() > 0:
            # Left rotation.
            promoted = node.right_child
            node.right_child = promoted.left_child
            promoted.left_child = node
        else:
            # Right rotation.
            promoted = node.left_child
            node.left_child = promoted.right_child
            promoted.right_child = node

        node.update_height()
        node.update_size()
        promoted.update_height()
        promoted.update_size()
        logger.debug(
            f"Rotated node at depth {node.depth} below node at depth {promoted.depth}"
        )
        return promoted

    @staticmethod
    def nearest(root: KdTreeNode | None, query: KdPoint) -> list[KdPoint]:
        """Find the stored points closest to query.

        Returns:
            Duplicate group of the closest node. Ties between different
            positions are not returned, the first node reached wins.

        Raises:
            EmptyTreeError: If root is None.
            DimensionMismatchError: If query doesn't match the tree's dimension count.
        """
        points, _ = KdTree.nearest_with_distance(root, query)
        return points

    @staticmethod
    def nearest_with_distance(
        root: KdTreeNode | None, query: KdPoint
    ) -> tuple[list[KdPoint], float]:
        if root is None:
            raise EmptyTreeError("Cannot search an empty tree")

        KdTree._check_dimension(root.points[0].dimension_count(), query)

        node, distance = KdTree._nearest(query, float("inf"), root, root)
        return list(node.points), distance

    @staticmethod
    def _nearest(
        query: KdPoint,
        best_distance: float,
        best_node: KdTreeNode,
        node: KdTreeNode,
    ) -> tuple[KdTreeNode, float]:
        distance = node.points[0].distance_to(query)
        if distance < best_distance:
            best_node, best_distance = node, distance

        # Look first where query would be inserted.
        query_value = query.value(node.axis)
        if query_value <= node.split_value:
            near, far = node.left_child, node.right_child
        else:
            near, far = node.right_child, node.left_child

        if near is not None:
            best_node, best_distance = KdTree._nearest(query, best_distance, best_node, near)

        # Only cross the plane if it's within the best distance found so far.
        if far is not None:
            if node.points[0].plane_distance(query_value, node.axis) <= best_distance:
                best_node, best_distance = KdTree._nearest(query, best_distance, best_node, far)

        return best_node, best_distance

    @staticmethod
    def _check_dimension(expected: int, point: KdPoint):
        actual = point.dimension_count()
        if actual != expected:
            raise DimensionMismatchError(expected, actual)
