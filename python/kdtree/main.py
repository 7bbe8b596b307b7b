from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import matplotlib.patches as patches
import matplotlib.pyplot as plt
import numpy as np
import rerun as rr
from kdtree import KdTree
from kdtree_node import KdTreeNode
from kdtree_point import EuclideanPoint, points_from_array


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Nearest neighbor search with a balanced k-d tree")
    parser.add_argument("-n", "--count", type=int, help="number of random points", default=10)
    parser.add_argument("-s", "--seed", type=int, help="random seed", default=19)
    parser.add_argument(
        "-q",
        "--query",
        type=float,
        nargs=2,
        metavar=("X", "Y"),
        help="query point",
        default=[0.5, 0.5],
    )
    parser.add_argument(
        "-i",
        "--incremental",
        action="store_true",
        help="Insert points one by one instead of building from the whole batch",
        default=False,
    )
    parser.add_argument(
        "-v",
        "--viewer",
        choices=["matplotlib", "rerun", "none"],
        help="how to show the result",
        default="matplotlib",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level",
        default="WARNING",
    )
    args = parser.parse_args(argv)

    if args.count < 1:
        parser.error("--count must be at least 1")

    return args


def create_tree(points: list[EuclideanPoint], incremental: bool) -> KdTreeNode:
    if not incremental:
        return KdTree.build(points)

    root = KdTree.build(points[:1])
    return KdTree.insert(root, *points[1:])


def show_with_matplotlib(points, query_point, nearest_point, distance: float):
    # Distance is squared euclidean, so the circle radius is its root.
    c = patches.Circle(
        (query_point[0], query_point[1]),
        radius=np.sqrt(distance),
        edgecolor="green",
        facecolor="none",
        linewidth=1,
    )
    ax = plt.axes()
    ax.add_patch(c)

    plt.scatter(points[:, 0], points[:, 1])
    plt.scatter(query_point[0], query_point[1])
    plt.scatter(nearest_point[0], nearest_point[1])
    plt.axis("square")
    x, y = 1.1, 1.1
    plt.xlim(0, x)
    plt.ylim(0, y)
    plt.xticks(np.arange(0, x + 0.1, step=0.1))
    plt.yticks(np.arange(0, y + 0.1, step=0.1))
    plt.axhline(0, linewidth=2, color="gray")
    plt.axvline(0, linewidth=2, color="gray")
    plt.show()


def show_with_rerun(points, query_point, nearest_point):
    num = len(points)
    all_points = np.append(points, query_point.reshape(1, 2), axis=0)
    all_points = np.append(all_points, nearest_point.reshape(1, 2), axis=0)

    colors = np.full((num, 3), [0, 255, 0])
    colors = np.append(colors, np.array([255, 0, 0]).reshape(1, 3), axis=0)
    colors = np.append(colors, np.array([0, 0, 255]).reshape(1, 3), axis=0)

    rr.init("kdtree_nearest", spawn=True)
    rr.log("points", rr.Points2D(all_points, colors=colors, radii=0.02))


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level)

    rng = np.random.default_rng(args.seed)
    points = rng.random((args.count, 2))
    query_point = np.array(args.query)

    kdtree_root = create_tree(points_from_array(points), args.incremental)

    found_points, distance = KdTree.nearest_with_distance(
        kdtree_root, EuclideanPoint(query_point)
    )
    nearest_point = found_points[0].coords

    print(f"tree height: {kdtree_root.height}")
    print(f"nearest: {found_points[0]} (x{len(found_points)}), squared distance: {distance:g}")

    if args.viewer == "matplotlib":
        show_with_matplotlib(points, query_point, nearest_point, distance)
    elif args.viewer == "rerun":
        show_with_rerun(points, query_point, nearest_point)


if __name__ == "__main__":
    main()
