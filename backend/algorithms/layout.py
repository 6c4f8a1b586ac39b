"""
Flowchart layout for algorithm graphs.

Nodes are levelled breadth-first from the roots (a node sits one level below
the deepest node that reaches it) and spread evenly across each level. Only
coordinates are computed; drawing is left to the client.
"""

from __future__ import annotations

from typing import Optional

from api.algorithm_models import AlgorithmDefinition, AlgorithmLayout, EdgeLayout, NodePosition

NODE_WIDTH = 140
HORIZONTAL_SPACING = 60
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600


def assign_levels(algorithm: AlgorithmDefinition) -> dict[str, int]:
    """Kahn-style levelling: a node is placed once every edge into it is consumed."""
    children: dict[str, list[str]] = {node_id: [] for node_id in algorithm.nodes}
    in_degree = {node_id: 0 for node_id in algorithm.nodes}
    for node_id, node in algorithm.nodes.items():
        for branch in node.branches:
            if branch.next_node_id in in_degree:
                children[node_id].append(branch.next_node_id)
                in_degree[branch.next_node_id] += 1

    levels: dict[str, int] = {}
    current = [node_id for node_id, degree in in_degree.items() if degree == 0]
    level = 0
    while current:
        following = []
        for node_id in current:
            levels[node_id] = level
            for child in children[node_id]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    following.append(child)
        current = following
        level += 1
    # Nodes on a cycle never reach in-degree 0; put them below everything else
    for node_id in algorithm.nodes:
        levels.setdefault(node_id, level)
    return levels


def _path_edges(path: list[str]) -> set[tuple[str, str]]:
    return set(zip(path, path[1:]))


def layout_algorithm(
    algorithm: AlgorithmDefinition,
    path: Optional[list[str]] = None,
    width: float = DEFAULT_WIDTH,
    height: float = DEFAULT_HEIGHT,
) -> AlgorithmLayout:
    path = path or []
    levels = assign_levels(algorithm)
    by_level: dict[int, list[str]] = {}
    for node_id in algorithm.nodes:
        by_level.setdefault(levels[node_id], []).append(node_id)

    level_count = max(by_level) + 1 if by_level else 0
    level_height = height / (level_count + 1) * 0.9
    current = path[-1] if path else None
    visited = set(path)

    nodes = []
    for level, node_ids in sorted(by_level.items()):
        total_width = len(node_ids) * (NODE_WIDTH + HORIZONTAL_SPACING) - HORIZONTAL_SPACING
        start_x = (width - total_width) / 2
        for index, node_id in enumerate(node_ids):
            node = algorithm.nodes[node_id]
            nodes.append(NodePosition(
                id=node_id,
                x=start_x + index * (NODE_WIDTH + HORIZONTAL_SPACING) + NODE_WIDTH / 2,
                y=(level + 1) * level_height,
                level=level,
                type=node.type,
                content=node.content,
                on_path=node_id in visited,
                current=node_id == current,
            ))

    taken = _path_edges(path)
    edges = [
        EdgeLayout(
            source=node.id,
            target=branch.next_node_id,
            label=branch.label,
            on_path=(node.id, branch.next_node_id) in taken,
        )
        for node in algorithm.nodes.values()
        for branch in node.branches
    ]
    return AlgorithmLayout(
        algorithm_id=algorithm.id, width=width, height=height, nodes=nodes, edges=edges,
    )
