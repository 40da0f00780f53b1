"""
Architecture Metrics
====================

Summary statistics over a finished snapshot: distributions, complexity,
orphans, circular dependencies and the most connected components.
"""

from __future__ import annotations

from collections import Counter

from ..models.architecture_data import ArchitectureData, ArchitectureMetrics

MOST_CONNECTED_LIMIT = 5


def find_circular_dependencies(edges: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """
    Detect edges that lie on a cycle using DFS.

    The walk is iterative so deep dependency chains cannot exhaust the
    interpreter's recursion limit.

    Args:
        edges: Directed (from, to) pairs

    Returns:
        Cycle edges in first-detected order
    """
    graph: dict[str, list[str]] = {}
    for source, target in edges:
        graph.setdefault(source, []).append(target)

    visited: set[str] = set()
    cycles: list[tuple[str, str]] = []
    seen_cycle_edges: set[tuple[str, str]] = set()

    for root in graph:
        if root in visited:
            continue
        path: list[str] = [root]
        on_path: set[str] = {root}
        stack = [iter(graph.get(root, []))]
        visited.add(root)

        while stack:
            neighbor = next(stack[-1], None)
            if neighbor is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if neighbor in on_path:
                # Found a cycle
                cycle_path = path[path.index(neighbor):] + [neighbor]
                for pair in zip(cycle_path, cycle_path[1:]):
                    if pair not in seen_cycle_edges:
                        seen_cycle_edges.add(pair)
                        cycles.append(pair)
            elif neighbor not in visited:
                visited.add(neighbor)
                path.append(neighbor)
                on_path.add(neighbor)
                stack.append(iter(graph.get(neighbor, [])))

    return cycles


def calculate_metrics(data: ArchitectureData) -> ArchitectureMetrics:
    """
    Calculate metrics for an architecture snapshot.

    Args:
        data: Finished analysis result

    Returns:
        ArchitectureMetrics
    """
    components = data.components
    relationships = data.relationships

    connections: Counter[str] = Counter()
    for rel in relationships:
        connections[rel.from_id] += 1
        connections[rel.to_id] += 1

    orphans = [c.id for c in components if connections[c.id] == 0]
    ranked = sorted(
        ((c.id, connections[c.id]) for c in components if connections[c.id] > 0),
        key=lambda item: -item[1],
    )

    complexities = [c.complexity for c in components]

    return ArchitectureMetrics(
        total_components=len(components),
        total_relationships=len(relationships),
        layer_distribution=dict(Counter(c.layer for c in components)),
        type_distribution=dict(Counter(c.type for c in components)),
        average_complexity=sum(complexities) / len(complexities) if complexities else 0.0,
        max_complexity=max(complexities, default=0),
        orphan_components=orphans,
        circular_dependencies=find_circular_dependencies([(r.from_id, r.to_id) for r in relationships]),
        most_connected=ranked[:MOST_CONNECTED_LIMIT],
    )
