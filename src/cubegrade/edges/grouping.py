"""
Parallel edge grouping for the cube sketch grader.

Two edges bounding the same cube face share exactly two neighbouring edges
(the two face edges that join their ends), so they run parallel on the
real cube. Taking that relation transitively partitions the strokes into
one group per cube axis.
"""

from collections import deque

import networkx as nx

from cubegrade.tracer import get_tracer, trace


def shared_connection_count(connections_a, connections_b):
    """
    Number of entries in connections_a that also appear in connections_b.

    Duplicates in connections_a count once each, so the relation is not
    symmetric when a stroke reached the same neighbour twice.
    """
    lookup = set(connections_b)
    return sum(1 for line_idx in connections_a if line_idx in lookup)


def build_parallel_graph(line_connections):
    """
    Directed graph with an edge a -> b when stroke b shares exactly two
    connections with stroke a.
    """
    graph = nx.DiGraph()
    line_indices = sorted(line_connections)
    graph.add_nodes_from(line_indices)

    for a in line_indices:
        for b in line_indices:
            if a == b:
                continue
            if shared_connection_count(line_connections[a], line_connections[b]) == 2:
                graph.add_edge(a, b)

    return graph


@trace(label="group_parallel_lines")
def group_parallel_lines(line_connections):
    """
    Partition strokes into parallel groups.

    The lowest ungrouped stroke seeds each group. The group then grows
    breadth first over strokes that are still ungrouped.

    Args:
        line_connections: dict of stroke index -> connected stroke indices

    Returns:
        tuple of (groups, group_of) where groups is a list of stroke index
        lists and group_of[line_idx] is the group index of each stroke
    """
    tracer = get_tracer()

    graph = build_parallel_graph(line_connections)
    tracer.event("Parallel relation built", graph=graph)

    ungrouped = set(graph.nodes)
    group_of = [None] * len(line_connections)
    groups = []

    for seed in sorted(graph.nodes):
        if seed not in ungrouped:
            continue

        group_idx = len(groups)
        group = [seed]
        ungrouped.discard(seed)
        group_of[seed] = group_idx

        queue = deque([seed])
        while queue:
            current = queue.popleft()
            for neighbour in sorted(graph.successors(current)):
                if neighbour not in ungrouped:
                    continue
                ungrouped.discard(neighbour)
                group_of[neighbour] = group_idx
                group.append(neighbour)
                queue.append(neighbour)

        groups.append(group)

    tracer.event(f"Formed {len(groups)} parallel groups from {len(group_of)} strokes")

    return groups, group_of
