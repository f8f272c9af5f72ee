"""
Corner matching for the cube sketch grader.

Decides which strokes meet at a shared cube vertex. Pass 1 accepts every
corner whose nearby candidates belong to at most two strokes. Corners in an
ambiguous cluster (two vertices drawn close together) go through a second
pass run by a pluggable disambiguation strategy.
"""

from collections import Counter
from dataclasses import dataclass, field

from cubegrade.models import corner_to_line, opposite_corner
from cubegrade.tracer import get_tracer, trace


# Two corners closer than this (in canvas pixels) are treated as one vertex
MAX_CORNER_DISTANCE = 10


class CornersNotCloseEnoughError(ValueError):
    """A corner has no neighbour in range: the sketch edges do not close."""

    def __init__(self, corner_idx, max_distance=MAX_CORNER_DISTANCE):
        self.corner_idx = corner_idx
        self.line_idx = corner_to_line(corner_idx)
        self.max_distance = max_distance
        super().__init__(
            f"Corners not close enough: corner {corner_idx} of stroke {self.line_idx} "
            f"has no other corner within {max_distance}px"
        )


@dataclass
class CornerMatch:
    """Output of corner matching."""
    corner_connections: dict = field(default_factory=dict)
    line_connections: dict = field(default_factory=dict)
    second_pass_corners: list = field(default_factory=list)
    corner_average_distances: dict = field(default_factory=dict)
    total_distance: float = 0.0
    matched_count: int = 0


class DisambiguationStrategy:
    """
    Picks the true line connections of an ambiguous corner.

    Subclasses implement select(). It receives the corner id, its sorted
    candidate corner ids, and the complete corner connection map, and
    returns the stroke indices to record as connected.
    """

    name = "base"

    def select(self, corner_idx, candidates, corner_connections):
        raise NotImplementedError


class ThirdOrderFrequencyStrategy(DisambiguationStrategy):
    """
    Uses the opposite end of the stroke to resolve a crowded corner.

    Walks out from the opposite corner: its connections, the far ends of
    those (second order), and the far ends of those again (third order).
    A stroke seen in three third-order branches closes a cube face with
    this stroke. With exactly two such strokes, only they are accepted;
    otherwise candidates already reachable at second order are dropped.
    """

    name = "third_order_frequency"

    def select(self, corner_idx, candidates, corner_connections):
        other_end_connections = corner_connections[opposite_corner(corner_idx)]

        second_order_corners = []
        for idx in other_end_connections:
            second_order_corners.extend(corner_connections[opposite_corner(idx)])
        second_order_lines = {corner_to_line(idx) for idx in second_order_corners}

        frequencies = Counter()
        for idx in second_order_corners:
            frequencies.update(corner_to_line(c) for c in corner_connections[opposite_corner(idx)])
        common = {line for line, count in frequencies.items() if count == 3}

        candidate_lines = [corner_to_line(idx) for idx in candidates]
        if len(common) == 2:
            return [line for line in candidate_lines if line in common]
        return [line for line in candidate_lines if line not in second_order_lines]


def corner_candidates(matrix, corner_idx, max_distance=MAX_CORNER_DISTANCE):
    """
    Corners within max_distance of corner_idx, nearest first.

    Returns:
        list of (corner_id, distance), self excluded
    """
    candidates = [
        (idx, dist)
        for idx, dist in enumerate(matrix[corner_idx])
        if idx != corner_idx and dist < max_distance
    ]
    candidates.sort(key=lambda item: item[1])
    return candidates


@trace(label="match_corners")
def match_corners(matrix, max_distance=MAX_CORNER_DISTANCE, strategy=None):
    """
    Build corner and line connection maps from the corner distance matrix.

    Args:
        matrix: corner distance matrix
        max_distance: matching threshold in pixels
        strategy: DisambiguationStrategy for ambiguous corners

    Returns:
        CornerMatch

    Raises:
        CornersNotCloseEnoughError: if any corner has no candidate
    """
    tracer = get_tracer()

    if strategy is None:
        strategy = ThirdOrderFrequencyStrategy()

    match = CornerMatch()
    match.line_connections = {line_idx: [] for line_idx in range(len(matrix) // 2)}

    # Pass 1
    with tracer.span("direct_connections", module="matching"):
        for corner_idx in range(len(matrix)):
            line_idx = corner_to_line(corner_idx)
            candidates = corner_candidates(matrix, corner_idx, max_distance)

            if not candidates:
                tracer.event(f"Corner {corner_idx} has no neighbour", level="WARN")
                raise CornersNotCloseEnoughError(corner_idx, max_distance)

            # Includes distances a second pass may later discard
            corner_total = sum(dist for _, dist in candidates)
            match.total_distance += corner_total
            match.matched_count += len(candidates)
            match.corner_average_distances[corner_idx] = corner_total / len(candidates)

            connected = [idx for idx, _ in candidates]
            match.corner_connections[corner_idx] = connected

            connected_lines = [corner_to_line(idx) for idx in connected]
            if len(set(connected_lines)) > 2:
                match.second_pass_corners.append(corner_idx)
            else:
                match.line_connections[line_idx].extend(connected_lines)

    # Pass 2
    with tracer.span("disambiguate", module="matching", strategy=strategy.name):
        for corner_idx in match.second_pass_corners:
            line_idx = corner_to_line(corner_idx)
            selected = strategy.select(
                corner_idx,
                match.corner_connections[corner_idx],
                match.corner_connections,
            )
            tracer.event(f"Corner {corner_idx} resolved to lines {selected}", level="DEBUG")
            match.line_connections[line_idx].extend(selected)

    tracer.event(
        f"Matched {len(match.corner_connections)} corners, "
        f"{len(match.second_pass_corners)} needed disambiguation"
    )

    return match
