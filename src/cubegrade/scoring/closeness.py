"""
Perspective closeness scoring.

Edges in one parallel group must either stay parallel on the canvas or
converge on a shared vanishing point. For converging groups, the pairwise
intersections should sit consistently close to the drawn edges; for
parallel groups, the edge angles should agree.
"""

import math

from cubegrade.geometry.primitives import ParallelLinesError, angle_of_line, distance, line_intersection
from cubegrade.models import ClosenessDetails, GroupScore
from cubegrade.tracer import get_tracer, trace


AVERAGE_RANGE_FORMULAS = ("legacy", "corrected")


def _line_range(distances, formula):
    """Spread of one line's intersection distances."""
    low = min(distances)
    high = max(distances)
    if formula == "legacy":
        # Matches scores issued before the formula was questioned
        return high - low / len(distances)
    return (high - low) / len(distances)


def _angle_spread(line_angles):
    """
    Spread of line angles after aligning each to the first line.

    Each line uses whichever of its two readings is nearest the first
    line's folded angle, so mirror-image tilts stay apart.
    """
    reference = line_angles[0][0]
    chosen = []
    for first, second in line_angles:
        # ties resolve to the second reading
        chosen.append(first if abs(reference - first) < abs(reference - second) else second)
    return max(chosen) - min(chosen)


def intersection_closeness(lines, average_range_formula="legacy"):
    """
    Measure how closely the lines of one group meet.

    For every ordered pair of lines, the intersection of their equations
    is measured against the nearer of the first line's drawn endpoints.

    Args:
        lines: list of AnalysedLine in the group
        average_range_formula: "legacy" or "corrected"

    Returns:
        ClosenessDetails
    """
    if average_range_formula not in AVERAGE_RANGE_FORMULAS:
        raise ValueError(f"Unknown average range formula: {average_range_formula}")

    has_parallel_lines = False
    intersection_distances = []
    line_angles = []

    for i, line in enumerate(lines):
        line_angles.append(angle_of_line(line.box_start, line.box_end))

        distances = []
        for j, other in enumerate(lines):
            if i == j:
                continue
            try:
                point = line_intersection(line.equation, other.equation)
            except ParallelLinesError:
                has_parallel_lines = True
                continue
            distances.append(min(distance(line.box_start, point), distance(line.box_end, point)))
        intersection_distances.append(distances)

    measured = [d for d in intersection_distances if d]

    details = ClosenessDetails(
        has_parallel_lines=has_parallel_lines,
        angle_diff_degrees=_angle_spread(line_angles) if line_angles else 0.0,
        line_angles=line_angles,
    )

    if measured:
        details.min_distance = min(min(d) for d in measured)
        details.max_distance = max(max(d) for d in measured)
        details.average_distance = sum(sum(d) / len(d) for d in measured) / len(measured)
        details.average_range = (
            sum(_line_range(d, average_range_formula) for d in measured) / len(measured)
        )

    return details


def group_score(closeness):
    """
    Score a group from 0 to 100.

    Parallel groups are judged on angle agreement. Converging groups are
    judged on how consistent the intersections are relative to how close
    they sit (the square root softens very small distances).
    """
    if closeness.has_parallel_lines or closeness.average_range is None:
        return 100 - min(100.0, closeness.angle_diff_degrees)

    if closeness.min_distance == 0:
        # All intersections on the stroke itself
        return 100.0 if closeness.average_range == 0 else 0.0

    return 100 - min(100.0, closeness.average_range / math.sqrt(closeness.min_distance))


@trace(label="score_groups")
def score_groups(groups, analysed_lines, average_range_formula="legacy"):
    """
    Score every parallel group.

    Returns:
        tuple of (overall_score, list of GroupScore)
    """
    tracer = get_tracer()

    group_scores = []
    for group_idx, group in enumerate(groups):
        closeness = intersection_closeness(
            [analysed_lines[idx] for idx in group],
            average_range_formula=average_range_formula,
        )
        score = group_score(closeness)
        tracer.event(
            f"Group {group_idx}: score={score:.2f}",
            level="DEBUG",
            parallel=closeness.has_parallel_lines,
            lines=group,
        )
        group_scores.append(GroupScore(
            group_idx=group_idx,
            line_indices=list(group),
            closeness=closeness,
            score=score,
        ))

    overall = sum(g.score for g in group_scores) / len(group_scores) if group_scores else 0.0

    return overall, group_scores
