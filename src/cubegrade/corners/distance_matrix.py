"""
Corner distance matrix for the cube sketch grader.

Builds the symmetric matrix of distances between every stroke endpoint,
growing it by two rows and columns per stroke in drawing order.
"""

from cubegrade.geometry.primitives import distance
from cubegrade.models import ENDPOINT_NAMES, corner_position
from cubegrade.tracer import get_tracer, trace


def extend_corner_distance_matrix(matrix, strokes, line_idx):
    """
    Add the two corners of stroke line_idx to the matrix in place.

    Distances from each new corner to every corner already present (and
    to each other) are written to both matrix[i][j] and matrix[j][i].
    Strokes must be added in ascending order.

    Args:
        matrix: list of row lists, covering strokes 0..line_idx-1
        strokes: full stroke list
        line_idx: index of the stroke to add
    """
    if len(matrix) != line_idx * 2:
        raise ValueError(
            f"Stroke {line_idx} added out of order: matrix covers {len(matrix) // 2} strokes"
        )

    for row in matrix:
        row.extend([0.0, 0.0])
    matrix.append([0.0] * (line_idx * 2 + 2))
    matrix.append([0.0] * (line_idx * 2 + 2))

    for endpoint_idx in range(len(ENDPOINT_NAMES)):
        curr_corner = line_idx * 2 + endpoint_idx
        curr_pos = corner_position(strokes, curr_corner)

        for comp_corner in range(curr_corner):
            dist = distance(curr_pos, corner_position(strokes, comp_corner))
            matrix[curr_corner][comp_corner] = dist
            matrix[comp_corner][curr_corner] = dist


@trace(label="build_corner_distance_matrix")
def build_corner_distance_matrix(strokes):
    """
    Build the full corner distance matrix for a list of strokes.

    Returns:
        list of lists, (2 * len(strokes)) square, zero diagonal
    """
    tracer = get_tracer()

    matrix = []
    for line_idx in range(len(strokes)):
        extend_corner_distance_matrix(matrix, strokes, line_idx)

    tracer.event(f"Corner distance matrix: {len(matrix)}x{len(matrix)}")

    return matrix
