"""
Geometry primitives for stroke analysis.

Pure functions over canvas points and line equations. Vertical lines are
carried as VerticalLine rather than a NaN gradient.
"""

import math

import numpy as np

from cubegrade.models import Point, SlopedLine, VerticalLine


# Border hits closer than this (in canvas pixels) are one point
BORDER_TOLERANCE = 1e-6


class ParallelLinesError(ValueError):
    """Two lines never meet because their gradients are equal."""


def distance(a, b):
    """Euclidean distance between two points."""
    return math.hypot(b.x - a.x, b.y - a.y)


def translation_between(a, b):
    """
    Offset that moves point a onto point b.
    """
    return Point(x=b.x - a.x, y=b.y - a.y)


def translate_point(point, offset):
    """Move a point by an offset."""
    return Point(x=point.x + offset.x, y=point.y + offset.y)


def line_equation(start, end):
    """
    Equation of the infinite line through two stroke anchors.

    The gradient is always taken from the leftmost to the rightmost point
    so drawing direction does not change its sign. The y intercept is
    derived from start.
    """
    left, right = (start, end) if start.x <= end.x else (end, start)
    dx = right.x - left.x
    if dx == 0:
        return VerticalLine(x=start.x)

    gradient = (right.y - left.y) / dx
    return SlopedLine(gradient=gradient, y_intercept=start.y - gradient * start.x)


def extend_line_to_canvas(start, end, equation, canvas_size):
    """
    Stretch a line to the borders of the canvas.

    Returns (start, end) where both points lie on the canvas boundary.
    These are the guideline ends drawn back over the sketch.

    Raises:
        ValueError: if the line misses the canvas
    """
    width = canvas_size.width
    height = canvas_size.height

    if isinstance(equation, VerticalLine):
        return Point(x=start.x, y=0.0), Point(x=start.x, y=height)

    m = equation.gradient
    b = equation.y_intercept

    candidates = [
        Point(x=0.0, y=b),
        Point(x=width, y=m * width + b),
    ]
    # Horizontal lines never cross the top or bottom border
    if m != 0:
        candidates.append(Point(x=-b / m, y=0.0))
        candidates.append(Point(x=(height - b) / m, y=height))

    in_bounds = []
    for point in candidates:
        if not (0 <= point.x <= width and 0 <= point.y <= height):
            continue
        # A line through a canvas corner hits two borders at one point
        if any(_same_point(point, kept) for kept in in_bounds):
            continue
        in_bounds.append(point)

    if len(in_bounds) < 2:
        raise ValueError(
            f"Line through ({start.x}, {start.y})-({end.x}, {end.y}) does not cross the canvas"
        )

    return in_bounds[0], in_bounds[1]


def _same_point(a, b):
    return (
        math.isclose(a.x, b.x, abs_tol=BORDER_TOLERANCE)
        and math.isclose(a.y, b.y, abs_tol=BORDER_TOLERANCE)
    )


def point_to_line_distance(point, line_start, line_end):
    """
    Perpendicular distance from a point to the infinite line through
    line_start and line_end.
    """
    dx = line_end.x - line_start.x
    dy = line_end.y - line_start.y
    numerator = abs(dx * (line_start.y - point.y) - (line_start.x - point.x) * dy)
    return numerator / math.hypot(dx, dy)


def average_point_deviation(points, line_start, line_end):
    """
    Mean perpendicular distance of sampled stroke points from a line.

    0 means the stroke is perfectly straight.
    """
    coords = np.array([[p.x, p.y] for p in points], dtype=float)
    dx = line_end.x - line_start.x
    dy = line_end.y - line_start.y

    numerators = np.abs(dx * (line_start.y - coords[:, 1]) - (line_start.x - coords[:, 0]) * dy)
    distances = numerators / math.hypot(dx, dy)

    return float(np.mean(distances))


def line_intersection(line_a, line_b):
    """
    Point where two line equations cross.

    Raises:
        ParallelLinesError: if both lines are vertical or share a gradient.
            Callers treat this as a signal, not a failure.
    """
    a_vertical = isinstance(line_a, VerticalLine)
    b_vertical = isinstance(line_b, VerticalLine)

    if a_vertical and b_vertical:
        raise ParallelLinesError("Both lines are vertical")

    if a_vertical:
        return Point(x=line_a.x, y=line_b.gradient * line_a.x + line_b.y_intercept)

    if b_vertical:
        return Point(x=line_b.x, y=line_a.gradient * line_b.x + line_a.y_intercept)

    if line_a.gradient == line_b.gradient:
        raise ParallelLinesError(f"Both lines have gradient {line_a.gradient}")

    x = (line_b.y_intercept - line_a.y_intercept) / (line_a.gradient - line_b.gradient)
    y = line_a.gradient * x + line_a.y_intercept
    return Point(x=x, y=y)


def angle_of_line(start, end):
    """
    Both angle readings of an undirected segment, in degrees.

    Returns (angle, reversed) where angle is measured from the positive x
    axis and folded into [0, 180), and reversed is the same line read the
    other way round: angle + 180 below 90 degrees, angle - 180 from 90 up.
    For any other line, one of these readings lies within 90 degrees of
    that line's first reading.
    """
    angle = math.degrees(math.atan2(end.y - start.y, end.x - start.x)) % 180.0
    if angle == 180.0:
        # tiny negative angles round up under modulo
        angle = 0.0
    if angle < 90.0:
        return angle, angle + 180.0
    return angle, angle - 180.0
