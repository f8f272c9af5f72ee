"""Sketch builders shared by the test modules."""


# Stroke order used by every cube fixture. Front face A B C D, back face
# E F G H, with C the corner nearest the viewer:
#   0: C-B  1: C-D  2: C-G  3: A-B  4: A-D   5: A-E
#   6: B-F  7: D-H  8: E-F  9: E-H  10: F-G  11: H-G
CUBE_EDGES = [
    ("C", "B"), ("C", "D"), ("C", "G"),
    ("A", "B"), ("A", "D"), ("A", "E"),
    ("B", "F"), ("D", "H"), ("E", "F"),
    ("E", "H"), ("F", "G"), ("H", "G"),
]

OBLIQUE_CUBE = {
    "A": (100, 100), "B": (200, 100), "C": (200, 200), "D": (100, 200),
    "E": (150, 50), "F": (250, 50), "G": (250, 150), "H": (150, 150),
}

# Back face shrunk toward a vanishing point at (300, 40)
ONE_POINT_CUBE = {
    "A": (100, 100), "B": (200, 100), "C": (200, 200), "D": (100, 200),
    "E": (180, 76), "F": (240, 76), "G": (240, 136), "H": (180, 136),
}

CANVAS = {"width": 400, "height": 300}


def make_stroke(start, end):
    """Stroke dict sampled exactly on the segment (start, midpoint, end)."""
    mid = ((start[0] + end[0]) / 2, (start[1] + end[1]) / 2)
    return {
        "start": {"x": start[0], "y": start[1]},
        "end": {"x": end[0], "y": end[1]},
        "points": [
            {"x": start[0], "y": start[1]},
            {"x": mid[0], "y": mid[1]},
            {"x": end[0], "y": end[1]},
        ],
    }


def make_cube_sketch(vertices, canvas=None):
    """Sketch dict for a twelve-stroke cube in CUBE_EDGES order."""
    return {
        "lineHistory": [make_stroke(vertices[a], vertices[b]) for a, b in CUBE_EDGES],
        "canvasSize": dict(canvas or CANVAS),
    }
