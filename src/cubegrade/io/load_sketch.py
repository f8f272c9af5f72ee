"""
Sketch loading utilities for the cube sketch grader.

Reads the JSON export of the drawing surface. Besides lineHistory and
canvasSize, an export may carry an origin: the canvas position of the
capture surface's top-left corner, translated away on load.
"""

import json
import os

from cubegrade.geometry.primitives import translate_point, translation_between
from cubegrade.models import Point, Sketch, Stroke
from cubegrade.tracer import get_tracer, trace


@trace(label="load_sketch")
def load_sketch(path):
    """
    Load a sketch export from disk.

    Raises FileNotFoundError if path does not exist.
    Raises ValueError if the file is not a valid sketch.
    """
    tracer = get_tracer()

    if not os.path.exists(path):
        raise FileNotFoundError(f"Sketch not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Sketch is not valid JSON: {path}: {e}") from e

    sketch = sketch_from_dict(data)
    tracer.event(f"Loaded sketch: {len(sketch.line_history)} strokes", canvas=sketch.canvas_size)

    return sketch


def sketch_from_dict(data):
    """
    Validate an exported sketch mapping and normalise its origin.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Sketch export must be an object, got {type(data).__name__}")

    origin = data.get("origin")
    sketch = Sketch.model_validate({k: v for k, v in data.items() if k != "origin"})

    if origin is None:
        return sketch

    offset = translation_between(Point.model_validate(origin), Point(x=0.0, y=0.0))
    return translate_sketch(sketch, offset)


def translate_sketch(sketch, offset):
    """Move every stroke of a sketch by offset."""
    strokes = [
        Stroke(
            start=translate_point(stroke.start, offset),
            end=translate_point(stroke.end, offset),
            points=[translate_point(p, offset) for p in stroke.points],
        )
        for stroke in sketch.line_history
    ]
    return Sketch(line_history=strokes, canvas_size=sketch.canvas_size)
