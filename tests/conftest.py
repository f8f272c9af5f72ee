"""Pytest fixtures for cube sketch grader tests."""

import json
import os
import tempfile

import pytest

from helpers import OBLIQUE_CUBE, ONE_POINT_CUBE, make_cube_sketch, make_stroke


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def exact_cube_sketch():
    """Noiseless oblique cube: every edge group is parallel on the canvas."""
    from cubegrade.models import Sketch
    return Sketch.model_validate(make_cube_sketch(OBLIQUE_CUBE))


@pytest.fixture
def one_point_cube_sketch():
    """Noiseless one-point perspective cube: depth edges converge."""
    from cubegrade.models import Sketch
    return Sketch.model_validate(make_cube_sketch(ONE_POINT_CUBE))


@pytest.fixture
def crowded_cube_sketch():
    """Cube with vertex H dragged next to vertex B, making both corners ambiguous."""
    from cubegrade.models import Sketch
    vertices = dict(OBLIQUE_CUBE, H=(205, 100))
    return Sketch.model_validate(make_cube_sketch(vertices))


@pytest.fixture
def unclosed_cube_sketch():
    """Cube whose first stroke stops 15px short of vertex B."""
    from cubegrade.models import Sketch
    data = make_cube_sketch(OBLIQUE_CUBE)
    data["lineHistory"][0] = make_stroke(OBLIQUE_CUBE["C"], (200, 115))
    return Sketch.model_validate(data)


@pytest.fixture
def default_config():
    """Create default grader configuration."""
    from cubegrade.config import GraderConfig
    return GraderConfig()


@pytest.fixture
def sketch_file(temp_dir):
    """Exact cube sketch written as a capture export."""
    path = os.path.join(temp_dir, "sketch.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(make_cube_sketch(OBLIQUE_CUBE), f)
    return path
