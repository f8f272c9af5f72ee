"""
Result saving utilities for the cube sketch grader.
"""

import json
import os

from cubegrade.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def save_json(data, path, indent=2):
    """
    Save a dictionary or Pydantic model to JSON.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")


def result_payload(result, diagnostics=None):
    """
    JSON-ready dict of an analysis, with diagnostics when given.
    """
    payload = result.model_dump(mode="json")
    if diagnostics is not None:
        payload["diagnostics"] = diagnostics.model_dump(mode="json")
    return payload
