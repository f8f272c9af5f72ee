"""
Main pipeline orchestrator for the cube sketch grader.

Runs the grading stages in order over one sketch:
geometry -> corner distance matrix -> corner matching -> parallel groups
-> perspective scoring, and assembles the result.
"""

from cubegrade.config import GraderConfig, validate_config
from cubegrade.corners.distance_matrix import extend_corner_distance_matrix
from cubegrade.corners.matching import MAX_CORNER_DISTANCE, match_corners
from cubegrade.edges.grouping import group_parallel_lines
from cubegrade.geometry.primitives import average_point_deviation, extend_line_to_canvas, line_equation
from cubegrade.models import AnalysedLine, AnalysisResult, Diagnostics, LineDiagnostics, Sketch
from cubegrade.scoring.closeness import score_groups
from cubegrade.tracer import get_tracer, trace


def analyse(sketch, config=None, strategy=None):
    """
    Grade a cube sketch.

    Args:
        sketch: Sketch, or a mapping accepted by Sketch.model_validate
        config: GraderConfig (optional)
        strategy: DisambiguationStrategy for ambiguous corners (optional)

    Returns:
        AnalysisResult

    Raises:
        CornersNotCloseEnoughError: if the sketch edges do not meet
    """
    result, _ = analyse_with_diagnostics(sketch, config=config, strategy=strategy)
    return result


@trace(label="analyse")
def analyse_with_diagnostics(sketch, config=None, strategy=None):
    """
    Grade a cube sketch and keep the intermediate state.

    Returns:
        tuple of (AnalysisResult, Diagnostics)
    """
    tracer = get_tracer()

    if config is None:
        config = GraderConfig()
    validate_config(config)

    if not isinstance(sketch, Sketch):
        sketch = Sketch.model_validate(sketch)

    strokes = sketch.line_history
    tracer.event(f"Grading {len(strokes)} strokes", canvas=sketch.canvas_size)

    analysed_lines = []
    line_details = []
    corner_distance_matrix = []
    total_deviation = 0.0

    # Stage 1: per-stroke geometry and the distance matrix
    with tracer.span("line_geometry", module="pipeline"):
        for line_idx, stroke in enumerate(strokes):
            extend_corner_distance_matrix(corner_distance_matrix, strokes, line_idx)

            equation = line_equation(stroke.start, stroke.end)
            guide_start, guide_end = extend_line_to_canvas(
                stroke.start, stroke.end, equation, sketch.canvas_size
            )
            deviation = average_point_deviation(stroke.points, guide_start, guide_end)
            total_deviation += deviation

            analysed_lines.append(AnalysedLine(
                start=guide_start,
                end=guide_end,
                box_start=stroke.start,
                box_end=stroke.end,
                equation=equation,
                average_deviation=deviation,
            ))
            line_details.append(LineDiagnostics(
                line_idx=line_idx,
                equation=equation,
                average_deviation=deviation,
            ))

    # Stage 2: which strokes meet
    with tracer.span("corner_matching", module="pipeline"):
        match = match_corners(corner_distance_matrix, MAX_CORNER_DISTANCE, strategy=strategy)

        for detail in line_details:
            first_corner = detail.line_idx * 2
            detail.corner_average_distances = [
                match.corner_average_distances.get(first_corner),
                match.corner_average_distances.get(first_corner + 1),
            ]
            detail.connections = list(match.line_connections[detail.line_idx])

    # Stage 3: parallel groups
    with tracer.span("parallel_grouping", module="pipeline"):
        groups, group_of = group_parallel_lines(match.line_connections)

        for line_idx, group_idx in enumerate(group_of):
            analysed_lines[line_idx].group_idx = group_idx
            line_details[line_idx].group_idx = group_idx

    # Stage 4: perspective
    with tracer.span("perspective_scoring", module="pipeline"):
        overall_score, group_scores = score_groups(
            groups, analysed_lines, config.scoring.average_range_formula
        )

    average_corner_distance = (
        match.total_distance / match.matched_count if match.matched_count else 0.0
    )

    result = AnalysisResult(
        analysed_lines=analysed_lines,
        corner_distance_matrix=corner_distance_matrix,
        average_corner_distance=average_corner_distance,
        average_line_deviation=total_deviation / len(analysed_lines),
        overall_perspective_score=overall_score,
    )
    diagnostics = Diagnostics(
        line_details=line_details,
        perspective_scores=group_scores,
        corner_connections=match.corner_connections,
        second_pass_corners=match.second_pass_corners,
    )

    tracer.event(
        f"Grading complete: {len(groups)} groups, score={overall_score:.2f}, "
        f"deviation={result.average_line_deviation:.2f}"
    )

    return result, diagnostics
