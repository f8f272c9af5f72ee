"""
Pydantic data models for the cube sketch grader.

Input strokes, derived line geometry, and the analysis result all flow
through these validated models. Every model is derived per analysis call;
nothing here holds state across calls.
"""

from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class Point(BaseModel):
    """A position in canvas pixel coordinates."""
    x: float
    y: float

    model_config = ConfigDict(extra="forbid", frozen=True)


class Stroke(BaseModel):
    """One user-drawn line: two anchor endpoints plus the sampled trace."""
    start: Point
    end: Point
    points: List[Point] = Field(..., min_length=1)

    model_config = ConfigDict(extra="ignore", frozen=True)


class CanvasSize(BaseModel):
    """Dimensions of the drawing surface."""
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


class Sketch(BaseModel):
    """
    A complete cube drawing as handed over by the capture surface.

    Stroke order matters: strokes 0, 1 and 2 are the edges meeting at the
    corner nearest the viewer.
    """
    line_history: List[Stroke] = Field(..., min_length=3, alias="lineHistory")
    canvas_size: CanvasSize = Field(..., alias="canvasSize")

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class SlopedLine(BaseModel):
    """Line of the form y = gradient * x + y_intercept."""
    kind: Literal["sloped"] = "sloped"
    gradient: float
    y_intercept: float

    model_config = ConfigDict(extra="forbid", frozen=True)


class VerticalLine(BaseModel):
    """Line of the form x = constant."""
    kind: Literal["vertical"] = "vertical"
    x: float

    model_config = ConfigDict(extra="forbid", frozen=True)


LineEquation = Annotated[Union[SlopedLine, VerticalLine], Field(discriminator="kind")]


class AnalysedLine(BaseModel):
    """A stroke after geometric analysis."""
    start: Point  # guideline end on the canvas border
    end: Point  # guideline end on the canvas border
    box_start: Point  # original stroke anchor
    box_end: Point  # original stroke anchor
    equation: LineEquation
    average_deviation: float = 0.0
    group_idx: Optional[int] = None

    model_config = ConfigDict(extra="forbid")

    @property
    def gradient(self):
        """Gradient of the line, or None when vertical."""
        if isinstance(self.equation, VerticalLine):
            return None
        return self.equation.gradient

    @property
    def y_intercept(self):
        """Y intercept of the line, or None when vertical."""
        if isinstance(self.equation, VerticalLine):
            return None
        return self.equation.y_intercept


class ClosenessDetails(BaseModel):
    """How tightly the lines of one parallel group meet or stay parallel."""
    has_parallel_lines: bool = False
    min_distance: Optional[float] = None
    max_distance: Optional[float] = None
    average_distance: Optional[float] = None
    average_range: Optional[float] = None
    angle_diff_degrees: float = 0.0
    line_angles: List[Tuple[float, float]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class GroupScore(BaseModel):
    """Perspective score for a single parallel group."""
    group_idx: int
    line_indices: List[int] = Field(default_factory=list)
    closeness: ClosenessDetails
    score: float = Field(..., ge=0.0, le=100.0)

    model_config = ConfigDict(extra="forbid")


class LineDiagnostics(BaseModel):
    """Intermediate per-stroke values kept for debugging."""
    line_idx: int
    equation: LineEquation
    average_deviation: float = 0.0
    corner_average_distances: List[Optional[float]] = Field(default_factory=list)
    connections: List[int] = Field(default_factory=list)
    group_idx: Optional[int] = None

    model_config = ConfigDict(extra="forbid")


class Diagnostics(BaseModel):
    """Trace of the intermediate pipeline state for one analysis."""
    line_details: List[LineDiagnostics] = Field(default_factory=list)
    perspective_scores: List[GroupScore] = Field(default_factory=list)
    corner_connections: Dict[int, List[int]] = Field(default_factory=dict)
    second_pass_corners: List[int] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class AnalysisResult(BaseModel):
    """Final grade for a sketch."""
    analysed_lines: List[AnalysedLine] = Field(default_factory=list)
    corner_distance_matrix: List[List[float]] = Field(default_factory=list)
    average_corner_distance: float = 0.0
    average_line_deviation: float = 0.0
    overall_perspective_score: float = 0.0

    model_config = ConfigDict(extra="forbid")

    @property
    def group_count(self):
        """Number of distinct parallel groups found."""
        return len({line.group_idx for line in self.analysed_lines})


# Corner id helpers. A corner is one endpoint of one stroke:
# corner_idx = line_idx * 2 + endpoint_idx, endpoint 0 = start, 1 = end.

ENDPOINT_NAMES = ("start", "end")


def corner_to_line(corner_idx):
    """Index of the stroke owning a corner."""
    return corner_idx // 2


def opposite_corner(corner_idx):
    """The other endpoint of the same stroke."""
    return corner_idx ^ 1


def corner_position(strokes, corner_idx):
    """Canvas position of a corner."""
    stroke = strokes[corner_to_line(corner_idx)]
    return getattr(stroke, ENDPOINT_NAMES[corner_idx % 2])
