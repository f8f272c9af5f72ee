"""Integration tests for the full grading pipeline."""

import pytest

from helpers import OBLIQUE_CUBE, make_cube_sketch, make_stroke


class TestAnalyse:
    """End-to-end grading."""

    def test_exact_cube_scores_full_marks(self, exact_cube_sketch):
        from cubegrade.pipeline import analyse

        result = analyse(exact_cube_sketch)

        assert len(result.analysed_lines) == 12
        assert result.group_count == 3
        assert result.overall_perspective_score == pytest.approx(100.0)
        assert result.average_corner_distance == 0
        assert result.average_line_deviation == pytest.approx(0.0)

    def test_analysed_lines_keep_anchors_and_reach_border(self, exact_cube_sketch):
        from cubegrade.pipeline import analyse

        result = analyse(exact_cube_sketch)
        width = exact_cube_sketch.canvas_size.width
        height = exact_cube_sketch.canvas_size.height

        for stroke, line in zip(exact_cube_sketch.line_history, result.analysed_lines):
            assert line.box_start == stroke.start
            assert line.box_end == stroke.end
            for point in (line.start, line.end):
                assert point.x in (0, width) or point.y in (0, height)

    def test_vertical_lines_have_no_gradient(self, exact_cube_sketch):
        from cubegrade.pipeline import analyse

        line = analyse(exact_cube_sketch).analysed_lines[0]  # C-B

        assert line.gradient is None
        assert line.y_intercept is None
        assert line.equation.kind == "vertical"

    def test_groups_written_to_lines(self, exact_cube_sketch):
        from cubegrade.pipeline import analyse

        result = analyse(exact_cube_sketch)

        assert [line.group_idx for line in result.analysed_lines] == [0, 1, 2, 1, 0, 2, 2, 2, 1, 0, 0, 1]

    def test_accepts_plain_mapping(self):
        from cubegrade.pipeline import analyse

        result = analyse(make_cube_sketch(OBLIQUE_CUBE))

        assert result.overall_perspective_score == pytest.approx(100.0)

    def test_corner_distance_matrix_returned(self, exact_cube_sketch):
        from cubegrade.corners.distance_matrix import build_corner_distance_matrix
        from cubegrade.pipeline import analyse

        result = analyse(exact_cube_sketch)

        assert result.corner_distance_matrix == build_corner_distance_matrix(exact_cube_sketch.line_history)

    def test_one_point_perspective_depth_edges_converge(self, one_point_cube_sketch):
        from cubegrade.config import GraderConfig
        from cubegrade.pipeline import analyse_with_diagnostics

        config = GraderConfig()
        config.scoring.average_range_formula = "corrected"
        result, diagnostics = analyse_with_diagnostics(one_point_cube_sketch, config=config)

        depth = diagnostics.perspective_scores[2]
        assert sorted(depth.line_indices) == [2, 5, 6, 7]
        assert depth.closeness.has_parallel_lines is False
        assert depth.closeness.min_distance == pytest.approx(69.9714227381436)
        assert depth.score == pytest.approx(100.0, abs=1e-6)
        assert result.overall_perspective_score == pytest.approx(100.0, abs=1e-6)

    def test_legacy_formula_penalises_consistent_convergence(self, one_point_cube_sketch):
        from cubegrade.pipeline import analyse_with_diagnostics

        _, diagnostics = analyse_with_diagnostics(one_point_cube_sketch)

        depth = diagnostics.perspective_scores[2]
        assert 80 < depth.score < 100

    def test_shifted_vertex_lowers_score(self):
        from cubegrade.pipeline import analyse

        result = analyse(make_cube_sketch(dict(OBLIQUE_CUBE, H=(153, 150))))

        assert result.group_count == 3
        assert 95 < result.overall_perspective_score < 100

    def test_wobbly_stroke_raises_deviation(self):
        from cubegrade.pipeline import analyse

        data = make_cube_sketch(OBLIQUE_CUBE)
        stroke = make_stroke(OBLIQUE_CUBE["C"], OBLIQUE_CUBE["D"])
        stroke["points"][1] = {"x": 150, "y": 206}
        data["lineHistory"][1] = stroke

        result = analyse(data)

        assert result.analysed_lines[1].average_deviation == pytest.approx(2.0)
        assert result.average_line_deviation == pytest.approx(2.0 / 12)

    def test_unclosed_sketch_raises(self, unclosed_cube_sketch):
        from cubegrade.corners.matching import CornersNotCloseEnoughError
        from cubegrade.pipeline import analyse

        with pytest.raises(CornersNotCloseEnoughError):
            analyse(unclosed_cube_sketch)

    def test_too_few_strokes_rejected(self):
        from pydantic import ValidationError
        from cubegrade.pipeline import analyse

        data = make_cube_sketch(OBLIQUE_CUBE)
        data["lineHistory"] = data["lineHistory"][:2]

        with pytest.raises(ValidationError):
            analyse(data)

    def test_invalid_config_rejected(self, exact_cube_sketch):
        from cubegrade.config import GraderConfig
        from cubegrade.pipeline import analyse

        config = GraderConfig()
        config.scoring.average_range_formula = "guess"

        with pytest.raises(ValueError):
            analyse(exact_cube_sketch, config=config)

    def test_crowded_cube_still_grades(self, crowded_cube_sketch):
        from cubegrade.pipeline import analyse_with_diagnostics

        result, diagnostics = analyse_with_diagnostics(crowded_cube_sketch)

        assert diagnostics.second_pass_corners == [1, 7, 12, 15, 19, 22]
        assert 0 <= result.overall_perspective_score <= 100
        assert all(line.group_idx is not None for line in result.analysed_lines)


class TestDiagnostics:
    """Tests for the diagnostics channel."""

    def test_line_details_cover_every_stroke(self, exact_cube_sketch):
        from cubegrade.pipeline import analyse_with_diagnostics

        result, diagnostics = analyse_with_diagnostics(exact_cube_sketch)

        assert [d.line_idx for d in diagnostics.line_details] == list(range(12))
        first = diagnostics.line_details[0]
        assert first.connections == [1, 2, 3, 6]
        assert first.corner_average_distances == [0.0, 0.0]
        assert first.group_idx == result.analysed_lines[0].group_idx

    def test_perspective_scores_per_group(self, exact_cube_sketch):
        from cubegrade.pipeline import analyse_with_diagnostics

        _, diagnostics = analyse_with_diagnostics(exact_cube_sketch)

        assert [g.group_idx for g in diagnostics.perspective_scores] == [0, 1, 2]
        assert all(g.closeness.has_parallel_lines for g in diagnostics.perspective_scores)

    def test_corner_connections_exposed(self, exact_cube_sketch):
        from cubegrade.pipeline import analyse_with_diagnostics

        _, diagnostics = analyse_with_diagnostics(exact_cube_sketch)

        assert diagnostics.corner_connections[0] == [2, 4]
        assert diagnostics.second_pass_corners == []


class TestDeterminism:
    """Grading the same input twice gives the same output."""

    def test_idempotent(self, exact_cube_sketch):
        from cubegrade.pipeline import analyse_with_diagnostics

        first = analyse_with_diagnostics(exact_cube_sketch)
        second = analyse_with_diagnostics(exact_cube_sketch)

        assert first[0].model_dump() == second[0].model_dump()
        assert first[1].model_dump() == second[1].model_dump()

    def test_idempotent_with_disambiguation(self, crowded_cube_sketch):
        from cubegrade.pipeline import analyse

        assert analyse(crowded_cube_sketch) == analyse(crowded_cube_sketch)
