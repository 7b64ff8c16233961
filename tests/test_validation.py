"""Tests for the shape lint rules."""

import pytest

from reassembly_shapes.shapes.model import Port, Scale, Shape, ShapesFile, Vertex
from reassembly_shapes.shapes.validation import (
    Diagnostic,
    LintRule,
    Severity,
    Validator,
    is_convex,
)


def _triangle(*ports: Port) -> Scale:
    return Scale(verts=[Vertex(0.0, 0.0), Vertex(10.0, 0.0), Vertex(0.0, 10.0)], ports=list(ports))


def _shape(shape_id: int = 500, **kwargs) -> Shape:
    kwargs.setdefault("scales", [_triangle(Port(0, 0.5))])
    return Shape(id=shape_id, **kwargs)


def _rules(diags: list[Diagnostic]) -> set[str]:
    return {d.rule for d in diags}


# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------

def test_valid_file_has_no_diagnostics():
    shapes_file = ShapesFile(shapes=[_shape(100), _shape(10000, mirror_of=100)])
    assert Validator().validate(shapes_file) == []


def test_id_out_of_range():
    diags = Validator().validate(ShapesFile(shapes=[_shape(99), _shape(10001)]))
    range_diags = [d for d in diags if d.rule == "id_range"]
    assert [d.shape_id for d in range_diags] == [99, 10001]
    assert all(d.severity == Severity.WARNING for d in range_diags)


def test_duplicate_ids():
    diags = Validator().validate(ShapesFile(shapes=[_shape(500), _shape(500), _shape(501)]))
    dupes = [d for d in diags if d.rule == "unique_id"]
    assert len(dupes) == 1
    assert dupes[0].shape_id == 500
    assert dupes[0].severity == Severity.ERROR


def test_shape_without_scales():
    diags = Validator().validate(ShapesFile(shapes=[_shape(scales=[])]))
    assert _rules(diags) == {"scales"}


def test_degenerate_polygon():
    scale = Scale(verts=[Vertex(0.0, 0.0), Vertex(1.0, 0.0)])
    diags = Validator().validate(ShapesFile(shapes=[_shape(scales=[scale])]))
    assert _rules(diags) == {"polygon"}
    assert diags[0].scale_index == 0


def test_concave_polygon():
    dart = Scale(verts=[Vertex(0.0, 0.0), Vertex(10.0, 5.0), Vertex(0.0, 10.0), Vertex(3.0, 5.0)])
    assert not is_convex(dart)
    diags = Validator().validate(ShapesFile(shapes=[_shape(scales=[dart])]))
    assert _rules(diags) == {"convex"}


def test_collinear_vertices_are_convex():
    scale = Scale(verts=[Vertex(0.0, 0.0), Vertex(5.0, 0.0), Vertex(10.0, 0.0), Vertex(0.0, 10.0)])
    assert is_convex(scale)


def test_port_on_missing_edge():
    diags = Validator().validate(ShapesFile(shapes=[_shape(scales=[_triangle(Port(3, 0.5))])]))
    assert _rules(diags) == {"port_edge"}


def test_port_position_outside_edge():
    diags = Validator().validate(ShapesFile(shapes=[_shape(scales=[_triangle(Port(1, 1.5))])]))
    assert _rules(diags) == {"port_position"}


def test_mirror_of_unknown_shape():
    diags = Validator().validate(ShapesFile(shapes=[_shape(mirror_of=999)]))
    assert _rules(diags) == {"mirror_of"}


# ---------------------------------------------------------------------------
# Validator API
# ---------------------------------------------------------------------------

class _NoNamesRule(LintRule):
    name = "named"
    severity = Severity.INFO

    def apply(self, shapes_file):
        return [self._diag("Shape has no name", s.id) for s in shapes_file.shapes if s.name is None]


def test_extra_rules():
    diags = Validator().validate(ShapesFile(shapes=[_shape()]), extra_rules=[_NoNamesRule()])
    assert [(d.rule, d.severity) for d in diags] == [("named", Severity.INFO)]


def test_validate_or_raise():
    with pytest.raises(ValueError, match="Validation failed"):
        Validator().validate_or_raise(ShapesFile(shapes=[_shape(500), _shape(500)]))
    warnings = Validator().validate_or_raise(ShapesFile(shapes=[_shape(50)]))
    assert _rules(warnings) == {"id_range"}
