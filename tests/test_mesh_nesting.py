"""Tests for mesh_nesting module."""
import io

import pytest

from mesh_components import ManifoldComponents
from mesh_model import Mesh
from mesh_nesting import (
    NestingEntry,
    TriangleSearch,
    bb_test_setup,
    extremal_vertex,
    verify_nesting,
)


class TestBoundingBoxSetup:

    def test_nested_boxes(self, make_cube):
        outer = make_cube((0, 0, 0), (3, 3, 3))
        inner = make_cube((1, 1, 1), (2, 2, 2))
        assert bb_test_setup([outer, inner]) == [NestingEntry(1, 0)]

    def test_disjoint_boxes(self, make_cube):
        a = make_cube((0, 0, 0), (1, 1, 1))
        b = make_cube((3, 0, 0), (4, 1, 1))
        assert bb_test_setup([a, b]) == []

    def test_overlapping_boxes_are_not_nested(self, make_cube):
        a = make_cube((0, 0, 0), (2, 2, 2))
        b = make_cube((1, 1, 1), (3, 3, 3))
        assert bb_test_setup([a, b]) == []

    def test_shared_face_plane_is_not_nested(self, make_cube):
        # inner touches the outer box's min_x plane, so one of outer's
        # extents lies within inner's range
        outer = make_cube((0, 0, 0), (3, 3, 3))
        inner = make_cube((0, 1, 1), (1, 2, 2))
        assert bb_test_setup([outer, inner]) == []

    def test_three_levels(self, make_cube):
        boxes = [make_cube((0, 0, 0), (5, 5, 5)),
                 make_cube((1, 1, 1), (4, 4, 4)),
                 make_cube((2, 2, 2), (3, 3, 3))]
        assert sorted(bb_test_setup(boxes)) == [(1, 0), (2, 0), (2, 1)]


class TestExtremalVertex:

    def test_max_x(self, cube):
        index, corner, v = extremal_vertex(cube)
        assert v[0] == 1.0
        assert cube[index].vertices[corner] == v

    def test_first_triangle_lowest_corner(self):
        mesh = Mesh()
        mesh.add_triangle((0, 0, 0), (1, 0, 0), (1, 1, 0))
        mesh.add_triangle((1, 0, 0), (0, 0, 1), (1, 0, 1))
        assert extremal_vertex(mesh) == (0, 1, (1.0, 0.0, 0.0))

    def test_empty(self):
        with pytest.raises(ValueError):
            extremal_vertex(Mesh())


class TestTriangleSearch:

    def test_keeps_closest(self, make_cube):
        search = TriangleSearch((2.5, 0.5, 0.5))
        box = make_cube((0, 0, 0), (3, 1, 1))
        for t in box:
            search.consider(t, 0)
        assert search.distance_sq == pytest.approx(0.25)
        assert search.component == 0
        assert search.dsign is False

    def test_empty_search(self):
        search = TriangleSearch((0, 0, 0))
        assert search.triangle is None


class TestVerifyNesting:
    """Orientation of nested components."""

    def test_single_cube(self, cube):
        assert verify_nesting([cube])

    def test_inside_out_cube(self, make_cube):
        out = io.StringIO()
        assert not verify_nesting([make_cube(inward=True)], out=out)
        assert out.getvalue() == "Component 0 is inside out\n"

    def test_cavity(self, cavity):
        comps = ManifoldComponents(cavity)
        out = io.StringIO()
        assert verify_nesting(comps.components, out=out)
        assert out.getvalue() == ""

    def test_flipped_cavity(self, flipped_cavity):
        comps = ManifoldComponents(flipped_cavity)
        out = io.StringIO()
        assert not verify_nesting(comps.components, out=out)
        assert out.getvalue() == "Component 1 is inside out\n"

    def test_island_inside_cavity(self, make_cube):
        # solid / hollow / solid, all correctly oriented
        mesh = make_cube((0, 0, 0), (5, 5, 5))
        mesh.extend(make_cube((1, 1, 1), (4, 4, 4), inward=True))
        mesh.extend(make_cube((2, 2, 2), (3, 3, 3)))
        comps = ManifoldComponents(mesh)
        assert len(comps) == 3
        assert verify_nesting(comps.components)

    def test_side_by_side(self, two_cubes):
        assert verify_nesting(ManifoldComponents(two_cubes).components)

    def test_accumulates_failures(self, make_cube):
        comps = [make_cube(inward=True), make_cube((3, 0, 0), (4, 1, 1), inward=True)]
        out = io.StringIO()
        assert not verify_nesting(comps, out=out)
        assert out.getvalue().splitlines() == [
            "Component 0 is inside out", "Component 1 is inside out"]

    def test_stop_at_first(self, make_cube):
        comps = [make_cube(inward=True), make_cube((3, 0, 0), (4, 1, 1), inward=True)]
        out = io.StringIO()
        assert not verify_nesting(comps, out=out, stop_at_first=True)
        assert out.getvalue().splitlines() == ["Component 0 is inside out"]

    def test_no_output_stream(self, make_cube):
        assert not verify_nesting([make_cube(inward=True)])

    def test_empty(self):
        assert verify_nesting([])
