"""
Shared test fixtures for the mesh topology checks.
"""
import pytest

from mesh_model import Mesh


def add_cube(mesh, lo, hi, inward=False, patches=False, tag=None):
    """Append an axis-aligned box, two triangles (or one patch) per face.

    Faces are wound so normals point out of the box, or into it when
    inward is set.
    """
    x0, y0, z0 = lo
    x1, y1, z1 = hi
    quads = [
        [(x0, y0, z0), (x0, y1, z0), (x1, y1, z0), (x1, y0, z0)],  # -z
        [(x0, y0, z1), (x1, y0, z1), (x1, y1, z1), (x0, y1, z1)],  # +z
        [(x0, y0, z0), (x1, y0, z0), (x1, y0, z1), (x0, y0, z1)],  # -y
        [(x0, y1, z0), (x0, y1, z1), (x1, y1, z1), (x1, y1, z0)],  # +y
        [(x0, y0, z0), (x0, y0, z1), (x0, y1, z1), (x0, y1, z0)],  # -x
        [(x1, y0, z0), (x1, y1, z0), (x1, y1, z1), (x1, y0, z1)],  # +x
    ]
    for q in quads:
        if inward:
            q = q[::-1]
        if patches:
            mesh.add_triangle(q[0], q[1], q[2], q[3], tag=tag)
        else:
            mesh.add_triangle(q[0], q[1], q[2], tag=tag)
            mesh.add_triangle(q[0], q[2], q[3], tag=tag)
    return mesh


@pytest.fixture
def make_cube():
    """Factory building a fresh mesh holding one box."""
    def _make(lo=(0, 0, 0), hi=(1, 1, 1), **kwargs):
        return add_cube(Mesh(), lo, hi, **kwargs)
    return _make


@pytest.fixture
def cube():
    """Unit cube, outward normals, 12 triangles."""
    return add_cube(Mesh(), (0, 0, 0), (1, 1, 1))


@pytest.fixture
def patch_cube():
    """Unit cube made of 6 four-corner patches."""
    return add_cube(Mesh(), (0, 0, 0), (1, 1, 1), patches=True)


@pytest.fixture
def two_cubes():
    """Two disjoint unit cubes side by side."""
    mesh = add_cube(Mesh(), (0, 0, 0), (1, 1, 1))
    return add_cube(mesh, (3, 0, 0), (4, 1, 1))


@pytest.fixture
def cavity():
    """Box [0,3]^3 with an inward-facing box [1,2]^3 inside it (a hollow)."""
    mesh = add_cube(Mesh(), (0, 0, 0), (3, 3, 3))
    return add_cube(mesh, (1, 1, 1), (2, 2, 2), inward=True)


@pytest.fixture
def flipped_cavity():
    """Same as cavity but the inner box faces outward."""
    mesh = add_cube(Mesh(), (0, 0, 0), (3, 3, 3))
    return add_cube(mesh, (1, 1, 1), (2, 2, 2))


@pytest.fixture
def edge_touching_cubes():
    """Two cubes sharing only the edge x=1, y=1, 0<=z<=1."""
    mesh = add_cube(Mesh(), (0, 0, 0), (1, 1, 1))
    return add_cube(mesh, (1, 1, 0), (2, 2, 1))


@pytest.fixture
def book():
    """Three triangles hinged on the edge (0,0,0)-(1,0,0)."""
    mesh = Mesh()
    p, q = (0, 0, 0), (1, 0, 0)
    mesh.add_triangle(p, q, (0.5, 1, 0), entry_number=0)
    mesh.add_triangle(q, p, (0.5, 0, 1), entry_number=1)
    mesh.add_triangle(p, q, (0.5, -1, 0), entry_number=2)
    return mesh
