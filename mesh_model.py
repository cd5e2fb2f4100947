"""
Triangle Soup Mesh Model

Internal representation of an unordered collection of oriented triangles.

  - Triangle: three corners (v1, v2, v3) whose winding gives the outward
    normal by the right-hand rule, or four corners for a bicubic patch
    outline (v4 closes the loop v1->v2->v3->v4).
  - Mesh: an ordered list of triangles with a derived bounding box and
    signed volume.

Triangles are immutable; a Mesh may be appended to until it is handed to
a verifier.
"""

import numpy as np
from typing import Any, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from mesh_predicates import unit_normal


Vertex = Tuple[float, float, float]
EdgeKey = Tuple[Vertex, Vertex]


def as_vertex(point) -> Vertex:
    """Convert a 3-sequence to a tuple of Python floats"""
    if len(point) != 3:
        raise ValueError(f"Vertex needs 3 coordinates, got {len(point)}")
    return (float(point[0]), float(point[1]), float(point[2]))


class Triangle:
    """
    An oriented triangle, or a four-corner patch.

    Attributes:
        v1, v2, v3: corners in winding order
        v4: fourth corner for a patch, otherwise None
        color: optional color, carried through untouched
        tag: optional provenance object (string, stack summary, ...)
        entry_number: sequence number assigned by the producer, -1 if unset
    """

    __slots__ = ('_v1', '_v2', '_v3', '_v4', '_color', '_tag',
                 '_entry_number', '_normal')

    def __init__(self, v1, v2, v3, v4=None, color=None, tag=None,
                 entry_number: int = -1):
        self._v1 = as_vertex(v1)
        self._v2 = as_vertex(v2)
        self._v3 = as_vertex(v3)
        self._v4 = None if v4 is None else as_vertex(v4)
        self._color = color
        self._tag = tag
        self._entry_number = int(entry_number)
        self._normal = None

    v1 = property(lambda self: self._v1)
    v2 = property(lambda self: self._v2)
    v3 = property(lambda self: self._v3)
    v4 = property(lambda self: self._v4)
    color = property(lambda self: self._color)
    tag = property(lambda self: self._tag)
    entry_number = property(lambda self: self._entry_number)

    @property
    def is_patch(self) -> bool:
        return self._v4 is not None

    @property
    def vertices(self) -> Tuple[Vertex, ...]:
        if self._v4 is None:
            return (self._v1, self._v2, self._v3)
        return (self._v1, self._v2, self._v3, self._v4)

    @property
    def normal(self) -> np.ndarray:
        """Unit normal of (v1, v2, v3); zero vector if degenerate"""
        if self._normal is None:
            self._normal = unit_normal(self._v1, self._v2, self._v3)
        return self._normal

    def edge_keys(self, forward: bool = True) -> List[EdgeKey]:
        """
        Directed boundary edges, in order (edge 1 is v1->v2).

        Args:
            forward: traverse the boundary in winding order; if False each
                edge is returned end-to-start
        """
        corners = self.vertices
        n = len(corners)
        keys = []
        for i in range(n):
            a, b = corners[i], corners[(i + 1) % n]
            keys.append((a, b) if forward else (b, a))
        return keys

    def split(self) -> List['Triangle']:
        """Return the triangle itself, or a patch as two triangles"""
        if self._v4 is None:
            return [self]
        return [
            Triangle(self._v1, self._v2, self._v3, color=self._color,
                     tag=self._tag, entry_number=self._entry_number),
            Triangle(self._v1, self._v3, self._v4, color=self._color,
                     tag=self._tag, entry_number=self._entry_number),
        ]

    def __repr__(self):
        kind = 'Patch' if self.is_patch else 'Triangle'
        corners = ', '.join(str(v) for v in self.vertices)
        return f"{kind}({corners})"


class BoundingBox(NamedTuple):
    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float


class Mesh:
    """
    Ordered triangle soup.

    Vertices are stored per triangle; no shared index is required, two
    triangles are adjacent when they have an edge with equal endpoints.
    """

    def __init__(self, triangles: Optional[Iterable[Triangle]] = None):
        self.triangles: List[Triangle] = []
        if triangles is not None:
            self.extend(triangles)

    def append(self, triangle: Triangle):
        if not isinstance(triangle, Triangle):
            raise TypeError(f"Expected Triangle, got {type(triangle).__name__}")
        self.triangles.append(triangle)

    def extend(self, triangles: Iterable[Triangle]):
        for triangle in triangles:
            self.append(triangle)

    def add_triangle(self, v1, v2, v3, v4=None, color=None, tag=None,
                     entry_number: int = -1) -> Triangle:
        """Create a triangle (or patch when v4 is given) and append it"""
        triangle = Triangle(v1, v2, v3, v4, color=color, tag=tag,
                            entry_number=entry_number)
        self.triangles.append(triangle)
        return triangle

    def __len__(self):
        return len(self.triangles)

    def __iter__(self) -> Iterator[Triangle]:
        return iter(self.triangles)

    def __getitem__(self, index) -> Triangle:
        return self.triangles[index]

    def info(self) -> str:
        """Return mesh statistics as a string"""
        n_patches = sum(1 for t in self.triangles if t.is_patch)
        return (f"Triangles: {len(self.triangles) - n_patches}, "
                f"Patches: {n_patches}")

    def corners(self) -> np.ndarray:
        """Nx3 array with every corner of every triangle/patch"""
        points = [v for t in self.triangles for v in t.vertices]
        if not points:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array(points, dtype=np.float64)

    def all_triangles(self) -> np.ndarray:
        """Return all faces as an Mx3x3 array (patches split into 2 triangles each)"""
        tris = [part.vertices for t in self.triangles for part in t.split()]
        if not tris:
            return np.zeros((0, 3, 3), dtype=np.float64)
        return np.array(tris, dtype=np.float64)

    def bounding_box(self) -> BoundingBox:
        """Axis-aligned bounding box; all zeros for an empty mesh"""
        points = self.corners()
        if len(points) == 0:
            return BoundingBox(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        lo = points.min(axis=0)
        hi = points.max(axis=0)
        return BoundingBox(float(lo[0]), float(lo[1]), float(lo[2]),
                           float(hi[0]), float(hi[1]), float(hi[2]))

    min_x = property(lambda self: self.bounding_box().min_x)
    min_y = property(lambda self: self.bounding_box().min_y)
    min_z = property(lambda self: self.bounding_box().min_z)
    max_x = property(lambda self: self.bounding_box().max_x)
    max_y = property(lambda self: self.bounding_box().max_y)
    max_z = property(lambda self: self.bounding_box().max_z)

    def volume(self) -> float:
        """
        Signed volume enclosed by the surface.

        Sum of the signed volumes of the tetrahedra formed by each triangle
        and the origin. Positive when the normals face outward.
        """
        tris = self.all_triangles()
        if len(tris) == 0:
            return 0.0
        a, b, c = tris[:, 0], tris[:, 1], tris[:, 2]
        return float(np.einsum('ij,ij->i', a, np.cross(b, c)).sum() / 6.0)

    def area(self) -> float:
        tris = self.all_triangles()
        if len(tris) == 0:
            return 0.0
        cp = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
        return float(np.linalg.norm(cp, axis=1).sum() / 2.0)

    def vertex_count(self) -> int:
        """Number of distinct corner points"""
        points = self.corners()
        if len(points) == 0:
            return 0
        return len(np.unique(points, axis=0))

    def tessellate(self) -> 'Mesh':
        """Return a new mesh where every patch is replaced by triangles"""
        return Mesh(part for t in self.triangles for part in t.split())

    @classmethod
    def from_arrays(cls, vertices: np.ndarray, triangles: np.ndarray,
                    quads: Optional[np.ndarray] = None, tag: Any = None) -> 'Mesh':
        """
        Build a triangle soup from indexed connectivity.

        Args:
            vertices: Nx3 array of vertex coordinates
            triangles: Mx3 array of triangle connectivity (0-based)
            quads: Kx4 array of quad connectivity, turned into patches
            tag: provenance prefix; face n is tagged "<tag>:facet <n>"

        Faces are numbered in order, triangles first, and the number is
        also their entry_number.
        """
        vertices = np.asarray(vertices, dtype=np.float64)
        faces = list(np.asarray(triangles, dtype=np.int64).reshape(-1, 3))
        if quads is not None:
            faces.extend(np.asarray(quads, dtype=np.int64).reshape(-1, 4))

        mesh = cls()
        for entry, face in enumerate(faces):
            corners = [vertices[i] for i in face]
            mesh.add_triangle(*corners,
                              tag=None if tag is None else f"{tag}:facet {entry}",
                              entry_number=entry)
        return mesh
