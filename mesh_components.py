"""
Manifold Components

Splits a triangle soup into its connected components.

Two triangles are connected when one traverses an edge p -> q and the
other traverses q -> p. The builder indexes every directed edge, then
flood-fills from the smallest remaining edge until every triangle has
been assigned to a component.

In strict mode a directed edge claimed twice raises DuplicateEdgeError.
In lenient mode all claimants are kept as candidates and every one of
them joins the component of the triangle that reaches the edge first.
"""

import logging
from collections import deque
from typing import Dict, Iterator, List, Optional, TextIO

from mesh_errors import (DuplicateEdgeError, SelfReferenceError, TriangleRef,
                         error_msg, format_triangles)
from mesh_model import EdgeKey, Mesh
from mesh_nesting import verify_nesting

logger = logging.getLogger(__name__)


class ManifoldComponents:
    """
    Connected components of a mesh.

    Args:
        mesh: triangle soup to split
        strict: reject directed edges claimed by more than one triangle
        tessellate: replace patches by triangles before splitting

    Raises:
        DuplicateEdgeError: strict mode and two triangles share a directed edge
        SelfReferenceError: a triangle is its own neighbor across an edge
    """

    def __init__(self, mesh: Mesh, strict: bool = True, tessellate: bool = False):
        self.strict = strict
        if tessellate:
            mesh = mesh.tessellate()
        owners = self._index_edges(mesh)
        self.components: List[Mesh] = self._extract(mesh, owners)
        logger.debug("%d triangles -> %d component(s) (strict=%s)",
                     len(mesh), len(self.components), strict)

    def __len__(self):
        return len(self.components)

    def __iter__(self) -> Iterator[Mesh]:
        return iter(self.components)

    def __getitem__(self, index: int) -> Mesh:
        try:
            return self.components[index]
        except IndexError as e:
            raise ValueError("index") from e

    def verify_nesting(self, out: Optional[TextIO] = None,
                       stop_at_first: bool = False) -> bool:
        """Check that nested components are consistently oriented"""
        return verify_nesting(self.components, out=out, stop_at_first=stop_at_first)

    # -------------------------------------------------------------------------

    def _index_edges(self, mesh: Mesh) -> Dict[EdgeKey, List[int]]:
        """Map each directed edge to the triangles claiming it, in mesh order"""
        owners: Dict[EdgeKey, List[int]] = {}
        for index, triangle in enumerate(mesh):
            for i, key in enumerate(triangle.edge_keys(), start=1):
                claimed = owners.get(key)
                if claimed is None:
                    owners[key] = [index]
                    continue
                if self.strict:
                    previous = claimed[0]
                    ref1 = TriangleRef.of(previous, mesh[previous])
                    ref2 = TriangleRef.of(index, triangle)
                    raise DuplicateEdgeError(
                        error_msg(f"e{i}", format_triangles([ref2, ref1])),
                        f"e{i}", triangle1=ref1, triangle2=ref2,
                        failed_edge=i - 1, strict=True)
                claimed.append(index)
        return owners

    @staticmethod
    def _claim(index: int, mesh: Mesh, owners: Dict[EdgeKey, List[int]],
               assigned: List[bool], work: deque):
        """Assign a triangle to the current component and drop it from the index"""
        assigned[index] = True
        work.append(index)
        for key in mesh[index].edge_keys():
            claimed = owners.get(key)
            if claimed is None:
                continue
            if index in claimed:
                claimed.remove(index)
            if not claimed:
                del owners[key]

    def _self_reference(self, index: int, triangle) -> SelfReferenceError:
        coords = [c for v in triangle.vertices for c in v]
        key = 'patch' if triangle.is_patch else 'triangle'
        return SelfReferenceError(error_msg(key, *coords), key,
                                  triangle1=TriangleRef.of(index, triangle),
                                  strict=self.strict)

    def _extract(self, mesh: Mesh, owners: Dict[EdgeKey, List[int]]) -> List[Mesh]:
        assigned = [False] * len(mesh)
        keys = sorted(owners)
        components = []
        pos = 0

        while True:
            # Seed: the first edge still in the index
            while pos < len(keys) and keys[pos] not in owners:
                pos += 1
            if pos == len(keys):
                break

            component = Mesh()
            work = deque()
            for index in list(owners[keys[pos]]):
                self._claim(index, mesh, owners, assigned, work)

            while work:
                index = work.popleft()
                triangle = mesh[index]
                component.append(triangle)
                own = set(triangle.edge_keys())
                for key in triangle.edge_keys(forward=False):
                    if key in own:
                        raise self._self_reference(index, triangle)
                    candidates = owners.get(key)
                    if not candidates:
                        continue
                    for neighbor in list(candidates):
                        if not assigned[neighbor]:
                            self._claim(neighbor, mesh, owners, assigned, work)

            components.append(component)
        return components
