"""
Edge Consistency Verifier

Checks that a flat collection of directed half-edges pairs up into a
closed manifold.

Checks performed:
  1. Overlap - no two distinct colinear edges share a stretch of line
     (T-junctions, partially overlapping edges)
  2. Pairing (strict) - every edge matches exactly one edge with the same
     endpoints traversed in the opposite direction
  3. Fans (lenient) - an edge shared by 2k triangles is accepted when the
     triangles' orientations alternate around the edge

verify_edges returns None on success or the offending edges; it does not
raise for topology problems, the caller decides how serious they are.
"""

import logging
import math
import numpy as np
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from mesh_model import Mesh, Vertex

logger = logging.getLogger(__name__)

# Distance from an edge's line below which another edge counts as colinear
LINE_LIMIT = 1.0e-10


class Edge(NamedTuple):
    """
    A half-edge of a triangle, stored in canonical order.

    Attributes:
        start, end: endpoints with start <= end lexicographically
        reversed: True if the owning triangle traverses end -> start
        direction: unit vector from start to end (the edge's own axis)
        normal: unit normal of the owning triangle
        triangle: index of the owning triangle in its mesh, -1 if unknown
        tag: provenance tag of the owning triangle
    """
    start: Vertex
    end: Vertex
    reversed: bool
    direction: Tuple[float, float, float]
    normal: Tuple[float, float, float]
    triangle: int = -1
    tag: Any = None


def make_edge(p: Vertex, q: Vertex, normal, triangle: int = -1, tag=None) -> Edge:
    """Create the canonical Edge for a triangle traversing p -> q"""
    if q < p:
        start, end, rev = q, p, True
    else:
        start, end, rev = p, q, False
    d = np.subtract(end, start, dtype=np.float64)
    length = np.linalg.norm(d)
    if length > 0:
        d = d / length
    direction = (float(d[0]), float(d[1]), float(d[2]))
    normal = (float(normal[0]), float(normal[1]), float(normal[2]))
    return Edge(start, end, rev, direction, normal, triangle, tag)


def mesh_edges(mesh: Mesh) -> List[Edge]:
    """All boundary half-edges of every triangle and patch in the mesh"""
    edges = []
    for index, triangle in enumerate(mesh):
        normal = triangle.normal
        for p, q in triangle.edge_keys():
            edges.append(make_edge(p, q, normal, index, triangle.tag))
    return edges


# =============================================================================
# ORDERING
# =============================================================================

def edge_sort_key(edge: Edge):
    """
    Primary ordering: direction, then start point, then end point.

    Exactly parallel edges form contiguous runs, and within a run edges with
    the same endpoints are adjacent whichever way their triangles traverse
    them. direction_runs merges runs that are parallel within LINE_LIMIT.
    """
    return (edge.direction, edge.start, edge.end, edge.reversed)


def line_order_key(edge: Edge):
    """Order of edges along one line: start point, then end point"""
    return (edge.start, edge.end, edge.reversed)


def same_segment(e1: Edge, e2: Edge) -> bool:
    return e1.start == e2.start and e1.end == e2.end


def parallel(d1, d2) -> bool:
    """True if unit directions d1 and d2 agree within LINE_LIMIT"""
    if tuple(d1) == tuple(d2):
        return True
    return (float(np.linalg.norm(np.cross(d1, d2))) <= LINE_LIMIT
            and float(np.dot(d1, d2)) > 0.0)


def direction_runs(edges: Sequence[Edge]) -> List[List[Edge]]:
    """
    Split edges into runs of parallel edges.

    Normalized directions of colinear edges can differ in the last bits, so
    neighbouring directions in sort order are merged while they stay
    parallel to the first edge of the run. Each run is then ordered along
    its lines with line_order_key.
    """
    runs = []
    run: List[Edge] = []
    for edge in sorted(edges, key=edge_sort_key):
        if run and not parallel(run[0].direction, edge.direction):
            runs.append(run)
            run = []
        run.append(edge)
    if run:
        runs.append(run)
    return [sorted(r, key=line_order_key) for r in runs]


def same_line(e1: Edge, e2: Edge) -> bool:
    """True if e2 starts on the infinite line through e1 (edges assumed parallel)"""
    offset = np.subtract(e2.start, e1.start, dtype=np.float64)
    return float(np.linalg.norm(np.cross(offset, e1.direction))) <= LINE_LIMIT


def edges_overlap(e1: Edge, e2: Edge) -> bool:
    """
    True for two distinct parallel edges on the same line whose intervals
    share a stretch of positive length. Edges that only touch at an
    endpoint do not overlap.
    """
    if not parallel(e1.direction, e2.direction) or same_segment(e1, e2):
        return False
    if not same_line(e1, e2):
        return False
    axis = np.asarray(e1.direction)
    origin = np.asarray(e1.start)
    len1 = float(np.dot(np.subtract(e1.end, origin), axis))
    s2 = float(np.dot(np.subtract(e2.start, origin), axis))
    f2 = float(np.dot(np.subtract(e2.end, origin), axis))
    lo = max(0.0, min(s2, f2))
    hi = min(len1, max(s2, f2))
    return hi - lo > LINE_LIMIT


# =============================================================================
# VERIFICATION
# =============================================================================

def _face_direction(edge: Edge, axis: np.ndarray) -> np.ndarray:
    """Unit vector, perpendicular to the edge, pointing into the owning triangle"""
    n = np.asarray(edge.normal)
    if edge.reversed:
        return np.cross(axis, n)
    return np.cross(n, axis)


def verify_fan(edges: Sequence[Edge]) -> bool:
    """
    Check the orientation of triangles sharing one edge.

    The triangles are ordered by the signed angle, about the edge's axis,
    between each triangle's face and the first one's. Walking around that
    fan, consecutive triangles must traverse the edge in opposite
    directions.
    """
    if len(edges) < 2:
        return False
    axis = np.asarray(edges[0].direction)
    faces = [_face_direction(e, axis) for e in edges]
    ref = faces[0]
    ref_perp = np.cross(axis, ref)
    angles = [math.atan2(float(np.dot(w, ref_perp)), float(np.dot(w, ref)))
              for w in faces]
    order = sorted(range(len(edges)), key=lambda i: angles[i])
    for prev, cur in zip(order, order[1:]):
        if edges[prev].reversed == edges[cur].reversed:
            return False
    return True


def _check_group(group: List[Edge], strict: bool) -> Optional[List[Edge]]:
    n = len(group)
    if strict:
        if n == 2 and group[0].reversed != group[1].reversed:
            return None
        return list(group)
    if n % 2 == 1:
        return list(group)
    if not verify_fan(group):
        return list(group)
    return None


def verify_edges(edges: Sequence[Edge], strict: bool = True) -> Optional[List[Edge]]:
    """
    Verify that a collection of half-edges describes a closed manifold.

    Args:
        edges: half-edges, typically mesh_edges() of one component
        strict: require every edge to be shared by exactly two triangles;
            if False, even fans with alternating orientation are accepted

    Returns:
        None if the edges are consistent, otherwise the offending edges:
        the overlapping pair, or the group of edges with equal endpoints
        that failed to pair up
    """
    group: List[Edge] = []

    for run in direction_runs(edges):
        lowers: List[Edge] = []     # current lower edge of each line in the run
        for edge in run:
            for i, lower in enumerate(lowers):
                if same_line(lower, edge):
                    if edges_overlap(lower, edge):
                        logger.debug("overlapping edges %s and %s", lower, edge)
                        return [lower, edge]
                    if not same_segment(lower, edge):
                        lowers[i] = edge
                    break
            else:
                lowers.append(edge)

            if group and not same_segment(group[0], edge):
                failure = _check_group(group, strict)
                if failure is not None:
                    logger.debug("edge group of %d fails (strict=%s)", len(failure), strict)
                    return failure
                group = []
            group.append(edge)

    if group:
        failure = _check_group(group, strict)
        if failure is not None:
            logger.debug("edge group of %d fails (strict=%s)", len(failure), strict)
            return failure
    return None
