"""
Nesting Verifier

Checks that components nested inside other components are oriented
consistently, so the mesh describes a solid rather than an inside-out
cavity.

For each component, the vertex with the largest x coordinate is compared
with every triangle of each component whose bounding box strictly
encloses it. The closest such triangle decides the expected orientation:
  - point on the back side of the closest triangle -> inner volume < 0
  - point on the front side                        -> inner volume > 0
A component with no enclosing candidate must have a non-negative volume.
Components are assumed not to intersect, so no other surface can lie
between the vertex and its closest triangle.
"""

import logging
import math
import numpy as np
from typing import List, NamedTuple, Optional, Sequence, TextIO, Tuple

from mesh_errors import error_msg
from mesh_model import BoundingBox, Mesh, Triangle, Vertex
from mesh_predicates import closest_point_on_triangle

logger = logging.getLogger(__name__)


class NestingEntry(NamedTuple):
    """Component `inner` has its bounding box strictly inside that of `outer`"""
    inner: int
    outer: int


def _between(x, lo, hi):
    return lo <= x <= hi


def _corners_within(a: BoundingBox, b: BoundingBox) -> List[bool]:
    """For each of a's six extents, whether it lies within b's range on that axis"""
    return [
        _between(a.min_x, b.min_x, b.max_x),
        _between(a.min_y, b.min_y, b.max_y),
        _between(a.min_z, b.min_z, b.max_z),
        _between(a.max_x, b.min_x, b.max_x),
        _between(a.max_y, b.min_y, b.max_y),
        _between(a.max_z, b.min_z, b.max_z),
    ]


def bb_test_setup(components: Sequence[Mesh]) -> List[NestingEntry]:
    """
    Find candidate nesting relations between components.

    (i, j) is listed when every extent of i's bounding box lies within j's
    and no extent of j's lies within i's. The test is quadratic in the
    number of components.
    """
    boxes = [c.bounding_box() for c in components]
    entries = []
    for i in range(len(boxes)):
        for j in range(len(boxes)):
            if i == j:
                continue
            if not all(_corners_within(boxes[i], boxes[j])):
                continue
            if any(_corners_within(boxes[j], boxes[i])):
                continue
            entries.append(NestingEntry(i, j))
    return entries


def extremal_vertex(component: Mesh) -> Tuple[int, int, Vertex]:
    """
    Vertex with the largest x coordinate.

    Returns (triangle index, corner index, vertex) for the first triangle
    reaching max x, taking its lowest-numbered corner at that x.
    """
    max_x = component.max_x
    for index, triangle in enumerate(component):
        for corner, v in enumerate(triangle.vertices):
            if v[0] == max_x:
                return index, corner, v
    raise ValueError("empty component")


class TriangleSearch:
    """
    Running search for the triangle closest to a point.

    Attributes:
        point: the query point
        distance_sq: squared distance to the best triangle so far
        triangle: best triangle so far, None until one is considered
        component: index of the component holding it
        feature: closest feature of that triangle
        dsign: side of that triangle the point is on (True = front)
    """

    def __init__(self, point):
        self.point = np.asarray(point, dtype=np.float64)
        self.distance_sq = math.inf
        self.triangle: Optional[Triangle] = None
        self.component = -1
        self.feature = None
        self.dsign = False

    def consider(self, triangle: Triangle, component: int = -1) -> bool:
        """Update the search with a triangle; True if it is strictly closer"""
        found = False
        for part in triangle.split():
            result = closest_point_on_triangle(self.point, *part.vertices,
                                               normal=part.normal)
            if result.distance_sq < self.distance_sq:
                self.distance_sq = result.distance_sq
                self.triangle = triangle
                self.component = component
                self.feature = result.feature
                self.dsign = result.dsign
                found = True
        return found


def verify_nesting(components: Sequence[Mesh], out: Optional[TextIO] = None,
                   stop_at_first: bool = False) -> bool:
    """
    Check the orientation of every component against its enclosing ones.

    Args:
        components: disjoint closed components
        out: writable text stream receiving one line per inside-out component
        stop_at_first: stop after the first failing component

    Returns:
        True if no component is inside out
    """
    entries = bb_test_setup(components)
    ok = True

    for inner, component in enumerate(components):
        if len(component) == 0:
            continue
        _, _, point = extremal_vertex(component)
        search = TriangleSearch(point)
        for entry in entries:
            if entry.inner != inner:
                continue
            for triangle in components[entry.outer]:
                search.consider(triangle, entry.outer)

        volume = component.volume()
        if search.triangle is None:
            if volume >= 0.0:
                continue
        elif search.dsign == (volume > 0.0):
            continue

        message = error_msg('insideOut', inner)
        logger.warning(message)
        if out is not None:
            out.write(message + "\n")
        ok = False
        if stop_at_first:
            break

    return ok
