"""
Geometric Predicates

Floating-point helpers shared by the edge, component and nesting checks.

All tolerances are absolute. Coordinates with very large or very small
magnitudes may need AREA_LIMIT adjusted.
"""

import numpy as np
from typing import NamedTuple


# Slack allowed when comparing the sum of sub-triangle areas to the
# triangle's own area (twice-area units).
AREA_LIMIT = 1.0e-10


def triangle_area2(p1, p2, p3) -> float:
    """Twice the area of a triangle: |(p2 - p1) x (p3 - p1)|"""
    u = np.subtract(p2, p1, dtype=np.float64)
    v = np.subtract(p3, p1, dtype=np.float64)
    return float(np.linalg.norm(np.cross(u, v)))


def unit_normal(p1, p2, p3) -> np.ndarray:
    """Compute unit normal vector for a triangle using right-hand rule"""
    edge1 = np.subtract(p2, p1, dtype=np.float64)
    edge2 = np.subtract(p3, p1, dtype=np.float64)
    normal = np.cross(edge1, edge2)
    norm = np.linalg.norm(normal)
    if norm > 0:
        normal = normal / norm
    else:
        normal = np.zeros(3)
    return normal


def signed_offset(point, origin, normal) -> float:
    """Perpendicular offset of point from the plane through origin"""
    return float(np.dot(np.subtract(point, origin, dtype=np.float64), normal))


class ClosestPoint(NamedTuple):
    """
    Result of closest_point_on_triangle.

    Attributes:
        distance_sq: squared distance from the query point to the triangle
        feature: 'interior', 'vertex1'..'vertex3' or 'edge_a'..'edge_c'
        dsign: True when the point is on the side the normal points to
    """
    distance_sq: float
    feature: str
    dsign: bool


def closest_point_on_triangle(point, p1, p2, p3, normal=None) -> ClosestPoint:
    """
    Find the point of triangle (p1, p2, p3) closest to a query point.

    The query point is projected onto the triangle's plane. If the
    projection is inside the triangle (the three sub-triangle areas add up
    to the full area, within AREA_LIMIT) the perpendicular distance is used.
    Otherwise the closest point on each edge is computed, edges in the
    order a (p1->p2), b (p2->p3), c (p3->p1), and the first strictly
    smallest one is kept.

    Args:
        point: query point
        p1, p2, p3: triangle corners in winding order
        normal: unit normal of the triangle; computed if not given

    Returns:
        ClosestPoint(distance_sq, feature, dsign)
    """
    p = np.asarray(point, dtype=np.float64)
    a = np.asarray(p1, dtype=np.float64)
    b = np.asarray(p2, dtype=np.float64)
    c = np.asarray(p3, dtype=np.float64)
    if normal is None:
        normal = unit_normal(a, b, c)

    d1 = p - a
    d2 = p - b
    d3 = p - c

    sepn = signed_offset(p, a, normal)
    dsign = sepn > 0.0

    # Foot of the perpendicular from p to the plane of the triangle
    foot = p - normal * sepn

    tarea2 = triangle_area2(a, b, c)
    sarea2 = (triangle_area2(foot, a, b)
              + triangle_area2(foot, b, c)
              + triangle_area2(foot, c, a))

    if sarea2 <= tarea2 + AREA_LIMIT:
        sepnsq = sepn * sepn
        if sepnsq == float(np.dot(d1, d1)):
            feature = 'vertex1'
        elif sepnsq == float(np.dot(d2, d2)):
            feature = 'vertex2'
        elif sepnsq == float(np.dot(d3, d3)):
            feature = 'vertex3'
        else:
            feature = 'interior'
        return ClosestPoint(sepnsq, feature, dsign)

    best_sq = float('inf')
    best_feature = None
    edges = (
        ('edge_a', a, b, d1, d2, 'vertex1', 'vertex2'),
        ('edge_b', b, c, d2, d3, 'vertex2', 'vertex3'),
        ('edge_c', c, a, d3, d1, 'vertex3', 'vertex1'),
    )
    for name, start, end, dstart, dend, at_start, at_end in edges:
        seg = end - start
        lensq = float(np.dot(seg, seg))
        u = float(np.dot(seg, dstart)) / lensq if lensq > 0.0 else 0.0
        u = min(max(u, 0.0), 1.0)
        diff = dstart * (1.0 - u) + dend * u
        sepsq = float(np.dot(diff, diff))
        if sepsq < best_sq:
            best_sq = sepsq
            if u == 0.0:
                best_feature = at_start
            elif u == 1.0:
                best_feature = at_end
            else:
                best_feature = name
    return ClosestPoint(best_sq, best_feature, dsign)
