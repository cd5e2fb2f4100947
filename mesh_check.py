#!/usr/bin/env python3
"""
Mesh Topology Checker

Checks a triangle soup for the properties a printable solid needs.

Checks performed:
  1. Components - the mesh splits into connected components without
     duplicate (non-manifold) directed edges
  2. Edge consistency - within each component, every edge is shared by
     two oppositely oriented triangles (or, with --lenient, by an even
     fan of alternating triangles) and no colinear edges overlap
  3. Nesting - components enclosed by other components are oriented
     consistently with them (no inside-out cavities)

Usage:
  mesh_check.py <input_file> [--lenient] [--tessellate] [--stop-first] [-v]
"""

import io
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

from mesh_components import ManifoldComponents
from mesh_edges import mesh_edges, verify_edges
from mesh_errors import ManifoldError, error_msg, format_edges
from mesh_model import Mesh
from stl_reader import read_mesh

logger = logging.getLogger(__name__)


@dataclass
class CheckConfig:
    """Options for check_mesh_topology."""

    strict: bool = True
    tessellate: bool = False
    stop_at_first: bool = False


def count_edges(mesh):
    """Number of distinct undirected edges"""
    edges = set()
    for triangle in mesh:
        for a, b in triangle.edge_keys():
            edges.add((a, b) if a <= b else (b, a))
    return len(edges)


def merge_components(components) -> Mesh:
    """Concatenate the triangles of all components into one mesh"""
    merged = Mesh()
    for component in components:
        merged.extend(component)
    return merged


def check_mesh_topology(mesh, config=None):
    """
    Check mesh topology for manifold structure and orientation.

    Returns a dict with:
        - consistent: bool, True if every check passed
        - n_triangles: number of triangles/patches checked
        - n_edges: number of distinct undirected edges
        - n_components: number of connected components
        - component_sizes: triangle count per component
        - component_volumes: signed volume per component
        - volume: signed volume of the whole mesh
        - area: total surface area
        - edge_failures: list of (component index, offending edges)
        - nesting_ok: bool, result of the nesting check (None if not run)
        - nesting_messages: list of inside-out diagnostics
        - error: the ManifoldError that stopped the split, or None
    """
    if config is None:
        config = CheckConfig()
    if config.tessellate:
        mesh = mesh.tessellate()

    result = {
        'consistent': False,
        'n_triangles': len(mesh),
        'n_edges': count_edges(mesh),
        'n_components': 0,
        'component_sizes': [],
        'component_volumes': [],
        'volume': mesh.volume(),
        'area': mesh.area(),
        'edge_failures': [],
        'nesting_ok': None,
        'nesting_messages': [],
        'error': None,
    }

    try:
        components = ManifoldComponents(mesh, strict=config.strict)
    except ManifoldError as exc:
        logger.debug("component split failed: %s", exc)
        result['error'] = exc
        return result

    result['n_components'] = len(components)
    result['component_sizes'] = [len(c) for c in components]
    result['component_volumes'] = [c.volume() for c in components]

    for index, component in enumerate(components):
        failure = verify_edges(mesh_edges(component), strict=config.strict)
        if failure is not None:
            result['edge_failures'].append((index, failure))
            if config.stop_at_first:
                break

    if not (config.stop_at_first and result['edge_failures']):
        sink = io.StringIO()
        result['nesting_ok'] = components.verify_nesting(
            out=sink, stop_at_first=config.stop_at_first)
        result['nesting_messages'] = sink.getvalue().splitlines()

    result['consistent'] = (not result['edge_failures']
                            and result['nesting_ok'] is True)
    return result


def check_euler_characteristic(mesh, result):
    """
    Compute Euler characteristic: V - E + F

    For closed surfaces:
        Sphere: chi = 2
        Torus: chi = 0

    Each closed component contributes its own term.
    """
    V = mesh.vertex_count()
    E = result['n_edges']
    F = result['n_triangles']

    chi = V - E + F
    return chi


def print_report(mesh, result):
    """Print a human-readable topology report"""
    print("=" * 60)
    print("MESH TOPOLOGY CHECK")
    print("=" * 60)

    print(f"\nMesh Statistics:")
    print(f"  Vertices:  {mesh.vertex_count()}")
    print(f"  Triangles: {result['n_triangles']}")
    print(f"  Edges:     {result['n_edges']}")
    print(f"  Volume:    {result['volume']:g}")
    print(f"  Area:      {result['area']:g}")

    chi = check_euler_characteristic(mesh, result)
    print(f"\nEuler Characteristic (V - E + F): {chi}")

    exc = result['error']
    if exc is not None:
        print(f"\nComponent Split:")
        print(f"  FAILED: {exc}")
    else:
        print(f"\nComponents: {result['n_components']}")
        for i, (size, vol) in enumerate(zip(result['component_sizes'],
                                            result['component_volumes'])):
            print(f"  {i}: {size} triangles, volume {vol:g}")

        print(f"\nEdge Analysis:")
        if not result['edge_failures']:
            print("  All edges pair up CONSISTENTLY")
        for index, edges in result['edge_failures']:
            print("  WARNING: " + error_msg('edgeGroup', index, len(edges),
                                            format_edges(edges)))

        print(f"\nNesting Check:")
        if result['nesting_ok']:
            print("  All components are oriented CONSISTENTLY")
        elif result['nesting_ok'] is None:
            print("  (skipped)")
        for line in result['nesting_messages']:
            print(f"  WARNING: {line}")

    print("\n" + "=" * 60)
    if result['consistent']:
        print("RESULT: PASS - Mesh topology is consistent")
    else:
        print("RESULT: FAIL - Mesh has topology issues")
    print("=" * 60)

    return result['consistent']


def main(argv: Optional[List[str]] = None):
    args = sys.argv[1:] if argv is None else list(argv)
    input_file = None
    config = CheckConfig()
    verbose = False

    for arg in args:
        if arg == '--lenient':
            config.strict = False
        elif arg == '--tessellate':
            config.tessellate = True
        elif arg == '--stop-first':
            config.stop_at_first = True
        elif arg in ['-v', '--verbose']:
            verbose = True
        elif arg in ['-h', '--help']:
            print(__doc__)
            return 0
        elif input_file is None:
            input_file = arg
        else:
            print(f"Error: unexpected argument {arg}")
            return 1

    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    if input_file is None:
        print(__doc__)
        return 1

    print(f"Reading {input_file}...")
    try:
        mesh = read_mesh(input_file)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    if len(mesh) == 0:
        print("Error: Mesh has no faces")
        return 1

    result = check_mesh_topology(mesh, config)
    success = print_report(mesh, result)

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
