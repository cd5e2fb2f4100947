"""
STL Reader

Reads STL files (ASCII or binary) into a triangle-soup Mesh. Facets keep
their file order: each triangle gets entry_number = facet index and a
"<file>:facet <n>" tag so diagnostics can point back into the file.

Vertices are NOT merged; adjacency is decided by equal coordinates.
"""

import logging
import os
import re
import numpy as np
from typing import Optional

from mesh_model import Mesh

logger = logging.getLogger(__name__)


# 50-byte binary STL facet record
STL_RECORD = np.dtype([
    ('normal', '<f4', (3,)),
    ('vertices', '<f4', (3, 3)),
    ('attr', '<u2'),
])

_VERTEX_PATTERN = re.compile(
    r'vertex\s+([-\d.eE+]+)\s+([-\d.eE+]+)\s+([-\d.eE+]+)')


def _soup(all_vertices: np.ndarray, filename: str) -> Mesh:
    # Every facet gets its own three corners; nothing is merged
    points = all_vertices.reshape(-1, 3)
    triangles = np.arange(len(points)).reshape(-1, 3)
    return Mesh.from_arrays(points, triangles, tag=os.path.basename(filename))


def read_stl_ascii(filename: str) -> Mesh:
    """Read ASCII STL format"""
    with open(filename, 'r') as f:
        content = f.read()

    matches = _VERTEX_PATTERN.findall(content)
    if len(matches) % 3 != 0:
        raise ValueError(f"{filename}: vertex count {len(matches)} is not a multiple of 3")

    all_vertices = np.array([[float(x), float(y), float(z)] for x, y, z in matches],
                            dtype=np.float64).reshape(-1, 3)
    return _soup(all_vertices, filename)


def read_stl_binary(filename: str) -> Mesh:
    """Read binary STL format"""
    with open(filename, 'rb') as f:
        data = f.read()

    if len(data) < 84:
        raise ValueError(f"{filename}: too short for a binary STL file")

    # 80-byte header, then the triangle count
    n_triangles = int(np.frombuffer(data, dtype='<u4', count=1, offset=80)[0])
    expected = 84 + n_triangles * STL_RECORD.itemsize
    if len(data) < expected:
        raise ValueError(f"{filename}: expected {n_triangles} facets, file is truncated")

    records = np.frombuffer(data, dtype=STL_RECORD, count=n_triangles, offset=84)
    all_vertices = records['vertices'].astype(np.float64)
    return _soup(all_vertices, filename)


def read_stl(filename: str) -> Mesh:
    """Read STL format (auto-detect binary or ASCII)"""
    with open(filename, 'rb') as f:
        header = f.read(80)

    header_str = header.decode('ascii', errors='ignore').strip()
    if header_str.startswith('solid'):
        # Could still be binary with "solid" in header, check further
        with open(filename, 'r', errors='ignore') as f:
            first_lines = f.read(1000)
        if 'facet normal' in first_lines:
            return read_stl_ascii(filename)

    return read_stl_binary(filename)


# =============================================================================
# FORMAT DETECTION AND DISPATCH
# =============================================================================

FORMATS = {
    'stl': {'ext': '.stl', 'read': read_stl},
    'stl-ascii': {'ext': '.stl', 'read': read_stl_ascii},
    'stl-binary': {'ext': '.stl', 'read': read_stl_binary},
}


def detect_format(filename: str) -> Optional[str]:
    """Detect format from file extension"""
    ext = os.path.splitext(filename)[1].lower()
    for fmt, info in FORMATS.items():
        if info['ext'] == ext:
            return fmt
    return None


def read_mesh(filename: str, format: Optional[str] = None) -> Mesh:
    """Read mesh from file, auto-detecting format if not specified"""
    if format is None:
        format = detect_format(filename)

    if format is None:
        raise ValueError(f"Cannot detect format for {filename}")

    if format not in FORMATS:
        raise ValueError(f"Unknown format: {format}")

    logger.info("Reading %s file: %s", format.upper(), filename)
    mesh = FORMATS[format]['read'](filename)
    logger.info("  %s", mesh.info())
    return mesh
