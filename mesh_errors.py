"""
Manifold Errors and Diagnostics

Structured exceptions raised while splitting a mesh into components, and
text formatting for the triangles and edges they refer to.

Errors carry TriangleRef snapshots (index into the mesh that was checked,
plus copies of the corners and tag) rather than the triangles themselves,
so a caught error stays valid after the mesh is discarded.
"""

import traceback
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple


MESSAGES = {
    'e1': "edge 1 of a triangle duplicates an edge of another triangle:\n{0}",
    'e2': "edge 2 of a triangle duplicates an edge of another triangle:\n{0}",
    'e3': "edge 3 of a triangle duplicates an edge of another triangle:\n{0}",
    'e4': "edge 4 of a patch duplicates an edge of another triangle:\n{0}",
    'triangle': ("triangle ({0:g},{1:g},{2:g})-({3:g},{4:g},{5:g})-"
                 "({6:g},{7:g},{8:g}) is its own neighbor across an edge"),
    'patch': ("patch ({0:g},{1:g},{2:g})-({3:g},{4:g},{5:g})-"
              "({6:g},{7:g},{8:g})-({9:g},{10:g},{11:g}) "
              "is its own neighbor across an edge"),
    'insideOut': "Component {0} is inside out",
    'edgeGroup': "component {0}: {1} edge(s) do not pair up:\n{2}",
}


def error_msg(key: str, *args) -> str:
    """Format the message registered under key"""
    return MESSAGES[key].format(*args)


@dataclass(frozen=True)
class TriangleRef:
    """
    Snapshot of a triangle for diagnostics.

    Attributes:
        index: position of the triangle in the mesh that was checked
        vertices: copies of its 3 (or 4, for a patch) corners
        tag: provenance tag, if any
        entry_number: producer sequence number, -1 if unset
    """
    index: int
    vertices: Tuple[Tuple[float, float, float], ...]
    tag: Any = None
    entry_number: int = -1

    @property
    def is_patch(self) -> bool:
        return len(self.vertices) == 4

    @classmethod
    def of(cls, index: int, triangle) -> 'TriangleRef':
        return cls(index, tuple(triangle.vertices), triangle.tag,
                   triangle.entry_number)


def _format_context(ctx):
    """Return a compact ' | key1=val1, key2=val2' string or '' if no context."""
    if not ctx:
        return ""
    parts = []
    for k in sorted(ctx.keys()):
        sv = repr(ctx[k])
        if len(sv) > 120:
            sv = sv[:117] + "..."
        parts.append("{}={}".format(k, sv))
    return " | " + ", ".join(parts)


class ManifoldError(Exception):
    """
    Base class for errors that stop a mesh from being split into components.

    Parameters
    ----------
    message : str
        Human-readable error.
    key : str
        Message key (see MESSAGES).
    triangle1, triangle2 : TriangleRef, optional
        Offending triangles. For a duplicate edge, triangle1 already owned
        the edge and triangle2 is the one that claimed it again.
    failed_edge : int
        0-based index of the failing edge on triangle2, -1 if not relevant.
    strict : bool
        Whether strict edge matching was in effect.
    """
    def __init__(self, message, key, triangle1=None, triangle2=None,
                 failed_edge=-1, strict=True):
        self.key = key
        self.triangle1: Optional[TriangleRef] = triangle1
        self.triangle2: Optional[TriangleRef] = triangle2
        self.failed_edge = failed_edge
        self.strict = strict
        super(ManifoldError, self).__init__(message)

    @property
    def triangles(self) -> List[TriangleRef]:
        return [t for t in (self.triangle1, self.triangle2) if t is not None]

    def __str__(self):
        base = super(ManifoldError, self).__str__()
        ctx = {"key": self.key}
        if self.failed_edge >= 0:
            ctx["failed_edge"] = self.failed_edge
        return base + _format_context(ctx)


class DuplicateEdgeError(ManifoldError):
    """Two triangles claim the same directed edge (strict mode)"""


class SelfReferenceError(ManifoldError):
    """A triangle is its own neighbor across one of its edges"""


# =============================================================================
# DIAGNOSTIC TEXT
# =============================================================================

def _is_stack(tag) -> bool:
    if isinstance(tag, traceback.StackSummary):
        return True
    return (isinstance(tag, (list, tuple)) and len(tag) > 0
            and all(isinstance(f, traceback.FrameSummary) for f in tag))


def format_tag(prefix: str, tag: Any) -> List[str]:
    """Lines describing a provenance tag; stack traces get one line per frame"""
    if _is_stack(tag):
        return [f"{prefix}{f.filename}:{f.lineno} in {f.name}" for f in tag]
    return [prefix + str(tag)]


def _tag_lines(tag) -> List[str]:
    if tag is None:
        return []
    if _is_stack(tag):
        return ["  StackTrace for triangle/patch creation:"] + format_tag("    ", tag)
    return format_tag("  tag for triangle/patch creation: ", tag)


def _point(v) -> str:
    return "({:g},{:g},{:g})".format(*v)


def format_triangles(refs: Iterable[TriangleRef]) -> str:
    """Describe triangles the way error messages quote them"""
    lines = []
    for ref in refs:
        corners = "-".join(_point(v) for v in ref.vertices)
        if ref.is_patch:
            if ref.entry_number != -1:
                lines.append(f"Cubic Triangle {ref.entry_number}: {corners}")
            else:
                lines.append(f"Cubic Triangle: {corners}")
        elif ref.entry_number != -1:
            lines.append(f"Planar Triangle {ref.entry_number}: {corners}")
        else:
            lines.append(f"Planar Triangle {corners}")
        lines.extend(_tag_lines(ref.tag))
    return "\n".join(lines)


def format_edges(edges) -> str:
    """Describe edges in the direction their triangles traverse them"""
    lines = []
    for edge in edges:
        p, q = (edge.end, edge.start) if edge.reversed else (edge.start, edge.end)
        lines.append(f"Edge {_point(p)}-->{_point(q)}")
        lines.extend(_tag_lines(edge.tag))
    return "\n".join(lines)
