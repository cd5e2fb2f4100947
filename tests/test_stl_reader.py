"""Tests for stl_reader module."""
import struct

import numpy as np
import pytest

from stl_reader import detect_format, read_mesh, read_stl_ascii, read_stl_binary


def write_ascii(path, mesh, name="box"):
    with open(path, 'w') as f:
        f.write(f"solid {name}\n")
        for t in mesh:
            n = t.normal
            f.write(f"  facet normal {n[0]:e} {n[1]:e} {n[2]:e}\n")
            f.write("    outer loop\n")
            for v in t.vertices:
                f.write(f"      vertex {v[0]:e} {v[1]:e} {v[2]:e}\n")
            f.write("    endloop\n")
            f.write("  endfacet\n")
        f.write(f"endsolid {name}\n")


def write_binary(path, mesh, header=b"binary test"):
    with open(path, 'wb') as f:
        f.write(header.ljust(80, b'\0'))
        f.write(struct.pack('<I', len(mesh)))
        for t in mesh:
            f.write(struct.pack('<3f', *t.normal))
            for v in t.vertices:
                f.write(struct.pack('<3f', *v))
            f.write(struct.pack('<H', 0))


class TestReadSTL:

    def test_ascii(self, tmp_path, cube):
        path = tmp_path / "cube.stl"
        write_ascii(path, cube)
        mesh = read_stl_ascii(str(path))
        assert len(mesh) == 12
        assert mesh.volume() == pytest.approx(1.0)
        assert mesh[3].entry_number == 3
        assert mesh[3].tag == "cube.stl:facet 3"

    def test_binary(self, tmp_path, cube):
        path = tmp_path / "cube.stl"
        write_binary(path, cube)
        mesh = read_stl_binary(str(path))
        assert len(mesh) == 12
        assert mesh.volume() == pytest.approx(1.0)
        np.testing.assert_array_equal(mesh.all_triangles(), cube.all_triangles())

    def test_auto_detect(self, tmp_path, cube):
        a = tmp_path / "a.stl"
        b = tmp_path / "b.stl"
        write_ascii(a, cube)
        # binary file whose header starts with "solid"
        write_binary(b, cube, header=b"solid but binary")
        assert len(read_mesh(str(a))) == 12
        assert len(read_mesh(str(b))) == 12

    def test_truncated_binary(self, tmp_path, cube):
        path = tmp_path / "short.stl"
        write_binary(path, cube)
        data = path.read_bytes()
        path.write_bytes(data[:-60])
        with pytest.raises(ValueError):
            read_stl_binary(str(path))

    def test_too_short(self, tmp_path):
        path = tmp_path / "empty.stl"
        path.write_bytes(b"\0" * 10)
        with pytest.raises(ValueError):
            read_stl_binary(str(path))

    def test_unknown_format(self, tmp_path):
        path = tmp_path / "mesh.obj"
        path.write_text("v 0 0 0\n")
        assert detect_format(str(path)) is None
        with pytest.raises(ValueError):
            read_mesh(str(path))
        with pytest.raises(ValueError):
            read_mesh(str(path), format="obj")
