import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tangentspace.generator import (
    TangentSpaceError,
    gen_tang_space,
    gen_tang_space_default,
)
from tangentspace.mesh import ListMesh

SQUARE = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
UP = [(0.0, 0.0, 1.0)] * 4


def quad_mesh(uvs):
    return ListMesh(SQUARE, UP, uvs, [(0, 1, 2, 3)])


def approx_vec(v):
    return pytest.approx(v, abs=1e-5)


def test_identity_mapping_quad():
    mesh = quad_mesh([(x, y) for x, y, _ in SQUARE])
    result = gen_tang_space_default(mesh)
    assert len(result) == 4
    for vert in range(4):
        tangent, bitangent, mag_s, mag_t, orient = mesh.tspaces[(0, vert)]
        assert tangent == approx_vec((1.0, 0.0, 0.0))
        assert bitangent == approx_vec((0.0, 1.0, 0.0))
        assert mag_s == pytest.approx(1.0)
        assert mag_t == pytest.approx(1.0)
        assert orient is True
        assert mesh.basic_tspaces[(0, vert)][1] == 1.0


def test_rotated_mapping_quad():
    mesh = quad_mesh([(y, -x) for x, y, _ in SQUARE])
    gen_tang_space_default(mesh)
    for vert in range(4):
        tangent, bitangent, _, _, orient = mesh.tspaces[(0, vert)]
        assert tangent == approx_vec((0.0, 1.0, 0.0))
        assert bitangent == approx_vec((-1.0, 0.0, 0.0))
        assert orient is True


def test_mirrored_mapping_has_negative_sign():
    mesh = quad_mesh([(-x, y) for x, y, _ in SQUARE])
    gen_tang_space_default(mesh)
    for vert in range(4):
        tangent, bitangent, _, _, orient = mesh.tspaces[(0, vert)]
        assert tangent == approx_vec((-1.0, 0.0, 0.0))
        assert bitangent == approx_vec((0.0, 1.0, 0.0))
        assert orient is False
        basic_tangent, sign = mesh.basic_tspaces[(0, vert)]
        assert sign == -1.0
        assert basic_tangent == tangent


@settings(max_examples=30, deadline=None)
@given(
    st.floats(min_value=0.5, max_value=4.0),
    st.floats(min_value=0.5, max_value=4.0),
    st.booleans(),
    st.booleans(),
)
def test_scaled_mapping(su, sv, flip_u, flip_v):
    su = -su if flip_u else su
    sv = -sv if flip_v else sv
    mesh = quad_mesh([(su * x, sv * y) for x, y, _ in SQUARE])
    gen_tang_space_default(mesh)
    for vert in range(4):
        tangent, bitangent, mag_s, mag_t, orient = mesh.tspaces[(0, vert)]
        assert tangent == approx_vec((math.copysign(1.0, su), 0.0, 0.0))
        assert bitangent == approx_vec((0.0, math.copysign(1.0, sv), 0.0))
        assert mag_s == pytest.approx(1.0 / abs(su), rel=1e-5)
        assert mag_t == pytest.approx(1.0 / abs(sv), rel=1e-5)
        assert orient == (su * sv > 0)


def _grid_mesh(order=None):
    positions, uvs = [], []
    for j in range(3):
        for i in range(3):
            positions.append((float(i), float(j), 0.1 * i * j))
            uvs.append((0.3 * i + 0.1 * j, 0.4 * j))
    normals = [(0.0, 0.0, 1.0)] * len(positions)
    faces = []
    for j in range(2):
        for i in range(2):
            a = j * 3 + i
            faces.append((a, a + 1, a + 4))
            faces.append((a, a + 4, a + 3))
    if order is not None:
        faces = [faces[k] for k in order]
    return ListMesh(positions, normals, uvs, faces)


def test_results_are_unit_and_perpendicular_to_normal():
    mesh = _grid_mesh()
    result = gen_tang_space(mesh, 45.0)
    assert len(result) == 3 * len(mesh.faces)
    for tangent, bitangent, _, _, _ in mesh.tspaces.values():
        assert math.hypot(*tangent) == pytest.approx(1.0, abs=1e-5)
        assert math.hypot(*bitangent) == pytest.approx(1.0, abs=1e-5)
        assert tangent[2] == pytest.approx(0.0, abs=1e-6)
        assert bitangent[2] == pytest.approx(0.0, abs=1e-6)


def _by_vertex(mesh):
    out = {}
    for (face, vert), (tangent, _sign) in mesh.basic_tspaces.items():
        out.setdefault(mesh.faces[face][vert], set()).add(
            tuple(round(c, 5) for c in tangent)
        )
    return out


def test_face_order_does_not_change_result():
    first = _grid_mesh()
    second = _grid_mesh(order=[7, 3, 5, 0, 6, 1, 4, 2])
    gen_tang_space_default(first)
    gen_tang_space_default(second)
    assert _by_vertex(first) == _by_vertex(second)


def test_shared_vertex_gets_one_tangent_space():
    mesh = _grid_mesh()
    gen_tang_space_default(mesh)
    for tangents in _by_vertex(mesh).values():
        assert len(tangents) == 1


def test_degenerate_triangle_copies_from_good_one():
    positions = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]
    normals = [(0.0, 0.0, 1.0)] * 3
    uvs = [(y, -x) for x, y, _ in positions]
    mesh = ListMesh(positions, normals, uvs, [(0, 1, 2), (0, 1, 1)])
    gen_tang_space_default(mesh)
    assert mesh.basic_tspaces[(1, 0)] == mesh.basic_tspaces[(0, 0)]
    assert mesh.basic_tspaces[(1, 1)] == mesh.basic_tspaces[(0, 1)]
    assert mesh.basic_tspaces[(0, 0)][0] == approx_vec((0.0, 1.0, 0.0))


def test_unsupported_faces_are_skipped():
    positions = SQUARE + [(2.0, 0.5, 0.0)]
    normals = [(0.0, 0.0, 1.0)] * 5
    uvs = [(x, y) for x, y, _ in positions]
    mesh = ListMesh(positions, normals, uvs, [(0, 1, 4, 2, 3), (0, 1, 2)])
    result = gen_tang_space_default(mesh)
    assert len(result) == 3
    assert set(mesh.tspaces) == {(1, 0), (1, 1), (1, 2)}


def test_empty_mesh_raises():
    mesh = ListMesh([], [], [], [])
    with pytest.raises(TangentSpaceError):
        gen_tang_space_default(mesh)


def test_only_unsupported_faces_raises():
    positions = [(float(i), float(i * i), 0.0) for i in range(5)]
    mesh = ListMesh(positions, [(0.0, 0.0, 1.0)] * 5, [(0.0, 0.0)] * 5, [(0, 1, 2, 3, 4)])
    with pytest.raises(TangentSpaceError):
        gen_tang_space(mesh, 90.0)
    assert mesh.tspaces == {}


def test_returned_spaces_match_callbacks():
    mesh = _grid_mesh()
    result = gen_tang_space_default(mesh)
    keys = [(f, v) for f in range(len(mesh.faces)) for v in range(3)]
    for key, space in zip(keys, result):
        tangent, bitangent, mag_s, mag_t, orient = mesh.tspaces[key]
        assert tangent == tuple(space.v_os)
        assert bitangent == tuple(space.v_ot)
        assert (mag_s, mag_t, orient) == (space.mag_s, space.mag_t, space.orient)