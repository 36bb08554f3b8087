import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tangentspace.groups import build_4rule_groups
from tangentspace.mesh import ListMesh, make_index
from tangentspace.triinfo import Flag, TriInfo, generate_initial_vertices_index_list, init_tri_info
from tangentspace.tspace import (
    INTERNAL_SORT_SEED,
    TSpace,
    avg_tspace,
    degen_epilogue,
    eval_tspace,
    generate_tspaces,
    quick_sort,
)
from tangentspace.vecmath import Vec3
from tangentspace.welding import weld_vertices

UP = (0.0, 0.0, 1.0)


def prepare(mesh):
    infos, tri_list, count = generate_initial_vertices_index_list(mesh)
    tri_list = weld_vertices(tri_list, mesh)
    init_tri_info(infos, tri_list, mesh, len(infos))
    return infos, tri_list, count


def triangle_mesh():
    pts = [(0, 0, 0), (1, 0, 0), (0, 1, 0)]
    return ListMesh(pts, [UP] * 3, [p[:2] for p in pts], [[0, 1, 2]])


def quad_mesh():
    pts = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
    return ListMesh(pts, [UP] * 4, [p[:2] for p in pts], [[0, 1, 2, 3]])


def test_default_tspace_is_identity_frame():
    ts = TSpace()
    assert ts.v_os == Vec3(1.0, 0.0, 0.0)
    assert ts.v_ot == Vec3(0.0, 1.0, 0.0)
    assert (ts.mag_s, ts.mag_t, ts.counter) == (1.0, 1.0, 0)


def test_avg_identical_spaces_is_unchanged():
    ts = TSpace(v_os=Vec3(0.3, 0.4, 0.5), mag_s=0.7, v_ot=Vec3(0.1, 0.2, 0.3), mag_t=1.3)
    avg = avg_tspace(ts, ts)
    assert (avg.v_os, avg.v_ot, avg.mag_s, avg.mag_t) == (ts.v_os, ts.v_ot, ts.mag_s, ts.mag_t)


def test_avg_different_spaces_is_normalized():
    a = TSpace(v_os=Vec3(1, 0, 0), mag_s=1.0)
    b = TSpace(v_os=Vec3(0, 1, 0), mag_s=3.0)
    avg = avg_tspace(a, b)
    assert avg.v_os.length() == pytest.approx(1.0, abs=1e-6)
    assert avg.v_os.x == avg.v_os.y
    assert avg.mag_s == 2.0


def test_avg_opposite_vectors_stay_zero():
    a = TSpace(v_os=Vec3(1, 0, 0))
    b = TSpace(v_os=Vec3(-1, 0, 0))
    assert avg_tspace(a, b).v_os == Vec3()


@given(st.lists(st.integers(-1000, 1000), min_size=1, max_size=60))
def test_quick_sort_sorts(values):
    original = list(values)
    quick_sort(values, 0, len(values) - 1, INTERNAL_SORT_SEED)
    assert values == sorted(original)


def test_quick_sort_leaves_outside_range_alone():
    values = [5, 4, 3, 2, 1]
    original = list(values)
    quick_sort(values, 1, 3, INTERNAL_SORT_SEED)
    assert values == original[:1] + sorted(original[1:4]) + original[4:]


def test_eval_tspace_planar_triangle():
    mesh = triangle_mesh()
    infos, tri_list, _ = prepare(mesh)
    ts = eval_tspace([0], tri_list, infos, mesh, tri_list[0])
    assert tuple(ts.v_os) == pytest.approx((1.0, 0.0, 0.0), abs=1e-6)
    assert tuple(ts.v_ot) == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)
    assert ts.mag_s == pytest.approx(1.0)
    assert ts.mag_t == pytest.approx(1.0)


def test_eval_tspace_ignores_group_with_any():
    mesh = triangle_mesh()
    infos, tri_list, _ = prepare(mesh)
    infos[0].flag |= Flag.GROUP_WITH_ANY
    ts = eval_tspace([0], tri_list, infos, mesh, tri_list[0])
    assert ts.v_os == Vec3() and ts.v_ot == Vec3()
    assert (ts.mag_s, ts.mag_t) == (0.0, 0.0)


def test_eval_tspace_unknown_vertex_raises():
    mesh = triangle_mesh()
    infos, tri_list, _ = prepare(mesh)
    with pytest.raises(ValueError):
        eval_tspace([0], tri_list, infos, mesh, 9999)


def test_generate_tspaces_quad():
    mesh = quad_mesh()
    infos, tri_list, count = prepare(mesh)
    groups = build_4rule_groups(infos, tri_list, len(infos))
    tspaces = generate_tspaces(infos, groups, tri_list, math.cos(math.pi), mesh, count)
    assert len(tspaces) == count
    for ts in tspaces:
        assert ts.counter >= 1
        assert ts.orient is True
        assert tuple(ts.v_os) == pytest.approx((1.0, 0.0, 0.0), abs=1e-6)
        assert tuple(ts.v_ot) == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)
    shared = {tri_list[k] for k in range(3)} & {tri_list[k] for k in range(3, 6)}
    assert sum(ts.counter == 2 for ts in tspaces) == len(shared)


def test_generate_tspaces_without_groups_gives_defaults():
    mesh = triangle_mesh()
    infos, tri_list, count = prepare(mesh)
    assert generate_tspaces(infos, [], tri_list, -1.0, mesh, count) == [TSpace()] * count


def test_degen_epilogue_copies_from_matching_good_corner():
    pts = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (2, 2, 0)]
    mesh = ListMesh(pts, [UP] * 4, [p[:2] for p in pts], [[0, 1, 2], [0, 3, 3]])
    infos = [
        TriInfo(org_face_number=0, tspaces_offs=0),
        TriInfo(org_face_number=1, tspaces_offs=3, flag=Flag.MARK_DEGENERATE),
    ]
    tri_list = [make_index(0, v) for v in range(3)] + [
        make_index(0, 0),
        make_index(1, 1),
        make_index(1, 2),
    ]
    tspaces = [TSpace(mag_s=float(k)) for k in range(6)]
    before = list(tspaces)
    degen_epilogue(tspaces, infos, tri_list, mesh, 1, 2)
    assert tspaces[3] == before[0]
    assert tspaces[4:] == before[4:]
    assert tspaces[:3] == before[:3]


def test_degen_epilogue_fills_missing_quad_vertex():
    pts = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (1, 1, 0)]
    mesh = ListMesh(pts, [UP] * 4, [p[:2] for p in pts], [[0, 1, 2, 3]])
    infos = [
        TriInfo(org_face_number=0, tspaces_offs=0, vert_num=(0, 1, 2),
                flag=Flag.QUAD_ONE_DEGEN_TRI),
        TriInfo(org_face_number=0, tspaces_offs=0, vert_num=(0, 2, 3),
                flag=Flag.QUAD_ONE_DEGEN_TRI | Flag.MARK_DEGENERATE),
    ]
    tri_list = [make_index(0, v) for v in (0, 1, 2, 0, 2, 3)]
    tspaces = [TSpace(mag_t=float(k)) for k in range(4)]
    before = list(tspaces)
    degen_epilogue(tspaces, infos, tri_list, mesh, 1, 2)
    assert tspaces[3] == before[2]
    assert tspaces[:3] == before[:3]