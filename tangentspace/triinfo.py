"""Per-triangle data: splitting faces into triangles, ordering degenerate
triangles last, first-order texture derivatives and adjacency."""

from __future__ import annotations

import enum
from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass, field
from typing import Any

from .mesh import MeshInterface, make_index, position_at, tex_coord_at
from .neighbors import build_neighbors_fast
from .vecmath import Vec3, not_zero, to_f32


class Flag(enum.IntFlag):
    """Properties of a triangle."""

    MARK_DEGENERATE = 1
    QUAD_ONE_DEGEN_TRI = 2
    GROUP_WITH_ANY = 4
    ORIENT_PRESERVING = 8


def _without(flag: Flag, bit: Flag) -> Flag:
    return Flag(int(flag) & ~int(bit))


@dataclass(eq=False)
class TriInfo:
    """Working data of one triangle."""

    org_face_number: int = 0
    tspaces_offs: int = 0
    vert_num: tuple[int, int, int] = (0, 1, 2)
    flag: Flag = Flag(0)
    face_neighbors: list[int] = field(default_factory=lambda: [-1, -1, -1])
    assigned_group: list[Any] = field(default_factory=lambda: [None, None, None])
    v_os: Vec3 = field(default_factory=Vec3)
    v_ot: Vec3 = field(default_factory=Vec3)
    mag_s: float = 0.0
    mag_t: float = 0.0


def generate_initial_vertices_index_list(
    mesh: MeshInterface,
) -> tuple[list[TriInfo], list[int], int]:
    """Split the mesh's triangles and quads into triangles.

    Quads are split along their shorter texture-space diagonal, or along the
    shorter position diagonal when those are equal. Returns the triangle
    infos, the flat list of packed vertex indices and the total number of
    face vertices that receive a tangent space.
    """
    tri_infos: list[TriInfo] = []
    tri_list: list[int] = []
    offset = 0
    for f in range(mesh.get_num_faces()):
        verts = mesh.get_num_vertices_of_face(f)
        if verts not in (3, 4):
            continue
        if verts == 3:
            tri_infos.append(TriInfo(org_face_number=f, tspaces_offs=offset))
            tri_list.extend(make_index(f, v) for v in range(3))
        else:
            i0, i1, i2, i3 = (make_index(f, v) for v in range(4))
            t0, t1, t2, t3 = (tex_coord_at(mesh, i) for i in (i0, i1, i2, i3))
            dist_02 = (t2 - t0).length_squared()
            dist_13 = (t3 - t1).length_squared()
            if dist_02 < dist_13:
                diag_02 = True
            elif dist_13 < dist_02:
                diag_02 = False
            else:
                p0, p1, p2, p3 = (position_at(mesh, i) for i in (i0, i1, i2, i3))
                diag_02 = not (p3 - p1).length_squared() < (p2 - p0).length_squared()

            if diag_02:
                halves = (((0, 1, 2), (i0, i1, i2)), ((0, 2, 3), (i0, i2, i3)))
            else:
                halves = (((0, 1, 3), (i0, i1, i3)), ((1, 2, 3), (i1, i2, i3)))
            for vert_num, indices in halves:
                tri_infos.append(
                    TriInfo(org_face_number=f, tspaces_offs=offset, vert_num=vert_num)
                )
                tri_list.extend(indices)
        offset += verts
    return tri_infos, tri_list, offset


def degen_prologue(
    tri_infos: MutableSequence[TriInfo],
    tri_list: MutableSequence[int],
    num_good: int,
    num_total: int,
) -> None:
    """Mark quads with one degenerate half and move degenerate triangles last.

    The good triangles keep their relative order. Both sequences are
    updated in place.
    """
    t = 0
    while t < num_total - 1:
        a, b = tri_infos[t], tri_infos[t + 1]
        if a.org_face_number == b.org_face_number:
            deg_a = bool(a.flag & Flag.MARK_DEGENERATE)
            deg_b = bool(b.flag & Flag.MARK_DEGENERATE)
            if deg_a != deg_b:
                a.flag |= Flag.QUAD_ONE_DEGEN_TRI
                b.flag |= Flag.QUAD_ONE_DEGEN_TRI
            t += 2
        else:
            t += 1

    next_good = 1
    for t in range(num_good):
        if not tri_infos[t].flag & Flag.MARK_DEGENERATE:
            next_good = max(next_good, t + 2)
            continue
        while next_good < num_total and tri_infos[next_good].flag & Flag.MARK_DEGENERATE:
            next_good += 1
        if next_good >= num_total:
            break
        swap = next_good
        next_good += 1
        a, b = 3 * t, 3 * swap
        tri_list[a : a + 3], tri_list[b : b + 3] = tri_list[b : b + 3], tri_list[a : a + 3]
        tri_infos[t], tri_infos[swap] = tri_infos[swap], tri_infos[t]


def calc_tex_area(mesh: MeshInterface, indices: Sequence[int]) -> float:
    """Return twice the unsigned texture-space area of a triangle."""
    t1, t2, t3 = (tex_coord_at(mesh, i) for i in indices[:3])
    d21 = t2 - t1
    d31 = t3 - t1
    return abs(to_f32(to_f32(d21.x * d31.y) - to_f32(d21.y * d31.x)))


def init_tri_info(
    tri_infos: Sequence[TriInfo],
    tri_list: Sequence[int],
    mesh: MeshInterface,
    num_triangles: int,
) -> None:
    """Compute derivatives, orientation and neighbors of the first triangles."""
    for info in tri_infos[:num_triangles]:
        info.face_neighbors[:] = [-1, -1, -1]
        info.assigned_group[:] = [None, None, None]
        info.v_os = Vec3()
        info.v_ot = Vec3()
        info.mag_s = 0.0
        info.mag_t = 0.0
        info.flag |= Flag.GROUP_WITH_ANY

    for f, info in enumerate(tri_infos[:num_triangles]):
        indices = tri_list[3 * f : 3 * f + 3]
        v1, v2, v3 = (position_at(mesh, i) for i in indices)
        t1, t2, t3 = (tex_coord_at(mesh, i) for i in indices)
        t21 = t2 - t1
        t31 = t3 - t1
        d1 = v2 - v1
        d2 = v3 - v1

        signed_area = to_f32(to_f32(t21.x * t31.y) - to_f32(t21.y * t31.x))
        v_os = d1.scale(t31.y) - d2.scale(t21.y)
        v_ot = d1.scale(-t31.x) + d2.scale(t21.x)

        if signed_area > 0:
            info.flag |= Flag.ORIENT_PRESERVING

        if not_zero(signed_area):
            abs_area = abs(signed_area)
            len_os = v_os.length()
            len_ot = v_ot.length()
            sign = 1.0 if info.flag & Flag.ORIENT_PRESERVING else -1.0
            if not_zero(len_os):
                info.v_os = v_os.scale(sign / len_os)
            if not_zero(len_ot):
                info.v_ot = v_ot.scale(sign / len_ot)
            info.mag_s = to_f32(len_os / abs_area)
            info.mag_t = to_f32(len_ot / abs_area)
            if not_zero(info.mag_s) and not_zero(info.mag_t):
                info.flag = _without(info.flag, Flag.GROUP_WITH_ANY)

    # give both halves of an otherwise healthy quad the same orientation
    t = 0
    while t < num_triangles - 1:
        a, b = tri_infos[t], tri_infos[t + 1]
        if a.org_face_number != b.org_face_number:
            t += 1
            continue
        if not (a.flag | b.flag) & Flag.MARK_DEGENERATE:
            orient_a = bool(a.flag & Flag.ORIENT_PRESERVING)
            orient_b = bool(b.flag & Flag.ORIENT_PRESERVING)
            if orient_a != orient_b:
                choose_first = bool(b.flag & Flag.GROUP_WITH_ANY) or calc_tex_area(
                    mesh, tri_list[3 * t : 3 * t + 3]
                ) >= calc_tex_area(mesh, tri_list[3 * t + 3 : 3 * t + 6])
                src, dst = (a, b) if choose_first else (b, a)
                dst.flag = _without(dst.flag, Flag.ORIENT_PRESERVING) | (
                    src.flag & Flag.ORIENT_PRESERVING
                )
        t += 2

    build_neighbors_fast(
        [info.face_neighbors for info in tri_infos[:num_triangles]],
        tri_list,
        num_triangles,
    )