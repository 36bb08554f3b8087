"""Evaluation of tangent spaces for vertex groups and degenerate triangles."""

from __future__ import annotations

import math
from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass, field, replace

from .groups import Group
from .mesh import MeshInterface, make_index, normal_at, position_at
from .triinfo import Flag, TriInfo
from .vecmath import Vec3, to_f32

INTERNAL_SORT_SEED = 39871946
"""Seed of the pseudo-random pivot choice used when sorting members."""

_MASK32 = 0xFFFFFFFF


@dataclass(frozen=True)
class TSpace:
    """A tangent space: unit tangent and bitangent with their magnitudes."""

    v_os: Vec3 = field(default_factory=lambda: Vec3(1.0, 0.0, 0.0))
    mag_s: float = 1.0
    v_ot: Vec3 = field(default_factory=lambda: Vec3(0.0, 1.0, 0.0))
    mag_t: float = 1.0
    counter: int = 0
    orient: bool = False


def _normalized_if_nonzero(v: Vec3) -> Vec3:
    return v.normalized() if v.is_nonzero() else v


def _project(v: Vec3, n: Vec3) -> Vec3:
    return _normalized_if_nonzero(v - n.scale(n.dot(v)))


def avg_tspace(first: TSpace, second: TSpace) -> TSpace:
    """Return the average of two tangent spaces.

    Identical spaces are returned unchanged so that rounding cannot split them.
    """
    if (
        first.mag_s == second.mag_s
        and first.mag_t == second.mag_t
        and first.v_os == second.v_os
        and first.v_ot == second.v_ot
    ):
        return TSpace(v_os=first.v_os, mag_s=first.mag_s, v_ot=first.v_ot, mag_t=first.mag_t)
    return TSpace(
        v_os=_normalized_if_nonzero(first.v_os + second.v_os),
        mag_s=to_f32(0.5 * to_f32(first.mag_s + second.mag_s)),
        v_ot=_normalized_if_nonzero(first.v_ot + second.v_ot),
        mag_t=to_f32(0.5 * to_f32(first.mag_t + second.mag_t)),
    )


def _next_seed(seed: int) -> int:
    shift = seed & 31
    rotated = ((seed << shift) | (seed >> (32 - shift))) & _MASK32
    return (seed + rotated + 3) & _MASK32


def quick_sort(values: MutableSequence[int], left: int, right: int, seed: int) -> None:
    """Sort ``values[left:right + 1]`` in place."""
    stack = [(left, right, seed)]
    while stack:
        lo, hi, s = stack.pop()
        count = hi - lo + 1
        if count <= 0:
            continue
        s = _next_seed(s)
        pivot = values[lo + s % count]
        il, ir = lo, hi
        while True:
            while values[il] < pivot:
                il += 1
            while values[ir] > pivot:
                ir -= 1
            if il <= ir:
                values[il], values[ir] = values[ir], values[il]
                il += 1
                ir -= 1
            if il > ir:
                break
        if lo < ir:
            stack.append((lo, ir, s))
        if il < hi:
            stack.append((il, hi, s))


def _vertex_slot(tri_list: Sequence[int], tri_index: int, vertex: int) -> int:
    corners = list(tri_list[3 * tri_index : 3 * tri_index + 3])
    try:
        return corners.index(vertex)
    except ValueError:
        raise ValueError(
            f"triangle {tri_index} does not use vertex {vertex}"
        ) from None


def eval_tspace(
    face_indices: Sequence[int],
    tri_list: Sequence[int],
    tri_infos: Sequence[TriInfo],
    mesh: MeshInterface,
    vertex_representative: int,
) -> TSpace:
    """Average the triangles' tangent frames at a vertex, weighted by corner angle."""
    v_os = Vec3()
    v_ot = Vec3()
    mag_s = 0.0
    mag_t = 0.0
    angle_sum = 0.0

    for f in face_indices:
        info = tri_infos[f]
        if info.flag & Flag.GROUP_WITH_ANY:
            continue
        i = _vertex_slot(tri_list, f, vertex_representative)
        index = tri_list[3 * f + i]
        n = normal_at(mesh, index)
        os_f = _project(info.v_os, n)
        ot_f = _project(info.v_ot, n)

        i2 = tri_list[3 * f + (i + 1) % 3]
        i0 = tri_list[3 * f + (i - 1) % 3]
        p0 = position_at(mesh, i0)
        p1 = position_at(mesh, index)
        p2 = position_at(mesh, i2)
        v1 = _project(p0 - p1, n)
        v2 = _project(p2 - p1, n)

        cos = min(1.0, max(-1.0, v1.dot(v2)))
        angle = to_f32(math.acos(cos))

        v_os = v_os + os_f.scale(angle)
        v_ot = v_ot + ot_f.scale(angle)
        mag_s = to_f32(mag_s + to_f32(angle * info.mag_s))
        mag_t = to_f32(mag_t + to_f32(angle * info.mag_t))
        angle_sum = to_f32(angle_sum + angle)

    if angle_sum > 0:
        mag_s = to_f32(mag_s / angle_sum)
        mag_t = to_f32(mag_t / angle_sum)
    return TSpace(
        v_os=_normalized_if_nonzero(v_os),
        mag_s=mag_s,
        v_ot=_normalized_if_nonzero(v_ot),
        mag_t=mag_t,
    )


def generate_tspaces(
    tri_infos: Sequence[TriInfo],
    groups: Sequence[Group],
    tri_list: Sequence[int],
    thres_cos: float,
    mesh: MeshInterface,
    num_tspaces: int,
) -> list[TSpace]:
    """Return one tangent space per face vertex, built from the groups.

    Each group is split into subgroups whose members' tangent frames agree
    within ``thres_cos``; a tangent space is evaluated for every subgroup.
    Face vertices that no group reaches keep the default space.
    """
    tspaces = [TSpace() for _ in range(num_tspaces)]
    thres = to_f32(thres_cos)

    for group in groups:
        subgroups: list[tuple[list[int], TSpace]] = []
        for f in group.face_indices:
            info = tri_infos[f]
            index = next(
                (k for k, g in enumerate(info.assigned_group) if g is group), None
            )
            if index is None:
                raise ValueError(f"triangle {f} is not assigned to its group")

            n = normal_at(mesh, tri_list[3 * f + index])
            os_f = _project(info.v_os, n)
            ot_f = _project(info.v_ot, n)

            members: list[int] = []
            for t in group.face_indices:
                other = tri_infos[t]
                any_bad = bool((info.flag | other.flag) & Flag.GROUP_WITH_ANY)
                same_face = info.org_face_number == other.org_face_number
                if any_bad or same_face:
                    members.append(t)
                    continue
                cos_s = os_f.dot(_project(other.v_os, n))
                cos_t = ot_f.dot(_project(other.v_ot, n))
                if cos_s > thres and cos_t > thres:
                    members.append(t)

            if len(members) > 1:
                quick_sort(members, 0, len(members) - 1, INTERNAL_SORT_SEED)

            space = next((ts for m, ts in subgroups if m == members), None)
            if space is None:
                space = eval_tspace(
                    members, tri_list, tri_infos, mesh, group.vertex_representative
                )
                subgroups.append((members, space))

            offs = info.tspaces_offs + info.vert_num[index]
            current = tspaces[offs]
            if current.counter == 1:
                tspaces[offs] = replace(
                    avg_tspace(current, space), counter=2, orient=group.orient_preserving
                )
            else:
                tspaces[offs] = replace(space, counter=1, orient=group.orient_preserving)
    return tspaces


def degen_epilogue(
    tspaces: MutableSequence[TSpace],
    tri_infos: Sequence[TriInfo],
    tri_list: Sequence[int],
    mesh: MeshInterface,
    num_good: int,
    num_total: int,
) -> None:
    """Give degenerate triangles' vertices a tangent space from good triangles.

    Vertices of degenerate triangles copy the space of the first good
    triangle corner with the same welded index. A quad with one good half
    copies into its missing vertex the space of a coinciding vertex. The
    sequence ``tspaces`` is updated in place.
    """
    good_corners = list(tri_list[: 3 * num_good])
    for t in range(num_good, num_total):
        info = tri_infos[t]
        if info.flag & Flag.QUAD_ONE_DEGEN_TRI:
            continue
        for i in range(3):
            try:
                j = good_corners.index(tri_list[3 * t + i])
            except ValueError:
                continue
            src = tri_infos[j // 3]
            tspaces[info.tspaces_offs + info.vert_num[i]] = tspaces[
                src.tspaces_offs + src.vert_num[j % 3]
            ]

    for info in tri_infos[:num_good]:
        if not info.flag & Flag.QUAD_ONE_DEGEN_TRI:
            continue
        used = {v for v in info.vert_num}
        missing = next((v for v in (1, 2, 3) if v not in used), 0)
        face = info.org_face_number
        dst_p = position_at(mesh, make_index(face, missing))
        for vert in info.vert_num:
            if position_at(mesh, make_index(face, vert)) == dst_p:
                tspaces[info.tspaces_offs + missing] = tspaces[info.tspaces_offs + vert]
                break