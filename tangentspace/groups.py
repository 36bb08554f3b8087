"""Grouping of triangle corners that share a vertex and an orientation.

A group collects the triangles around one welded vertex that are connected
through shared edges and agree on whether their texture mapping preserves
orientation. Triangles whose mapping is unusable join the first group that
reaches them.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .triinfo import Flag, TriInfo


@dataclass(eq=False)
class Group:
    """Triangles sharing the vertex ``vertex_representative``."""

    vertex_representative: int
    orient_preserving: bool
    face_indices: list[int] = field(default_factory=list)


def _vertex_slot(tri_list: Sequence[int], tri_index: int, vertex: int) -> int:
    corners = list(tri_list[3 * tri_index : 3 * tri_index + 3])
    try:
        return corners.index(vertex)
    except ValueError:
        raise ValueError(
            f"triangle {tri_index} does not use vertex {vertex}"
        ) from None


def _assign_one(
    tri_list: Sequence[int],
    tri_infos: Sequence[TriInfo],
    tri_index: int,
    group: Group,
) -> tuple[bool, list[int]]:
    """Try to add one triangle to ``group``; return the outcome and the
    neighbors to visit next, in visiting order."""
    info = tri_infos[tri_index]
    slot = _vertex_slot(tri_list, tri_index, group.vertex_representative)

    assigned = info.assigned_group[slot]
    if assigned is group:
        return True, []
    if assigned is not None:
        return False, []

    if info.flag & Flag.GROUP_WITH_ANY and all(g is None for g in info.assigned_group):
        # the first group to reach such a triangle decides its orientation
        info.flag = Flag(int(info.flag) & ~int(Flag.ORIENT_PRESERVING))
        if group.orient_preserving:
            info.flag |= Flag.ORIENT_PRESERVING

    if bool(info.flag & Flag.ORIENT_PRESERVING) != group.orient_preserving:
        return False, []

    group.face_indices.append(tri_index)
    info.assigned_group[slot] = group

    left = info.face_neighbors[slot]
    right = info.face_neighbors[(slot - 1) % 3]
    return True, [n for n in (left, right) if n >= 0]


def assign_recur(
    tri_list: Sequence[int],
    tri_infos: Sequence[TriInfo],
    tri_index: int,
    group: Group,
) -> bool:
    """Add ``tri_index`` and every edge-connected triangle it reaches to ``group``.

    Returns whether ``tri_index`` itself belongs to ``group`` afterwards.
    Triangles are visited depth first, left neighbor before right neighbor.
    """
    result, pending = _assign_one(tri_list, tri_infos, tri_index, group)
    stack = list(reversed(pending))
    while stack:
        _, nxt = _assign_one(tri_list, tri_infos, stack.pop(), group)
        stack.extend(reversed(nxt))
    return result


def build_4rule_groups(
    tri_infos: Sequence[TriInfo], tri_list: Sequence[int], num_triangles: int
) -> list[Group]:
    """Build the vertex groups of the first ``num_triangles`` triangles."""
    groups: list[Group] = []
    for f, info in enumerate(tri_infos[:num_triangles]):
        for i in range(3):
            if info.flag & Flag.GROUP_WITH_ANY or info.assigned_group[i] is not None:
                continue
            group = Group(
                vertex_representative=tri_list[3 * f + i],
                orient_preserving=bool(info.flag & Flag.ORIENT_PRESERVING),
            )
            groups.append(group)
            info.assigned_group[i] = group
            group.face_indices.append(f)

            left = info.face_neighbors[i]
            right = info.face_neighbors[(i - 1) % 3]
            if left >= 0:
                assign_recur(tri_list, tri_infos, left, group)
            if right >= 0:
                assign_recur(tri_list, tri_infos, right, group)
    return groups