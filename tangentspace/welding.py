"""Welding of face vertices that share position, normal and texture coordinate.

A triangle list holds packed ``(face, vert)`` indices, three per triangle.
Welding replaces every index by the index of one representative vertex whose
position, normal and texture coordinate are identical. Vertices are first
bucketed into a uniform grid along the longest bounding-box axis. Each bucket
is then split recursively until the welding candidates can be compared
directly.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from .mesh import MeshInterface, normal_at, position_at, tex_coord_at
from .vecmath import Vec3, to_f32

GRID_CELLS = 2048
"""Number of grid cells used to bucket vertices."""

_Attributes = tuple[Vec3, Vec3, Vec3]
_TmpVert = tuple[tuple[float, float, float], int]


def find_grid_cell(f_min: float, f_max: float, value: float) -> int:
    """Return the grid cell, in 0..GRID_CELLS-1, that ``value`` falls into.

    The computation is carried out in single precision. A non-finite cell
    position, such as one produced by a NaN or by an empty range, falls into
    the first cell.
    """
    offset = to_f32(value - f_min)
    span = to_f32(f_max - f_min)
    if span == 0.0:
        if offset == 0.0 or math.isnan(offset):
            ratio = math.nan
        else:
            ratio = math.copysign(math.inf, offset) * math.copysign(1.0, span)
    else:
        ratio = to_f32(offset / span)
    f_index = to_f32(GRID_CELLS * ratio)
    if not math.isfinite(f_index):
        return 0
    index = int(f_index)
    if index >= GRID_CELLS:
        return GRID_CELLS - 1
    return max(index, 0)


def _attributes(mesh: MeshInterface, index: int) -> _Attributes:
    return position_at(mesh, index), normal_at(mesh, index), tex_coord_at(mesh, index)


def _same(first: _Attributes, second: _Attributes) -> bool:
    return all(a == b for a, b in zip(first, second))


def _check_length(tri_list: Sequence[int]) -> None:
    if len(tri_list) % 3:
        raise ValueError(
            f"triangle list length {len(tri_list)} is not a multiple of three"
        )


def weld_vertices(tri_list: Sequence[int], mesh: MeshInterface) -> list[int]:
    """Return ``tri_list`` with identical vertices merged, using grid hashing."""
    _check_length(tri_list)
    welded = list(tri_list)
    if not welded:
        return welded

    first = position_at(mesh, 0)
    mins = list(first)
    maxs = list(first)
    for index in welded[1:]:
        point = tuple(position_at(mesh, index))
        for c in range(3):
            if mins[c] > point[c]:
                mins[c] = point[c]
            elif maxs[c] < point[c]:
                maxs[c] = point[c]

    dim = [to_f32(hi - lo) for hi, lo in zip(maxs, mins)]
    channel = 0
    if dim[1] > dim[0] and dim[1] > dim[2]:
        channel = 1
    elif dim[2] > dim[0]:
        channel = 2
    f_min, f_max = mins[channel], maxs[channel]

    cells: dict[int, list[int]] = {}
    for i, index in enumerate(welded):
        point = tuple(position_at(mesh, index))
        cells.setdefault(find_grid_cell(f_min, f_max, point[channel]), []).append(i)

    for members in cells.values():
        if len(members) < 2:
            continue
        verts: list[_TmpVert] = [
            (tuple(position_at(mesh, welded[i])), i) for i in members
        ]
        _merge_verts_fast(welded, verts, mesh)
    return welded


def _merge_verts_fast(
    tri_list: list[int], verts: list[_TmpVert], mesh: MeshInterface
) -> None:
    stack = [(0, len(verts) - 1)]
    while stack:
        lo, hi = stack.pop()
        mins = list(verts[lo][0])
        maxs = list(mins)
        for point, _ in verts[lo + 1 : hi + 1]:
            for c in range(3):
                if mins[c] > point[c]:
                    mins[c] = point[c]
                if maxs[c] < point[c]:
                    maxs[c] = point[c]

        dx, dy, dz = (to_f32(maxs[c] - mins[c]) for c in range(3))
        channel = 0
        if dy > dx and dy > dz:
            channel = 1
        elif dz > dx:
            channel = 2

        sep = to_f32(0.5 * to_f32(maxs[channel] + mins[channel]))
        # every vertex in the range is NaN
        if not math.isfinite(sep):
            continue

        if sep >= maxs[channel] or sep <= mins[channel]:
            _weld_range(tri_list, verts[lo : hi + 1], mesh)
            continue

        il, ir = lo, hi
        while il < ir:
            ready_left = ready_right = False
            while not ready_left and il < ir:
                ready_left = not verts[il][0][channel] < sep
                if not ready_left:
                    il += 1
            while not ready_right and il < ir:
                ready_right = verts[ir][0][channel] < sep
                if not ready_right:
                    ir -= 1
            if ready_left and ready_right:
                verts[il], verts[ir] = verts[ir], verts[il]
                il += 1
                ir -= 1

        if il == ir:
            if verts[ir][0][channel] < sep:
                il += 1
            else:
                ir -= 1

        if il < hi:
            stack.append((il, hi))
        if lo < ir:
            stack.append((lo, ir))


def _weld_range(
    tri_list: list[int], verts: Sequence[_TmpVert], mesh: MeshInterface
) -> None:
    seen: list[tuple[_Attributes, int]] = []
    for _, i in verts:
        attrs = _attributes(mesh, tri_list[i])
        match = next((i2 for attrs2, i2 in seen if _same(attrs, attrs2)), None)
        if match is not None:
            tri_list[i] = tri_list[match]
        seen.append((attrs, i))


def weld_vertices_slow(tri_list: Sequence[int], mesh: MeshInterface) -> list[int]:
    """Return ``tri_list`` with identical vertices merged, by exhaustive search.

    Each vertex is replaced by the first vertex with identical attributes in
    its own triangle or in any triangle before it.
    """
    _check_length(tri_list)
    welded = list(tri_list)
    for offs, index in enumerate(welded):
        attrs = _attributes(mesh, index)
        limit = (offs // 3 + 1) * 3
        for index2 in welded[:limit]:
            if _same(attrs, _attributes(mesh, index2)):
                welded[offs] = index2
                break
    return welded