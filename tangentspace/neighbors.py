"""Adjacency between triangles that share an edge.

Triangles are given as a flat list of vertex indices, three per triangle.
Neighbor information is a list with one ``[n0, n1, n2]`` entry per triangle,
where ``n_i`` is the triangle on the other side of edge ``i`` (the edge from
vertex ``i`` to vertex ``i + 1``), or -1 when there is none.
"""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence

INTERNAL_SORT_SEED = 39871946
"""Seed of the pseudo-random pivot choice used by the sorts."""

_MASK32 = 0xFFFFFFFF

Edge = tuple[int, int, int]
"""An edge as ``(smaller index, larger index, triangle)``."""


def _next_seed(seed: int) -> int:
    shift = seed & 31
    rotated = ((seed << shift) | (seed >> (32 - shift))) & _MASK32
    return (seed + rotated + 3) & _MASK32


def get_edge(indices: Sequence[int], i0: int, i1: int) -> tuple[int, int, int]:
    """Find the edge of a triangle joining ``i0`` and ``i1``.

    Returns ``(first, second, edge_number)`` where ``first`` and ``second``
    are the edge's end points in the triangle's own winding order.
    """
    a, b, c = indices[0], indices[1], indices[2]
    if a in (i0, i1):
        if b in (i0, i1):
            return a, b, 0
        return c, a, 2
    return b, c, 1


def quick_sort_edges(
    edges: MutableSequence[Edge], left: int, right: int, channel: int, seed: int
) -> None:
    """Sort ``edges[left:right + 1]`` in place by component ``channel``."""
    stack = [(left, right, seed)]
    while stack:
        lo, hi, s = stack.pop()
        count = hi - lo + 1
        if count < 2:
            continue
        if count == 2:
            if edges[lo][channel] > edges[hi][channel]:
                edges[lo], edges[hi] = edges[hi], edges[lo]
            continue

        s = _next_seed(s)
        pivot = edges[lo + s % count][channel]
        il, ir = lo, hi
        while True:
            while edges[il][channel] < pivot:
                il += 1
            while edges[ir][channel] > pivot:
                ir -= 1
            if il <= ir:
                edges[il], edges[ir] = edges[ir], edges[il]
                il += 1
                ir -= 1
            if il > ir:
                break

        if lo < ir:
            stack.append((lo, ir, s))
        if il < hi:
            stack.append((il, hi, s))


def _check_sizes(
    neighbors: Sequence[Sequence[int]], tri_list: Sequence[int], num_triangles: int
) -> None:
    if num_triangles < 0:
        raise ValueError(f"negative triangle count {num_triangles}")
    if len(tri_list) < 3 * num_triangles:
        raise ValueError("triangle list is shorter than the triangle count")
    if len(neighbors) < num_triangles:
        raise ValueError("neighbor list is shorter than the triangle count")


def build_neighbors_fast(
    neighbors: Sequence[MutableSequence[int]],
    tri_list: Sequence[int],
    num_triangles: int,
) -> Sequence[MutableSequence[int]]:
    """Fill ``neighbors`` by sorting all edges; entries already set are kept.

    Returns ``neighbors``, which is updated in place.
    """
    _check_sizes(neighbors, tri_list, num_triangles)
    seed = INTERNAL_SORT_SEED
    edges: list[Edge] = []
    for f in range(num_triangles):
        tri = tri_list[3 * f : 3 * f + 3]
        for i in range(3):
            a, b = tri[i], tri[(i + 1) % 3]
            edges.append((min(a, b), max(a, b), f))

    entries = len(edges)
    quick_sort_edges(edges, 0, entries - 1, 0, seed)

    start = 0
    for i in range(1, entries):
        if edges[start][0] != edges[i][0]:
            quick_sort_edges(edges, start, i - 1, 1, seed)
            start = i

    # order by triangle so shared edges pair up like the exhaustive search
    start = 0
    for i in range(1, entries):
        if edges[start][0] != edges[i][0] or edges[start][1] != edges[i][1]:
            quick_sort_edges(edges, start, i - 1, 2, seed)
            start = i

    for i, (i0, i1, f) in enumerate(edges):
        i0_a, i1_a, edge_a = get_edge(tri_list[3 * f : 3 * f + 3], i0, i1)
        if neighbors[f][edge_a] != -1:
            continue
        for j in range(i + 1, entries):
            j0, j1, t = edges[j]
            if j0 != i0 or j1 != i1:
                break
            i1_b, i0_b, edge_b = get_edge(tri_list[3 * t : 3 * t + 3], j0, j1)
            if i0_a == i0_b and i1_a == i1_b and neighbors[t][edge_b] == -1:
                neighbors[f][edge_a] = t
                neighbors[t][edge_b] = f
                break
    return neighbors


def build_neighbors_slow(
    neighbors: Sequence[MutableSequence[int]],
    tri_list: Sequence[int],
    num_triangles: int,
) -> Sequence[MutableSequence[int]]:
    """Fill ``neighbors`` by comparing every edge with every other triangle.

    Returns ``neighbors``, which is updated in place.
    """
    _check_sizes(neighbors, tri_list, num_triangles)
    for f in range(num_triangles):
        for i in range(3):
            if neighbors[f][i] != -1:
                continue
            i0_a = tri_list[3 * f + i]
            i1_a = tri_list[3 * f + (i + 1) % 3]
            match = next(
                (
                    (t, j)
                    for t in range(num_triangles)
                    if t != f
                    for j in range(3)
                    if tri_list[3 * t + (j + 1) % 3] == i0_a
                    and tri_list[3 * t + j] == i1_a
                ),
                None,
            )
            if match is not None:
                t, j = match
                neighbors[f][i] = t
                neighbors[t][j] = f
    return neighbors