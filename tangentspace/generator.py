"""Generation of per-vertex tangent spaces for triangle and quad meshes.

The result for a mesh does not depend on the order of its faces or on the
order of the vertices within a face. Vertices of degenerate triangles take
their tangent space from neighboring good triangles.
"""

from __future__ import annotations

import math

from .groups import build_4rule_groups
from .mesh import MeshInterface, position_at
from .triinfo import Flag, degen_prologue, generate_initial_vertices_index_list, init_tri_info
from .tspace import TSpace, degen_epilogue, generate_tspaces
from .vecmath import to_f32
from .welding import weld_vertices

DEFAULT_ANGULAR_THRESHOLD = 180.0
"""Default angular threshold in degrees; 180 disables splitting."""

_PI_F32 = to_f32(math.pi)


class TangentSpaceError(Exception):
    """Raised when no tangent space can be generated for a mesh."""


def _threshold_cos(angular_threshold: float) -> float:
    radians = to_f32(to_f32(to_f32(angular_threshold) * _PI_F32) / 180.0)
    return to_f32(math.cos(radians))


def _supported_vertex_counts(mesh: MeshInterface) -> list[tuple[int, int]]:
    faces = []
    for face in range(mesh.get_num_faces()):
        verts = mesh.get_num_vertices_of_face(face)
        if verts in (3, 4):
            faces.append((face, verts))
    return faces


def gen_tang_space(mesh: MeshInterface, angular_threshold: float) -> list[TSpace]:
    """Generate tangent spaces for ``mesh`` and hand them to its callbacks.

    Tangent frames around a vertex whose directions differ by more than
    ``angular_threshold`` degrees get separate tangent spaces. Every vertex
    of every triangle and quad is reported through ``set_tspace`` and
    ``set_tspace_basic``. The spaces are also returned, in the order in
    which they were reported.

    Raises TangentSpaceError when the mesh has no triangles or quads.
    """
    thres_cos = _threshold_cos(angular_threshold)
    faces = _supported_vertex_counts(mesh)
    num_triangles = sum(1 if verts == 3 else 2 for _, verts in faces)
    if num_triangles <= 0:
        raise TangentSpaceError("mesh has no triangles or quads")

    tri_infos, tri_list, num_tspaces = generate_initial_vertices_index_list(mesh)
    tri_list = weld_vertices(tri_list, mesh)

    num_total = len(tri_infos)
    num_degenerate = 0
    for t, info in enumerate(tri_infos):
        p0, p1, p2 = (position_at(mesh, i) for i in tri_list[3 * t : 3 * t + 3])
        if p0 == p1 or p0 == p2 or p1 == p2:
            info.flag |= Flag.MARK_DEGENERATE
            num_degenerate += 1
    num_good = num_total - num_degenerate

    degen_prologue(tri_infos, tri_list, num_good, num_total)
    init_tri_info(tri_infos, tri_list, mesh, num_good)
    groups = build_4rule_groups(tri_infos, tri_list, num_good)
    tspaces = generate_tspaces(tri_infos, groups, tri_list, thres_cos, mesh, num_tspaces)
    degen_epilogue(tspaces, tri_infos, tri_list, mesh, num_good, num_total)

    reported: list[TSpace] = []
    spaces = iter(tspaces)
    for face, verts in faces:
        for vert in range(verts):
            space = next(spaces)
            tangent = tuple(space.v_os)
            bitangent = tuple(space.v_ot)
            mesh.set_tspace(
                tangent, bitangent, space.mag_s, space.mag_t, space.orient, face, vert
            )
            mesh.set_tspace_basic(tangent, 1.0 if space.orient else -1.0, face, vert)
            reported.append(space)
    return reported


def gen_tang_space_default(mesh: MeshInterface) -> list[TSpace]:
    """Generate tangent spaces with the angular threshold disabled."""
    return gen_tang_space(mesh, DEFAULT_ANGULAR_THRESHOLD)