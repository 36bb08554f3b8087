"""Mesh access interface used by the tangent space generator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from .vecmath import Vec3


class MeshInterface(ABC):
    """Callbacks through which the generator reads a mesh and returns results.

    Faces are triangles or quads; other faces are ignored. Vertex numbers run
    over 0..2 for triangles and 0..3 for quads. Either or both result
    callbacks may be overridden; by default results are discarded.
    """

    @abstractmethod
    def get_num_faces(self) -> int:
        """Return the number of faces of the mesh."""

    @abstractmethod
    def get_num_vertices_of_face(self, face: int) -> int:
        """Return the number of vertices of ``face``."""

    @abstractmethod
    def get_position(self, face: int, vert: int) -> Sequence[float]:
        """Return the three position components of a face vertex."""

    @abstractmethod
    def get_normal(self, face: int, vert: int) -> Sequence[float]:
        """Return the three normal components of a face vertex."""

    @abstractmethod
    def get_tex_coord(self, face: int, vert: int) -> Sequence[float]:
        """Return the two texture coordinates of a face vertex."""

    def set_tspace(
        self,
        tangent: tuple[float, float, float],
        bitangent: tuple[float, float, float],
        mag_s: float,
        mag_t: float,
        orientation_preserving: bool,
        face: int,
        vert: int,
    ) -> None:
        """Receive the full tangent space of a face vertex."""

    def set_tspace_basic(
        self, tangent: tuple[float, float, float], sign: float, face: int, vert: int
    ) -> None:
        """Receive the unit tangent and bitangent sign of a face vertex."""


class ListMesh(MeshInterface):
    """A mesh held in plain lists, recording the tangent spaces it receives.

    ``faces`` lists, for each face, indices into ``positions``, ``normals``
    and ``tex_coords``. Results are stored in ``tspaces`` and
    ``basic_tspaces``, keyed by ``(face, vert)``.
    """

    def __init__(
        self,
        positions: Sequence[Sequence[float]],
        normals: Sequence[Sequence[float]],
        tex_coords: Sequence[Sequence[float]],
        faces: Sequence[Sequence[int]],
    ) -> None:
        self.positions = [tuple(float(c) for c in p[:3]) for p in positions]
        self.normals = [tuple(float(c) for c in n[:3]) for n in normals]
        self.tex_coords = [tuple(float(c) for c in t[:2]) for t in tex_coords]
        self.faces = [tuple(int(i) for i in f) for f in faces]
        for face in self.faces:
            for index in face:
                if not (
                    0 <= index < len(self.positions)
                    and index < len(self.normals)
                    and index < len(self.tex_coords)
                ):
                    raise IndexError(f"vertex index {index} out of range")
        self.tspaces: dict[
            tuple[int, int],
            tuple[tuple[float, float, float], tuple[float, float, float], float, float, bool],
        ] = {}
        self.basic_tspaces: dict[tuple[int, int], tuple[tuple[float, float, float], float]] = {}

    def get_num_faces(self) -> int:
        return len(self.faces)

    def get_num_vertices_of_face(self, face: int) -> int:
        return len(self.faces[face])

    def get_position(self, face: int, vert: int) -> tuple[float, ...]:
        return self.positions[self.faces[face][vert]]

    def get_normal(self, face: int, vert: int) -> tuple[float, ...]:
        return self.normals[self.faces[face][vert]]

    def get_tex_coord(self, face: int, vert: int) -> tuple[float, ...]:
        return self.tex_coords[self.faces[face][vert]]

    def set_tspace(self, tangent, bitangent, mag_s, mag_t, orientation_preserving, face, vert):
        self.tspaces[(face, vert)] = (
            tuple(tangent),
            tuple(bitangent),
            mag_s,
            mag_t,
            bool(orientation_preserving),
        )

    def set_tspace_basic(self, tangent, sign, face, vert):
        self.basic_tspaces[(face, vert)] = (tuple(tangent), sign)


def make_index(face: int, vert: int) -> int:
    """Pack a face number and a vertex number (0..3) into one index."""
    if not 0 <= vert < 4:
        raise ValueError(f"vertex number {vert} out of range 0..3")
    if face < 0:
        raise ValueError(f"face number {face} is negative")
    return (face << 2) | (vert & 0x3)


def index_to_data(index: int) -> tuple[int, int]:
    """Split a packed index into ``(face, vert)``."""
    return index >> 2, index & 0x3


def position_at(mesh: MeshInterface, index: int) -> Vec3:
    """Return the position stored at a packed index."""
    face, vert = index_to_data(index)
    x, y, z = mesh.get_position(face, vert)[:3]
    return Vec3(x, y, z)


def normal_at(mesh: MeshInterface, index: int) -> Vec3:
    """Return the normal stored at a packed index."""
    face, vert = index_to_data(index)
    x, y, z = mesh.get_normal(face, vert)[:3]
    return Vec3(x, y, z)


def tex_coord_at(mesh: MeshInterface, index: int) -> Vec3:
    """Return the texture coordinate at a packed index, with z set to 1."""
    face, vert = index_to_data(index)
    coords = mesh.get_tex_coord(face, vert)
    return Vec3(coords[0], coords[1], 1.0)