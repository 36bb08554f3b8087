# tangentspace

Per-vertex tangent space generation for meshes made of triangles and quads.

The generator welds vertices that share position, normal and texture
coordinate, groups the triangles around each vertex by connectivity and
texture orientation, and averages an angle-weighted tangent and bitangent for
each group. The result does not depend on the order of faces or the order of
vertices within a face. Degenerate triangles take their tangent space from
neighbouring healthy ones. All arithmetic is rounded to single precision.

Quads are split along their shorter texture-space diagonal, or their shorter
position-space diagonal when the texture diagonals are equal. Faces with a
vertex count other than 3 or 4 are skipped.

## Installation

```
pip install .
```

The package has no runtime dependencies. For the test suite:

```
pip install .[test]
pytest
```

## Usage

Describe the mesh with a `MeshInterface`. For meshes held in plain Python
lists, `tangentspace.mesh.ListMesh` is ready to use: it takes per-vertex
positions, normals and texture coordinates, and a list of faces, each a
sequence of vertex indices. An index out of range raises `IndexError`.

```python
from tangentspace.mesh import ListMesh
from tangentspace.generator import gen_tang_space_default

positions = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
normals = [(0, 0, 1)] * 4
tex_coords = [(0, 0), (1, 0), (1, 1), (0, 1)]
faces = [(0, 1, 2, 3)]

mesh = ListMesh(positions, normals, tex_coords, faces)
spaces = gen_tang_space_default(mesh)

tangent, sign = mesh.basic_tspaces[(0, 0)]
```

Results are handed to the mesh's `set_tspace` and `set_tspace_basic` methods,
once per face corner. `set_tspace` receives the unit tangent and bitangent,
their true magnitudes and whether the texture mapping preserves orientation.
`set_tspace_basic` receives the unit tangent and a sign of `1.0` or `-1.0`,
enough for ordinary normal mapping:

```
bitangent = sign * cross(normal, tangent)
```

`ListMesh` stores these in its `tspaces` and `basic_tspaces` dictionaries,
keyed by `(face, vert)`.

The generator functions also return the tangent spaces as a list of
`tangentspace.tspace.TSpace` values, in the order they were reported: face by
face, vertex by vertex, skipping faces that are not triangles or quads. Each
`TSpace` has `v_os` (tangent), `v_ot` (bitangent), `mag_s`, `mag_t` and
`orient`.

Results are unindexed: one per face corner, never merged into an existing
index list.

### Angular threshold

`gen_tang_space(mesh, angular_threshold)` takes a threshold in degrees.
Triangles around a vertex whose projected tangent frames differ by more than
this are given separate tangent spaces. `gen_tang_space_default` uses 180
degrees (`DEFAULT_ANGULAR_THRESHOLD`), which turns the split off.

### Errors

`tangentspace.generator.TangentSpaceError` is raised when the mesh has no
triangles or quads to work on.

### Custom meshes

Subclass `MeshInterface` and implement `get_num_faces`,
`get_num_vertices_of_face`, `get_position`, `get_normal` and `get_tex_coord`.
Override either or both of `set_tspace` and `set_tspace_basic` to receive
results; by default they are discarded. Vertex numbers run from 0 to 2 for
triangles and from 0 to 3 for quads. Normals are expected to be unit length.

## Modules

- `tangentspace.generator`: `gen_tang_space`, `gen_tang_space_default`,
  `TangentSpaceError`.
- `tangentspace.mesh`: `MeshInterface`, `ListMesh`, and the packed
  `(face, vert)` index helpers `make_index`, `index_to_data`, `position_at`,
  `normal_at`, `tex_coord_at`.
- `tangentspace.vecmath`: the single-precision `Vec3`, `to_f32` and
  `not_zero`.
- `tangentspace.welding`: `weld_vertices` (grid-hashed) and
  `weld_vertices_slow` (exhaustive), plus `find_grid_cell`.
- `tangentspace.neighbors`: edge adjacency with `build_neighbors_fast` and
  `build_neighbors_slow`.
- `tangentspace.triinfo`: per-triangle data (`TriInfo`, `Flag`), quad
  splitting, degenerate-triangle ordering and derivative evaluation.
- `tangentspace.groups`: vertex groups (`Group`, `build_4rule_groups`).
- `tangentspace.tspace`: tangent space evaluation (`TSpace`,
  `generate_tspaces`, `eval_tspace`, `degen_epilogue`).

## What it does not do

The package is a library only. It has no command-line program, does not read
or write mesh files, and does not render anything: the caller supplies the
mesh through `MeshInterface` and uses the results.