"""Mesh face codec.

Faces are flattened into one integer stream where every face is prefixed
by a discriminator: ``[0, a, b, c]`` for a triangle and ``[1, a, b, c, d]``
for a quad.  Vertex positions are flattened separately as ``3N`` floats.
"""

from __future__ import annotations

import logging
import numbers
from typing import List, Sequence, Tuple

from cadxchange.errors import MalformedInputError
from cadxchange.native import Mesh
from cadxchange.numeric import flatten_points, points_from_flat
from cadxchange.records import MeshRecord
from cadxchange.settings import DEFAULT_SETTINGS, ConversionSettings

logger = logging.getLogger(__name__)

TRIANGLE = 0
QUAD = 1

_FACE_SIZES = {TRIANGLE: 3, QUAD: 4}
_DISCRIMINATORS = {3: TRIANGLE, 4: QUAD}


def _is_index(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def encode_faces(faces: Sequence[Sequence[int]]) -> List[int]:
    stream: List[int] = []
    for idx, face in enumerate(faces):
        tag = _DISCRIMINATORS.get(len(face))
        if tag is None:
            raise MalformedInputError(f"face {idx} has {len(face)} vertices; only triangles and quads are supported")
        stream.append(tag)
        stream.extend(int(i) for i in face)
    return stream


def decode_faces(stream: Sequence[int]) -> List[Tuple[int, ...]]:
    """Split a tagged face stream back into faces.

    Raises:
        MalformedInputError: on an unknown or non-integer discriminator, a
            non-integer index, or a truncated face.
    """

    faces: List[Tuple[int, ...]] = []
    cursor = 0
    total = len(stream)
    while cursor < total:
        tag = stream[cursor]
        size = _FACE_SIZES.get(tag) if _is_index(tag) else None
        if size is None:
            raise MalformedInputError(f"invalid face discriminator {tag!r} at offset {cursor}")
        if cursor + 1 + size > total:
            raise MalformedInputError(
                f"face at offset {cursor} needs {size} indices, only {total - cursor - 1} remain"
            )
        face = stream[cursor + 1:cursor + 1 + size]
        if not all(_is_index(i) for i in face):
            raise MalformedInputError(f"face at offset {cursor} has non-integer indices {list(face)!r}")
        faces.append(tuple(int(i) for i in face))
        cursor += 1 + size
    return faces


def mesh_to_record(mesh: Mesh, settings: ConversionSettings = DEFAULT_SETTINGS) -> MeshRecord:
    vertices = flatten_points(mesh.vertex_positions)
    faces = encode_faces(mesh.face_indices)
    colors = (settings.mesh_color_argb,) * len(mesh.vertex_positions)
    logger.debug("encoded mesh with %d vertices and %d faces", len(mesh.vertex_positions),
                 len(mesh.face_indices))
    return MeshRecord(tuple(vertices), tuple(faces), colors)


def mesh_from_record(record: MeshRecord) -> Mesh:
    return Mesh.by_points_face_indices(points_from_flat(record.vertices), decode_faces(record.faces))


__all__ = [
    "TRIANGLE",
    "QUAD",
    "encode_faces",
    "decode_faces",
    "mesh_to_record",
    "mesh_from_record",
]
