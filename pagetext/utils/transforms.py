"""Affine transformation utilities for text-layer geometry."""

from typing import Iterable, List, Sequence, Tuple

import numpy as np

MATRIX_EPSILON = 1e-9


def _to_matrix(m: Sequence[float]) -> np.ndarray:
    a, b, c, d, e, f = m
    return np.array([[a, b, 0.0], [c, d, 0.0], [e, f, 1.0]], dtype=float)


def compose_transform(m1: Sequence[float], m2: Sequence[float]) -> List[float]:
    """Compose two 6-element matrices, applying `m2` first and then `m1`.

    Matches the operand order used when a viewport transform is combined
    with a text item transform: `compose_transform(viewport, item)`.

    Args:
        m1: Outer matrix [a, b, c, d, e, f]
        m2: Inner matrix [a, b, c, d, e, f]

    Returns:
        Composed 6-element matrix
    """
    product = _to_matrix(m2) @ _to_matrix(m1)
    return [
        float(product[0, 0]), float(product[0, 1]),
        float(product[1, 0]), float(product[1, 1]),
        float(product[2, 0]), float(product[2, 1]),
    ]


def rotation_degrees(matrix: Sequence[float]) -> float:
    """Rotation of a matrix's x axis, normalized into (-180, 180].

    Args:
        matrix: 6-element matrix [a, b, c, d, e, f]

    Returns:
        Angle in degrees, counter-clockwise in the matrix's own space
    """
    a, b = matrix[0], matrix[1]
    rotation = float(np.degrees(np.arctan2(b, a)))
    if rotation <= -180.0:
        rotation += 360.0
    return rotation


def viewport_transform(width: float, height: float, scale: float = 1.0) -> List[float]:
    """Build the transform of a page viewport.

    Maps page space (y-up, origin at the bottom-left corner of the displayed
    page) to a y-down space with its origin at the top-left corner.

    Args:
        width: Displayed page width in unscaled units
        height: Displayed page height in unscaled units
        scale: Zoom factor

    Returns:
        6-element matrix [a, b, c, d, e, f]
    """
    if width < 0 or height < 0:
        raise ValueError(f"Page size must be non-negative, got {width}x{height}")
    return [scale, 0.0, 0.0, -scale, 0.0, height * scale]


def extent_along(
    boxes: Iterable[Tuple[float, float, float, float]],
    direction: Tuple[float, float]
) -> float:
    """Measure how far a set of boxes extends along a direction vector.

    Args:
        boxes: Boxes as (x0, y0, x1, y1)
        direction: Direction vector, need not be normalized

    Returns:
        Length of the projection of all box corners onto the direction
    """
    corners = []
    for x0, y0, x1, y1 in boxes:
        corners.extend([(x0, y0), (x1, y0), (x1, y1), (x0, y1)])
    if not corners:
        return 0.0

    vector = np.asarray(direction, dtype=float)
    norm = np.linalg.norm(vector)
    if norm < MATRIX_EPSILON:
        return 0.0

    projections = np.asarray(corners, dtype=float) @ (vector / norm)
    return float(projections.max() - projections.min())
