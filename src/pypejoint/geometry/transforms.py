#!/usr/bin/env python3
"""
Rigid Transforms for Pipe/Joint Structures

This module implements the rotation and position math used by the
propagation solver and the consistency validator.

================================================================================
ROTATION CONVENTION
================================================================================

Rotations are unit quaternions stored as numpy arrays in [x, y, z, w] order.
Composition follows the Hamilton product, so ``quaternion_multiply(a, b)``
applies ``b`` first and then ``a`` (the same order as multiplying the 4x4
matrices returned by ``quaternion_to_matrix``).

Local axes of every entity:
- Z-axis: the pipe's long axis ("forward"); a hole's tunnel axis
- X-axis: the "right" reference used to detect twist about Z
- Y-axis: completes the right-hand system

Angles supplied by callers (connection twist, axis-angle helpers) are in
DEGREES. Internal composition is radian based.

================================================================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

# =============================================================================
# CONSTANTS
# =============================================================================

X_AXIS = np.array([1.0, 0.0, 0.0])
Y_AXIS = np.array([0.0, 1.0, 0.0])
Z_AXIS = np.array([0.0, 0.0, 1.0])

_EPS = 1e-12


# =============================================================================
# ANGLE UTILITIES
# =============================================================================


def degrees_to_radians(degrees: float) -> float:
    """Convert degrees to radians."""
    return degrees * math.pi / 180.0


def radians_to_degrees(radians: float) -> float:
    """Convert radians to degrees."""
    return radians * 180.0 / math.pi


def normalize_degrees(degrees: float) -> float:
    """Wrap an angle into the [0, 360) range."""
    normalized = math.fmod(degrees, 360.0)
    if normalized < 0:
        normalized += 360.0
    # fmod of a tiny negative value can round up to exactly 360
    return 0.0 if normalized >= 360.0 else normalized


def normalize_radians(radians: float) -> float:
    """Wrap an angle into the [-pi, pi] range."""
    normalized = math.fmod(radians, 2 * math.pi)
    if normalized > math.pi:
        normalized -= 2 * math.pi
    elif normalized < -math.pi:
        normalized += 2 * math.pi
    return normalized


def signed_angle_about_axis(
    start: tuple[float, float, float] | np.ndarray,
    current: tuple[float, float, float] | np.ndarray,
    normal: tuple[float, float, float] | np.ndarray,
) -> float:
    """
    Signed angle (radians) that rotates ``start`` onto ``current`` about ``normal``.

    Uses the scalar triple product for the sine term and the dot product for
    the cosine term, so the result covers the full [-pi, pi] range.

    Args:
        start: Vector from the rotation centre to the drag start point
        current: Vector from the rotation centre to the current drag point
        normal: Rotation axis in the same space as the two vectors

    Returns:
        Signed rotation angle in radians
    """
    a = np.asarray(start, dtype=float)
    b = np.asarray(current, dtype=float)
    n = np.asarray(normal, dtype=float)
    sin_theta = float(np.dot(n, np.cross(a, b)))
    cos_theta = float(np.dot(a, b))
    return math.atan2(sin_theta, cos_theta)


def angle_between(
    a: tuple[float, float, float] | np.ndarray,
    b: tuple[float, float, float] | np.ndarray,
) -> float:
    """
    Unsigned angle (radians) between two vectors.

    atan2(|a x b|, a . b) stays accurate for nearly parallel vectors, where
    acos loses precision.
    """
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    return math.atan2(float(np.linalg.norm(np.cross(va, vb))), float(np.dot(va, vb)))


# =============================================================================
# VECTOR UTILITIES
# =============================================================================


def as_vector(value: tuple[float, float, float] | list[float] | np.ndarray | None) -> np.ndarray:
    """Coerce a 3-element sequence into a float numpy vector (None -> origin)."""
    if value is None:
        return np.zeros(3)
    vec = np.asarray(value, dtype=float).reshape(3)
    return vec.copy()


def normalize_vector(value: tuple[float, float, float] | np.ndarray) -> np.ndarray:
    """Return a unit-length copy of a vector."""
    vec = np.asarray(value, dtype=float)
    length = np.linalg.norm(vec)
    if length < _EPS:
        raise ValueError("Cannot normalize a zero-length vector")
    return vec / length


# =============================================================================
# QUATERNION UTILITIES
# =============================================================================


def identity_quaternion() -> np.ndarray:
    """Return the identity rotation [0, 0, 0, 1]."""
    return np.array([0.0, 0.0, 0.0, 1.0])


def normalize_quaternion(q: tuple[float, float, float, float] | np.ndarray) -> np.ndarray:
    """Return a unit-length copy of a quaternion."""
    quat = np.asarray(q, dtype=float).reshape(4)
    length = np.linalg.norm(quat)
    if length < _EPS:
        raise ValueError("Cannot normalize a zero-length quaternion")
    return quat / length


def quaternion_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product ``a * b`` (apply ``b`` first, then ``a``)."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ])


def compose(*rotations: np.ndarray) -> np.ndarray:
    """
    Compose rotations left to right: ``compose(a, b, c) == a * b * c``.

    The result is re-normalized so repeated composition does not drift.
    """
    result = identity_quaternion()
    for q in rotations:
        result = quaternion_multiply(result, q)
    return normalize_quaternion(result)


def quaternion_inverse(q: np.ndarray) -> np.ndarray:
    """Inverse of a unit quaternion (its conjugate)."""
    return np.array([-q[0], -q[1], -q[2], q[3]])


def quaternion_from_axis_angle(axis: tuple[float, float, float] | np.ndarray, angle_deg: float) -> np.ndarray:
    """
    Create a quaternion rotating ``angle_deg`` degrees about ``axis``.

    A zero-length axis yields the identity rotation.
    """
    vec = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(vec)
    if norm < _EPS:
        return identity_quaternion()
    half = degrees_to_radians(angle_deg) / 2.0
    s = math.sin(half)
    return np.array([vec[0] / norm * s, vec[1] / norm * s, vec[2] / norm * s, math.cos(half)])


def twist(angle_deg: float) -> np.ndarray:
    """Rotation about the local Z (long) axis by ``angle_deg`` degrees."""
    return quaternion_from_axis_angle(Z_AXIS, angle_deg)


def flip_about_y() -> np.ndarray:
    """180 degree rotation about the local Y axis (turns +Z into -Z)."""
    return np.array([0.0, 1.0, 0.0, 0.0])


def rotate_vector(q: np.ndarray, v: tuple[float, float, float] | np.ndarray) -> np.ndarray:
    """Rotate vector ``v`` by unit quaternion ``q``."""
    vec = np.asarray(v, dtype=float)
    u = np.asarray(q[:3], dtype=float)
    w = float(q[3])
    t = 2.0 * np.cross(u, vec)
    return vec + w * t + np.cross(u, t)


def rotation_to_align_z_with_direction(target: tuple[float, float, float] | np.ndarray) -> np.ndarray:
    """
    Create the shortest-arc rotation that maps +Z onto ``target``.

    Anti-parallel targets (-Z) rotate 180 degrees about X, keeping the hole X axis fixed.
    """
    t = normalize_vector(target)
    dot = float(t[2])

    if dot > 1.0 - 1e-9:
        return identity_quaternion()
    if dot < -1.0 + 1e-9:
        return np.array([1.0, 0.0, 0.0, 0.0])

    # Half-way quaternion: axis = Z x target, w = 1 + Z . target
    axis = np.cross(Z_AXIS, t)
    return normalize_quaternion(np.array([axis[0], axis[1], axis[2], 1.0 + dot]))


def quaternion_angle(a: np.ndarray, b: np.ndarray) -> float:
    """
    Smallest rotation angle (radians) between two orientations.

    Insensitive to the quaternion sign (q and -q are the same rotation).
    """
    delta = quaternion_multiply(quaternion_inverse(normalize_quaternion(a)), normalize_quaternion(b))
    return 2.0 * math.atan2(float(np.linalg.norm(delta[:3])), abs(float(delta[3])))


def rotations_close(a: np.ndarray, b: np.ndarray, tol: float = 1e-9) -> bool:
    """True when two quaternions describe the same rotation within ``tol`` radians."""
    return quaternion_angle(a, b) <= tol


def quaternion_to_matrix(q: np.ndarray) -> np.ndarray:
    """Convert a unit quaternion to a 3x3 rotation matrix."""
    x, y, z, w = q
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
    ])


def matrix_from_rotation_translation(R: np.ndarray, t: tuple[float, float, float] | np.ndarray) -> np.ndarray:
    """
    Create 4x4 homogeneous matrix from 3x3 rotation and translation.
    """
    T = np.eye(4)
    T[0:3, 0:3] = R[0:3, 0:3]
    T[0, 3] = t[0]
    T[1, 3] = t[1]
    T[2, 3] = t[2]
    return T


# =============================================================================
# TRANSFORM
# =============================================================================


@dataclass(eq=False)
class Transform:
    """
    A world pose: position plus orientation.

    Attributes:
        position: (3,) float array
        rotation: (4,) unit quaternion [x, y, z, w]

    Transforms hold numpy arrays, so ``==`` is identity based. Compare
    poses with ``isclose``.
    """

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=identity_quaternion)

    def __post_init__(self):
        self.position = as_vector(self.position)
        self.rotation = normalize_quaternion(self.rotation)

    @classmethod
    def identity(cls) -> Transform:
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Transform:
        """Build from ``{"position": [x, y, z], "rotation": [x, y, z, w]}``."""
        return cls(
            position=data.get("position", (0.0, 0.0, 0.0)),
            rotation=data.get("rotation", (0.0, 0.0, 0.0, 1.0)),
        )

    def to_dict(self) -> dict[str, list[float]]:
        return {
            "position": [float(v) for v in self.position],
            "rotation": [float(v) for v in self.rotation],
        }

    def copy(self) -> Transform:
        return Transform(self.position.copy(), self.rotation.copy())

    @property
    def matrix(self) -> np.ndarray:
        """4x4 homogeneous matrix of this pose."""
        return matrix_from_rotation_translation(quaternion_to_matrix(self.rotation), self.position)

    @property
    def x_axis(self) -> np.ndarray:
        """Local +X ("right") expressed in world coordinates."""
        return rotate_vector(self.rotation, X_AXIS)

    @property
    def z_axis(self) -> np.ndarray:
        """Local +Z ("forward") expressed in world coordinates."""
        return rotate_vector(self.rotation, Z_AXIS)

    def transform_point(self, local: tuple[float, float, float] | np.ndarray) -> np.ndarray:
        """Map a point from local to world coordinates."""
        return self.position + rotate_vector(self.rotation, local)

    def isclose(self, other: Transform, tol: float = 1e-9) -> bool:
        """True when both position and orientation agree within ``tol``."""
        if float(np.linalg.norm(self.position - other.position)) > tol:
            return False
        return rotations_close(self.rotation, other.rotation, tol)

    def __repr__(self) -> str:
        pos = ", ".join(f"{v:.4f}" for v in self.position)
        rot = ", ".join(f"{v:.4f}" for v in self.rotation)
        return f"Transform(position=({pos}), rotation=({rot}))"
