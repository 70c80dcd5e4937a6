"""
Geometry Module

Provides quaternion transforms, joint hole definitions and the pipe-to-hole
mating formulas used by the propagation solver.
"""

# Hole and joint type definitions
from .holes import Hole, HoleKind, JointType, hole_from_definition

# Mating formulas
from .mating import (
    CONNECTION_SIDES,
    ConnectionSide,
    axial_distance,
    hole_frame,
    joint_transform_from_pipe,
    pipe_attachment_frame,
    pipe_transform_from_joint,
)

# Transformation utilities
from .transforms import (
    Transform,
    angle_between,
    compose,
    degrees_to_radians,
    flip_about_y,
    identity_quaternion,
    normalize_degrees,
    normalize_quaternion,
    normalize_radians,
    quaternion_angle,
    quaternion_from_axis_angle,
    quaternion_inverse,
    quaternion_multiply,
    quaternion_to_matrix,
    radians_to_degrees,
    rotate_vector,
    rotation_to_align_z_with_direction,
    rotations_close,
    signed_angle_about_axis,
    twist,
)

__all__ = [
    # Holes
    "Hole",
    "HoleKind",
    "JointType",
    "hole_from_definition",
    # Mating
    "CONNECTION_SIDES",
    "ConnectionSide",
    "axial_distance",
    "hole_frame",
    "joint_transform_from_pipe",
    "pipe_attachment_frame",
    "pipe_transform_from_joint",
    # Transformation utilities
    "Transform",
    "angle_between",
    "compose",
    "degrees_to_radians",
    "flip_about_y",
    "identity_quaternion",
    "normalize_degrees",
    "normalize_quaternion",
    "normalize_radians",
    "quaternion_angle",
    "quaternion_from_axis_angle",
    "quaternion_inverse",
    "quaternion_multiply",
    "quaternion_to_matrix",
    "radians_to_degrees",
    "rotate_vector",
    "rotation_to_align_z_with_direction",
    "rotations_close",
    "signed_angle_about_axis",
    "twist",
]
