#!/usr/bin/env python3
"""
Pipe-to-Hole Mating Transforms

================================================================================
MATING RULE
================================================================================

A connection binds one side of a pipe to one hole of a joint. Two frames
must coincide for the connection to be satisfied:

Hole frame (joint side):
    position    = joint.position + joint.rotation * hole.offset
    orientation = joint.rotation * hole.direction * twist(connection.rotation)

Attachment frame (pipe side), with L = pipe length:
    start:   (pipe.position,                              pipe.rotation)
    end:     (pipe.position + pipe.forward * L,           pipe.rotation * flipY)
    midway:  (pipe.position + pipe.forward * L * s,       pipe.rotation)

where ``pipe.forward`` is the pipe's local +Z in world space, ``s`` is the
midway fraction and ``flipY`` is 180 degrees about the pipe's local Y axis
(an end hole faces back along the pipe).

pipe -> joint ("p2j"):
    joint.rotation = attachment.rotation * (hole.direction * twist)^-1
    joint.position = attachment.position - joint.rotation * hole.offset

joint -> pipe ("j2p") is the exact inverse, so a pass that derives one side
from the other always leaves the connection satisfied.

================================================================================
"""

from __future__ import annotations

from typing import Literal, TypeAlias

from .holes import Hole
from .transforms import (
    Transform,
    compose,
    flip_about_y,
    quaternion_inverse,
    rotate_vector,
    twist,
)

ConnectionSide: TypeAlias = Literal["start", "end", "midway"]

CONNECTION_SIDES: tuple[ConnectionSide, ...] = ("start", "end", "midway")


def axial_distance(side: ConnectionSide, length: float, position: float = 0.0) -> float:
    """Distance from the pipe origin to the connection point along the pipe axis."""
    if side == "start":
        return 0.0
    if side == "end":
        return length
    return length * position


def pipe_attachment_frame(
    pipe_transform: Transform,
    length: float,
    side: ConnectionSide,
    position: float = 0.0,
) -> Transform:
    """
    World frame a hole must match for a connection on the given pipe side.

    Args:
        pipe_transform: World transform of the pipe
        length: Pipe length
        side: "start", "end" or "midway"
        position: Fraction along the pipe (midway only)

    Returns:
        Attachment frame in world coordinates
    """
    forward = pipe_transform.z_axis
    origin = pipe_transform.position + forward * axial_distance(side, length, position)
    if side == "end":
        rotation = compose(pipe_transform.rotation, flip_about_y())
    else:
        rotation = pipe_transform.rotation.copy()
    return Transform(origin, rotation)


def hole_frame(joint_transform: Transform, hole: Hole, rotation_deg: float = 0.0) -> Transform:
    """
    World frame of a hole, including the connection twist.

    Args:
        joint_transform: World transform of the joint
        hole: Hole on that joint
        rotation_deg: Connection twist about the hole axis, in degrees

    Returns:
        Hole frame in world coordinates
    """
    position = joint_transform.position + rotate_vector(joint_transform.rotation, hole.offset)
    rotation = compose(joint_transform.rotation, hole.direction, twist(rotation_deg))
    return Transform(position, rotation)


def joint_transform_from_pipe(
    pipe_transform: Transform,
    length: float,
    side: ConnectionSide,
    hole: Hole,
    rotation_deg: float = 0.0,
    position: float = 0.0,
) -> Transform:
    """
    Compute the world transform of a joint whose hole mates with a pipe side.

    This is the "pipe determines joint" (p2j) direction.
    """
    attachment = pipe_attachment_frame(pipe_transform, length, side, position)
    hole_local = compose(hole.direction, twist(rotation_deg))
    rotation = compose(attachment.rotation, quaternion_inverse(hole_local))
    joint_position = attachment.position - rotate_vector(rotation, hole.offset)
    return Transform(joint_position, rotation)


def pipe_transform_from_joint(
    joint_transform: Transform,
    length: float,
    side: ConnectionSide,
    hole: Hole,
    rotation_deg: float = 0.0,
    position: float = 0.0,
) -> Transform:
    """
    Compute the world transform of a pipe whose side mates with a joint hole.

    This is the "joint determines pipe" (j2p) direction.
    """
    frame = hole_frame(joint_transform, hole, rotation_deg)
    if side == "end":
        rotation = compose(frame.rotation, quaternion_inverse(flip_about_y()))
    else:
        rotation = frame.rotation
    forward = rotate_vector(rotation, (0.0, 0.0, 1.0))
    pipe_position = frame.position - forward * axial_distance(side, length, position)
    return Transform(pipe_position, rotation)
