#!/usr/bin/env python3
"""
Example: Rotation Drag

Simulates an editor dragging the twist of two connections on a coupler
chain. The drag angle is adjusted for the direction the solver last
traversed each connection, so the part under the cursor always turns the
way the user drags.
"""

from pypejoint.context import StructureContext
from pypejoint.relationships import apply_relationship_direction


def drag(ctx: StructureContext, connection_id: str, delta_deg: float) -> None:
    pipe, conn = ctx.graph.find_connection(connection_id)
    relationship = ctx.relationships.get(pipe.id, conn.joint_id, conn.hole_id, conn.side)
    applied = apply_relationship_direction(delta_deg, relationship)
    ctx.graph.update_connection(connection_id, {"rotation": conn.rotation + applied})
    ctx.propagate()
    print(f"{connection_id:<14} {relationship:<8} drag {delta_deg:+6.1f} -> rotation {conn.rotation:+6.1f}")


def main():
    ctx = StructureContext()
    first = ctx.graph.add_pipe(diameter=0.022, length=0.6)
    second = ctx.graph.add_pipe(diameter=0.022, length=0.6)
    coupler = ctx.add_joint_from_catalog("coupler")
    first_end = ctx.graph.add_connection(first, coupler, 0, "end")
    second_start = ctx.graph.add_connection(second, coupler, 1, "start")

    ctx.set_root(first)
    ctx.propagate()

    for connection_id in (first_end, second_start):
        drag(ctx, connection_id, 15.0)

    print(f"\n{second} x axis: {ctx.instances.get_transform(second).x_axis.round(4)}")
    print(f"Invalid connections: {len(ctx.validate())}")


if __name__ == "__main__":
    main()
