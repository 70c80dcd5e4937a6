#!/usr/bin/env python3
"""
Example: Table Frame

Builds a rectangular table top from four rails and four elbows, drops a
leg from one corner with a tee, propagates from the first rail and checks
that every connection lines up. The structure is saved to
examples/output/table_frame.json.
"""

import logging
from pathlib import Path

from pypejoint.context import StructureContext
from pypejoint.geometry.transforms import Transform

OUTPUT_DIR = Path(__file__).parent / "output"
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


def build_frame(ctx: StructureContext) -> list[str]:
    """Four rails joined end to start by elbows."""
    rails = [ctx.graph.add_pipe(diameter=0.022, length=0.9) for _ in range(4)]
    corners = [ctx.add_joint_from_catalog("elbow") for _ in range(4)]

    for i, rail in enumerate(rails):
        ctx.graph.add_connection(rail, corners[i], 0, "end")
        ctx.graph.add_connection(rails[(i + 1) % 4], corners[i], 1, "start")
    return rails


def add_leg(ctx: StructureContext, rail: str) -> str:
    """Hang a leg off the middle of a rail with a through-clamp."""
    clamp = ctx.add_joint_from_catalog("t-clamp")
    leg = ctx.graph.add_pipe(diameter=0.022, length=0.7)
    ctx.graph.add_connection(rail, clamp, 0, "midway", position=0.5)
    ctx.graph.add_connection(leg, clamp, 1, "start")
    return leg


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    ctx = StructureContext()
    rails = build_frame(ctx)
    leg = add_leg(ctx, rails[0])

    ctx.set_root(rails[0], Transform.identity())
    result = ctx.propagate()

    print("=" * 60)
    print("TABLE FRAME")
    print("=" * 60)
    for entity_id in result.resolved_pipes + result.resolved_joints:
        transform = result.transforms[entity_id]
        print(f"{entity_id:<16} {transform.position.round(4)}")
    print(f"\nLeg {leg} points along {ctx.instances.get_transform(leg).z_axis.round(4)}")

    invalid = ctx.validate()
    if invalid:
        print(f"\n{len(invalid)} connection(s) out of tolerance:")
        for record in invalid:
            print(f"  {record.connection_id}: position {record.position_diff:.4f}, "
                  f"axis {record.axis_diff:.4f} rad, twist {record.right_diff:.4f} rad")
    else:
        print("\nAll connections line up.")

    output = OUTPUT_DIR / "table_frame.json"
    ctx.snapshot().to_file(output)
    print(f"Saved to {output}")


if __name__ == "__main__":
    main()
