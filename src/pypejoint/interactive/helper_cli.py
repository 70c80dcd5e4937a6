"""
CLI helper tool for pypejoint structures.

This module provides a command-line interface for working with structure
files:
- catalog: List joint types and pipe stock of a catalog
- solve: Propagate transforms from the root and print every pose
- validate: Report connections whose geometry is out of tolerance
- reach: List the entities connected to a pipe

Usage:
    pypejoint catalog
    pypejoint solve frame.json --root P_0001 -o solved.json
    pypejoint validate frame.yaml --tolerance 0.001
    pypejoint reach frame.json P_0003
"""

from pathlib import Path

import click
import yaml

from ..catalog.catalog_loader import JointCatalog, load_default_catalog
from ..context import StructureContext
from ..geometry.transforms import Transform
from ..structure_schema import StructureConfig

_catalog_option = click.option(
    "--catalog", "catalog_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Joint catalog YAML file (default: packaged catalog).",
)


def _load_catalog(catalog_path: Path | None) -> JointCatalog:
    try:
        if catalog_path is None:
            return load_default_catalog()
        return JointCatalog.from_yaml(catalog_path)
    except (ValueError, KeyError, TypeError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid catalog: {e}") from e


def _load_context(structure_file: Path, catalog_path: Path | None, tolerance: float | None = None) -> StructureContext:
    ctx = StructureContext(_load_catalog(catalog_path), tolerance=tolerance)
    try:
        config = StructureConfig.from_file(structure_file)
    except (ValueError, KeyError, TypeError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid structure file: {e}") from e
    try:
        ctx.load(config, propagate=False)
    except ValueError as e:
        raise click.ClickException(f"Invalid structure file: {e}") from e
    return ctx


def _format_tuple(values) -> str:
    """Format a numeric sequence for display."""
    return "(" + ", ".join(f"{float(v):.4f}" for v in values) + ")"


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """pypejoint - pipe/joint structure solver."""
    pass


@cli.command()
@_catalog_option
def catalog(catalog_path: Path | None):
    """
    List the joint types of a catalog.

    Each type is shown with its holes: kind (FIX/THROUGH), tunnel axis
    and offset.
    """
    joint_catalog = _load_catalog(catalog_path)

    for category, names in joint_catalog.categories().items():
        click.echo(f"{category}:")
        for name in names:
            joint_type = joint_catalog[name]
            click.echo(f"  {name} ({joint_type.hole_count} holes)")
            for index, hole in enumerate(joint_type.holes):
                click.echo(
                    f"    [{index}] {hole.kind:<7} axis={_format_tuple(hole.axis)} "
                    f"offset={_format_tuple(hole.offset)}"
                )

    stock = joint_catalog.pipe_stock
    if stock.diameters or stock.lengths:
        click.echo("\nPipe stock:")
        click.echo(f"  Diameters: {', '.join(f'{d:g}' for d in stock.diameters)}")
        click.echo(f"  Lengths:   {', '.join(f'{v:g}' for v in stock.lengths)}")
        if stock.colors:
            click.echo(f"  Colors:    {', '.join(c.name for c in stock.colors)}")


@cli.command()
@click.argument("structure_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_catalog_option
@click.option("--root", "root_id", default=None, help="Root pipe id (default: rootTransform or first pipe).")
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    help="Write the structure with its root transform to this file.",
)
def solve(structure_file: Path, catalog_path: Path | None, root_id: str | None, output: Path | None):
    """
    Propagate transforms through a structure and print every pose.

    Example:
        pypejoint solve frame.json --root P_0001
    """
    ctx = _load_context(structure_file, catalog_path)

    if root_id is not None:
        if ctx.graph.get_pipe(root_id) is None:
            raise click.ClickException(f"Unknown root pipe '{root_id}'")
        ctx.set_root(root_id, ctx.root_transform if ctx.root_id == root_id else Transform.identity())

    result = ctx.propagate()
    if result is None:
        click.echo("Structure has no pipes.")
        return

    click.echo(f"Root: {result.root_id}")
    click.echo("-" * 50)
    for entity_id in result.resolved_pipes + result.resolved_joints:
        transform = result.transforms[entity_id]
        click.echo(f"{entity_id}:")
        click.echo(f"    Position: {_format_tuple(transform.position)}")
        click.echo(f"    Rotation: {_format_tuple(transform.rotation)}")

    if result.orphaned:
        click.echo(f"\nUnresolved: {', '.join(result.orphaned)}")
    if result.pending_joints:
        click.echo(f"Waiting for geometry: {', '.join(result.pending_joints)}")

    if output:
        ctx.snapshot().to_file(output)
        click.echo(f"\nStructure saved to: {output}")


@cli.command()
@click.argument("structure_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_catalog_option
@click.option("--tolerance", type=float, default=None, help="Tolerance in length units / radians.")
def validate(structure_file: Path, catalog_path: Path | None, tolerance: float | None):
    """
    Propagate, then report connections whose holes do not line up.

    Exits with status 1 when any connection is out of tolerance.
    """
    ctx = _load_context(structure_file, catalog_path, tolerance)
    ctx.propagate()
    invalid = ctx.validate()

    if not invalid:
        click.echo(f"All connections within tolerance ({ctx.validator.tolerance:g}).")
        return

    click.echo(f"{len(invalid)} invalid connection(s):")
    for record in invalid:
        click.echo(f"  {record.connection_id} ({record.pipe_id} {record.side} -> {record.joint_id}[{record.hole_id}])")
        click.echo(f"    Position diff: {record.position_diff:.6f}")
        click.echo(f"    Axis diff:     {record.axis_diff:.6f} rad")
        click.echo(f"    Right diff:    {record.right_diff:.6f} rad")
    click.get_current_context().exit(1)


@cli.command()
@click.argument("structure_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("pipe_id")
@_catalog_option
def reach(structure_file: Path, pipe_id: str, catalog_path: Path | None):
    """List the pipes and joints structurally connected to a pipe."""
    ctx = _load_context(structure_file, catalog_path)
    if ctx.graph.get_pipe(pipe_id) is None:
        raise click.ClickException(f"Unknown pipe '{pipe_id}'")

    reachable = ctx.graph.reachable_from(pipe_id)
    for entity in ctx.graph.pipes + ctx.graph.joints:
        if entity.id in reachable:
            click.echo(entity.id)

    orphaned = ctx.graph.orphaned_entities(pipe_id)
    if orphaned:
        click.echo(f"\nNot connected: {', '.join(sorted(orphaned))}")


if __name__ == "__main__":
    cli()
