"""
cli/commands.py - CLI command implementations

Every command works on the project file given with --project (a JSON dump
of an ElementStore). Mutating commands save the project after success.
"""

from __future__ import annotations
from typing import Any, Dict, List
import argparse
import json

from .core import CLICommand, CLIContext, CommandResult, CommandRegistry, command_registry
from hydrochain.core.elements import ELEMENT_CLASSES, HydraulicElement
from hydrochain.core.enums import LinkSide, StillingBasinType
from hydrochain.errors import HydroChainError
from hydrochain.hydraulics.stilling_basin import AUTO, BasinDesignInput, build_manual_basin
from hydrochain.review.checks import DesignReviewer

BASIN_TYPE_CHOICES = [AUTO] + [t.value for t in StillingBasinType if t != StillingBasinType.NONE]

# Errors a command reports instead of raising
COMMAND_ERRORS = (HydroChainError, OSError, ValueError)


def _placement(element: HydraulicElement) -> Dict[str, Any]:
    return {
        "id": element.id,
        "type": element.element_type.value,
        "start_station": round(element.start_station, 4),
        "start_elevation": round(element.start_elevation, 4),
        "end_station": round(element.end_station, 4),
        "end_elevation": round(element.end_elevation, 4),
        "upstream": element.upstream_id,
        "downstream": element.downstream_id,
    }


def _parse_param(text: str) -> tuple:
    if "=" not in text:
        raise ValueError(f"Expected key=value, got {text!r}")
    key, raw = text.split("=", 1)
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key.strip().replace("-", "_"), value


def _require_project(ctx: CLIContext) -> None:
    if not ctx.has_project:
        raise ValueError("This command needs a project file; use --project")


class DesignBasinCommand(CLICommand):
    """Auto-design a stilling basin."""

    name = "design-basin"
    description = "Auto-design a stilling basin from discharge and chute geometry"
    aliases = ["design"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--discharge", "-q", type=float, required=True, help="Discharge Q (m3/s)")
        parser.add_argument("--chute", help="Chute id in the project; installs the designed basin")
        parser.add_argument("--width", "-b", type=float, help="Chute width b (m)")
        parser.add_argument("--drop", type=float, help="Total drop H (m)")
        parser.add_argument("--slope", type=float, default=0.0, help="Chute bed slope")
        parser.add_argument("--manning-n", type=float, default=None, help="Manning roughness")
        parser.add_argument("--tailwater", type=float, default=None, help="Tailwater depth (m)")
        parser.add_argument("--type", dest="basin_type", choices=BASIN_TYPE_CHOICES, default=AUTO)
        parser.add_argument("--chute-thickness", type=float, default=None, help="Chute slab thickness (m)")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            tailwater = args.tailwater
            if tailwater is None:
                tailwater = ctx.config.design.default_tailwater_depth

            if args.chute:
                _require_project(ctx)
                result = ctx.manager.apply_basin_design(
                    args.chute, args.discharge, tailwater_depth=tailwater, basin_type=args.basin_type,
                )
                ctx.save()
                message = f"Installed {result.config.type.value} basin on {args.chute}"
            else:
                if args.width is None or args.drop is None:
                    raise ValueError("--width and --drop are required without --chute")
                inp_kwargs = dict(
                    discharge=args.discharge,
                    width=args.width,
                    drop=args.drop,
                    slope=args.slope,
                    tailwater_depth=tailwater,
                    basin_type=args.basin_type,
                    chute_thickness=(
                        args.chute_thickness if args.chute_thickness is not None
                        else ctx.config.design.default_chute_thickness
                    ),
                )
                if args.manning_n is not None:
                    inp_kwargs["manning_n"] = args.manning_n
                result = ctx.manager.designer.design(BasinDesignInput(**inp_kwargs))
                message = f"Recommended basin: {result.recommended_type.value}"

            return CommandResult(success=True, message=message, data=result.to_dict())
        except COMMAND_ERRORS as e:
            return CommandResult(success=False, error=str(e), exit_code=1)


class ManualBasinCommand(CLICommand):
    """Build a stilling basin from given dimensions."""

    name = "manual-basin"
    description = "Build a stilling basin from user-supplied dimensions"
    aliases = ["basin"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("basin_type", choices=[t.value for t in StillingBasinType])
        parser.add_argument("--length", type=float, required=True, help="Basin length (m)")
        parser.add_argument("--depth", type=float, required=True, help="Basin depth (m)")
        parser.add_argument("--end-sill-height", type=float, default=0.0, help="End sill height (m)")
        parser.add_argument("--element", help="Chute or transition id to install the basin on")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            config = build_manual_basin(args.basin_type, args.length, args.depth, args.end_sill_height)
            message = f"Built {config.type.value} basin"
            if args.element:
                _require_project(ctx)
                ctx.manager.set_stilling_basin(args.element, config)
                ctx.save()
                message += f" on {args.element}"
            return CommandResult(success=True, message=message, data=config.to_dict())
        except COMMAND_ERRORS as e:
            return CommandResult(success=False, error=str(e), exit_code=1)


class AddCommand(CLICommand):
    """Add an element to the project."""

    name = "add"
    description = "Add a channel, transition or chute"
    aliases = ["new"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("element_type", choices=sorted(ELEMENT_CLASSES))
        parser.add_argument("--id", dest="element_id", default="", help="Element id")
        parser.add_argument(
            "--param", "-P", action="append", default=[], metavar="KEY=VALUE",
            help="Element field, e.g. -P length=50 -P slope=0.01",
        )

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            _require_project(ctx)
            data: Dict[str, Any] = dict(_parse_param(p) for p in args.param)
            unknown = sorted(set(data) - ELEMENT_CLASSES[args.element_type].editable_fields())
            if unknown:
                raise ValueError(f"Unknown or protected {args.element_type} fields: {', '.join(unknown)}")
            data.update(type=args.element_type, id=args.element_id)
            element = ctx.manager.add_element(HydraulicElement.from_dict(data))
            ctx.save()
            return CommandResult(
                success=True,
                message=f"Added {element.element_type.value} {element.id}",
                data=_placement(element),
            )
        except (TypeError,) + COMMAND_ERRORS as e:
            return CommandResult(success=False, error=str(e), exit_code=1)


class RemoveCommand(CLICommand):
    """Remove an element."""

    name = "remove"
    description = "Remove an element, severing its links"
    aliases = ["rm"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("element_id")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            _require_project(ctx)
            ctx.manager.remove_element(args.element_id)
            ctx.save()
            return CommandResult(success=True, message=f"Removed {args.element_id}")
        except COMMAND_ERRORS as e:
            return CommandResult(success=False, error=str(e), exit_code=1)


class ListCommand(CLICommand):
    """List elements with their placement."""

    name = "list"
    description = "List elements in chain order"
    aliases = ["ls"]

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            rows: List[Dict[str, Any]] = []
            for chain in ctx.store.chains():
                rows.extend(_placement(e) for e in chain)
            listed = {row["id"] for row in rows}
            # Elements on no head-started chain (corrupt links) still get listed
            rows.extend(_placement(e) for e in ctx.store if e.id not in listed)
            return CommandResult(
                success=True,
                message=f"{len(rows)} elements",
                data=rows,
            )
        except COMMAND_ERRORS as e:
            return CommandResult(success=False, error=str(e), exit_code=1)


class ConnectCommand(CLICommand):
    """Connect two elements."""

    name = "connect"
    description = "Link UPSTREAM -> DOWNSTREAM and propagate placement"
    aliases = ["link"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("upstream_id")
        parser.add_argument("downstream_id")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            _require_project(ctx)
            result = ctx.manager.connect(args.upstream_id, args.downstream_id)
            ctx.save()
            return CommandResult(
                success=True,
                message=f"Connected {args.upstream_id} -> {args.downstream_id}",
                data=result.to_dict(),
            )
        except COMMAND_ERRORS as e:
            return CommandResult(success=False, error=str(e), exit_code=1)


class DisconnectCommand(CLICommand):
    """Disconnect one side of an element."""

    name = "disconnect"
    description = "Clear the upstream or downstream link of an element"
    aliases = ["unlink"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("element_id")
        parser.add_argument(
            "--side", choices=[s.value for s in LinkSide], default=LinkSide.UPSTREAM.value,
        )

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            _require_project(ctx)
            neighbour = ctx.manager.disconnect(args.element_id, args.side)
            ctx.save()
            if neighbour is None:
                message = f"{args.element_id} had no {args.side} link"
            else:
                message = f"Disconnected {args.element_id} from {neighbour}"
            return CommandResult(success=True, message=message, data={"neighbour": neighbour})
        except COMMAND_ERRORS as e:
            return CommandResult(success=False, error=str(e), exit_code=1)


class RecalculateCommand(CLICommand):
    """Re-propagate every chain."""

    name = "recalculate"
    description = "Recompute stations and elevations from every chain head"
    aliases = ["recalc"]

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            _require_project(ctx)
            results = ctx.manager.recalculate_chain()
            ctx.save()
            return CommandResult(
                success=True,
                message=f"Recalculated {len(results)} chains",
                data=[{"origin": r.origin_id, "updated": r.updated_count} for r in results],
            )
        except COMMAND_ERRORS as e:
            return CommandResult(success=False, error=str(e), exit_code=1)


class ReviewCommand(CLICommand):
    """Run the design review."""

    name = "review"
    description = "Run design review checks over the project"
    aliases = ["check"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--element", help="Only show notifications for this element")
        parser.add_argument("--strict", action="store_true", help="Exit 1 when errors are found")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            reviewer = DesignReviewer(ctx.config.review)
            notifications = reviewer.analyze(ctx.store)
            if args.element:
                notifications = reviewer.notifications_for(args.element)
            summary = reviewer.summary()

            rows = [
                {
                    "severity": n.severity.value,
                    "element": n.element_id,
                    "title": n.title,
                    "message": n.message,
                }
                for n in notifications
            ]
            return CommandResult(
                success=True,
                message=(
                    f"{summary.error} errors, {summary.warning} warnings, {summary.info} info"
                ),
                data=rows,
                exit_code=1 if args.strict and summary.has_errors else 0,
            )
        except COMMAND_ERRORS as e:
            return CommandResult(success=False, error=str(e), exit_code=1)


ALL_COMMANDS = [
    DesignBasinCommand,
    ManualBasinCommand,
    AddCommand,
    RemoveCommand,
    ListCommand,
    ConnectCommand,
    DisconnectCommand,
    RecalculateCommand,
    ReviewCommand,
]


def register_commands(registry: CommandRegistry = None) -> CommandRegistry:
    """Register all built-in commands."""
    registry = registry or command_registry
    for command_cls in ALL_COMMANDS:
        if registry.get(command_cls.name) is None:
            registry.register(command_cls())
    return registry
