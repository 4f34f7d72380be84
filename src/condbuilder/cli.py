"""condbuilder CLI for inspecting encoded conditions - Tyro implementation."""

import logging
import sys
from builtins import print as builtin_print
from pathlib import Path
from typing import Annotated, Literal

import attrs
import tyro
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from condbuilder.condition import Condition
from condbuilder.config import CONFIG_FILENAME, CondBuilderConfig, get_config
from condbuilder.exceptions import ConditionError
from condbuilder.pipeline.hook import HookSet
from condbuilder.serializer import dump, restore


# Subcommand definitions using attrs
@attrs.define
class Render:
    """Render an encoded condition to text."""

    file: Annotated[Path | None, tyro.conf.Positional] = None
    """Encoded condition (JSON or YAML). Reads stdin when omitted."""

    raw: bool = False
    """Ignore configured hooks and use the built-in renderers."""


@attrs.define
class Show:
    """Show the structure of an encoded condition as a tree."""

    file: Annotated[Path | None, tyro.conf.Positional] = None
    """Encoded condition (JSON or YAML). Reads stdin when omitted."""


@attrs.define
class Convert:
    """Re-encode a condition as JSON or YAML."""

    file: Annotated[Path | None, tyro.conf.Positional] = None
    """Encoded condition (JSON or YAML). Reads stdin when omitted."""

    to: Literal["json", "yaml"] | None = None
    """Target encoding. Defaults to the configured encoding."""


Command = (
    Annotated[Render, tyro.conf.subcommand(name="render")]
    | Annotated[Show, tyro.conf.subcommand(name="show")]
    | Annotated[Convert, tyro.conf.subcommand(name="convert")]
)


def setup_logging(debug: bool = False) -> None:
    """Configure logging with 100-character text width."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)-20s - %(levelname)-8s - %(message).100s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def read_input(file: Path | None) -> str:
    """Read encoded input from a file or stdin.

    Exits with status 1 if the file does not exist.
    """
    if file is None:
        return sys.stdin.read()
    if not file.exists():
        print(f"Error: File not found: {file}", file=sys.stderr)
        sys.exit(1)
    return file.read_text()


def load_config(config_dir: Path | None) -> CondBuilderConfig:
    if config_dir is None:
        return get_config()
    return CondBuilderConfig.from_yaml(config_dir / CONFIG_FILENAME)


def build_tree(condition: Condition, hooks: HookSet | None = None, label: str = "condition") -> Tree:
    """Build a rich Tree mirroring the slots of a condition.

    Join operators are shown after every slot but the last.
    """
    tree = Tree(f"[bold]{escape(label)}[/bold]")
    _add_slots(tree, condition, hooks)
    return tree


def _add_slots(tree: Tree, condition: Condition, hooks: HookSet | None) -> None:
    slots = condition.slots
    for i, slot in enumerate(slots):
        join = f" [dim]{slot.join_operator.value}[/dim]" if i < len(slots) - 1 else ""
        if isinstance(slot.payload, Condition):
            branch = tree.add(f"[bold]( )[/bold]{join}")
            _add_slots(branch, slot.payload, hooks)
        else:
            tree.add(f"{escape(slot.payload.render(hooks))}{join}")


def handle_render(config: CondBuilderConfig, cmd: Render) -> None:
    hooks = None if cmd.raw else config.build_hook_set()
    condition = restore(read_input(cmd.file), hooks=hooks)
    builtin_print(condition.render())


def handle_show(config: CondBuilderConfig, cmd: Show) -> None:
    console = Console()
    condition = restore(read_input(cmd.file), hooks=config.build_hook_set())
    if condition.is_empty:
        console.print("[dim]empty condition[/dim]")
        return
    console.print(build_tree(condition))


def handle_convert(config: CondBuilderConfig, cmd: Convert) -> None:
    condition = restore(read_input(cmd.file))
    fmt = cmd.to or config.encoding
    builtin_print(dump(condition, fmt=fmt).rstrip("\n"))


def main(
    cmd: Annotated[Command, tyro.conf.arg(name="")],
    *,
    config_dir: Annotated[Path | None, tyro.conf.arg(help="Configuration directory")] = None,
    debug: bool = False,
) -> None:
    """condbuilder - composable and/or filter conditions.

    Restores conditions dumped with Condition.dump() and renders, shows or
    re-encodes them.
    """
    try:
        config = load_config(config_dir)
        setup_logging(debug or config.debug)

        # Handle each command type
        if isinstance(cmd, Render):
            handle_render(config, cmd)

        elif isinstance(cmd, Show):
            handle_show(config, cmd)

        elif isinstance(cmd, Convert):
            handle_convert(config, cmd)

    except ConditionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def entry_point() -> None:
    """Entry point for the condbuilder command."""
    tyro.cli(main)


if __name__ == "__main__":
    entry_point()
