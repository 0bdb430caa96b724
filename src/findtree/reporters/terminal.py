from __future__ import annotations

from pathlib import Path
from typing import Protocol, TypeVar

from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.tree import Tree

from findtree import __version__
from findtree.engine.types import Location, ProcessingError, SuppressedViolation, UselessSuppression, Violation
from findtree.tree import BranchNode, LeafNode, Node, ReportTree
from findtree.utils import display_path, plural

CLOSED_ICON = "▸"
OPEN_ICON = "▾"
_SEVERITY_ICON = {"error": "✖", "warn": "⚠", "info": "ℹ"}
_SEVERITY_STYLE = {"error": "bold red", "warn": "yellow", "info": "dim"}

T = TypeVar("T")


class Surface(Protocol):
    def set_icon(self, icon: str, style: str | None = None) -> None: ...

    def append(self, text: str, style: str | None = None) -> None: ...


class RichSurface:
    """Collects a node's icon and label into a `rich.text.Text`."""

    def __init__(self) -> None:
        self.icon = ""
        self.icon_style: str | None = None
        self._parts: list[tuple[str, str | None]] = []

    def set_icon(self, icon: str, style: str | None = None) -> None:
        self.icon = icon
        self.icon_style = style

    def append(self, text: str, style: str | None = None) -> None:
        self._parts.append((text, style))

    def to_text(self) -> Text:
        text = Text()
        if self.icon:
            text.append(f"{self.icon} ", style=self.icon_style or "")
        for part, style in self._parts:
            text.append(part, style=style or "")
        return text


def render(node: Node, surface: Surface, expanded: bool, *, project_root: Path | None = None) -> None:
    """Draw `node` onto `surface`. Branch icons follow `expanded`; leaf icons follow severity."""

    if isinstance(node, BranchNode):
        surface.set_icon(OPEN_ICON if expanded else CLOSED_ICON, "cyan")
        if node.kind == "rule_group":
            surface.append(node.label, "bold")
            surface.append(f" ({plural(node.violation_count, 'violation')})", "dim")
            if node.tooltip:
                surface.append(f"  {node.tooltip}", "dim italic")
        elif node.kind == "suppressed_branch":
            surface.append(node.label, "bold")
            surface.append(f" ({node.suppressed_count})", "dim")
        elif node.kind == "useless_suppression_branch":
            surface.append(node.label, "bold")
            surface.append(f" ({node.violation_count})", "dim")
        elif node.kind == "error_branch":
            surface.append(node.label, "bold red" if node.error_count else "bold")
            surface.append(f" ({plural(node.error_count, 'file')})", "dim")
        else:
            raise ValueError(f"Unknown branch kind: {node.kind!r}")
        return

    if node.kind == "violation":
        violation = _payload(node, Violation)
        _severity_icon(surface, violation.rule.severity)
        surface.append(_format_location(violation.location, project_root=project_root), "bold")
        surface.append(f"  {violation.message}")
        scope = _format_scope(violation)
        if scope:
            surface.append(f"  in {scope}", "dim")
    elif node.kind == "suppressed":
        suppressed = _payload(node, SuppressedViolation)
        violation = suppressed.violation
        _severity_icon(surface, violation.rule.severity)
        surface.append(violation.rule.name, "bold")
        surface.append(f"  {_format_location(violation.location, project_root=project_root)}", "dim")
        surface.append(f"  {violation.message}")
        if suppressed.user_message:
            surface.append(f"  ({suppressed.user_message})", "dim italic")
    elif node.kind == "useless_suppression":
        useless = _payload(node, UselessSuppression)
        _severity_icon(surface, "warn")
        surface.append(useless.rule_name, "bold")
        surface.append(f"  {_format_location(useless.location, project_root=project_root)}", "dim")
        if useless.declaration.scope:
            surface.append(f"  in {useless.declaration.scope}", "dim")
        surface.append("  suppresses nothing")
    elif node.kind == "error":
        error = _payload(node, ProcessingError)
        _severity_icon(surface, "error")
        surface.append(display_path(error.path, project_root), "bold")
        surface.append(f"  {error.message}")
        if error.detail:
            surface.append(f"  {error.detail}", "dim")
    else:
        raise ValueError(f"Unknown leaf kind: {node.kind!r}")


def render_label(node: Node, expanded: bool, *, project_root: Path | None = None) -> Text:
    surface = RichSurface()
    render(node, surface, expanded, project_root=project_root)
    return surface.to_text()


def render_terminal(
    tree: ReportTree,
    *,
    console: Console,
    project_root: Path | None = None,
    expanded: bool = True,
) -> None:
    header = Text()
    header.append("findtree ", style="bold")
    header.append(f"v{__version__}", style="dim")
    console.print(
        Panel(
            header,
            subtitle=(
                f"{plural(tree.total_violations(), 'violation')}, "
                f"{tree.total_suppressed()} suppressed, "
                f"{plural(tree.total_errors(), 'processing error')}"
            ),
            border_style="cyan",
        )
    )

    branches = tree.branches()
    if not branches:
        console.print(Text("No findings.", style="dim"))
        return

    root = Tree(Text("Results", style="bold"), guide_style="dim")
    for branch in branches:
        _add_branch(root, branch, expanded=expanded, project_root=project_root)
    console.print(root)


def _add_branch(parent: Tree, branch: BranchNode, *, expanded: bool, project_root: Path | None) -> None:
    subtree = parent.add(render_label(branch, expanded, project_root=project_root), expanded=expanded)
    if not expanded:
        return
    for child in branch.children:
        if isinstance(child, BranchNode):
            _add_branch(subtree, child, expanded=expanded, project_root=project_root)
        else:
            subtree.add(render_label(child, expanded, project_root=project_root))


def _payload(node: LeafNode, expected: type[T]) -> T:
    if not isinstance(node.payload, expected):
        raise ValueError(f"{node.kind} leaf carries {type(node.payload).__name__}, expected {expected.__name__}")
    return node.payload


def _severity_icon(surface: Surface, severity: str) -> None:
    surface.set_icon(_SEVERITY_ICON.get(severity, "•"), _SEVERITY_STYLE.get(severity))


def _format_location(location: Location, *, project_root: Path | None) -> str:
    out = display_path(location.path, project_root)
    if location.begin_line is not None:
        out += f":{location.begin_line}"
        if location.begin_col is not None:
            out += f":{location.begin_col}"
    return out


def _format_scope(violation: Violation) -> str:
    if violation.class_name and violation.scope:
        return f"{violation.class_name}.{violation.scope}"
    return violation.scope or violation.class_name or ""
