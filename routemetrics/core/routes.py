"""Route trees and the route template label derived from them.

A registered route is a chain of ``RouteNode`` objects, one per path segment,
each pointing at its parent. The label for a matched request is rebuilt from
the node chain rather than from the concrete request path, so ``/users/42``
and ``/users/7`` both report ``/users/{id}``.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Optional

ROOT_LABEL = "/"

# {name}, {name:int}, {name?}, {name...}, {...}
_PLACEHOLDER_RE = re.compile(r"\{(?P<name>\w*)(?::(?P<converter>\w+))?(?P<tail>\.\.\.)?(?P<optional>\?)?\}")


class SelectorKind(str, enum.Enum):
    CONSTANT = "constant"
    PARAMETER = "parameter"
    OPTIONAL_PARAMETER = "optional_parameter"
    WILDCARD = "wildcard"
    TAILCARD = "tailcard"
    OTHER = "other"


_LABELLED_KINDS = frozenset(
    {
        SelectorKind.CONSTANT,
        SelectorKind.PARAMETER,
        SelectorKind.OPTIONAL_PARAMETER,
        SelectorKind.WILDCARD,
        SelectorKind.TAILCARD,
    }
)


@dataclass(frozen=True)
class RouteNode:
    """One segment of a registered route.

    ``parent`` is a lookup-only reference into the host's route table; nodes
    are never mutated after construction.
    """

    kind: SelectorKind
    segment: str = ""
    parent: Optional["RouteNode"] = None

    @classmethod
    def root(cls) -> "RouteNode":
        return cls(SelectorKind.OTHER)

    def child(self, kind: SelectorKind, segment: str = "") -> "RouteNode":
        return RouteNode(kind, segment, parent=self)

    def __repr__(self) -> str:
        return f"RouteNode({self.kind.value}, {self.segment!r}, label={route_label(self)!r})"


def render_segment(node: RouteNode) -> str:
    """Render a labelled node's segment in its placeholder form."""
    if node.kind is SelectorKind.CONSTANT:
        return node.segment
    if node.kind is SelectorKind.WILDCARD:
        return "*"
    if node.kind is SelectorKind.TAILCARD:
        match = _PLACEHOLDER_RE.search(node.segment)
        name = match.group("name") if match else ""
        return f"{{{name}...}}"
    if node.kind is SelectorKind.OPTIONAL_PARAMETER:
        return _PLACEHOLDER_RE.sub(lambda m: f"{{{m.group('name')}?}}", node.segment)
    return _PLACEHOLDER_RE.sub(lambda m: f"{{{m.group('name')}}}", node.segment)


def route_label(node: RouteNode | None) -> str:
    """Return the route template label for ``node``.

    ``None`` (no route matched) and routes without segments both map to ``/``.
    Nodes of kind ``OTHER`` contribute nothing and defer to their parent.
    """
    if node is None:
        return ROOT_LABEL

    parent = node.parent
    if node.kind not in _LABELLED_KINDS:
        return route_label(parent) if parent is not None else ROOT_LABEL

    segment = render_segment(node)
    if parent is None:
        return f"/{segment}"

    parent_label = route_label(parent)
    if not parent_label:
        return segment
    if parent_label.endswith("/"):
        return f"{parent_label}{segment}"
    return f"{parent_label}/{segment}"


def classify_segment(segment: str) -> SelectorKind:
    """Classify a single path template segment."""
    if segment == "*":
        return SelectorKind.WILDCARD
    match = _PLACEHOLDER_RE.search(segment)
    if match is None:
        return SelectorKind.CONSTANT
    if match.group("tail") or match.group("converter") == "path":
        return SelectorKind.TAILCARD
    if match.group("optional"):
        return SelectorKind.OPTIONAL_PARAMETER
    return SelectorKind.PARAMETER


def parse_route_template(template: str, parent: RouteNode | None = None) -> RouteNode:
    """Build the node chain for a path template below ``parent``.

    Empty segments (leading, trailing or doubled slashes) are skipped. A
    template without segments returns ``parent``, or a fresh root node.
    """
    node = parent
    for segment in template.split("/"):
        if not segment:
            continue
        kind = classify_segment(segment)
        node = RouteNode(kind, segment, parent=node)
    return node if node is not None else RouteNode.root()
