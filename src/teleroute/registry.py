"""Route registry: the route tree flattened once at startup.

Ensures route ids are unique across the whole tree and that no two
routes claim the same bot command. Built by InlineRouter, read-only
afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from teleroute.routes import Route, RouteNode, RouteTree


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """Registered route with its parent and inherited back flag."""

    route: Route[Any, Any]
    parent_id: str | None
    back_effective: bool

    @property
    def shows_back(self) -> bool:
        """Root routes never show Back, whatever their flag says."""
        return self.back_effective and self.parent_id is not None


@dataclass(frozen=True, slots=True)
class CommandEntry:
    """Bot command with metadata for the command menu."""

    command: str
    description: str | None = None
    order: int = 100


class DuplicateRouteError(ValueError):
    """Raised when two routes in one tree share an id."""


class CommandCollision(ValueError):
    """Raised when two routes claim the same command."""


@dataclass
class RouteRegistry:
    """Flattened route tree.

    Use ``RouteRegistry.build(tree)``; collisions raise immediately.
    """

    _entries: dict[str, RouteEntry] = field(default_factory=lambda: dict[str, RouteEntry]())
    _commands: dict[str, tuple[CommandEntry, str]] = field(
        default_factory=lambda: dict[str, tuple[CommandEntry, str]](),
    )

    @classmethod
    def build(cls, tree: RouteTree) -> RouteRegistry:
        registry = cls()
        for node in tree:
            registry._walk(node, None, False)
        return registry

    def _walk(
        self,
        node: RouteNode | Route[Any, Any],
        parent_id: str | None,
        parent_back: bool,
    ) -> None:
        match node:
            case RouteNode(route=route, has_back=has_back, children=children):
                back_effective = has_back
            case _:
                route, children = node, ()
                back_effective = parent_back
        self._register(RouteEntry(route=route, parent_id=parent_id, back_effective=back_effective))
        for child in children:
            self._walk(child, route.id, back_effective)

    def _register(self, entry: RouteEntry) -> None:
        route = entry.route
        if route.id in self._entries:
            raise DuplicateRouteError(f"Duplicate route id: {route.id}")
        self._entries[route.id] = entry
        if route.command:
            self._register_command(route)

    def _register_command(self, route: Route[Any, Any]) -> None:
        command = route.command.lstrip("/") if route.command else ""
        if command in self._commands:
            _, owner = self._commands[command]
            raise CommandCollision(
                f"Command /{command} already registered by route '{owner}'"
            )
        self._commands[command] = (
            CommandEntry(
                command=command,
                description=route.description,
                order=route.order,
            ),
            route.id,
        )

    def get(self, route_id: str | None) -> RouteEntry | None:
        if route_id is None:
            return None
        return self._entries.get(route_id)

    def route_for_command(self, command: str) -> Route[Any, Any] | None:
        owner = self._commands.get(command.lstrip("/"))
        if owner is None:
            return None
        return self._entries[owner[1]].route

    @property
    def entries(self) -> Sequence[RouteEntry]:
        """All entries in registration (depth-first) order."""
        return list(self._entries.values())

    @property
    def commands(self) -> Sequence[CommandEntry]:
        """All route commands, sorted by (order, command)."""
        return sorted(
            (entry for entry, _ in self._commands.values()),
            key=lambda c: (c.order, c.command),
        )

    def __contains__(self, route_id: object) -> bool:
        return route_id in self._entries

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


__all__ = (
    "CommandCollision",
    "CommandEntry",
    "DuplicateRouteError",
    "RouteEntry",
    "RouteRegistry",
)
