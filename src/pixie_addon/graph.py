"""Explicit dependency graph of cluster resource declarations.

Edges point from a dependent to the resource it depends on, i.e. "must be
applied after". Apply engines walk :meth:`ResourceGraph.topological_order`.
"""

from __future__ import annotations

import dataclasses
import typing

import pixie_addon.junkdrawer


@dataclasses.dataclass(frozen=True)
class ResourceHandle:
    kind: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind}/{self.name}"


@dataclasses.dataclass(frozen=True)
class ResourceDeclaration:
    handle: ResourceHandle
    body: typing.Mapping[str, typing.Any]


class ResourceGraph:
    _declarations: dict[ResourceHandle, ResourceDeclaration]
    _dependencies: dict[ResourceHandle, list[ResourceHandle]]

    def __init__(self) -> None:
        self._declarations = {}
        self._dependencies = {}

    def __len__(self) -> int:
        return len(self._declarations)

    def __contains__(self, handle: object) -> bool:
        return handle in self._declarations

    def add(self, kind: str, name: str, body: typing.Mapping[str, typing.Any] | None = None) -> ResourceHandle:
        handle = ResourceHandle(kind=str(kind), name=name)

        if handle in self._declarations:
            msg = f"Resource {handle} is already declared"
            raise ValueError(msg)

        self._declarations[handle] = ResourceDeclaration(handle=handle, body=dict(body or {}))
        self._dependencies[handle] = []

        return handle

    def add_dependency(self, dependent: ResourceHandle, dependency: ResourceHandle) -> None:
        for handle in (dependent, dependency):
            if handle not in self._declarations:
                msg = f"Resource {handle} is not declared"
                raise ValueError(msg)

        if dependency in self._dependencies[dependent]:
            return

        if dependent == dependency or self.depends_on(dependency, dependent):
            msg = f"Dependency {dependent} -> {dependency} would create a cycle"
            raise ValueError(msg)

        self._dependencies[dependent].append(dependency)

    def declaration(self, handle: ResourceHandle) -> ResourceDeclaration:
        return self._declarations[handle]

    def handles(self) -> list[ResourceHandle]:
        return list(self._declarations)

    def of_kind(self, kind: str) -> list[ResourceHandle]:
        return [handle for handle in self._declarations if handle.kind == kind]

    def dependencies(self, handle: ResourceHandle) -> tuple[ResourceHandle, ...]:
        return tuple(self._dependencies[handle])

    def dependents(self, handle: ResourceHandle) -> tuple[ResourceHandle, ...]:
        return tuple(h for h, deps in self._dependencies.items() if handle in deps)

    def edges(self) -> list[tuple[ResourceHandle, ResourceHandle]]:
        return [(dependent, dependency) for dependent, deps in self._dependencies.items() for dependency in deps]

    def roots(self) -> list[ResourceHandle]:
        """Resources that depend on nothing."""
        return [handle for handle, deps in self._dependencies.items() if not deps]

    def depends_on(self, dependent: ResourceHandle, dependency: ResourceHandle) -> bool:
        """Whether ``dependent`` reaches ``dependency`` through one or more edges."""
        seen: set[ResourceHandle] = set()
        stack = list(self._dependencies.get(dependent, ()))

        while stack:
            current = stack.pop()
            if current == dependency:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._dependencies[current])

        return False

    def topological_order(self) -> list[ResourceHandle]:
        """Dependencies before dependents; ties keep declaration order."""
        remaining = {handle: len(deps) for handle, deps in self._dependencies.items()}
        order: list[ResourceHandle] = []

        while remaining:
            ready = next(handle for handle, count in remaining.items() if count == 0)
            order.append(ready)
            del remaining[ready]
            for dependent in self.dependents(ready):
                remaining[dependent] -= 1

        return order

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "resources": [
                {
                    "kind": handle.kind,
                    "name": handle.name,
                    "body": decl.body,
                    "dependsOn": [str(dep) for dep in self._dependencies[handle]],
                }
                for handle, decl in self._declarations.items()
            ],
        }

    def signature(self) -> str:
        return pixie_addon.junkdrawer.json_signature(self.to_dict())
