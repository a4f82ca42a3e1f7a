from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

RESOURCE_KINDS = ("file", "folder", "archive")
SYMBOL_KINDS = ("root", "namespace", "source", "type", "function", "field", "method")


@dataclass(frozen=True)
class PhysicalResource:
    path: str  # posix, relative to the workspace root
    kind: str  # "file", "folder" or "archive"
    read_only: bool = field(default=False, compare=False)
    linked: bool = field(default=False, compare=False)
    exists: bool = field(default=True, compare=False)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent_path(self) -> str | None:
        if "/" not in self.path:
            return None
        return self.path.rsplit("/", 1)[0]

    def contains(self, path: str) -> bool:
        return path.startswith(self.path + "/")

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class LogicalSymbol:
    kind: str  # see SYMBOL_KINDS
    name: str
    container: LogicalSymbol | None = None
    exists: bool = field(default=True, compare=False)
    structure_known: bool = field(default=True, compare=False)
    params: int | None = field(default=None, compare=False)  # methods only, without self

    @property
    def is_default_namespace(self) -> bool:
        return self.kind == "namespace" and self.name == ""

    @property
    def depth(self) -> int:
        if self.kind == "namespace":
            return 0 if not self.name else self.name.count(".") + 1
        return 0 if self.container is None else self.container.depth + 1

    def qualified_name(self) -> str:
        if self.kind in ("type", "function", "field", "method") and self.container is not None:
            prefix = self.container.qualified_name()
            sep = "::" if self.container.kind == "source" else "."
            return f"{prefix}{sep}{self.name}"
        if self.kind == "source" and self.container is not None:
            prefix = self.container.qualified_name()
            return f"{prefix}/{self.name}" if prefix else self.name
        if self.kind == "namespace":
            return self.name or "(default)"
        return self.name

    def __str__(self) -> str:
        return self.qualified_name()


Entity = Union[PhysicalResource, LogicalSymbol]


@dataclass(frozen=True)
class AccessorPair:
    getter: LogicalSymbol | None = None
    setter: LogicalSymbol | None = None

    def present(self) -> list[LogicalSymbol]:
        return [method for method in (self.getter, self.setter) if method is not None]

    def __bool__(self) -> bool:
        return self.getter is not None or self.setter is not None


@dataclass(frozen=True)
class WorkingSet:
    resources: tuple[PhysicalResource, ...] = ()
    elements: tuple[LogicalSymbol, ...] = ()
    subpackages_added: bool = False
    accessors_added: bool = False
    warnings: tuple[str, ...] = ()

    def entities(self) -> list[Entity]:
        return [*self.elements, *self.resources]

    def namespaces(self) -> list[LogicalSymbol]:
        return [element for element in self.elements if element.kind == "namespace"]


@dataclass(frozen=True)
class OrderedPlan:
    resources: tuple[PhysicalResource, ...]
    elements: tuple[LogicalSymbol, ...]
    subpackages_added: bool = False
    accessors_added: bool = False
    warnings: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.resources and not self.elements

    def entities(self) -> list[Entity]:
        return [*self.elements, *self.resources]


@dataclass(frozen=True)
class Cancelled:
    reason: str = "cancelled"
