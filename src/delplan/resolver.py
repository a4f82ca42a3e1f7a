from __future__ import annotations

from typing import Protocol

from delplan.models import AccessorPair, Entity, LogicalSymbol, PhysicalResource


class Resolver(Protocol):
    """Read-only view of a workspace used by the planner.

    ``declarations`` raises ``StructureUnavailable`` when a source container
    cannot be read; ``children`` raises it when a folder cannot be listed.
    """

    def children(self, folder: PhysicalResource) -> list[PhysicalResource]: ...

    def parent(self, resource: PhysicalResource) -> PhysicalResource | None: ...

    def symbol_for(self, resource: PhysicalResource) -> LogicalSymbol | None: ...

    def resource_of(self, symbol: LogicalSymbol) -> PhysicalResource | None: ...

    def subpackages(self, namespace: LogicalSymbol) -> list[LogicalSymbol]: ...

    def parent_namespace(self, namespace: LogicalSymbol) -> LogicalSymbol | None: ...

    def declarations(self, source: LogicalSymbol) -> list[LogicalSymbol]: ...

    def accessors(self, field: LogicalSymbol) -> AccessorPair: ...

    def project_of(self, entity: Entity) -> str | None: ...

    def referencing_projects(self, root: LogicalSymbol) -> list[str]: ...

    def archive_root(self, resource: PhysicalResource) -> LogicalSymbol | None: ...

    def is_in_sync(self, resource: PhysicalResource) -> bool: ...
