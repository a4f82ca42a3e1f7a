from __future__ import annotations

import logging
from collections.abc import Iterable

from delplan.models import AccessorPair, Entity, LogicalSymbol, PhysicalResource, WorkingSet
from delplan.resolver import Resolver
from delplan.workspace import is_archive_name

logger = logging.getLogger(__name__)

INSIDE_SOURCE_KINDS = ("type", "function", "field", "method")


class EntityModel:
    """Structural queries over a resolver for one planning session.

    Declarations and folder listings are fetched lazily and cached, so a
    resolver is consulted at most once per container.
    """

    def __init__(self, resolver: Resolver) -> None:
        self.resolver = resolver
        self._declarations: dict[LogicalSymbol, list[LogicalSymbol]] = {}
        self._children: dict[PhysicalResource, list[PhysicalResource]] = {}
        self._resources: dict[LogicalSymbol, PhysicalResource | None] = {}
        self._accessors: dict[LogicalSymbol, AccessorPair] = {}

    def classify(self, raw: Iterable[object]) -> WorkingSet:
        resources: dict[PhysicalResource, None] = {}
        elements: dict[LogicalSymbol, None] = {}
        warnings: list[str] = []
        for item in raw:
            if isinstance(item, PhysicalResource):
                target = resources
            elif isinstance(item, LogicalSymbol):
                target = elements
            else:
                logger.debug("Dropping unsupported selection item %r", item)
                continue
            if not item.exists:
                warnings.append(f"{item} does not exist and was left out")
                continue
            target.setdefault(item, None)
        return WorkingSet(
            resources=tuple(resources),
            elements=tuple(elements),
            warnings=tuple(warnings),
        )

    # -- containment -------------------------------------------------------

    def ancestor_of(self, a: Entity, b: Entity) -> bool:
        if a == b:
            return False
        if isinstance(a, PhysicalResource):
            if isinstance(b, PhysicalResource):
                return a.contains(b.path)
            owner = self.owning_resource(b)
            return owner is not None and (owner == a or a.contains(owner.path))
        if isinstance(b, LogicalSymbol):
            container = b.container
            while container is not None:
                if container == a:
                    return True
                container = container.container
            return False
        return self._symbol_contains_resource(a, b)

    def _symbol_contains_resource(self, symbol: LogicalSymbol, resource: PhysicalResource) -> bool:
        folder = self.resolver.parent(resource)
        while folder is not None:
            mapped = self.resolver.symbol_for(folder)
            if mapped == symbol:
                return True
            if symbol.kind == "namespace" and mapped is not None and mapped.kind == "namespace":
                return False
            folder = self.resolver.parent(folder)
        return False

    def is_archive_like(self, entity: Entity) -> bool:
        if isinstance(entity, PhysicalResource):
            return entity.kind == "archive"
        if entity.kind != "root":
            return False
        resource = self.resource_of(entity)
        return resource is not None and (resource.kind == "archive" or is_archive_name(resource.path))

    # -- ownership ---------------------------------------------------------

    def owning_container(self, symbol: LogicalSymbol) -> LogicalSymbol | None:
        return symbol.container

    def resource_of(self, symbol: LogicalSymbol) -> PhysicalResource | None:
        if symbol not in self._resources:
            self._resources[symbol] = self.resolver.resource_of(symbol)
        return self._resources[symbol]

    def owning_resource(self, symbol: LogicalSymbol) -> PhysicalResource | None:
        current: LogicalSymbol | None = symbol
        while current is not None:
            resource = self.resource_of(current)
            if resource is not None:
                return resource
            current = current.container
        return None

    def owning_namespace(self, symbol: LogicalSymbol) -> LogicalSymbol | None:
        return self._nearest(symbol.container, "namespace")

    def owning_source(self, symbol: LogicalSymbol) -> LogicalSymbol | None:
        return self._nearest(symbol, "source")

    def is_inside_source(self, symbol: LogicalSymbol) -> bool:
        return symbol.kind in INSIDE_SOURCE_KINDS

    def project_of(self, entity: Entity) -> str | None:
        return self.resolver.project_of(entity)

    def _nearest(self, symbol: LogicalSymbol | None, kind: str) -> LogicalSymbol | None:
        while symbol is not None and symbol.kind != kind:
            symbol = symbol.container
        return symbol

    # -- lazily resolved structure -----------------------------------------

    def declarations(self, source: LogicalSymbol) -> list[LogicalSymbol]:
        """Top-level declarations of ``source``; raises StructureUnavailable."""
        if source not in self._declarations:
            self._declarations[source] = self.resolver.declarations(source)
        return self._declarations[source]

    def accessors(self, field: LogicalSymbol) -> AccessorPair:
        if field not in self._accessors:
            self._accessors[field] = self.resolver.accessors(field)
        return self._accessors[field]

    def children(self, folder: PhysicalResource) -> list[PhysicalResource]:
        if folder not in self._children:
            self._children[folder] = self.resolver.children(folder)
        return self._children[folder]

    def is_namespace_folder(self, resource: PhysicalResource) -> bool:
        if resource.kind != "folder":
            return False
        mapped = self.resolver.symbol_for(resource)
        return mapped is not None and mapped.kind == "namespace"

    def has_read_only(self, entity: Entity) -> bool:
        """Whether ``entity`` or anything physically inside it is read-only."""
        if isinstance(entity, LogicalSymbol):
            resource = self.owning_resource(entity)
            if resource is None:
                return False
            if self.is_inside_source(entity) or entity.kind == "source":
                return resource.read_only
            if entity.kind == "namespace":
                return resource.read_only or any(
                    self.has_read_only(child) for child in self.children(resource) if not self.is_namespace_folder(child)
                )
            entity = resource
        if entity.read_only:
            return True
        if entity.kind != "folder":
            return False
        return any(self.has_read_only(child) for child in self.children(entity))
