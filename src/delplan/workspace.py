"""In-memory workspace: projects, source roots, namespaces and the files behind them.

``Workspace`` implements the ``Resolver`` protocol. Tests and the filesystem
scanner populate it through the ``add_*`` builder methods.
"""

from __future__ import annotations

from pathlib import Path

from delplan.errors import StructureUnavailable
from delplan.models import AccessorPair, Entity, LogicalSymbol, PhysicalResource

ARCHIVE_SUFFIXES = (".zip", ".whl", ".egg", ".jar", ".tar.gz")


def is_archive_name(name: str) -> bool:
    return name.lower().endswith(ARCHIVE_SUFFIXES)


def accessor_names(field_name: str) -> tuple[list[str], list[str]]:
    """Getter and setter names conventionally tied to ``field_name``."""
    base = field_name.lstrip("_") or field_name
    capitalized = base[:1].upper() + base[1:]
    getters = [f"get_{base}", f"get{capitalized}", f"is_{base}", f"is{capitalized}"]
    setters = [f"set_{base}", f"set{capitalized}"]
    return getters, setters


class Workspace:
    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = base_dir
        self._resources: dict[str, PhysicalResource] = {}
        self._children: dict[str, list[str]] = {}
        self._symbol_by_path: dict[str, LogicalSymbol] = {}
        self._path_by_symbol: dict[LogicalSymbol, str] = {}
        self._namespaces: dict[LogicalSymbol, dict[str, LogicalSymbol]] = {}
        self._declarations: dict[LogicalSymbol, list[LogicalSymbol]] = {}
        self._members: dict[LogicalSymbol, list[LogicalSymbol]] = {}
        self._projects: dict[str, str] = {}
        self._references: dict[str, set[str]] = {}
        self._archive_roots: dict[str, LogicalSymbol] = {}
        self._unlistable: set[str] = set()
        self._unknown_structure: set[LogicalSymbol] = set()
        self._out_of_sync: set[str] = set()
        self._mtimes: dict[str, float] = {}

    # -- builder -----------------------------------------------------------

    def add_folder(self, path: str, read_only: bool = False, linked: bool = False) -> PhysicalResource:
        return self._add_resource(path, "folder", read_only=read_only, linked=linked)

    def add_file(self, path: str, read_only: bool = False, linked: bool = False) -> PhysicalResource:
        kind = "archive" if is_archive_name(path) else "file"
        return self._add_resource(path, kind, read_only=read_only, linked=linked)

    def add_project(self, name: str, path: str | None = None, references: tuple[str, ...] = ()) -> PhysicalResource:
        folder = self.add_folder(path or name)
        self._projects[name] = folder.path
        for archive_path in references:
            self.add_reference(name, archive_path)
        return folder

    def add_reference(self, project: str, archive_path: str) -> None:
        self._references.setdefault(project, set()).add(archive_path)

    def add_archive(self, path: str, read_only: bool = False) -> LogicalSymbol:
        """Add an archive file and the library root it provides."""
        resource = self._add_resource(path, "archive", read_only=read_only)
        root = LogicalSymbol("root", resource.path)
        self._archive_roots[resource.path] = root
        self._bind(root, resource.path)
        self._namespaces.setdefault(root, {})
        return root

    def add_source_root(self, path: str, read_only: bool = False, linked: bool = False) -> LogicalSymbol:
        folder = self.add_folder(path, read_only=read_only, linked=linked)
        root = LogicalSymbol("root", folder.path)
        self._bind(root, folder.path)
        default = LogicalSymbol("namespace", "", container=root)
        self._path_by_symbol[default] = folder.path
        self._namespaces[root] = {"": default}
        return root

    def add_namespace(
        self,
        root: LogicalSymbol,
        name: str,
        read_only: bool = False,
        linked: bool = False,
    ) -> LogicalSymbol:
        namespaces = self._namespaces[root]
        if name in namespaces:
            return namespaces[name]
        if "." in name:
            self.add_namespace(root, name.rsplit(".", 1)[0])
        root_path = self._path_by_symbol[root]
        folder = self.add_folder(f"{root_path}/{name.replace('.', '/')}", read_only=read_only, linked=linked)
        namespace = LogicalSymbol("namespace", name, container=root)
        namespaces[name] = namespace
        self._bind(namespace, folder.path)
        return namespace

    def default_namespace(self, root: LogicalSymbol) -> LogicalSymbol:
        return self._namespaces[root][""]

    def add_source(
        self,
        namespace: LogicalSymbol,
        filename: str,
        read_only: bool = False,
        structure_known: bool = True,
    ) -> LogicalSymbol:
        folder_path = self._path_by_symbol[namespace]
        resource = self._add_resource(f"{folder_path}/{filename}", "file", read_only=read_only)
        source = LogicalSymbol("source", filename, container=namespace, structure_known=structure_known)
        self._bind(source, resource.path)
        self._declarations[source] = []
        if not structure_known:
            self._unknown_structure.add(source)
        return source

    def add_type(self, source: LogicalSymbol, name: str) -> LogicalSymbol:
        return self._declare(source, LogicalSymbol("type", name, container=source))

    def add_function(self, source: LogicalSymbol, name: str) -> LogicalSymbol:
        return self._declare(source, LogicalSymbol("function", name, container=source))

    def add_field(self, container: LogicalSymbol, name: str) -> LogicalSymbol:
        field = LogicalSymbol("field", name, container=container)
        if container.kind == "source":
            return self._declare(container, field)
        self._members.setdefault(container, []).append(field)
        return field

    def add_method(self, owner: LogicalSymbol, name: str, params: int = 0) -> LogicalSymbol:
        method = LogicalSymbol("method", name, container=owner, params=params)
        self._members.setdefault(owner, []).append(method)
        return method

    def mark_unlistable(self, path: str) -> None:
        self._unlistable.add(path)

    def mark_out_of_sync(self, path: str) -> None:
        self._out_of_sync.add(path)

    def record_mtime(self, path: str, mtime: float) -> None:
        self._mtimes[path] = mtime

    # -- lookups -----------------------------------------------------------

    def resource(self, path: str) -> PhysicalResource | None:
        return self._resources.get(path.strip("/"))

    def find_source(self, path: str) -> LogicalSymbol | None:
        symbol = self._symbol_by_path.get(path.strip("/"))
        if symbol is not None and symbol.kind == "source":
            return symbol
        return None

    def members(self, owner: LogicalSymbol) -> list[LogicalSymbol]:
        return list(self._members.get(owner, []))

    def projects(self) -> dict[str, str]:
        return dict(self._projects)

    def roots(self) -> list[LogicalSymbol]:
        return list(self._namespaces)

    def namespaces(self, root: LogicalSymbol) -> list[LogicalSymbol]:
        return list(self._namespaces.get(root, {}).values())

    # -- Resolver ----------------------------------------------------------

    def children(self, folder: PhysicalResource) -> list[PhysicalResource]:
        if folder.path in self._unlistable:
            raise StructureUnavailable(folder, "folder cannot be listed")
        return [self._resources[path] for path in self._children.get(folder.path, [])]

    def parent(self, resource: PhysicalResource) -> PhysicalResource | None:
        parent_path = resource.parent_path
        if parent_path is None:
            return None
        return self._resources.get(parent_path)

    def symbol_for(self, resource: PhysicalResource) -> LogicalSymbol | None:
        return self._symbol_by_path.get(resource.path)

    def resource_of(self, symbol: LogicalSymbol) -> PhysicalResource | None:
        path = self._path_by_symbol.get(symbol)
        if path is None:
            return None
        return self._resources.get(path)

    def subpackages(self, namespace: LogicalSymbol) -> list[LogicalSymbol]:
        if namespace.is_default_namespace or namespace.container is None:
            return []
        prefix = namespace.name + "."
        candidates = self._namespaces.get(namespace.container, {})
        return sorted(
            (candidate for name, candidate in candidates.items() if name.startswith(prefix)),
            key=lambda candidate: candidate.name,
        )

    def parent_namespace(self, namespace: LogicalSymbol) -> LogicalSymbol | None:
        if "." not in namespace.name or namespace.container is None:
            return None
        return self._namespaces.get(namespace.container, {}).get(namespace.name.rsplit(".", 1)[0])

    def declarations(self, source: LogicalSymbol) -> list[LogicalSymbol]:
        known = self._declarations.get(source)
        if known is None or source in self._unknown_structure:
            raise StructureUnavailable(source)
        return list(known)

    def accessors(self, field: LogicalSymbol) -> AccessorPair:
        owner = field.container
        if owner is None or owner.kind != "type":
            return AccessorPair()
        source = owner.container
        if source is not None and source in self._unknown_structure:
            raise StructureUnavailable(source)
        methods = {member.name: member for member in self._members.get(owner, []) if member.kind == "method"}
        getter_names, setter_names = accessor_names(field.name)
        getter = _first_with_arity(methods, getter_names, 0)
        setter = _first_with_arity(methods, setter_names, 1)
        return AccessorPair(getter=getter, setter=setter)

    def project_of(self, entity: Entity) -> str | None:
        path = self._owning_path(entity)
        if path is None:
            return None
        best: tuple[int, str] | None = None
        for name, folder in self._projects.items():
            if path == folder or path.startswith(folder + "/"):
                if best is None or len(folder) > best[0]:
                    best = (len(folder), name)
        return best[1] if best else None

    def referencing_projects(self, root: LogicalSymbol) -> list[str]:
        path = self._path_by_symbol.get(root)
        if path is None:
            return []
        return sorted(name for name, archives in self._references.items() if path in archives)

    def archive_root(self, resource: PhysicalResource) -> LogicalSymbol | None:
        return self._archive_roots.get(resource.path)

    def is_in_sync(self, resource: PhysicalResource) -> bool:
        if resource.path in self._out_of_sync:
            return False
        recorded = self._mtimes.get(resource.path)
        if recorded is None or self.base_dir is None:
            return True
        disk_path = self.base_dir / resource.path
        try:
            return disk_path.stat().st_mtime == recorded
        except OSError:
            return False

    # -- internals ---------------------------------------------------------

    def _add_resource(self, path: str, kind: str, read_only: bool = False, linked: bool = False) -> PhysicalResource:
        path = path.strip("/")
        existing = self._resources.get(path)
        if existing is not None:
            if read_only or linked:
                existing = PhysicalResource(
                    path,
                    existing.kind,
                    read_only=existing.read_only or read_only,
                    linked=existing.linked or linked,
                )
                self._resources[path] = existing
            return existing
        resource = PhysicalResource(path, kind, read_only=read_only, linked=linked)
        self._resources[path] = resource
        parent_path = resource.parent_path
        if parent_path is not None:
            if parent_path not in self._resources:
                self.add_folder(parent_path)
            self._children.setdefault(parent_path, []).append(path)
        return resource

    def _bind(self, symbol: LogicalSymbol, path: str) -> None:
        self._path_by_symbol[symbol] = path
        current = self._symbol_by_path.get(path)
        if current is None or symbol.kind == "root":
            self._symbol_by_path[path] = symbol

    def _declare(self, source: LogicalSymbol, declaration: LogicalSymbol) -> LogicalSymbol:
        self._declarations.setdefault(source, []).append(declaration)
        return declaration

    def _owning_path(self, entity: Entity) -> str | None:
        if isinstance(entity, PhysicalResource):
            return entity.path
        symbol: LogicalSymbol | None = entity
        while symbol is not None:
            path = self._path_by_symbol.get(symbol)
            if path is not None:
                return path
            symbol = symbol.container
        return None


def _first_with_arity(methods: dict[str, LogicalSymbol], names: list[str], arity: int) -> LogicalSymbol | None:
    for name in names:
        method = methods.get(name)
        if method is None or not method.exists:
            continue
        if method.params is None or method.params == arity:
            return method
    return None
