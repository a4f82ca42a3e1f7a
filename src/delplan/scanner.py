from __future__ import annotations

import ast
import fnmatch
import os
from pathlib import Path
from typing import Iterable

from delplan.errors import SelectionError, StructureUnavailable
from delplan.models import Entity, LogicalSymbol
from delplan.workspace import Workspace, is_archive_name

TEXT_EXTENSIONS = {
    ".py",
    ".md",
    ".toml",
    ".yaml",
    ".yml",
    ".json",
    ".ini",
    ".cfg",
    ".txt",
    ".rst",
    ".sh",
}
PROJECT_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg")
DEFAULT_EXCLUDES = [
    ".git/**",
    ".venv/**",
    "venv/**",
    "__pycache__/**",
    "*/__pycache__/**",
    ".pytest_cache/**",
    ".mypy_cache/**",
    ".ruff_cache/**",
    ".tox/**",
    "*.egg-info/**",
    "deletion_plan.json",
    "deletion_plan.md",
]
MAX_TEXT_BYTES = 1_000_000


def scan(root: Path, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> Workspace:
    """Build a workspace for the directory tree under ``root``.

    Resource paths start with the name of ``root`` itself, so the scanned
    directory is a resource like any other.
    """
    root = root.resolve()
    workspace = Workspace(base_dir=root.parent)
    top = root.name
    folders, files = _collect(root, list(include), DEFAULT_EXCLUDES + list(exclude))

    for rel_dir in folders:
        full = root / rel_dir if rel_dir != "." else root
        workspace.add_folder(
            _key(top, rel_dir),
            read_only=not os.access(full, os.W_OK),
            linked=full.is_symlink(),
        )
    for rel_path in files:
        full = root / rel_path
        workspace.add_file(
            _key(top, rel_path),
            read_only=not os.access(full, os.W_OK),
            linked=full.is_symlink(),
        )
        try:
            workspace.record_mtime(_key(top, rel_path), full.stat().st_mtime)
        except OSError:
            continue

    projects = _find_projects(folders, files)
    for rel_dir in projects:
        name = top if rel_dir == "." else Path(rel_dir).name
        workspace.add_project(name, _key(top, rel_dir))

    folder_set = set(folders)
    for rel_dir in projects:
        source_root = _source_root(rel_dir, folder_set)
        root_symbol = workspace.add_source_root(_key(top, source_root))
        _add_namespaces(workspace, root, top, root_symbol, source_root, folders, files, projects)

    for rel_path in files:
        if is_archive_name(rel_path):
            workspace.add_archive(_key(top, rel_path))
    _add_archive_references(workspace, root, top, projects, files)
    return workspace


def resolve_selector(workspace: Workspace, top: str, selector: str) -> Entity:
    """Turn ``path`` or ``path::Name[.member]`` into a workspace entity."""
    path_part, _, member_part = selector.partition("::")
    rel = path_part.strip().strip("/")
    path = top if rel in ("", ".") else f"{top}/{rel}"
    resource = workspace.resource(path)
    if resource is None:
        raise SelectionError(f"No such file or folder: {path_part or '.'}")
    if not member_part:
        symbol = workspace.symbol_for(resource)
        return symbol if symbol is not None else resource

    source = workspace.find_source(path)
    if source is None:
        raise SelectionError(f"Not a Python module: {path_part}")
    declaration_name, _, member_name = member_part.partition(".")
    try:
        declarations = workspace.declarations(source)
    except StructureUnavailable as exc:
        raise SelectionError(f"Cannot read {path_part}: {exc}") from exc
    declaration = _named(declarations, declaration_name)
    if declaration is None:
        raise SelectionError(f"{declaration_name} is not declared in {path_part}")
    if not member_name:
        return declaration
    member = _named(workspace.members(declaration), member_name)
    if member is None:
        raise SelectionError(f"{member_name} is not a member of {declaration_name}")
    return member


def _named(symbols: list[LogicalSymbol], name: str) -> LogicalSymbol | None:
    for symbol in symbols:
        if symbol.name == name:
            return symbol
    return None


def _key(top: str, rel: str) -> str:
    return top if rel == "." else f"{top}/{rel}"


def _collect(root: Path, include: list[str], exclude: list[str]) -> tuple[list[str], list[str]]:
    folders: list[str] = ["."]
    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        kept = []
        for name in sorted(dirnames):
            rel = name if rel_dir == "." else f"{rel_dir}/{name}"
            if _matches(rel + "/", exclude):
                continue
            folders.append(rel)
            kept.append(name)
        dirnames[:] = kept
        for name in filenames:
            rel_path = name if rel_dir == "." else f"{rel_dir}/{name}"
            if _matches(rel_path, exclude):
                continue
            if include and not _matches(rel_path, include):
                continue
            files.append(rel_path)
    files.sort()
    return folders, files


def _matches(path: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch.fnmatch(path, pattern) for pattern in patterns)


def _parent(rel: str) -> str:
    return rel.rsplit("/", 1)[0] if "/" in rel else "."


def _find_projects(folders: list[str], files: list[str]) -> list[str]:
    projects = {"."}
    for rel_path in files:
        if Path(rel_path).name in PROJECT_MARKERS:
            projects.add(_parent(rel_path))
    return sorted(projects, key=lambda rel: (rel.count("/") if rel != "." else -1, rel))


def _source_root(project: str, folders: set[str]) -> str:
    candidate = "src" if project == "." else f"{project}/src"
    return candidate if candidate in folders else project


def _is_within(rel: str, base: str) -> bool:
    return base == "." or rel == base or rel.startswith(base + "/")


def _add_namespaces(
    workspace: Workspace,
    root: Path,
    top: str,
    root_symbol: LogicalSymbol,
    source_root: str,
    folders: list[str],
    files: list[str],
    projects: list[str],
) -> None:
    nested = [p for p in projects if p != source_root and _is_within(p, source_root) and p != "."]

    def owned(rel: str) -> bool:
        return _is_within(rel, source_root) and not any(_is_within(rel, other) for other in nested)

    namespaces: dict[str, LogicalSymbol] = {".": workspace.default_namespace(root_symbol)}
    if source_root != ".":
        namespaces[source_root] = namespaces.pop(".")
    for rel_dir in folders:
        if rel_dir == source_root or not owned(rel_dir):
            continue
        if _parent(rel_dir) not in namespaces or not Path(rel_dir).name.isidentifier():
            continue
        relative = rel_dir if source_root == "." else rel_dir[len(source_root) + 1:]
        namespaces[rel_dir] = workspace.add_namespace(root_symbol, relative.replace("/", "."))

    for rel_path in files:
        if not rel_path.endswith(".py") or not owned(rel_path):
            continue
        namespace = namespaces.get(_parent(rel_path))
        if namespace is None:
            continue
        full = root / rel_path
        try:
            tree = ast.parse(full.read_text(encoding="utf-8"))
        except (OSError, SyntaxError, UnicodeDecodeError, ValueError):
            workspace.add_source(namespace, full.name, structure_known=False)
            continue
        source = workspace.add_source(namespace, full.name)
        collector = _DeclarationCollector()
        collector.visit(tree)
        for kind, name, members in collector.declarations:
            if kind == "field":
                workspace.add_field(source, name)
                continue
            declared = workspace.add_type(source, name) if kind == "type" else workspace.add_function(source, name)
            for member_kind, member_name, params in members:
                if member_kind == "field":
                    workspace.add_field(declared, member_name)
                else:
                    workspace.add_method(declared, member_name, params=params)


class _DeclarationCollector(ast.NodeVisitor):
    """Collect top-level declarations and the members of top-level classes."""

    def __init__(self) -> None:
        self.declarations: list[tuple[str, str, list[tuple[str, str, int]]]] = []
        self._seen: set[str] = set()

    def visit_Module(self, node: ast.Module) -> None:  # noqa: N802
        for statement in node.body:
            if isinstance(statement, ast.ClassDef):
                self._declare("type", statement.name, self._class_members(statement))
            elif isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
                self._declare("function", statement.name, [])
            else:
                for name in _assigned_names(statement):
                    self._declare("field", name, [])

    def _declare(self, kind: str, name: str, members: list[tuple[str, str, int]]) -> None:
        if name in self._seen:
            return
        self._seen.add(name)
        self.declarations.append((kind, name, members))

    def _class_members(self, node: ast.ClassDef) -> list[tuple[str, str, int]]:
        members: list[tuple[str, str, int]] = []
        seen: set[str] = set()

        def add(kind: str, name: str, params: int = 0) -> None:
            if name not in seen:
                seen.add(name)
                members.append((kind, name, params))

        for statement in node.body:
            if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
                add("method", statement.name, _param_count(statement))
                if statement.name == "__init__":
                    for name in _self_attributes(statement):
                        add("field", name)
            else:
                for name in _assigned_names(statement):
                    add("field", name)
        return members


def _assigned_names(statement: ast.stmt) -> list[str]:
    if isinstance(statement, ast.Assign):
        return [target.id for target in statement.targets if isinstance(target, ast.Name)]
    if isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name):
        return [statement.target.id]
    return []


def _param_count(node: ast.FunctionDef | ast.AsyncFunctionDef) -> int:
    params = len(node.args.posonlyargs) + len(node.args.args)
    is_static = any(
        isinstance(decorator, ast.Name) and decorator.id == "staticmethod"
        for decorator in node.decorator_list
    )
    return params if is_static else max(params - 1, 0)


def _self_attributes(node: ast.FunctionDef | ast.AsyncFunctionDef) -> list[str]:
    names: list[str] = []
    for child in ast.walk(node):
        targets: list[ast.expr] = []
        if isinstance(child, ast.Assign):
            targets = list(child.targets)
        elif isinstance(child, ast.AnnAssign):
            targets = [child.target]
        for target in targets:
            if (
                isinstance(target, ast.Attribute)
                and isinstance(target.value, ast.Name)
                and target.value.id == "self"
            ):
                names.append(target.attr)
    return names


def _add_archive_references(
    workspace: Workspace,
    root: Path,
    top: str,
    projects: list[str],
    files: list[str],
) -> None:
    archives = [rel for rel in files if is_archive_name(rel)]
    if not archives:
        return
    names = {Path(rel).name: rel for rel in archives}
    for rel_path in files:
        full = root / rel_path
        if full.suffix.lower() not in TEXT_EXTENSIONS:
            continue
        try:
            if full.stat().st_size > MAX_TEXT_BYTES:
                continue
            content = full.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            continue
        project = _owning_project(rel_path, projects)
        name = top if project == "." else Path(project).name
        for archive_name, archive_rel in names.items():
            if archive_name in content:
                workspace.add_reference(name, _key(top, archive_rel))


def _owning_project(rel_path: str, projects: list[str]) -> str:
    best = "."
    for project in projects:
        if project != "." and _is_within(rel_path, project) and len(project) > len(best):
            best = project
    return best
