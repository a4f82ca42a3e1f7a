"""The ordered phases that turn a selection into the set of entities to delete.

Every rule takes a ``WorkingSet`` and returns a new one; none of them mutate
their input. The order in which ``delplan.planner`` applies them matters.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from delplan import queries
from delplan.entities import EntityModel
from delplan.errors import StructureUnavailable
from delplan.models import LogicalSymbol, PhysicalResource, WorkingSet
from delplan.queries import ConfirmationOracle
from delplan.setops import set_minus, union

logger = logging.getLogger(__name__)


def expand_subpackages(working: WorkingSet, model: EntityModel) -> WorkingSet:
    already_selected = set(working.elements)
    expanded: dict[LogicalSymbol, None] = {}
    added = False
    for element in working.elements:
        expanded.setdefault(element, None)
        if element.kind != "namespace" or element.is_default_namespace:
            continue
        for subpackage in model.resolver.subpackages(element):
            if subpackage not in already_selected and subpackage not in expanded:
                logger.info("Adding subpackage %s of %s", subpackage, element)
                added = True
            expanded.setdefault(subpackage, None)
    return replace(
        working,
        elements=tuple(expanded),
        subpackages_added=working.subpackages_added or added,
    )


def contains_source_root(folder: PhysicalResource, model: EntityModel) -> bool:
    mapped = model.resolver.symbol_for(folder)
    if mapped is not None and mapped.kind == "root":
        return True
    try:
        children = model.children(folder)
    except StructureUnavailable as exc:
        logger.warning("Cannot look for source folders: %s", exc)
        return False
    for child in children:
        if child.kind != "folder" or model.is_namespace_folder(child):
            continue
        if contains_source_root(child, model):
            return True
    return False


def remove_folders_containing_source_roots(
    working: WorkingSet,
    model: EntityModel,
    oracle: ConfirmationOracle,
) -> WorkingSet:
    skipped: list[PhysicalResource] = []
    for resource in working.resources:
        if resource.kind != "folder" or not contains_source_root(resource, model):
            continue
        if not oracle.confirm(queries.CONFIRM_DELETE_FOLDERS_CONTAINING_SOURCE_FOLDERS, resource):
            logger.info("Keeping %s: it contains a source folder", resource)
            skipped.append(resource)
    if not skipped:
        return working
    return replace(working, resources=set_minus(working.resources, skipped))


def _referencing_projects(root: LogicalSymbol | None, owner: str | None, model: EntityModel) -> list[str]:
    if root is None or not root.exists or not model.is_archive_like(root):
        return []
    return [project for project in model.resolver.referencing_projects(root) if project != owner]


def _skip_referenced(oracle: ConfirmationOracle, subject: object, projects: list[str]) -> bool:
    if not projects:
        return False
    if len(projects) == 1:
        message = f"'{subject}' is referenced by project {projects[0]}. Delete it anyway?"
    else:
        message = f"'{subject}' is referenced by projects {', '.join(projects)}. Delete it anyway?"
    return not oracle.confirm(queries.CONFIRM_DELETE_REFERENCED_ARCHIVES, subject, message)


def remove_unconfirmed_referenced_archives(
    working: WorkingSet,
    model: EntityModel,
    oracle: ConfirmationOracle,
) -> WorkingSet:
    resources_to_skip: list[PhysicalResource] = []
    for resource in working.resources:
        if not model.is_archive_like(resource):
            continue
        root = model.resolver.archive_root(resource)
        projects = _referencing_projects(root, model.project_of(resource), model)
        if _skip_referenced(oracle, resource, projects):
            logger.info("Keeping %s: referenced by %s", resource, ", ".join(projects))
            resources_to_skip.append(resource)

    elements_to_skip: list[LogicalSymbol] = []
    for element in working.elements:
        if element.kind != "root":
            continue
        projects = _referencing_projects(element, model.project_of(element), model)
        if _skip_referenced(oracle, element, projects):
            logger.info("Keeping %s: referenced by %s", element, ", ".join(projects))
            elements_to_skip.append(element)

    return replace(
        working,
        resources=set_minus(working.resources, resources_to_skip),
        elements=set_minus(working.elements, elements_to_skip),
    )


def add_empty_sources(
    working: WorkingSet,
    model: EntityModel,
    oracle: ConfirmationOracle,
) -> WorkingSet:
    """Select every source whose top-level declarations are all selected."""
    selected = set(working.elements)
    emptied: dict[LogicalSymbol, None] = {}
    unreadable: set[LogicalSymbol] = set()
    dropped: list[LogicalSymbol] = []
    for element in working.elements:
        source = model.owning_source(element)
        if source is None or source in emptied or source in unreadable:
            continue
        try:
            if not source.structure_known:
                raise StructureUnavailable(source)
            declarations = model.declarations(source)
        except StructureUnavailable as exc:
            logger.warning("%s; not checking whether it becomes empty", exc)
            unreadable.add(source)
            members = [other for other in working.elements if other != source and model.owning_source(other) == source]
            if members and not oracle.confirm(queries.CONFIRM_SKIP_UNREADABLE, source, mode=queries.SKIP_MODE):
                dropped.extend(members)
            continue
        if declarations and selected.issuperset(declarations):
            logger.info("Adding %s: all of its declarations are deleted", source)
            emptied[source] = None

    elements = set_minus(working.elements, dropped)
    return replace(working, elements=union(elements, emptied))


def confirm_deleting_read_only(
    working: WorkingSet,
    model: EntityModel,
    oracle: ConfirmationOracle,
) -> WorkingSet:
    # saying no here cancels the whole operation
    read_only = tuple(entity for entity in working.entities() if model.has_read_only(entity))
    if read_only:
        oracle.confirm(queries.CONFIRM_DELETE_READ_ONLY, read_only, mode=queries.GLOBAL_CANCEL)
    return working


def add_accessors(
    working: WorkingSet,
    model: EntityModel,
    oracle: ConfirmationOracle,
) -> WorkingSet:
    fields = [element for element in working.elements if element.kind == "field"]
    if not fields:
        return working
    selected = set(working.elements)
    pending: dict[LogicalSymbol, list[LogicalSymbol]] = {}
    for field in fields:
        try:
            pair = model.accessors(field)
        except StructureUnavailable as exc:
            logger.warning("Skipping accessors of %s: %s", field, exc)
            continue
        methods = [method for method in pair.present() if method.exists and method not in selected]
        if methods:
            pending[field] = methods

    added: list[LogicalSymbol] = []
    for field, methods in pending.items():
        if oracle.confirm(queries.CONFIRM_DELETE_ACCESSORS, field):
            logger.info("Adding accessors of %s: %s", field, ", ".join(str(m) for m in methods))
            added.extend(methods)
    if not added:
        return working
    return replace(working, elements=union(working.elements, added), accessors_added=True)


def is_completely_selected(
    namespace: LogicalSymbol,
    model: EntityModel,
    deleted: frozenset[PhysicalResource],
) -> bool:
    """A namespace is emptied out when all of its sub-namespace folders go too."""
    folder = model.resource_of(namespace)
    if folder is None:
        return False
    try:
        children = model.children(folder)
    except StructureUnavailable as exc:
        logger.warning("Cannot tell whether %s is emptied: %s", namespace, exc)
        return False
    return all(child in deleted for child in children if model.is_namespace_folder(child))


def deletable_parent_namespaces(
    parent: LogicalSymbol,
    initial: frozenset[LogicalSymbol],
    deleted: frozenset[PhysicalResource],
    model: EntityModel,
    oracle: ConfirmationOracle,
) -> tuple[tuple[LogicalSymbol, ...], frozenset[PhysicalResource]]:
    """Walk up from ``parent`` while every member of the namespace folder is deleted.

    Returns the namespaces that become deletable, innermost first, and
    ``deleted`` extended by their folders.
    """
    promoted: list[LogicalSymbol] = []
    current: LogicalSymbol | None = parent
    while current is not None and current.exists and current not in initial:
        folder = model.resource_of(current)
        if folder is None:
            break
        if folder not in deleted:
            try:
                children = model.children(folder)
            except StructureUnavailable as exc:
                logger.warning("Keeping %s: %s", current, exc)
                break
            if any(child not in deleted for child in children):
                break
            # asked once the folder is known to end up empty
            if folder.linked and not oracle.confirm(
                queries.CONFIRM_DELETE_LINKED_PARENT,
                current,
                mode=queries.ASK_ALWAYS,
            ):
                break
            deleted = deleted | {folder}
            promoted.append(current)
        current = model.resolver.parent_namespace(current)
    return tuple(promoted), deleted


def add_deletable_parent_namespaces(
    working: WorkingSet,
    model: EntityModel,
    oracle: ConfirmationOracle,
) -> WorkingSet:
    # the order of elements after this rule is the order of the plan
    initial = sorted(working.namespaces(), key=lambda ns: (ns.depth, ns.name), reverse=True)
    if not initial:
        return working

    deleted = set(working.resources)
    for element in working.elements:
        if model.is_inside_source(element):
            continue
        resource = model.resource_of(element)
        if resource is not None:
            deleted.add(resource)
    deleted_children = frozenset(deleted)

    initial_set = frozenset(initial)
    promoted: list[LogicalSymbol] = []
    for namespace in initial:
        if not is_completely_selected(namespace, model, deleted_children):
            continue
        parent = model.resolver.parent_namespace(namespace)
        if parent is None or parent in initial_set:
            continue
        parents, deleted_children = deletable_parent_namespaces(parent, initial_set, deleted_children, model, oracle)
        promoted.extend(parents)

    namespaces_to_delete = tuple(dict.fromkeys([*initial, *promoted]))
    if promoted:
        logger.info("Adding emptied parent namespaces: %s", ", ".join(str(ns) for ns in promoted))
    doomed = set(namespaces_to_delete)
    elements = tuple(
        element
        for element in working.elements
        if element.kind != "namespace" and model.owning_namespace(element) not in doomed
    )
    resources = tuple(
        resource for resource in working.resources if model.resolver.parent(resource) not in deleted_children
    )
    return replace(working, resources=resources, elements=elements + namespaces_to_delete)
