from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from delplan import rules
from delplan.config import PlannerConfig
from delplan.entities import EntityModel
from delplan.errors import PlanningCancelled
from delplan.models import Cancelled, LogicalSymbol, OrderedPlan, PhysicalResource, WorkingSet
from delplan.queries import ConfirmationOracle, yes_to_all
from delplan.resolver import Resolver
from delplan.setops import remove_descendants_of_selected

logger = logging.getLogger(__name__)


def plan(
    raw_selection: Iterable[object],
    resolver: Resolver,
    oracle: ConfirmationOracle | None = None,
    config: PlannerConfig | None = None,
) -> OrderedPlan | Cancelled:
    """Compute what has to be deleted for ``raw_selection``.

    Returns ``Cancelled`` when the user declines to delete read-only content.
    ``StructureUnavailable`` escapes only when the read-only check cannot list
    a folder.
    """
    config = config or PlannerConfig()
    oracle = oracle or yes_to_all()
    model = EntityModel(resolver)

    working = model.classify(raw_selection)
    warnings = check_initial_conditions(working, model)
    if warnings:
        working = replace(working, warnings=working.warnings + tuple(warnings))
    logger.debug(
        "Planning deletion of %d resources and %d elements",
        len(working.resources),
        len(working.elements),
    )
    try:
        working = recalculate_elements_to_delete(working, model, oracle, config)
    except PlanningCancelled as exc:
        logger.info("Delete planning cancelled: %s", exc)
        return Cancelled(reason=str(exc) or "cancelled")

    return OrderedPlan(
        resources=working.resources,
        elements=working.elements,
        subpackages_added=working.subpackages_added,
        accessors_added=working.accessors_added,
        warnings=working.warnings,
    )


def recalculate_elements_to_delete(
    working: WorkingSet,
    model: EntityModel,
    oracle: ConfirmationOracle,
    config: PlannerConfig,
) -> WorkingSet:
    # the sequence is critical here
    if config.expand_subpackages:
        # before pruning, so that nested namespaces are not kept twice
        working = _step("expand_subpackages", rules.expand_subpackages(working, model))

    # before adding empty sources: no questions about what a selected namespace holds
    working = _step("prune", remove_descendants_of_selected(working, model))
    working = _step(
        "source_roots",
        rules.remove_folders_containing_source_roots(working, model, oracle),
    )
    working = _step(
        "referenced_archives",
        rules.remove_unconfirmed_referenced_archives(working, model, oracle),
    )
    working = _step("empty_sources", rules.add_empty_sources(working, model, oracle))
    # added sources may contain symbols that are still selected
    working = _step(
        "prune_members",
        remove_descendants_of_selected(working, model, also_prune_elements_of_selected_elements=True),
    )
    # after empty sources, so that the question covers every source to delete
    working = _step("read_only", rules.confirm_deleting_read_only(working, model, oracle))

    if config.suggest_accessor_deletion:
        working = _step("accessors", rules.add_accessors(working, model, oracle))

    # last: fixes the order of elements
    return _step(
        "parent_namespaces",
        rules.add_deletable_parent_namespaces(working, model, oracle),
    )


def _step(name: str, working: WorkingSet) -> WorkingSet:
    logger.debug(
        "after %s: %d resources, %d elements",
        name,
        len(working.resources),
        len(working.elements),
    )
    return working


def check_initial_conditions(working: WorkingSet, model: EntityModel) -> list[str]:
    """Warn about resources that changed on disk since the workspace was read."""
    warnings: list[str] = []
    resources = [resource for resource in working.resources if not resource.linked]
    for element in working.elements:
        resource = model.resource_of(element)
        if resource is not None:
            resources.append(resource)
    for resource in dict.fromkeys(resources):
        if not model.resolver.is_in_sync(resource):
            warnings.append(f"{resource} is out of sync with the file system")
    return warnings


def is_applicable(raw_selection: Iterable[object]) -> bool:
    items = list(raw_selection)
    if not items:
        return False
    for item in items:
        if not isinstance(item, (PhysicalResource, LogicalSymbol)):
            return False
        if not item.exists:
            return False
    return True


def has_subpackages_to_delete(raw_selection: Iterable[object], resolver: Resolver) -> bool:
    for item in raw_selection:
        if not isinstance(item, LogicalSymbol) or item.kind != "namespace":
            continue
        if item.is_default_namespace:
            continue
        if resolver.subpackages(item):
            return True
    return False
