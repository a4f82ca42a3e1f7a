from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import TypeVar

from delplan.entities import EntityModel
from delplan.models import WorkingSet

T = TypeVar("T")


def union(a: Iterable[T], b: Iterable[T]) -> tuple[T, ...]:
    merged = dict.fromkeys(a)
    for item in b:
        merged.setdefault(item, None)
    return tuple(merged)


def set_minus(a: Iterable[T], b: Iterable[T]) -> tuple[T, ...]:
    removed = set(b)
    return tuple(dict.fromkeys(item for item in a if item not in removed))


def remove_descendants_of_selected(
    working: WorkingSet,
    model: EntityModel,
    also_prune_elements_of_selected_elements: bool = False,
) -> WorkingSet:
    """Drop every selected entity that an ancestor in the selection already covers.

    The first pass (flag off) prunes both collections against each other. After
    cascades that only add symbols the flag is set and resources are left alone.
    """
    resources = working.resources
    elements = working.elements
    if not also_prune_elements_of_selected_elements:
        resources = tuple(
            resource
            for resource in resources
            if not any(model.ancestor_of(other, resource) for other in resources)
            and not any(model.ancestor_of(element, resource) for element in elements)
        )
    elements = tuple(
        element
        for element in elements
        if not any(model.ancestor_of(other, element) for other in elements)
        and not any(model.ancestor_of(resource, element) for resource in resources)
    )
    return replace(working, resources=resources, elements=elements)
