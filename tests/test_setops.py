from __future__ import annotations

from conftest import Project

from delplan.entities import EntityModel
from delplan.models import WorkingSet
from delplan.setops import remove_descendants_of_selected, set_minus, union


def test_union_keeps_first_occurrence_order() -> None:
    assert union(["b", "a"], ["c", "a", "b", "d"]) == ("b", "a", "c", "d")


def test_set_minus_preserves_order_and_drops_duplicates() -> None:
    assert set_minus(["a", "b", "a", "c"], ["b"]) == ("a", "c")
    assert set_minus([], ["b"]) == ()


def test_prunes_across_resources_and_elements(project: Project) -> None:
    ws = project.workspace
    ns = project.namespace("pkg")
    source = ws.add_source(ns, "mod.py")
    person = ws.add_type(source, "Person")
    name = ws.add_field(person, "name")
    folder = ws.resource("app/src/pkg")
    readme = ws.add_file("app/src/pkg/README.md")
    docs = ws.add_folder("app/docs")
    guide = ws.add_file("app/docs/guide.md")
    model = EntityModel(ws)

    working = WorkingSet(
        resources=(readme, guide, docs),
        elements=(name, source, person),
    )
    pruned = remove_descendants_of_selected(working, model)

    assert pruned.resources == (readme, docs)
    assert pruned.elements == (source,)
    assert folder not in pruned.resources


def test_resource_selection_covers_symbols_inside(project: Project) -> None:
    ws = project.workspace
    source = ws.add_source(project.namespace("pkg"), "mod.py")
    person = ws.add_type(source, "Person")
    model = EntityModel(ws)

    working = WorkingSet(resources=(ws.resource("app/src/pkg"),), elements=(person,))
    pruned = remove_descendants_of_selected(working, model)

    assert pruned.elements == ()
    assert pruned.resources == (ws.resource("app/src/pkg"),)


def test_namespace_does_not_cover_files_of_subpackages(project: Project) -> None:
    ws = project.workspace
    ns = project.namespace("pkg")
    project.namespace("pkg.sub")
    nested = ws.add_file("app/src/pkg/sub/data.json")
    model = EntityModel(ws)

    working = WorkingSet(resources=(nested,), elements=(ns,))
    pruned = remove_descendants_of_selected(working, model)

    assert pruned.resources == (nested,)


def test_element_only_pass_leaves_resources(project: Project) -> None:
    ws = project.workspace
    source = ws.add_source(project.namespace("pkg"), "mod.py")
    person = ws.add_type(source, "Person")
    docs = ws.add_folder("app/docs")
    guide = ws.add_file("app/docs/guide.md")
    model = EntityModel(ws)

    working = WorkingSet(resources=(docs, guide), elements=(source, person))
    pruned = remove_descendants_of_selected(working, model, also_prune_elements_of_selected_elements=True)

    assert pruned.resources == (docs, guide)
    assert pruned.elements == (source,)


def test_pruning_twice_changes_nothing(project: Project) -> None:
    ws = project.workspace
    source = ws.add_source(project.namespace("pkg"), "mod.py")
    person = ws.add_type(source, "Person")
    method = ws.add_method(person, "greet")
    model = EntityModel(ws)

    once = remove_descendants_of_selected(WorkingSet(elements=(method, person, source)), model)
    twice = remove_descendants_of_selected(once, model)

    assert once == twice
    assert once.elements == (source,)
