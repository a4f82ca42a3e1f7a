from __future__ import annotations

import logging

import pytest
from conftest import Project, RecordingPrompt

from delplan import queries
from delplan.config import PlannerConfig
from delplan.entities import EntityModel
from delplan.errors import StructureUnavailable
from delplan.models import Cancelled, LogicalSymbol, OrderedPlan
from delplan.planner import has_subpackages_to_delete, is_applicable, plan
from delplan.queries import ConfirmationOracle


def _plan(selection, project: Project, oracle: ConfirmationOracle | None = None, **config: bool) -> OrderedPlan:
    result = plan(selection, project.workspace, oracle=oracle, config=PlannerConfig(**config))
    assert isinstance(result, OrderedPlan)
    return result


def test_selecting_every_declaration_deletes_the_source(project: Project) -> None:
    ws = project.workspace
    shapes = ws.add_source(project.namespace("geo"), "shapes.py")
    circle = ws.add_type(shapes, "Circle")
    square = ws.add_type(shapes, "Square")

    result = _plan([circle, square], project)

    assert result.elements == (shapes,)
    assert result.resources == ()


def test_declining_read_only_content_cancels(project: Project) -> None:
    ws = project.workspace
    locked = ws.add_source(project.namespace("pkg"), "locked.py", read_only=True)
    thing = ws.add_type(locked, "Thing")

    result = plan([thing], ws, oracle=queries.no_to_all())

    assert isinstance(result, Cancelled)
    assert "read-only" in result.reason


def test_accepting_read_only_content_plans_normally(project: Project) -> None:
    ws = project.workspace
    locked = ws.add_source(project.namespace("pkg"), "locked.py", read_only=True)
    thing = ws.add_type(locked, "Thing")

    result = _plan([thing], project, oracle=queries.yes_to_all())

    assert result.elements == (locked,)


def test_unlistable_folder_fails_the_read_only_scan(project: Project) -> None:
    ws = project.workspace
    vault = ws.add_folder("app/vault")
    ws.mark_unlistable("app/vault")

    with pytest.raises(StructureUnavailable):
        plan([vault], ws)


def test_subpackages_are_expanded_and_ordered_innermost_first(project: Project) -> None:
    a = project.namespace("a")
    ab = project.namespace("a.b")
    abc = project.namespace("a.b.c")

    result = _plan([a], project, expand_subpackages=True)

    assert result.elements == (abc, ab, a)
    assert result.subpackages_added


def test_subpackages_stay_without_expansion(project: Project) -> None:
    a = project.namespace("a")
    project.namespace("a.b")

    result = _plan([a], project)

    assert result.elements == (a,)
    assert not result.subpackages_added


def test_emptied_parent_namespace_is_added(project: Project) -> None:
    ws = project.workspace
    a = project.namespace("a")
    ab = project.namespace("a.b")
    abc = project.namespace("a.b.c")
    abd = project.namespace("a.b.d")
    ws.add_source(a, "keep.py")

    result = _plan([abc, abd], project)

    assert result.elements == (abd, abc, ab)


def test_promotion_continues_to_the_top(project: Project) -> None:
    a = project.namespace("a")
    ab = project.namespace("a.b")
    abc = project.namespace("a.b.c")
    abd = project.namespace("a.b.d")

    result = _plan([abc, abd], project)

    assert result.elements == (abd, abc, ab, a)


def test_partial_sibling_selection_promotes_nothing(project: Project) -> None:
    abc = project.namespace("a.b.c")
    project.namespace("a.b.d")

    result = _plan([abc], project)

    assert result.elements == (abc,)


def test_accessor_is_asked_once(project: Project, recorder: RecordingPrompt, oracle: ConfirmationOracle) -> None:
    ws = project.workspace
    person = ws.add_type(ws.add_source(project.namespace("pkg"), "person.py"), "Person")
    name = ws.add_field(person, "_name")
    getter = ws.add_method(person, "get_name")
    setter = ws.add_method(person, "set_name", params=1)

    result = _plan([name, setter], project, oracle=oracle)

    assert result.elements == (name, setter, getter)
    assert result.accessors_added
    assert recorder.keys() == [queries.CONFIRM_DELETE_ACCESSORS]


def test_yes_to_all_covers_every_field(project: Project, recorder: RecordingPrompt, oracle: ConfirmationOracle) -> None:
    ws = project.workspace
    person = ws.add_type(ws.add_source(project.namespace("pkg"), "person.py"), "Person")
    name = ws.add_field(person, "name")
    age = ws.add_field(person, "age")
    get_name = ws.add_method(person, "get_name")
    get_age = ws.add_method(person, "get_age")
    recorder.default = queries.YES_TO_ALL

    result = _plan([name, age], project, oracle=oracle)

    assert set(result.elements) == {name, age, get_name, get_age}
    assert len(recorder.questions) == 1


def test_accessor_suggestions_can_be_turned_off(
    project: Project,
    recorder: RecordingPrompt,
    oracle: ConfirmationOracle,
) -> None:
    ws = project.workspace
    person = ws.add_type(ws.add_source(project.namespace("pkg"), "person.py"), "Person")
    name = ws.add_field(person, "name")
    ws.add_method(person, "get_name")

    result = _plan([name], project, oracle=oracle, suggest_accessor_deletion=False)

    assert result.elements == (name,)
    assert recorder.questions == []


def test_plan_holds_no_entity_twice(project: Project) -> None:
    ws = project.workspace
    ns = project.namespace("pkg")
    source = ws.add_source(ns, "mod.py")
    person = ws.add_type(source, "Person")
    file = ws.resource("app/src/pkg/mod.py")

    result = _plan([file, person, source, ns], project)

    assert result.elements == (ns,)
    assert result.resources == ()
    model = EntityModel(ws)
    entities = result.entities()
    assert not any(model.ancestor_of(a, b) for a in entities for b in entities)


def test_declined_source_root_folder_leaves_an_empty_plan(project: Project) -> None:
    ws = project.workspace
    ws.add_source_root("app/lib/src")

    result = _plan([ws.resource("app/lib")], project, oracle=queries.no_to_all())

    assert result.is_empty


def test_out_of_sync_resources_are_reported(project: Project) -> None:
    ws = project.workspace
    source = ws.add_source(project.namespace("pkg"), "mod.py")
    ws.mark_out_of_sync("app/src/pkg/mod.py")

    result = _plan([source], project)

    assert result.elements == (source,)
    assert result.warnings == ("app/src/pkg/mod.py is out of sync with the file system",)


def test_missing_entities_are_reported_and_skipped(project: Project) -> None:
    source = project.workspace.add_source(project.namespace("pkg"), "mod.py")
    ghost = LogicalSymbol("type", "Ghost", container=source, exists=False)

    result = _plan([ghost], project)

    assert result.is_empty
    assert result.warnings == ("pkg/mod.py::Ghost does not exist and was left out",)


def test_is_applicable(project: Project) -> None:
    ns = project.namespace("pkg")
    ghost = LogicalSymbol("namespace", "gone", container=project.root, exists=False)

    assert is_applicable([ns])
    assert is_applicable([ns, project.workspace.resource("app/src/pkg")])
    assert not is_applicable([])
    assert not is_applicable([ns, "pkg"])
    assert not is_applicable([ghost])


def test_has_subpackages_to_delete(project: Project) -> None:
    leaf = project.namespace("a.b")
    top = project.workspace.add_namespace(project.root, "a")
    default = project.workspace.default_namespace(project.root)

    assert has_subpackages_to_delete([top], project.workspace)
    assert not has_subpackages_to_delete([leaf, default], project.workspace)
    assert not has_subpackages_to_delete(["a"], project.workspace)


def test_unlistable_parent_namespace_is_not_promoted(project: Project, caplog: pytest.LogCaptureFixture) -> None:
    ws = project.workspace
    ab = project.namespace("a.b")
    ws.mark_unlistable("app/src/a")

    with caplog.at_level(logging.WARNING, logger="delplan.rules"):
        result = _plan([ab], project)

    assert result.elements == (ab,)
    assert "app/src/a" in caplog.text
