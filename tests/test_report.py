from __future__ import annotations

import json
from pathlib import Path

from delplan.models import LogicalSymbol, OrderedPlan, PhysicalResource
from delplan.report import plan_to_dict, render_markdown, write_plan


def _sample_plan() -> OrderedPlan:
    root = LogicalSymbol("root", "app/src")
    namespace = LogicalSymbol("namespace", "pkg", container=root)
    source = LogicalSymbol("source", "mod.py", container=namespace)
    person = LogicalSymbol("type", "Person", container=source)
    return OrderedPlan(
        resources=(PhysicalResource("app/docs", "folder", linked=True),),
        elements=(LogicalSymbol("method", "greet", container=person), namespace),
        accessors_added=True,
        warnings=("app/src/pkg/mod.py is out of sync with the file system",),
    )


def test_plan_to_dict_summarizes_kinds() -> None:
    data = plan_to_dict(_sample_plan(), Path("/work"))

    assert data["root"] == "/work"
    assert data["elements"][0]["qualified_name"] == "pkg/mod.py::Person.greet"
    assert data["resources"][0] == {"path": "app/docs", "kind": "folder", "read_only": False, "linked": True}
    assert data["summary"]["by_kind"] == {"folder": 1, "method": 1, "namespace": 1}
    assert data["summary"]["accessors_added"] is True
    assert len(data["warnings"]) == 1


def test_markdown_lists_entities_in_order() -> None:
    text = render_markdown(_sample_plan())

    assert text.startswith("# Deletion Plan")
    assert text.index("pkg/mod.py::Person.greet") < text.index("[namespace] pkg")
    assert "- [folder] app/docs (linked)" in text
    assert "- accessors added: yes" in text
    assert "## Warnings" in text


def test_markdown_marks_empty_sections() -> None:
    text = render_markdown(OrderedPlan(resources=(), elements=()))

    assert text.count("- (none)") == 2
    assert "## Warnings" not in text


def test_write_plan_creates_both_files(tmp_path: Path) -> None:
    json_path, md_path = write_plan(tmp_path, _sample_plan())

    data = json.loads(json_path.read_text())
    assert data["summary"]["elements"] == 2
    assert md_path.read_text().startswith("# Deletion Plan")
