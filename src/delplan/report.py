from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from delplan.models import LogicalSymbol, OrderedPlan, PhysicalResource


def plan_to_dict(plan: OrderedPlan, root: Path | None = None) -> dict[str, Any]:
    return {
        "root": str(root) if root is not None else None,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "resources": [_resource_to_dict(resource) for resource in plan.resources],
        "elements": [_symbol_to_dict(element) for element in plan.elements],
        "summary": {
            "resources": len(plan.resources),
            "elements": len(plan.elements),
            "by_kind": _summarize_by_kind(plan),
            "subpackages_added": plan.subpackages_added,
            "accessors_added": plan.accessors_added,
        },
        "warnings": list(plan.warnings),
    }


def write_plan(root: Path, plan: OrderedPlan) -> tuple[Path, Path]:
    json_path = root / "deletion_plan.json"
    md_path = root / "deletion_plan.md"
    json_path.write_text(json.dumps(plan_to_dict(plan, root), indent=2, sort_keys=True))
    md_path.write_text(render_markdown(plan, root))
    return json_path, md_path


def _resource_to_dict(resource: PhysicalResource) -> dict[str, Any]:
    return {
        "path": resource.path,
        "kind": resource.kind,
        "read_only": resource.read_only,
        "linked": resource.linked,
    }


def _symbol_to_dict(symbol: LogicalSymbol) -> dict[str, Any]:
    return {
        "kind": symbol.kind,
        "name": symbol.name,
        "qualified_name": symbol.qualified_name(),
    }


def _summarize_by_kind(plan: OrderedPlan) -> dict[str, int]:
    summary: dict[str, int] = {}
    for entity in plan.entities():
        kind = entity.kind
        summary[kind] = summary.get(kind, 0) + 1
    return dict(sorted(summary.items()))


def render_markdown(plan: OrderedPlan, root: Path | None = None) -> str:
    lines = [
        "# Deletion Plan",
        "",
        "Entities are listed in deletion order: nested entries come before their parents.",
        "",
    ]
    if root is not None:
        lines.append(f"Root: `{root}`")
    lines.extend(
        [
            f"Elements: `{len(plan.elements)}`",
            f"Resources: `{len(plan.resources)}`",
            "",
            "## Settings",
            f"- subpackages added: {'yes' if plan.subpackages_added else 'no'}",
            f"- accessors added: {'yes' if plan.accessors_added else 'no'}",
            "",
            "## Elements",
        ]
    )
    if not plan.elements:
        lines.append("- (none)")
    for element in plan.elements:
        lines.append(f"- [{element.kind}] {element.qualified_name()}")
    lines.append("")
    lines.append("## Resources")
    if not plan.resources:
        lines.append("- (none)")
    for resource in plan.resources:
        flags = [flag for flag, on in (("read-only", resource.read_only), ("linked", resource.linked)) if on]
        suffix = f" ({', '.join(flags)})" if flags else ""
        lines.append(f"- [{resource.kind}] {resource.path}{suffix}")
    if plan.warnings:
        lines.append("")
        lines.append("## Warnings")
        for warning in plan.warnings:
            lines.append(f"- {warning}")
    lines.append("")
    return "\n".join(lines)
