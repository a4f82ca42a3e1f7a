from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Iterable
from pathlib import Path

from delplan import __version__, queries
from delplan.config import load_config
from delplan.errors import SelectionError
from delplan.models import Cancelled
from delplan.queries import ConfirmationOracle, Question

LOG_FORMAT = "%(levelname)s | %(name)s | %(message)s"

_CHOICES = {
    queries.TO_ALL: {
        "y": queries.YES,
        "n": queries.NO,
        "all": queries.YES_TO_ALL,
        "none": queries.NO_TO_ALL,
    },
    queries.SKIP_MODE: {"y": queries.YES, "s": queries.SKIP},
}
_YES_NO = {"y": queries.YES, "n": queries.NO}


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="delplan",
        description=(
            "Work out what has to be deleted, and in which order, to remove the "
            "selected files, packages, modules and declarations. Nothing is deleted."
        ),
    )
    parser.add_argument("--path", default=".", help="Directory to scan")
    parser.add_argument(
        "--select",
        action="append",
        default=[],
        metavar="SELECTOR",
        help="Path relative to --path, or path.py::Name[.member] (repeatable)",
    )
    parser.add_argument(
        "--subpackages",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also delete the subpackages of selected packages",
    )
    parser.add_argument(
        "--accessors",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Offer to delete getters and setters of selected fields",
    )
    answers = parser.add_mutually_exclusive_group()
    answers.add_argument("--yes", action="store_true", help="Answer yes to every question")
    answers.add_argument("--no", action="store_true", help="Answer no to every question")
    parser.add_argument(
        "--include",
        action="append",
        default=[],
        help="Glob to include (repeatable, relative to --path)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Glob to exclude (repeatable, relative to --path)",
    )
    parser.add_argument(
        "--write",
        action="store_true",
        help="Write deletion_plan.json and deletion_plan.md into --path",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log planning steps")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )
    root = Path(args.path).resolve()
    if not root.exists() or not root.is_dir():
        raise SystemExit(f"Path does not exist or is not a directory: {root}")
    if not args.select:
        raise SystemExit("Nothing selected: pass at least one --select.")

    try:
        config = load_config(root).with_overrides(
            expand_subpackages=args.subpackages,
            suggest_accessor_deletion=args.accessors,
        )
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    from delplan.planner import plan
    from delplan.report import render_markdown, write_plan
    from delplan.scanner import resolve_selector, scan

    workspace = scan(root, include=args.include, exclude=args.exclude)
    try:
        selection = [resolve_selector(workspace, root.name, selector) for selector in args.select]
    except SelectionError as exc:
        raise SystemExit(str(exc)) from exc

    if args.yes:
        oracle = queries.yes_to_all()
    elif args.no or not sys.stdin.isatty():
        oracle = queries.no_to_all()
    else:
        oracle = console_oracle()

    result = plan(selection, workspace, oracle=oracle, config=config)
    if isinstance(result, Cancelled):
        print(f"Planning cancelled: {result.reason}")
        return 1

    print(render_markdown(result, root), end="")
    if args.write:
        json_path, md_path = write_plan(root, result)
        print(f"Plan written to {json_path} and {md_path}")
    return 0


def console_oracle(
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> ConfirmationOracle:
    def prompt(question: Question) -> queries.Answer:
        choices = _CHOICES.get(question.mode, _YES_NO)
        options = "/".join(choices)
        while True:
            reply = read(f"{question.message} [{options}] ").strip().lower()
            if reply in choices:
                return choices[reply]
            write(f"Please answer one of: {options}")

    return ConfirmationOracle(prompt)


if __name__ == "__main__":
    raise SystemExit(main())
