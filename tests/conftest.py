from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import pytest

from delplan.models import LogicalSymbol
from delplan.queries import YES, Answer, ConfirmationOracle, Question
from delplan.workspace import Workspace


@dataclass
class Project:
    workspace: Workspace
    root: LogicalSymbol

    def namespace(self, name: str, **flags: bool) -> LogicalSymbol:
        return self.workspace.add_namespace(self.root, name, **flags)


class RecordingPrompt:
    """Prompt that replays answers per question key and records what was asked."""

    def __init__(self, answers: dict[str, Answer] | None = None, default: Answer = True) -> None:
        self.answers = answers or {}
        self.default = default
        self.questions: list[Question] = []

    def __call__(self, question: Question) -> Answer:
        self.questions.append(question)
        return self.answers.get(question.key, self.default)

    def keys(self) -> list[str]:
        return [question.key for question in self.questions]


def scripted(answers: Mapping[object, Answer], default: Answer = YES) -> ConfirmationOracle:
    """Answer from a table keyed by ``(key, subject)`` first, then by ``key``."""

    def prompt(question: Question) -> Answer:
        try:
            specific = answers.get((question.key, question.subject))
        except TypeError:
            specific = None
        if specific is not None:
            return specific
        return answers.get(question.key, default)

    return ConfirmationOracle(prompt)


@pytest.fixture
def project() -> Project:
    workspace = Workspace()
    workspace.add_project("app")
    root = workspace.add_source_root("app/src")
    return Project(workspace=workspace, root=root)


@pytest.fixture
def recorder() -> RecordingPrompt:
    return RecordingPrompt()


@pytest.fixture
def oracle(recorder: RecordingPrompt) -> ConfirmationOracle:
    return ConfirmationOracle(recorder)
