"""Confirmation questions asked while a delete plan is computed.

The planner never talks to the user directly. It asks a ``ConfirmationOracle``
and the oracle forwards each ``Question`` to a ``prompt`` callable supplied by
the caller (a console prompt, a scripted answer table in tests, ...).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from delplan.errors import PlanningCancelled

CONFIRM_DELETE_FOLDERS_CONTAINING_SOURCE_FOLDERS = "confirm_delete_folders_containing_source_folders"
CONFIRM_DELETE_REFERENCED_ARCHIVES = "confirm_delete_referenced_archives"
CONFIRM_DELETE_READ_ONLY = "confirm_delete_read_only"
CONFIRM_DELETE_ACCESSORS = "confirm_delete_accessors"
CONFIRM_DELETE_LINKED_PARENT = "confirm_delete_linked_parent"
CONFIRM_SKIP_UNREADABLE = "confirm_skip_unreadable"

ASK_ALWAYS = "ask_always"
TO_ALL = "to_all"
SKIP_MODE = "skip"
GLOBAL_CANCEL = "global_cancel"

YES = "yes"
NO = "no"
YES_TO_ALL = "yes_to_all"
NO_TO_ALL = "no_to_all"
SKIP = "skip"
CANCEL = "cancel"

ANSWERS = (YES, NO, YES_TO_ALL, NO_TO_ALL, SKIP, CANCEL)
_POSITIVE = {YES, YES_TO_ALL}

Answer = Union[bool, str]


@dataclass(frozen=True)
class Question:
    key: str
    subject: object
    message: str
    mode: str


Prompt = Callable[[Question], Answer]


class ConfirmationOracle:
    def __init__(self, prompt: Prompt) -> None:
        self._prompt = prompt
        self.remembered: dict[str, bool] = {}
        self.asked: list[Question] = []

    def confirm(
        self,
        key: str,
        subject: object,
        message: str = "",
        mode: str = TO_ALL,
    ) -> bool:
        """Ask ``key`` about ``subject`` and return whether to go ahead with it.

        TO_ALL questions reuse a remembered "to all" answer for the same key.
        GLOBAL_CANCEL questions raise PlanningCancelled instead of returning False.
        """
        if mode == TO_ALL and key in self.remembered:
            return self.remembered[key]
        question = Question(key=key, subject=subject, message=message or _default_message(key, subject), mode=mode)
        answer = self._ask(question)

        if mode == TO_ALL:
            if isinstance(answer, bool):
                self.remembered[key] = answer
            elif answer in (YES_TO_ALL, NO_TO_ALL):
                self.remembered[key] = answer == YES_TO_ALL
        accepted = _is_positive(answer)
        if mode == GLOBAL_CANCEL and not accepted:
            raise PlanningCancelled(question.message)
        return accepted

    def reset(self) -> None:
        self.remembered.clear()
        self.asked.clear()

    def _ask(self, question: Question) -> Answer:
        self.asked.append(question)
        answer = self._prompt(question)
        if not isinstance(answer, bool) and answer not in ANSWERS:
            raise ValueError(f"Unsupported answer {answer!r} for {question.key}")
        return answer


def _is_positive(answer: Answer) -> bool:
    if isinstance(answer, bool):
        return answer
    return answer in _POSITIVE


def _default_message(key: str, subject: object) -> str:
    if key == CONFIRM_DELETE_FOLDERS_CONTAINING_SOURCE_FOLDERS:
        return f"Folder '{subject}' contains a source folder. Delete it anyway?"
    if key == CONFIRM_DELETE_REFERENCED_ARCHIVES:
        return f"Archive '{subject}' is referenced by other projects. Delete it anyway?"
    if key == CONFIRM_DELETE_READ_ONLY:
        return "Some of the entities to delete are read-only. Delete them anyway?"
    if key == CONFIRM_DELETE_ACCESSORS:
        return f"Also delete the getter/setter of field '{subject}'?"
    if key == CONFIRM_DELETE_LINKED_PARENT:
        return f"'{subject}' is a linked folder and would become empty. Delete it?"
    if key == CONFIRM_SKIP_UNREADABLE:
        return f"The structure of '{subject}' cannot be read. Keep its selected members?"
    return f"Confirm {key} for '{subject}'?"


def always(answer: Answer) -> ConfirmationOracle:
    return ConfirmationOracle(lambda question: answer)


def yes_to_all() -> ConfirmationOracle:
    return always(YES_TO_ALL)


def no_to_all() -> ConfirmationOracle:
    return always(NO_TO_ALL)

