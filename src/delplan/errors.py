from __future__ import annotations


class PlannerError(Exception):
    """Base class for delete planning failures."""


class StructureUnavailable(PlannerError):
    """The resolver cannot tell what a container holds (unreadable or unparsable source)."""

    def __init__(self, subject: object, reason: str = "") -> None:
        self.subject = subject
        self.reason = reason
        message = f"structure of {subject} is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PlanningCancelled(PlannerError):
    """The user declined a question that cancels the whole operation."""


class SelectionError(PlannerError, ValueError):
    """A selector string does not name anything in the workspace."""
