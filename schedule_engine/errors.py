"""
Error categories for the schedule engine.

Date problems, zero capacities and broken hierarchy links are never raised;
they are reported as warnings on the result. The classes here cover the two
cases that do abort a call: repository I/O failures and caller misuse.
"""


class ScheduleEngineError(Exception):
    """Base class for every error raised by this package."""


class RepositoryError(ScheduleEngineError):
    """Fetching a snapshot from the schedule repository failed. Not retried here."""


class ScopeNotFoundError(RepositoryError):
    """The repository has no record for the requested resource or scope."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class InvalidInputError(ScheduleEngineError, ValueError):
    """A computation was called with inputs that break its contract."""
