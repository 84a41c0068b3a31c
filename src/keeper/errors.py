from __future__ import annotations

from typing import Iterable


class KeeperError(Exception):
    """Base class for errors surfaced to command handlers."""


class FetchError(KeeperError):
    """The live server's roles or channels could not be enumerated."""


class ValidationError(KeeperError):
    """A topology document is structurally invalid; nothing was changed."""

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "invalid document")


class NotFoundError(KeeperError):
    """No backup record exists for the requested id."""

    def __init__(self, record_id: int) -> None:
        self.record_id = record_id
        super().__init__(f"backup {record_id} not found")
