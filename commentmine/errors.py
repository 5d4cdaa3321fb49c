"""Exception types shared by the extraction core and the batch driver."""

from __future__ import annotations


class CommentMineError(RuntimeError):
    """Base class for recoverable, per-record failures."""


class ParseUnavailable(CommentMineError):
    """Source text could not be turned into a usable syntax tree."""


class RecordError(CommentMineError):
    """An input row is unusable (bad line number, unresolvable path)."""


class CrateUnavailable(CommentMineError):
    """No archive could be found, fetched, or unpacked for a crate."""

    def __init__(self, crate_name: str, detail: str) -> None:
        super().__init__(f"{crate_name}: {detail}")
        self.crate_name = crate_name
        self.detail = detail
