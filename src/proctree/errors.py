"""Error types for proctree."""


class ProcTreeError(Exception):
    """Base class for all proctree errors."""


class SourceUnavailable(ProcTreeError):
    """The process listing itself could not be opened."""


class EntryUnreadable(ProcTreeError):
    """A single process entry could not be read.

    Raised by process sources and handled by the collector, which skips the
    entry. Never fatal to a run.
    """

    def __init__(self, pid: int, reason: str) -> None:
        super().__init__(f"pid {pid}: {reason}")
        self.pid = pid
        self.reason = reason


class MalformedStatus(EntryUnreadable):
    """A status record was read but could not be parsed."""


class EmptyResult(ProcTreeError):
    """The process listing opened but yielded no usable records."""
