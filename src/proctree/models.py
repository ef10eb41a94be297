"""Data models for proctree."""

from dataclasses import dataclass
from enum import Enum

INDENT = "  "
BRANCH_MARKER = "+-- "


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable record of one live process at collection time."""

    pid: int
    ppid: int  # 0 when the parent is outside the snapshot
    name: str

    def label(self) -> str:
        """Return the `name (PID: n, PPID: m)` text used in tree output."""
        return f"{self.name} (PID: {self.pid}, PPID: {self.ppid})"


class EntryStatus(Enum):
    """Outcome of one attempt to read a process entry."""

    OK = "ok"
    UNREADABLE = "unreadable"
    INCONSISTENT = "inconsistent"


@dataclass(slots=True, frozen=True)
class EntryResult:
    """Tagged result of reading a single process entry."""

    pid: int
    status: EntryStatus
    record: ProcessRecord | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        """Whether the entry produced a record."""
        return self.status is EntryStatus.OK


@dataclass(slots=True, frozen=True)
class TreeLine:
    """One line of rendered tree output."""

    depth: int
    record: ProcessRecord

    def format(self) -> str:
        """Render the line with indentation and branch marker."""
        return f"{INDENT * self.depth}{BRANCH_MARKER}{self.record.label()}"
