"""Process sources: where the collector gets its process data from."""

import logging
import os
from typing import Protocol

import psutil

from proctree.errors import EntryUnreadable, MalformedStatus, SourceUnavailable
from proctree.models import ProcessRecord

logger = logging.getLogger(__name__)

DEFAULT_PROC_ROOT = "/proc"


class ProcessSource(Protocol):
    """Capability the collector depends on to enumerate and read processes."""

    def list_pids(self) -> set[int]:
        """Return the ids of live processes. Raises SourceUnavailable."""
        ...

    def read_status(self, pid: int) -> ProcessRecord:
        """Return the record for `pid`. Raises EntryUnreadable."""
        ...


def _stat_int(token: str, pid: int, field: str, signed: bool = False) -> int:
    """Convert a stat field made of plain ASCII decimal digits."""
    digits = token[1:] if signed and token.startswith("-") else token
    if not (digits.isascii() and digits.isdigit()):
        raise MalformedStatus(pid, f"{field} field is not an integer")
    return int(token)


def parse_stat(text: str, pid: int = 0) -> ProcessRecord:
    """
    Parse a `/proc/<pid>/stat` line into a ProcessRecord.

    The format is `<pid> (<comm>) <state> <ppid> ...`. The command name may
    itself contain parentheses and spaces, so it is taken from the first
    `(` up to the last `)`. Fields after the parent id are ignored.

    Args:
        text: Raw contents of the stat file.
        pid: Id the record was looked up under, used only in error messages.

    Raises:
        MalformedStatus: If the text does not follow the stat layout.
    """
    open_paren = text.find("(")
    close_paren = text.rfind(")")
    if open_paren < 0 or close_paren < open_paren:
        raise MalformedStatus(pid, "no parenthesised name field")

    name = text[open_paren + 1 : close_paren]
    if not name:
        raise MalformedStatus(pid, "empty name field")

    # Exactly one space separates the pid from the name
    own_pid = _stat_int(text[:open_paren].removesuffix(" "), pid, "pid")

    fields = text[close_paren + 1 :].split()
    if len(fields) < 2:
        raise MalformedStatus(pid, "missing state or parent id field")

    state, ppid_field = fields[0], fields[1]
    if len(state) != 1:
        raise MalformedStatus(pid, f"unexpected state field {state!r}")

    ppid = _stat_int(ppid_field, pid, "parent id", signed=True)

    return ProcessRecord(pid=own_pid, ppid=ppid, name=name)


class ProcfsSource:
    """Reads process data straight from a procfs mount (Linux)."""

    def __init__(self, proc_root: str = DEFAULT_PROC_ROOT) -> None:
        self._proc_root = proc_root

    @property
    def proc_root(self) -> str:
        """Get the procfs mount point."""
        return self._proc_root

    def list_pids(self) -> set[int]:
        """List the numeric entries of the proc root."""
        pids: set[int] = set()
        try:
            with os.scandir(self._proc_root) as entries:
                for entry in entries:
                    # Skip non-process entries such as "self", "sys", "meminfo"
                    if entry.name.isascii() and entry.name.isdigit():
                        pid = int(entry.name)
                        if pid > 0:
                            pids.add(pid)
        except OSError as exc:
            raise SourceUnavailable(f"cannot list {self._proc_root}: {exc}") from exc
        return pids

    def read_status(self, pid: int) -> ProcessRecord:
        """Read and parse `<proc_root>/<pid>/stat`."""
        path = os.path.join(self._proc_root, str(pid), "stat")
        try:
            with open(path, "rb") as f:
                raw = f.read()
        except OSError as exc:
            # Process exited after listing, or access denied
            raise EntryUnreadable(pid, exc.strerror or str(exc)) from exc
        return parse_stat(raw.decode("utf-8", errors="replace"), pid)


class PsutilSource:
    """
    Reads process data through psutil.

    Used on Unix hosts without a procfs mount (macOS, BSDs). Handles
    NoSuchProcess, ZombieProcess and AccessDenied by reporting the entry as
    unreadable.
    """

    def list_pids(self) -> set[int]:
        """List live pids through psutil."""
        try:
            pids = set(psutil.pids())
        except (OSError, psutil.Error) as exc:
            raise SourceUnavailable(f"cannot list processes: {exc}") from exc
        # pid 0 is the synthetic root, never a record
        pids.discard(0)
        return pids

    def read_status(self, pid: int) -> ProcessRecord:
        """Read the name and parent id of `pid` in one psutil oneshot."""
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                name = proc.name()
                ppid = proc.ppid()
        except psutil.NoSuchProcess as exc:
            raise EntryUnreadable(pid, "no such process") from exc
        except psutil.AccessDenied as exc:
            raise EntryUnreadable(pid, "access denied") from exc
        except OSError as exc:
            raise EntryUnreadable(pid, exc.strerror or str(exc)) from exc

        if not name:
            raise EntryUnreadable(pid, "empty process name")
        return ProcessRecord(pid=proc.pid, ppid=ppid, name=name)


def default_source(proc_root: str = DEFAULT_PROC_ROOT) -> ProcessSource:
    """Pick procfs when it is mounted, psutil otherwise."""
    if os.path.isdir(proc_root):
        logger.debug("Using procfs source at %s", proc_root)
        return ProcfsSource(proc_root)
    logger.debug("%s not found, using psutil source", proc_root)
    return PsutilSource()
