"""Shared fixtures for proctree tests."""

import pytest

from proctree.errors import EntryUnreadable, SourceUnavailable
from proctree.models import ProcessRecord


class FakeSource:
    """In-memory process source.

    `entries` maps a pid to either a ProcessRecord or an exception instance
    that read_status raises for that pid.
    """

    def __init__(self, entries=None, unavailable=False):
        self.entries = dict(entries or {})
        self.unavailable = unavailable
        self.reads: list[int] = []

    def list_pids(self) -> set[int]:
        if self.unavailable:
            raise SourceUnavailable("fake source is closed")
        return set(self.entries)

    def read_status(self, pid: int) -> ProcessRecord:
        self.reads.append(pid)
        entry = self.entries.get(pid)
        if entry is None:
            raise EntryUnreadable(pid, "no such process")
        if isinstance(entry, Exception):
            raise entry
        return entry


@pytest.fixture
def make_source():
    """Factory for FakeSource instances built from (pid, ppid, name) tuples."""

    def _make(*triples, errors=None, unavailable=False):
        entries = {pid: ProcessRecord(pid=pid, ppid=ppid, name=name) for pid, ppid, name in triples}
        entries.update(errors or {})
        return FakeSource(entries, unavailable=unavailable)

    return _make


@pytest.fixture
def scenario_records():
    """The init/shell/editor/daemon snapshot."""
    return [
        ProcessRecord(pid=1, ppid=0, name="init"),
        ProcessRecord(pid=2, ppid=1, name="shell"),
        ProcessRecord(pid=3, ppid=2, name="editor"),
        ProcessRecord(pid=4, ppid=1, name="daemon"),
    ]


@pytest.fixture
def fake_proc(tmp_path):
    """Build a fake procfs tree under tmp_path.

    Returns a function `add(dirname, stat_bytes_or_None)`; passing None
    creates the pid directory without a stat file.
    """
    root = tmp_path / "proc"
    root.mkdir()

    def add(dirname, stat=None):
        entry = root / str(dirname)
        entry.mkdir()
        if stat is not None:
            data = stat if isinstance(stat, bytes) else stat.encode()
            (entry / "stat").write_bytes(data)
        return entry

    add.root = str(root)
    return add
