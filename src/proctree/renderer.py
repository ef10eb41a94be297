"""Tree rendering for proctree."""

from collections import defaultdict
from collections.abc import Iterable, Iterator

from proctree.models import ProcessRecord, TreeLine

SYSTEM_ROOT_NAME = "Root (System)"


class TreeRenderer:
    """
    Renders a flat snapshot of process records as an indented tree.

    The parent -> children index is built once on construction and never
    modified afterwards. Children of the same parent are ordered by
    ascending pid.
    """

    def __init__(self, records: Iterable[ProcessRecord]) -> None:
        by_pid: dict[int, ProcessRecord] = {}
        children: defaultdict[int, list[ProcessRecord]] = defaultdict(list)
        for record in records:
            if record.pid in by_pid:
                continue
            by_pid[record.pid] = record
            children[record.ppid].append(record)

        self._by_pid = by_pid
        self._children: dict[int, tuple[ProcessRecord, ...]] = {
            ppid: tuple(sorted(kids, key=lambda r: r.pid)) for ppid, kids in children.items()
        }

    def children_of(self, pid: int) -> tuple[ProcessRecord, ...]:
        """Return the direct children of `pid`, sorted by pid."""
        return self._children.get(pid, ())

    def walk(self, root_id: int) -> Iterator[TreeLine]:
        """
        Yield the descendants of `root_id` in depth-first pre-order.

        Direct children of the root are at depth 0. Every pid is emitted at
        most once, so self-parented records and ppid cycles terminate.
        """
        visited = {root_id}
        stack = [(child, 0) for child in reversed(self.children_of(root_id))]

        while stack:
            record, depth = stack.pop()
            if record.pid in visited:
                continue
            visited.add(record.pid)
            yield TreeLine(depth=depth, record=record)

            # Reversed so the lowest pid is popped first
            for child in reversed(self.children_of(record.pid)):
                if child.pid not in visited:
                    stack.append((child, depth + 1))

    def root_label(self, root_id: int) -> str:
        """Return the header line for a traversal starting at `root_id`."""
        record = self._by_pid.get(root_id)
        if record is not None:
            return record.label()
        return f"{SYSTEM_ROOT_NAME} (PID: {root_id}, PPID: {root_id})"

    def render(self, root_id: int = 0) -> Iterator[str]:
        """Yield the header line followed by one formatted line per process."""
        yield self.root_label(root_id)
        for line in self.walk(root_id):
            yield line.format()
