"""Verification Test: process churn against the live process table.

Spawns real child processes and terminates some of them while collection is
running. Collection must never raise for processes that vanish between
listing and reading, and every surviving child must show up in the tree
under this test process.
"""

import os
import random
import subprocess
import sys
import threading
import time

import pytest

from proctree.collector import ProcessCollector
from proctree.renderer import TreeRenderer
from proctree.sources import PsutilSource, default_source


def dummy_worker(duration: float = 30.0) -> subprocess.Popen:
    """Start a child interpreter that sleeps for a given duration."""
    return subprocess.Popen([sys.executable, "-c", f"import time; time.sleep({duration})"])


@pytest.fixture
def dummy_processes():
    """Spawn a batch of sleeping child processes and clean them up afterwards."""
    is_ci = os.environ.get("CI", "false").lower() == "true"
    num_processes = 20 if is_ci else 50

    processes = []
    try:
        for _ in range(num_processes):
            processes.append(dummy_worker(30.0))
        yield processes
    finally:
        for p in processes:
            if p.poll() is None:
                p.terminate()
        for p in processes:
            p.wait(timeout=5.0)


@pytest.fixture(params=["default", "psutil"])
def source(request):
    if request.param == "psutil":
        return PsutilSource()
    return default_source()


class TestProcessChurn:
    """Process churn verification suite tests."""

    def test_children_appear_under_current_process(self, dummy_processes, source):
        """Test every live child is rendered directly below this process."""
        records = ProcessCollector(source).collect()
        lines = list(TreeRenderer(records).walk(os.getpid()))

        children = {line.record.pid for line in lines if line.depth == 0}
        expected = {p.pid for p in dummy_processes if p.poll() is None}
        assert expected <= children

    def test_collection_survives_termination(self, dummy_processes, source):
        """Test collection never raises while children are being killed."""
        victims = random.sample(dummy_processes, len(dummy_processes) // 2)
        errors: list[Exception] = []

        def collect_repeatedly():
            try:
                for _ in range(5):
                    ProcessCollector(source, workers=4).collect()
            except Exception as e:
                errors.append(e)

        collector_thread = threading.Thread(target=collect_repeatedly)
        collector_thread.start()
        for p in victims:
            p.terminate()
            time.sleep(0.01)
        collector_thread.join(timeout=30.0)

        assert not errors, f"Collection raised: {errors}"
        assert not collector_thread.is_alive()

    def test_exited_children_are_absent(self, dummy_processes, source):
        """Test reaped children are no longer part of the tree."""
        victims = dummy_processes[:5]
        for p in victims:
            p.terminate()
        for p in victims:
            p.wait(timeout=5.0)

        records = ProcessCollector(source).collect()
        rendered = {line.record.pid for line in TreeRenderer(records).walk(os.getpid())}

        assert not rendered & {p.pid for p in victims}
        assert {p.pid for p in dummy_processes[5:]} <= rendered
