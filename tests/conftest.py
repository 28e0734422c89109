"""
Shared fixtures: stand-ins for subprocess.Popen and its pipes.
"""

import itertools
import subprocess
import threading

import pytest

from playernotify.config import ListenerConfig
from playernotify.notifications import RecordingSink
from playernotify.process_supervisor import ProcessSupervisor

_pids = itertools.count(4000)


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: spawns real child processes")


class FakeStream:
    """Pipe stand-in: returns preset chunks, then blocks until its pipe end is released."""

    def __init__(self, chunks, eof: threading.Event):
        self._chunks = list(chunks)
        self._eof = eof
        self.closed = False

    def read1(self, size=-1):
        if self._chunks:
            return self._chunks.pop(0)
        self._eof.wait(timeout=5)
        return b""

    def close(self):
        self.closed = True


class FakeProcess:
    """Popen stand-in. Exits immediately unless ``run_forever`` is set.

    With ``pipes_held`` the pipes stay open after the exit, as when a
    descendant inherited them, until ``release_pipes`` is called.
    """

    def __init__(self, stdout_chunks=(), stderr_chunks=(), returncode=0, run_forever=False, pipes_held=False):
        self.pid = next(_pids)
        self.returncode = None
        self.terminate_calls = 0
        self.kill_calls = 0
        self._final_returncode = returncode
        self._exited = threading.Event()
        if not run_forever:
            self._exited.set()
        self._pipes_released = threading.Event()
        pipe_end = self._pipes_released if pipes_held else self._exited
        self.stdout = FakeStream(stdout_chunks, pipe_end)
        self.stderr = FakeStream(stderr_chunks, pipe_end)

    def release_pipes(self):
        self._pipes_released.set()

    def poll(self):
        if self._exited.is_set():
            self.returncode = self._final_returncode
        return self.returncode

    def wait(self, timeout=None):
        if not self._exited.wait(timeout):
            raise subprocess.TimeoutExpired("fake", timeout)
        self.returncode = self._final_returncode
        return self.returncode

    def terminate(self):
        self.terminate_calls += 1
        self.exit(-15)

    def kill(self):
        self.kill_calls += 1
        self.exit(-9)

    def exit(self, returncode=0):
        if not self._exited.is_set():
            self._final_returncode = returncode
            self._exited.set()


class FakePopenFactory:
    """Hands out prepared FakeProcess objects and records spawn calls."""

    def __init__(self, *processes):
        self._processes = list(processes)
        self.calls = []

    def __call__(self, argv, **kwargs):
        self.calls.append((argv, kwargs))
        return self._processes.pop(0)


@pytest.fixture
def listener_config():
    return ListenerConfig(stop_timeout=1.0, thread_join_timeout=2.0)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_supervisor(listener_config):
    """Build a supervisor whose spawns return the given fake processes."""

    def _make(*processes):
        factory = FakePopenFactory(*processes)
        return ProcessSupervisor(listener_config, popen_factory=factory), factory

    return _make
