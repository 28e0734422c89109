"""
Supervises a long-lived child process and drains its output streams.

Two reader threads post stdout and stderr chunks onto a single event queue.
One dispatcher thread consumes that queue, so callbacks for one process never
run concurrently and chunks of one stream are delivered in arrival order.
A third thread waits on the process and posts its return code. The exit
callback runs once, on the dispatcher thread, as soon as the process has been
reaped and the output already read has been delivered. It does not wait for
EOF, which a descendant holding the pipes open could delay indefinitely.
"""

import codecs
import contextlib
import queue
import subprocess
import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple

from .config import ListenerConfig
from .errors import SpawnError, SupervisorBusyError
from .module_registry import module_registry

log = module_registry.register_module(
    name="supervisor",
    description="Child process spawning, stream draining and exit handling",
    logger_name="supervisor",
    debug_flag="--debug-supervisor",
)

STDOUT = "stdout"
STDERR = "stderr"
EXIT = "exit"

ChunkCallback = Callable[[str], None]
ExitCallback = Callable[[Optional[int], Optional[int]], None]


def split_returncode(returncode: Optional[int]) -> Tuple[Optional[int], Optional[int]]:
    """Split a Popen return code into (exit_code, signal).

    Negative return codes mean the child was killed by that signal.
    """
    if returncode is not None and returncode < 0:
        return None, -returncode
    return returncode, None


class ProcessHandle:
    """Read-only view of a supervised child process."""

    def __init__(self, process, command: Sequence[str]):
        self._process = process
        self.command: List[str] = list(command)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.poll()

    def is_running(self) -> bool:
        return self._process.poll() is None

    def __repr__(self) -> str:
        return f"ProcessHandle(pid={self.pid}, command={self.command!r})"


class ProcessSupervisor:
    """Owns one child process at a time and its stdout/stderr pipes."""

    def __init__(self, config: Optional[ListenerConfig] = None, popen_factory: Optional[Callable] = None):
        """Initialize supervisor.

        Args:
            config: Listener configuration (chunk size, encoding, timeouts)
            popen_factory: Replacement for subprocess.Popen, used by tests
        """
        self._config = config or ListenerConfig()
        self._popen_factory = popen_factory or subprocess.Popen
        self._lock = threading.Lock()
        self._process = None
        self._dispatcher_thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._process is not None

    def spawn(
        self,
        command: str,
        args: Sequence[str],
        on_stdout: ChunkCallback,
        on_stderr: ChunkCallback,
        on_exit: ExitCallback,
    ) -> ProcessHandle:
        """
        Start a child process and begin draining its output.

        Args:
            command: Executable name or path
            args: Argument list, passed to the OS without a shell
            on_stdout: Called with each decoded stdout chunk
            on_stderr: Called with each decoded stderr chunk
            on_exit: Called once with (exit_code, signal) after the process ends

        Returns:
            ProcessHandle for the new process

        Raises:
            SpawnError: If the executable could not be started
            SupervisorBusyError: If a previous process is still supervised
        """
        argv = [command, *args]

        with self._lock:
            if self._process is not None:
                raise SupervisorBusyError(f"Already supervising pid {self._process.pid}")

            log.debug("Spawning: %s", argv)
            try:
                process = self._popen_factory(
                    argv,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                )
            except (OSError, ValueError) as e:
                log.error("Failed to spawn %s: %s", command, e)
                raise SpawnError(argv, e) from e

            events: queue.Queue = queue.Queue()
            readers = [
                threading.Thread(
                    target=self._read_stream,
                    args=(process.stdout, STDOUT, events),
                    name=f"{command}-{STDOUT}",
                    daemon=self._config.daemon_threads,
                ),
                threading.Thread(
                    target=self._read_stream,
                    args=(process.stderr, STDERR, events),
                    name=f"{command}-{STDERR}",
                    daemon=self._config.daemon_threads,
                ),
            ]
            waiter = threading.Thread(
                target=self._wait_for_exit,
                args=(process, events),
                name=f"{command}-waiter",
                daemon=self._config.daemon_threads,
            )
            dispatcher = threading.Thread(
                target=self._dispatch,
                args=(process, events, readers, on_stdout, on_stderr, on_exit),
                name=f"{command}-dispatcher",
                daemon=self._config.daemon_threads,
            )

            try:
                for thread in [*readers, waiter]:
                    thread.start()
            except RuntimeError as e:
                # Threads that did start see EOF once the pipes close
                self._discard_process(process)
                raise SpawnError(argv, e) from e

            self._process = process
            self._dispatcher_thread = dispatcher
            dispatcher.start()

        log.info("Started %s (pid %s)", command, process.pid)
        return ProcessHandle(process, argv)

    def terminate(self, timeout: Optional[float] = None) -> bool:
        """
        Terminate the supervised process and wait for its exit callback.

        Sends SIGTERM, then SIGKILL if the process outlives ``timeout``.

        Returns:
            True if a process was running, False otherwise
        """
        timeout = self._config.stop_timeout if timeout is None else timeout

        with self._lock:
            process = self._process
        if process is None:
            return False

        log.info("Terminating pid %s", process.pid)
        with contextlib.suppress(ProcessLookupError):
            process.terminate()

        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            log.warning("pid %s did not exit within %.1fs, killing", process.pid, timeout)
            with contextlib.suppress(ProcessLookupError):
                process.kill()

        self.wait(timeout=self._config.thread_join_timeout + self._config.exit_drain_timeout)
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the dispatcher to deliver the exit callback.

        Returns True if no process is being supervised afterwards. Calling
        this from inside a callback does not block.
        """
        thread = self._dispatcher_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                log.warning("Dispatcher thread did not finish within timeout")
        return not self.is_running

    def _read_stream(self, stream, name: str, events: queue.Queue) -> None:
        """Post chunks from one pipe to the event queue until EOF, then close it."""
        try:
            while True:
                chunk = stream.read1(self._config.chunk_size)
                if not chunk:
                    break
                events.put((name, chunk))
        except (OSError, ValueError) as e:
            # Pipe closed underneath the reader
            log.debug("%s reader stopped: %s", name, e)
        finally:
            # Only the reader closes its pipe: a buffered close from another
            # thread blocks until the pending read returns.
            with contextlib.suppress(OSError, ValueError):
                stream.close()
            events.put((name, None))

    def _wait_for_exit(self, process, events: queue.Queue) -> None:
        events.put((EXIT, process.wait()))

    def _dispatch(
        self,
        process,
        events: queue.Queue,
        readers: Sequence[threading.Thread],
        on_stdout: ChunkCallback,
        on_stderr: ChunkCallback,
        on_exit: ExitCallback,
    ) -> None:
        """Deliver queued chunks in order until the process exits, then the exit notification."""
        decoders = {
            STDOUT: codecs.getincrementaldecoder(self._config.encoding)(errors="replace"),
            STDERR: codecs.getincrementaldecoder(self._config.encoding)(errors="replace"),
        }
        handlers = {STDOUT: on_stdout, STDERR: on_stderr}
        open_streams = {STDOUT, STDERR}

        def deliver_chunk(name: str, chunk: Optional[bytes]) -> None:
            if chunk is None:
                open_streams.discard(name)
                text = decoders[name].decode(b"", final=True)
            else:
                text = decoders[name].decode(chunk)
            if text:
                self._deliver(handlers[name], text)

        while True:
            name, payload = events.get()
            if name == EXIT:
                returncode = payload
                break
            deliver_chunk(name, payload)

        # Output written just before the exit is usually still in the pipes
        deadline = time.monotonic() + self._config.exit_drain_timeout
        for reader in readers:
            reader.join(timeout=max(0.0, deadline - time.monotonic()))
        while True:
            try:
                name, payload = events.get_nowait()
            except queue.Empty:
                break
            deliver_chunk(name, payload)

        for name in sorted(open_streams):
            # A descendant still holds this pipe; its reader is abandoned and
            # closes the pipe once the descendant lets go.
            log.warning("pid %s exited with its %s still open", process.pid, name)
            text = decoders[name].decode(b"", final=True)
            if text:
                self._deliver(handlers[name], text)

        with self._lock:
            if self._process is process:
                self._process = None

        exit_code, signal = split_returncode(returncode)
        log.info("pid %s exited (code=%s, signal=%s)", process.pid, exit_code, signal)
        self._deliver(on_exit, exit_code, signal)

    def _deliver(self, callback: Callable, *args) -> None:
        try:
            callback(*args)
        except Exception:
            log.exception("Callback %r failed", callback)

    def _discard_process(self, process) -> None:
        """Kill and reap a process whose supervision could not be set up."""
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        with contextlib.suppress(subprocess.TimeoutExpired):
            process.wait(timeout=self._config.stop_timeout)
        self._close_streams(process)

    @staticmethod
    def _close_streams(process) -> None:
        for stream in (process.stdout, process.stderr):
            if stream is not None:
                with contextlib.suppress(OSError, ValueError):
                    stream.close()
