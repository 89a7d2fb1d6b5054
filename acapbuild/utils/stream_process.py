"""Run subprocesses while streaming their output through middleware.

Both pipes are drained on background threads so a chatty compiler never
blocks on a full pipe; each line is handed to an ``OutputMiddleware`` as it
arrives and the processed values are collected for the caller.
"""

import shlex
import subprocess
from threading import Thread
from typing import IO, Generic, TypeAlias, TypeVar, cast


T = TypeVar("T")

# (return_code, stdout, stderr)
ProcessResult: TypeAlias = tuple[int, list[T], list[T]]

# Return code reported when a process was killed because of a timeout
TIMEOUT_RETURN_CODE = -9


class OutputMiddleware(Generic[T]):
    """Base class for processing command output streams.

    Type parameter T is the type ``process`` returns; returning None drops
    the line from the collected output.
    """

    def process(self, line: str, stream_type: str) -> T:
        """Process one line from ``stream_type`` ("stdout" or "stderr")."""
        raise NotImplementedError()


class CollectingMiddleware(OutputMiddleware[str]):
    """Middleware that keeps lines unchanged."""

    def process(self, line: str, stream_type: str) -> str:
        return line


def run_command(
    cmd: str | list[str],
    middleware: OutputMiddleware[T] | None = None,
    timeout: float | None = None,
) -> ProcessResult[T]:
    """Run a command and process its output through middleware.

    Args:
        cmd: Command to run, either as a string or list of arguments
        middleware: Output processor (lines are collected unchanged if None)
        timeout: Seconds to wait before killing the process

    Returns:
        (return code, processed stdout lines, processed stderr lines). A
        killed process reports ``TIMEOUT_RETURN_CODE``.

    Raises:
        FileNotFoundError: If the executable does not exist
    """
    if middleware is None:
        middleware = cast(OutputMiddleware[T], CollectingMiddleware())

    if isinstance(cmd, str):
        cmd = shlex.split(cmd)

    process = subprocess.Popen(
        cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True, bufsize=1
    )

    stdout_lines: list[T] = []
    stderr_lines: list[T] = []

    def drain(stream: IO[str], stream_type: str, sink: list[T]) -> None:
        for line in iter(stream.readline, ""):
            processed = middleware.process(line.rstrip(), stream_type)
            if processed is not None:
                sink.append(processed)
        stream.close()

    threads = [
        Thread(
            target=drain, args=(process.stdout, "stdout", stdout_lines), daemon=True
        ),
        Thread(
            target=drain, args=(process.stderr, "stderr", stderr_lines), daemon=True
        ),
    ]
    for thread in threads:
        thread.start()

    try:
        return_code = process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()
        return_code = TIMEOUT_RETURN_CODE

    for thread in threads:
        thread.join()

    return return_code, stdout_lines, stderr_lines
