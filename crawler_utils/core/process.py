"""Child process execution with streamed, unbounded output capture.

``spawn_promisified`` drains the child's pipes chunk by chunk into growable buffers,
so output size is never capped. ``exec_file`` is the buffered variant with a
``max_buffer`` ceiling. Both run the command without a shell and raise the same
launch errors ``subprocess.run`` would raise for the same argv.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from os import PathLike
from typing import Optional, Sequence, Union

from crawler_utils.models.command import CommandSpec

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_BUFFER = 1024 * 1024
DEFAULT_ENCODING = "utf-8"
DEFAULT_ERRORS = "replace"
_CHUNK_SIZE = 64 * 1024


class ProcessExitError(subprocess.CalledProcessError):
    """Raised when a command runs but exits with a non-zero status.

    The message starts with the one ``subprocess.run(check=True)`` produces for the
    same argv and appends the captured stderr. Containment therefore runs from the
    reference to this error: ``str(CalledProcessError) in str(ProcessExitError)``.
    The stdlib message carries no stderr, so the opposite direction cannot hold.
    """

    @property
    def code(self) -> int:
        return self.returncode

    @property
    def message(self) -> str:
        return str(self)

    def __str__(self) -> str:
        base = super().__str__()
        detail = (self.stderr or "").strip()
        if not detail:
            return base
        return f"{base}\n{detail}"


class ProcessTimeoutError(subprocess.TimeoutExpired):
    """Raised after a command exceeded its timeout and was killed."""


class MaxBufferExceeded(RuntimeError):
    """Raised by the buffered exec when a stream grows past ``max_buffer`` bytes."""

    code = "ERR_CHILD_PROCESS_STDIO_MAXBUFFER"

    def __init__(self, stream: str, limit: int) -> None:
        super().__init__(f"{stream} maxBuffer length exceeded")
        self.stream = stream
        self.limit = limit


@dataclass(frozen=True)
class ExecResult:
    stdout: str
    stderr: str


class _Capture:
    def __init__(self, name: str, limit: Optional[int]) -> None:
        self.name = name
        self._limit = limit
        self._buf = bytearray()

    def append(self, chunk: bytes) -> None:
        self._buf.extend(chunk)
        if self._limit is not None and len(self._buf) > self._limit:
            raise MaxBufferExceeded(self.name, self._limit)

    def text(self, encoding: str, errors: str) -> str:
        return self._buf.decode(encoding, errors)


async def spawn_promisified(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: Optional[Union[str, PathLike]] = None,
    timeout: Optional[float] = None,
    encoding: str = DEFAULT_ENCODING,
    errors: str = DEFAULT_ERRORS,
) -> str:
    spec = _build_spec(command, args, cwd, timeout)
    stdout, _ = await _execute(spec, max_buffer=None, encoding=encoding, errors=errors)
    return stdout


async def exec_file(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: Optional[Union[str, PathLike]] = None,
    timeout: Optional[float] = None,
    max_buffer: int = DEFAULT_MAX_BUFFER,
    encoding: str = DEFAULT_ENCODING,
    errors: str = DEFAULT_ERRORS,
) -> ExecResult:
    if max_buffer <= 0:
        raise ValueError("max_buffer must be > 0")
    spec = _build_spec(command, args, cwd, timeout)
    stdout, stderr = await _execute(spec, max_buffer=max_buffer, encoding=encoding, errors=errors)
    return ExecResult(stdout=stdout, stderr=stderr)


def run_command(command: str, args: Sequence[str] = (), **kwargs) -> str:
    """Blocking form of :func:`spawn_promisified` for callers without an event loop."""
    return asyncio.run(spawn_promisified(command, args, **kwargs))


def exec_file_sync(command: str, args: Sequence[str] = (), **kwargs) -> ExecResult:
    return asyncio.run(exec_file(command, args, **kwargs))


def _build_spec(
    command: str,
    args: Sequence[str],
    cwd: Optional[Union[str, PathLike]],
    timeout: Optional[float],
) -> CommandSpec:
    return CommandSpec(
        command=command,
        args=list(args),
        cwd=str(cwd) if cwd is not None else None,
        timeout_seconds=timeout,
    )


async def _execute(
    spec: CommandSpec,
    max_buffer: Optional[int],
    encoding: str,
    errors: str,
) -> tuple[str, str]:
    LOGGER.debug("spawning command=%s cwd=%s", spec.display(), spec.cwd)
    # Launch errors (FileNotFoundError, PermissionError) propagate untouched.
    proc = await asyncio.create_subprocess_exec(
        *spec.argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=spec.cwd,
    )

    stdout = _Capture("stdout", max_buffer)
    stderr = _Capture("stderr", max_buffer)

    drains = (
        asyncio.ensure_future(_drain(proc.stdout, stdout)),
        asyncio.ensure_future(_drain(proc.stderr, stderr)),
    )

    async def _communicate() -> int:
        await asyncio.gather(*drains)
        return await proc.wait()

    try:
        returncode = await asyncio.wait_for(_communicate(), timeout=spec.timeout_seconds)
    except asyncio.TimeoutError:
        await _terminate(proc, drains)
        LOGGER.warning("command timed out after %ss: %s", spec.timeout_seconds, spec.display())
        raise ProcessTimeoutError(
            spec.argv,
            spec.timeout_seconds,
            output=stdout.text(encoding, errors),
            stderr=stderr.text(encoding, errors),
        ) from None
    except BaseException:
        await _terminate(proc, drains)
        raise

    out_text = stdout.text(encoding, errors)
    err_text = stderr.text(encoding, errors)
    if returncode != 0:
        LOGGER.warning("command failed code=%s: %s", returncode, spec.display())
        raise ProcessExitError(returncode, spec.argv, output=out_text, stderr=err_text)
    return out_text, err_text


async def _drain(stream: Optional[asyncio.StreamReader], capture: _Capture) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return
        capture.append(chunk)


async def _terminate(proc: asyncio.subprocess.Process, drains: Sequence[asyncio.Future]) -> None:
    """Kill the child and release its pipes.

    ``Process.wait()`` only returns once every pipe is closed, so paused readers
    are emptied to EOF before reaping.
    """
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    for task in drains:
        task.cancel()
    await asyncio.gather(*drains, return_exceptions=True)
    for stream in (proc.stdout, proc.stderr):
        if stream is None:
            continue
        while await stream.read(_CHUNK_SIZE):
            pass
    await proc.wait()
